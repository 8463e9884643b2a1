"""
Tests for operation-node placement.
"""

from opmaze.core.config import MazeConfig
from opmaze.core.definitions import BLOCKED_CELL, OPEN_CELL, START_CELL, Cell, CellKind, make_grid
from opmaze.generation.grid_graph import generate
from opmaze.generation.node_placer import place_nodes, place_operation_nodes

ROLE = Cell.operation('node1')


def test_predefined_positions_first():
    grid = make_grid(3, 3, OPEN_CELL)
    grid[0, 0] = START_CELL
    grid[1, 1] = BLOCKED_CELL

    placed = place_nodes(
        grid, 3, ROLE,
        predefined_positions=[(0, 0), (1, 1), (5, 5), (2, 2), (0, 2)],
        seed=1,
    )

    assert placed[:2] == [(2, 2), (0, 2)]
    assert len(placed) == 3
    for pos in placed:
        assert grid[pos] == ROLE
    assert grid[0, 0] == START_CELL
    assert grid[1, 1] == BLOCKED_CELL


def test_predefined_beyond_quantity_ignored():
    grid = make_grid(3, 3, OPEN_CELL)
    placed = place_nodes(grid, 1, ROLE, predefined_positions=[(0, 1), (0, 2)])
    assert placed == [(0, 1)]
    assert grid[0, 2] == OPEN_CELL


def test_same_seed_same_positions():
    a = place_nodes(make_grid(5, 5, OPEN_CELL), 4, ROLE, seed=99)
    b = place_nodes(make_grid(5, 5, OPEN_CELL), 4, ROLE, seed=99)
    assert a == b
    assert len(set(a)) == 4


def test_no_random_fill():
    grid = make_grid(3, 3, OPEN_CELL)
    placed = place_nodes(grid, 3, ROLE, predefined_positions=[(1, 2)], random_fill=False)
    assert placed == [(1, 2)]


def test_quantity_larger_than_open_cells():
    grid = make_grid(2, 2, BLOCKED_CELL)
    grid[0, 1] = OPEN_CELL
    grid[1, 0] = OPEN_CELL

    placed = place_nodes(grid, 5, ROLE, seed=3)

    assert sorted(placed) == [(0, 1), (1, 0)]


def test_place_operation_nodes_on_generated_maze():
    state = generate(MazeConfig(seed=4))
    place_operation_nodes(state, seed=12)

    registry = state.node_details.operation
    assert len(registry['node1'].positions) == 2
    assert len(registry['node2'].positions) == 1

    for key, spec in registry.items():
        for pos in spec.positions:
            assert state.grid[pos] == Cell.operation(key)
            assert pos != state.start
            assert pos not in state.goals

    op_cells = state.cells_of_kind(CellKind.OPERATION)
    assert sorted(op_cells) == sorted(p for _, p in state.node_details.operation_positions())
