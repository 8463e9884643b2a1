"""
Tests for cropping a maze to a rectangle.
"""

import pytest

from opmaze.core.config import MazeConfig
from opmaze.core.definitions import (
    CellKind,
    IsolatedTargetError,
    OPEN_CELL,
    make_adjacency,
    make_grid,
)
from opmaze.core.node_details import GoalDetails, NodeDetails, StartDetails
from opmaze.generation.grid_graph import generate, generate_maze
from opmaze.generation.region_cropper import crop, normalize_rect, repair_connectivity
from opmaze.utils.graph_utils import connected_components


@pytest.fixture
def full_maze():
    return generate(MazeConfig(sparsity=0.3, seed=7))


class TestNormalizeRect:

    def test_clamps_and_swaps(self):
        assert normalize_rect((5, -2, 1, 10), rows=7, cols=4) == (1, 0, 3, 6)

    def test_in_range_unchanged(self):
        assert normalize_rect((1, 2, 3, 4), rows=7, cols=7) == (1, 2, 3, 4)


class TestCrop:

    def test_relocates_goals_outside(self, full_maze):
        cropped = crop(full_maze, (0, 0, 2, 2))

        assert (cropped.rows, cropped.cols) == (3, 3)
        assert cropped.adj_matrix.shape == (9, 9)
        assert cropped.start == (0, 0)
        assert cropped.goals == [(2, 2), (2, 1)]
        assert cropped.grid[2, 2].kind == CellKind.GOAL
        assert cropped.grid[2, 2].goal_index == 0
        assert cropped.grid[2, 1].goal_index == 1

    def test_relocates_start_and_translates_goals(self, full_maze):
        cropped = crop(full_maze, (3, 3, 6, 6))

        assert (cropped.rows, cropped.cols) == (4, 4)
        assert cropped.start == (0, 0)
        assert cropped.grid[0, 0].kind == CellKind.START
        assert cropped.goals == [(1, 1), (3, 3)]

    def test_full_rect_is_identity(self, full_maze):
        assert crop(full_maze, (0, 0, 6, 6)) == full_maze

    def test_input_not_modified(self, full_maze):
        before = full_maze.copy()
        crop(full_maze, (1, 1, 4, 5))
        assert full_maze == before

    def test_crop_is_connected(self, full_maze):
        cropped = crop(full_maze, (1, 2, 5, 6))
        components = connected_components(cropped.grid, cropped.adj_matrix)
        assert len(components) == 1

    def test_operation_nodes_translated_or_dropped(self, full_maze):
        full_maze.node_details.operation['node1'].positions = [(1, 1), (5, 5)]
        cropped = crop(full_maze, (0, 0, 2, 2))
        assert cropped.node_details.operation['node1'].positions == [(1, 1)]

        cropped = crop(full_maze, (4, 4, 6, 6))
        assert cropped.node_details.operation['node1'].positions == [(1, 1)]

    def test_no_room_for_goal(self):
        details = NodeDetails(
            start=StartDetails(position=(0, 0)),
            goal=GoalDetails(positions=[(0, 1)], colors=['green'], rewards=[1.0]),
        )
        state = generate_maze(details, sparsity=0.0, seed=1, rows=1, cols=2)
        with pytest.raises(IsolatedTargetError):
            crop(state, (0, 0, 0, 0))


class TestRepair:

    def test_wires_every_cell(self):
        grid = make_grid(2, 2, OPEN_CELL)
        adj = make_adjacency(2, 2)

        added = repair_connectivity(grid, adj)

        assert added == 3
        assert len(connected_components(grid, adj)) == 1

    def test_wires_non_square_grid(self):
        grid = make_grid(2, 3, OPEN_CELL)
        adj = make_adjacency(2, 3)

        added = repair_connectivity(grid, adj)

        assert added == 5
        components = connected_components(grid, adj)
        assert components == [[(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]]

    def test_connected_input_untouched(self, full_maze):
        adj = full_maze.adj_matrix.copy()
        assert repair_connectivity(full_maze.grid, adj) == 0
        assert (adj == full_maze.adj_matrix).all()
