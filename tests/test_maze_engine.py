"""
Tests for the maze engine: build, edits, change log and rebuild.
"""

import random

import pytest

from opmaze.core.config import MazeConfig
from opmaze.core.definitions import (
    BLOCKED_CELL,
    Cell,
    CellKind,
    ConfigError,
    OutOfBoundsError,
)
from opmaze.core.node_details import Operation, OperationKind
from opmaze.generation.manual_changes import ToggleCell
from opmaze.pipeline import maze_engine
from opmaze.pipeline.maze_engine import MazeEngine
from opmaze.simulation.picture import apply_operations, default_picture


@pytest.fixture
def engine():
    return MazeEngine(MazeConfig(seed=21, sparsity=0.3, operation_node_seed=8))


def an_open_cell(state):
    return state.cells_of_kind(CellKind.OPEN)[0]


class TestBuild:

    def test_default_build(self, engine):
        state = engine.build()
        assert (state.rows, state.cols) == (7, 7)
        assert state.grid[0, 0].kind == CellKind.START
        assert len(engine.placed_operation_nodes()) == 3

    def test_same_config_same_maze(self):
        config = MazeConfig(seed=21, sparsity=0.3, operation_node_seed=8)
        assert MazeEngine(config).build() == MazeEngine(config).build()

    def test_crop_config(self):
        engine = MazeEngine(MazeConfig(seed=3, crop=(0, 0, 4, 4), operation_node_seed=1))
        state = engine.build()
        assert (state.rows, state.cols) == (5, 5)
        assert state.adj_matrix.shape == (25, 25)
        assert state.goals[0] == (4, 4)
        assert len(state.goals) == 2
        for _, pos in engine.placed_operation_nodes():
            assert state.in_bounds(pos)

    def test_invalid_config(self):
        with pytest.raises(ConfigError):
            MazeEngine(MazeConfig(rows=3, cols=3))


class TestSnapshots:

    def test_state_is_a_copy(self, engine):
        snapshot = engine.state
        snapshot.grid[3, 3] = BLOCKED_CELL
        snapshot.adj_matrix[:, :] = False
        snapshot.node_details.goal.positions.clear()

        fresh = engine.state
        assert fresh.edge_count() > 0
        assert fresh.goals == [(4, 4), (6, 6)]

    def test_grid_and_matrix_are_copies(self, engine):
        engine.adj_matrix[:, :] = False
        engine.grid[1, 1] = BLOCKED_CELL
        assert engine.state.edge_count() > 0

    def test_changelog_is_a_copy(self, engine):
        engine.toggle_cell(an_open_cell(engine.state))
        engine.changelog.clear()
        assert len(engine.changelog) == 1

    def test_changelog_entries_are_deep_copies(self, engine):
        engine.add_edge((0, 0), (6, 6))
        engine.changelog[0]['to'][0] = 0
        assert engine.changelog[0]['to'] == [6, 6]

        engine.rebuild()
        assert engine.adj_matrix[0, 48]
        assert not engine.adj_matrix[0, 6]

    def test_loaded_entries_are_not_shared(self, engine):
        entries = [{'type': 'edge', 'action': 'add', 'from': [0, 0], 'to': [6, 6]}]
        engine.load_changelog(entries)
        entries[0]['to'][0] = 0

        assert engine.changelog[0]['to'] == [6, 6]
        engine.rebuild()
        assert engine.adj_matrix[0, 48]


class TestEdits:

    def test_rebuild_reproduces_edits(self, engine):
        engine.build()
        engine.toggle_cell(an_open_cell(engine.state))
        _, op_pos = engine.placed_operation_nodes()[0]
        engine.toggle_cell(op_pos)
        engine.add_edge((0, 0), (6, 6))
        engine.del_edge((0, 0), (0, 1))
        live = engine.state

        assert engine.rebuild() == live
        assert engine.state == live

    def test_rejected_change_not_logged(self, engine):
        with pytest.raises(OutOfBoundsError):
            engine.add_edge((0, 0), (7, 7))
        assert engine.changelog == []

    def test_deactivate_all_logs_two_entries(self, engine):
        state = engine.deactivate_all()
        assert engine.changelog == [
            {'type': 'node', 'action': 'deactivate_all'},
            {'type': 'deactivate_all_edges'},
        ]
        assert state.edge_count() == 0
        assert engine.placed_operation_nodes() == []

    def test_load_changelog_skips_malformed(self, engine):
        engine.load_changelog([
            {'type': 'edge', 'action': 'add', 'from': [0, 0], 'to': [6, 6]},
            {'type': 'bogus'},
            {'type': 'edge', 'action': 'add', 'from': [0, 0], 'to': [99, 0]},
        ])
        assert engine.adj_matrix[0, 48]
        assert len(engine.changelog) == 3

    @pytest.mark.parametrize("junk", [None, "garbage", 7])
    def test_load_changelog_skips_non_dict_entries(self, engine, junk):
        engine.load_changelog([{'type': 'deactivate_all_edges'}, junk])
        assert engine.state.edge_count() == 0
        assert engine.changelog[1] == junk

    def test_load_changelog_accepts_change_objects(self, engine):
        pos = an_open_cell(engine.state)
        engine.load_changelog([ToggleCell(pos)])
        assert engine.changelog == [{'type': 'node', 'action': 'toggle', 'position': list(pos)}]
        assert engine.grid[pos] == BLOCKED_CELL

    def test_clear_changelog(self, engine):
        base = engine.build()
        engine.deactivate_all_edges()
        engine.clear_changelog()
        assert engine.state == base


class TestPuzzle:

    def test_solve_activation_order(self, engine):
        current = default_picture()
        goal = apply_operations(current, [Operation(OperationKind.ROTATE_180, [2])])

        result = engine.solve_activation_order(current, goal)

        node2 = engine.state.node_details.operation['node2'].positions
        assert result.valid_orders == [('node2',)]
        assert result.positions == node2

    def test_new_session_uses_owned_state(self, engine):
        session = engine.new_session(rng=random.Random(0))
        session.start_trial()
        assert session.player == (0, 0)
        assert session.state == engine.state


class TestStateApi:

    def test_edges(self, engine):
        state = engine.state
        maze_engine.add_edge(state, (0, 0), (3, 3))
        assert state.adj_matrix[0, 24]
        maze_engine.del_edge(state, [3, 3], [0, 0])
        assert not state.adj_matrix[0, 24]

    def test_place_nodes(self, engine):
        state = engine.state
        role = Cell.operation('extra')
        placed = maze_engine.place_nodes(state, role, 2, seed=4)
        assert len(placed) == 2
        assert all(state.grid[p] == role for p in placed)
