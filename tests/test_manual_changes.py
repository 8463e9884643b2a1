"""
Tests for manual edits and change-log replay.
"""

import pytest

from opmaze.core.config import MazeConfig
from opmaze.core.definitions import (
    BLOCKED_CELL,
    CellKind,
    InvalidEdgeError,
    ManualChangeError,
    OPEN_CELL,
    OutOfBoundsError,
)
from opmaze.generation.grid_graph import generate
from opmaze.generation.manual_changes import (
    AddEdge,
    DeactivateAll,
    DeactivateAllEdges,
    DeleteEdge,
    ToggleCell,
    apply_manual_change,
    parse_manual_change,
    replay_changes,
)
from opmaze.generation.node_placer import place_operation_nodes


@pytest.fixture
def state():
    maze = generate(MazeConfig(seed=2))
    place_operation_nodes(maze, seed=5)
    return maze


def an_open_cell(state):
    return state.cells_of_kind(CellKind.OPEN)[0]


class TestParse:

    @pytest.mark.parametrize("entry,expected", [
        ({'type': 'node', 'action': 'toggle', 'position': [1, 2]}, ToggleCell((1, 2))),
        ({'type': 'node', 'action': 'deactivate_all'}, DeactivateAll()),
        ({'type': 'edge', 'action': 'add', 'from': [0, 0], 'to': [0, 1]},
         AddEdge((0, 0), (0, 1))),
        ({'type': 'edge', 'action': 'delete', 'from': [0, 0], 'to': [1, 0]},
         DeleteEdge((0, 0), (1, 0))),
        ({'type': 'deactivate_all_edges'}, DeactivateAllEdges()),
    ])
    def test_known_entries(self, entry, expected):
        change = parse_manual_change(entry)
        assert change == expected
        assert change.to_dict() == entry

    @pytest.mark.parametrize("entry", [
        {'type': 'node', 'action': 'explode'},
        {'type': 'edge', 'action': 'add', 'from': [0, 0]},
        {'type': 'node', 'action': 'toggle', 'position': 'here'},
        {'type': 'portal'},
        ['node', 'toggle'],
    ])
    def test_malformed_entries(self, entry):
        with pytest.raises(ManualChangeError):
            parse_manual_change(entry)


class TestToggle:

    def test_open_to_blocked_and_back(self, state):
        pos = an_open_cell(state)
        apply_manual_change(state, ToggleCell(pos))
        assert state.grid[pos] == BLOCKED_CELL
        apply_manual_change(state, ToggleCell(pos))
        assert state.grid[pos] == OPEN_CELL

    def test_operation_cell_becomes_open(self, state):
        key, pos = state.node_details.operation_positions()[0]
        apply_manual_change(state, {'type': 'node', 'action': 'toggle', 'position': list(pos)})
        assert state.grid[pos] == OPEN_CELL
        assert pos not in state.node_details.operation[key].positions

    @pytest.mark.parametrize("role", ['start', 'goal'])
    def test_protected_cells(self, state, role):
        pos = state.start if role == 'start' else state.goals[0]
        before = state.grid[pos]
        apply_manual_change(state, ToggleCell(pos))
        assert state.grid[pos] == before

    def test_edges_kept(self, state):
        pos = an_open_cell(state)
        row = state.adj_matrix[state.index(pos)].copy()
        apply_manual_change(state, ToggleCell(pos))
        assert (state.adj_matrix[state.index(pos)] == row).all()

    def test_out_of_bounds(self, state):
        with pytest.raises(OutOfBoundsError):
            apply_manual_change(state, ToggleCell((7, 0)))


class TestBulkChanges:

    def test_deactivate_all(self, state):
        apply_manual_change(state, DeactivateAll())
        kinds = {cell.kind for _, cell in state.iter_cells()}
        assert kinds == {CellKind.BLOCKED, CellKind.START, CellKind.GOAL}
        assert state.node_details.operation_positions() == []

    def test_deactivate_all_edges(self, state):
        apply_manual_change(state, DeactivateAllEdges())
        assert state.edge_count() == 0


class TestEdges:

    def test_bridge_between_distant_cells(self, state):
        apply_manual_change(state, AddEdge((0, 0), (6, 6)))
        assert state.adj_matrix[0, 48] and state.adj_matrix[48, 0]
        apply_manual_change(state, DeleteEdge((6, 6), (0, 0)))
        assert not state.adj_matrix[0, 48]

    def test_rejected_edges(self, state):
        with pytest.raises(OutOfBoundsError):
            apply_manual_change(state, AddEdge((0, 0), (0, 7)))
        with pytest.raises(InvalidEdgeError):
            apply_manual_change(state, AddEdge((2, 2), (2, 2)))


class TestReplay:

    def test_bad_entries_are_skipped(self, state):
        pos = an_open_cell(state)
        entries = [
            {'type': 'node', 'action': 'toggle', 'position': list(pos)},
            {'type': 'edge', 'action': 'add', 'from': [0, 0], 'to': [9, 9]},
            {'type': 'mystery'},
            {'type': 'edge', 'action': 'add', 'from': [0, 0], 'to': [6, 6]},
        ]

        applied = replay_changes(state, entries)

        assert applied == [ToggleCell(pos), AddEdge((0, 0), (6, 6))]
        assert state.grid[pos] == BLOCKED_CELL
        assert state.adj_matrix[0, 48]

    def test_replay_matches_live_edits(self, state):
        live = state.copy()
        entries = [
            ToggleCell(an_open_cell(state)).to_dict(),
            DeleteEdge((0, 0), (0, 1)).to_dict(),
            AddEdge((1, 1), (5, 5)).to_dict(),
        ]
        for entry in entries:
            apply_manual_change(live, entry)

        replay_changes(state, entries)
        assert state == live
