"""
Tests for player movement, activation and trial completion.

Most tests use a 1x4 corridor:  S . O G
"""

import random

import pytest

from opmaze.core.definitions import (
    BLOCKED_CELL,
    OPEN_CELL,
    START_CELL,
    Cell,
    CellKind,
    make_adjacency,
    make_grid,
)
from opmaze.core.node_details import (
    GoalDetails,
    NodeDetails,
    Operation,
    OperationKind,
    OperationNodeSpec,
    StartDetails,
)
from opmaze.core.state import MazeState
from opmaze.simulation.picture import Element, Picture
from opmaze.simulation.session import (
    Direction,
    MazeSession,
    calculate_progress,
    placed_operation_nodes,
    reward_at,
)
from opmaze.utils.graph_utils import add_edge, del_edge


def corridor_state(bridge=None):
    grid = make_grid(1, 4, OPEN_CELL)
    grid[0, 0] = START_CELL
    grid[0, 2] = Cell.operation('flip')
    grid[0, 3] = Cell.goal(0)

    adj = make_adjacency(1, 4)
    for c in range(3):
        add_edge(adj, 1, 4, (0, c), (0, c + 1))

    operations = [Operation(OperationKind.ROTATE_180, [0])]
    if bridge is not None:
        operations.append(Operation(OperationKind.ADD_EDGE, [], params=bridge))

    details = NodeDetails(
        start=StartDetails(position=(0, 0)),
        goal=GoalDetails(positions=[(0, 3)], colors=['green'], rewards=[10.0]),
        operation={'flip': OperationNodeSpec(quantity=1, operations=operations,
                                             positions=[(0, 2)])},
    )
    return MazeState(grid=grid, adj_matrix=adj, node_details=details)


def one_rect():
    return Picture(elements=[Element(shape='rect', color='red', width=30, height=10)])


def new_session(state=None, **kwargs):
    session = MazeSession(state or corridor_state(), one_rect(), rng=random.Random(0), **kwargs)
    session.start_trial()
    return session


class TestTrial:

    def test_start_trial(self):
        session = new_session()
        assert session.player == (0, 0)
        assert session.goal_order == ['flip']
        assert session.goal_picture.elements[0].rotation_angle == 180
        assert session.initial_distance == 3
        assert session.progress == 0.0
        assert session.next_targets() == [(0, 2)]

    def test_full_run(self):
        session = new_session()

        first = session.move('right')
        assert first.moved and first.position == (0, 1)
        assert first.next_targets == [(0, 2)]
        assert first.progress == pytest.approx(2 / 3)
        assert not first.picture_matches

        second = session.move('ArrowRight')
        assert second.position == (0, 2)
        assert second.activated_node == 'flip'
        assert second.progress == 1.0
        assert second.picture_matches
        assert not second.trial_complete

        third = session.move(Direction.RIGHT)
        assert third.position == (0, 3)
        assert third.next_targets == [(0, 3)]
        assert third.progress == 1.0
        assert third.at_goal
        assert third.reward == 10.0
        assert third.trial_complete
        assert session.finished
        assert session.trials_completed == 1

    def test_goal_without_matching_picture(self):
        state = corridor_state()
        del_edge(state.adj_matrix, 1, 4, (0, 1), (0, 2))
        add_edge(state.adj_matrix, 1, 4, (0, 1), (0, 3))
        session = new_session(state)

        session.move('right')
        result = session.move('right')

        assert result.position == (0, 3)
        assert result.at_goal
        assert not result.trial_complete
        assert result.reward is None

    def test_next_trial_resets(self):
        session = new_session()
        for _ in range(3):
            session.move('right')

        session.start_trial()

        assert session.trial == 2
        assert session.player == (0, 0)
        assert not session.finished
        assert session.state.grid[0, 2].kind == CellKind.OPERATION
        assert session.picture.elements[0].rotation_angle == 0

    def test_no_moves_after_completion(self):
        session = new_session()
        for _ in range(3):
            session.move('right')
        result = session.move('left')
        assert not result.moved
        assert result.position == (0, 3)


class TestMovement:

    def test_no_edge_no_move(self):
        session = new_session()
        result = session.move('left')
        assert not result.moved
        assert result.position == (0, 0)
        assert session.move('up').moved is False

    def test_blocked_target(self):
        state = corridor_state()
        state.grid[0, 1] = BLOCKED_CELL
        session = new_session(state)
        assert not session.move('right').moved
        assert session.player == (0, 0)

    def test_bridge_jump(self):
        state = corridor_state()
        del_edge(state.adj_matrix, 1, 4, (0, 0), (0, 1))
        add_edge(state.adj_matrix, 1, 4, (0, 0), (0, 2))
        session = new_session(state)

        result = session.move('right')

        assert result.position == (0, 2)
        assert result.activated_node == 'flip'

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            Direction.parse('sideways')


class TestActivation:

    def test_cell_consumed(self):
        session = new_session()
        session.move('right')
        session.move('right')
        assert session.state.grid[0, 2] == OPEN_CELL
        assert session.state.node_details.operation['flip'].positions == []
        assert placed_operation_nodes(session.state) == []

    def test_not_consumable(self):
        session = new_session(consumable=False)
        session.move('right')
        session.move('right')
        assert session.state.grid[0, 2] == Cell.operation('flip')

    def test_bridge_added_to_session_copy_only(self):
        state = corridor_state(bridge=((0, 0), (0, 3)))
        session = new_session(state)
        session.move('right')
        session.move('right')

        assert session.state.adj_matrix[0, 3]
        assert not state.adj_matrix[0, 3]
        assert not session.base_state.adj_matrix[0, 3]

    def test_out_of_bounds_bridge_skipped(self):
        session = new_session(corridor_state(bridge=((0, 0), (5, 5))))
        session.move('right')
        result = session.move('right')
        assert result.activated_node == 'flip'
        assert result.picture_matches


class TestHelpers:

    @pytest.mark.parametrize("pos,expected", [
        ((0, 0), 0.0),
        ((0, 2), 0.5),
        ((0, 4), 1.0),
    ])
    def test_normalized_progress(self, pos, expected):
        assert calculate_progress(pos, [(0, 4)], True, 4, 1, 5) == expected

    def test_progress_moving_away_is_negative(self):
        assert calculate_progress((2, 0), [(0, 2)], True, 2, 3, 3) == -1.0

    def test_zero_initial_distance(self):
        assert calculate_progress((1, 1), [(1, 1)], True, 0, 3, 3) == 1.0

    def test_unnormalized_progress(self):
        assert calculate_progress((0, 0), [(1, 1)], False, 0, 2, 2) == 0.5

    def test_reward_at(self):
        state = corridor_state()
        assert reward_at(state, (0, 3)) == 10.0
        assert reward_at(state, (0, 1)) is None
