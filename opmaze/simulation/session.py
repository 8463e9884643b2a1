"""
Maze Session
============

Core of one trial of the maze game, without any rendering or input capture.

The player starts on the start cell and moves along matrix edges. Stepping on
an operation node applies its operations: rotations change the current
picture, ADD_EDGE operations add a bridge edge to the session's copy of the
maze. A trial is complete when the player stands on a goal while the current
picture matches the goal picture.

The goal picture of each trial comes from a random activation order drawn
from a session-local stream that is independent of the generation seed.

Usage:
    session = MazeSession(engine.state, default_picture(), rng=random.Random(3))
    session.start_trial()
    result = session.move("right")
    print(result.position, result.progress)
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from opmaze.core.definitions import (
    OPEN_CELL,
    CellKind,
    MazeError,
    Position,
    to_index,
)
from opmaze.core.node_details import OperationKind
from opmaze.core.state import MazeState
from opmaze.simulation.activation_solver import (
    DEFAULT_MAX_TYPES,
    SolverResult,
    find_valid_orders,
    next_activation_targets,
)
from opmaze.simulation.pathfinding import manhattan
from opmaze.simulation.picture import (
    Picture,
    apply_operations,
    pictures_equal,
    synthesize_goal_picture,
)
from opmaze.utils.graph_utils import add_edge

logger = logging.getLogger(__name__)


class Direction(Enum):
    UP = (-1, 0)
    DOWN = (1, 0)
    LEFT = (0, -1)
    RIGHT = (0, 1)

    @classmethod
    def parse(cls, value: Union['Direction', str]) -> 'Direction':
        if isinstance(value, cls):
            return value
        name = str(value).lower()
        if name.startswith('arrow'):
            name = name[len('arrow'):]
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown direction: {value!r}") from None


@dataclass
class MoveResult:
    """Outcome of one move."""
    position: Position
    moved: bool
    direction: Direction
    activated_node: Optional[str] = None
    next_targets: List[Position] = field(default_factory=list)
    progress: Optional[float] = None
    picture_matches: bool = False
    at_goal: bool = False
    reward: Optional[float] = None
    trial_complete: bool = False


def placed_operation_nodes(state: MazeState) -> List[Tuple[str, Position]]:
    """(node_key, position) of every operation cell, row-major."""
    return [
        (cell.node_key, pos)
        for pos, cell in state.iter_cells()
        if cell.kind == CellKind.OPERATION
    ]


def calculate_progress(
    position: Position,
    targets: Sequence[Position],
    normalize: bool,
    initial_distance: int,
    rows: int,
    cols: int,
) -> float:
    """
    Progress towards the closest target.

    Normalized: (initial - d) / initial, 0 at the start, 1 on a target,
    negative when moving away; 1.0 if the initial distance is 0.
    Otherwise: 1 - d / (rows + cols).
    """
    if not targets:
        return 0.0
    closest = min(manhattan(position, t) for t in targets)
    if normalize:
        if initial_distance == 0:
            return 1.0
        return (initial_distance - closest) / initial_distance
    return 1 - closest / (rows + cols)


def reward_at(state: MazeState, position: Position) -> Optional[float]:
    """Reward of the goal at position, None if position is not a goal."""
    goal = state.node_details.goal
    for i, pos in enumerate(goal.positions):
        if tuple(pos) == tuple(position):
            return goal.reward_at(i)
    return None


class MazeSession:
    """
    One player on one maze.

    The session works on its own copy of the maze; activations never touch
    the engine's state.
    """

    def __init__(
        self,
        state: MazeState,
        initial_picture: Picture,
        consumable: bool = True,
        rng: Optional[random.Random] = None,
        normalize_progress: bool = True,
        max_operation_types: int = DEFAULT_MAX_TYPES,
    ):
        self.base_state = state.copy()
        self.initial_picture = initial_picture.copy()
        self.consumable = consumable
        self.rng = rng or random.Random()
        self.normalize_progress = normalize_progress
        self.max_operation_types = max_operation_types

        self.state: MazeState = self.base_state.copy()
        self.player: Position = self.state.start
        self.picture: Picture = self.initial_picture.copy()
        self.goal_picture: Picture = self.initial_picture.copy()
        self.goal_order: List[str] = []
        self.initial_distance = 0
        self.progress: Optional[float] = None
        self.trial = 0
        self.trials_completed = 0
        self.finished = False

    # ==========================================
    # TRIAL LIFECYCLE
    # ==========================================

    def start_trial(self) -> Picture:
        """Reset maze copy, player and picture; draw a new goal picture."""
        self.state = self.base_state.copy()
        self.player = self.state.start
        self.picture = self.initial_picture.copy()
        self.goal_picture, self.goal_order = synthesize_goal_picture(
            self.picture, self.state.node_details, self.rng
        )
        self.finished = False
        self.trial += 1

        # Baseline is the closest goal; later moves measure to the next targets
        goals = self.state.goals
        self.initial_distance = min((manhattan(self.player, g) for g in goals), default=0)
        self.progress = self._progress(goals)
        logger.info(
            f"Trial {self.trial} started: goal order {self.goal_order}, "
            f"initial distance {self.initial_distance}"
        )
        return self.goal_picture

    def solve(self) -> SolverResult:
        return find_valid_orders(
            self.picture,
            self.goal_picture,
            placed_operation_nodes(self.state),
            self.state.node_details,
            max_types=self.max_operation_types,
        )

    def next_targets(self) -> List[Position]:
        return next_activation_targets(self.solve(), self.state.goals)

    def _progress(self, targets: Sequence[Position]) -> float:
        return calculate_progress(
            self.player,
            targets,
            self.normalize_progress,
            self.initial_distance,
            self.state.rows,
            self.state.cols,
        )

    # ==========================================
    # MOVEMENT
    # ==========================================

    def find_move_target(self, direction: Direction) -> Optional[Position]:
        """First cell along direction (nearest first) joined to the player by an edge."""
        dr, dc = direction.value
        cols = self.state.cols
        here = to_index(self.player, cols)
        r, c = self.player[0] + dr, self.player[1] + dc
        while self.state.in_bounds((r, c)):
            if self.state.adj_matrix[here, to_index((r, c), cols)]:
                return (r, c)
            r, c = r + dr, c + dc
        return None

    def move(self, direction) -> MoveResult:
        """
        Try to move the player one edge in direction.

        The move only happens if the edge-connected cell is traversable.
        Next activation targets are computed from the picture before any
        activation on the new cell.
        """
        direction = Direction.parse(direction)
        result = MoveResult(position=self.player, moved=False, direction=direction)
        if self.finished:
            return result

        target = self.find_move_target(direction)
        if target is None or not self.state.grid[target].is_traversable:
            return result

        self.player = target
        result.position = target
        result.moved = True

        result.next_targets = self.next_targets()
        self.progress = self._progress(result.next_targets)
        result.progress = self.progress

        cell = self.state.grid[target]
        if cell.kind == CellKind.OPERATION:
            self.activate(cell.node_key, target)
            result.activated_node = cell.node_key

        result.picture_matches = pictures_equal(self.picture, self.goal_picture)
        result.at_goal = cell.kind == CellKind.GOAL
        if result.at_goal and result.picture_matches:
            result.reward = reward_at(self.state, target)
            result.trial_complete = True
            self.finished = True
            self.trials_completed += 1
            logger.info(f"Trial {self.trial} complete at {target}, reward {result.reward}")
        return result

    def activate(self, node_key: str, position: Position) -> None:
        """Apply the operations of node_key; consume the cell if configured."""
        spec = self.state.node_details.operation.get(node_key)
        if spec is None:
            logger.warning(f"Operation cell {position} has unknown node type '{node_key}'")
            return

        for op in spec.operations:
            if op.kind == OperationKind.ADD_EDGE:
                a, b = op.params
                try:
                    add_edge(self.state.adj_matrix, self.state.rows, self.state.cols, a, b)
                except MazeError as e:
                    logger.warning(f"Skipping bridge of '{node_key}': {e}")
        self.picture = apply_operations(self.picture, spec.operations)

        if self.consumable:
            self.state.grid[position] = OPEN_CELL
            if position in spec.positions:
                spec.positions.remove(position)
        logger.debug(f"Activated '{node_key}' at {position}: {self.picture.describe()}")


__all__ = [
    'Direction',
    'MoveResult',
    'placed_operation_nodes',
    'calculate_progress',
    'reward_at',
    'MazeSession',
]
