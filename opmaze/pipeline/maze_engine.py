"""
Maze Engine
===========

Per-session owner of one maze: builds it from a MazeConfig, applies manual
edits, records them in a change log and rebuilds deterministically.

Build order:
    generate -> crop (if configured) -> place operation nodes -> replay log

Callers only ever receive deep copies of the owned state; every mutation
goes through an engine method so that it lands in the change log.

Usage:
    from opmaze.pipeline import MazeEngine

    engine = MazeEngine(MazeConfig(rows=7, cols=7, seed="Maze"))
    engine.build()
    engine.toggle_cell((3, 3))
    engine.add_edge((1, 2), (1, 4))

    rebuilt = engine.rebuild()
    assert rebuilt == engine.state

    session = engine.new_session()
    session.start_trial()
"""

import copy
import logging
import random
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from opmaze.core.config import MazeConfig, Seed
from opmaze.core.definitions import Cell, Position, as_position
from opmaze.core.state import MazeState
from opmaze.generation.grid_graph import generate
from opmaze.generation.manual_changes import (
    AddEdge,
    DeactivateAll,
    DeactivateAllEdges,
    DeleteEdge,
    ManualChange,
    ToggleCell,
    parse_manual_change,
    replay_changes,
)
from opmaze.generation.node_placer import place_nodes as _place_nodes
from opmaze.generation.node_placer import place_operation_nodes
from opmaze.generation.region_cropper import crop
from opmaze.simulation.activation_solver import SolverResult, find_valid_orders
from opmaze.simulation.picture import Picture, default_picture
from opmaze.simulation.session import MazeSession, placed_operation_nodes
from opmaze.utils import graph_utils

logger = logging.getLogger(__name__)


class MazeEngine:
    """
    Owns the maze of one session.

    The change log holds serialised entries; entries that fail to apply are
    skipped (with a warning) when the log is replayed.
    """

    def __init__(self, config: Optional[MazeConfig] = None):
        """
        Args:
            config: Maze configuration (defaults to MazeConfig())

        Raises:
            ConfigError: Invalid configuration
        """
        self.config = (config or MazeConfig()).check()
        self._changelog: List[Any] = []
        self._state: Optional[MazeState] = None

        # Fixed per engine so rebuilds reproduce the same placement
        seed = self.config.operation_node_seed
        self.placement_seed: Seed = seed if seed is not None else random.randrange(2 ** 32)

    # ==========================================
    # BUILD
    # ==========================================

    def _build_base(self) -> MazeState:
        state = generate(self.config)
        if self.config.crop is not None:
            state = crop(state, self.config.crop)
        place_operation_nodes(state, seed=self.placement_seed)
        return state

    def build(self) -> MazeState:
        """Generate the maze, replay the change log and return a snapshot."""
        state = self._build_base()
        replay_changes(state, self._changelog)
        self._state = state
        logger.info(
            f"Engine built {state.rows}x{state.cols} maze with "
            f"{len(self._changelog)} logged changes"
        )
        return state.copy()

    def rebuild(self) -> MazeState:
        return self.build()

    def _owned(self) -> MazeState:
        if self._state is None:
            self.build()
        return self._state

    @property
    def state(self) -> MazeState:
        return self._owned().copy()

    @property
    def grid(self) -> np.ndarray:
        return self._owned().grid.copy()

    @property
    def adj_matrix(self) -> np.ndarray:
        return self._owned().adj_matrix.copy()

    # ==========================================
    # CHANGE LOG
    # ==========================================

    @property
    def changelog(self) -> List[Any]:
        return copy.deepcopy(self._changelog)

    def load_changelog(self, entries: Iterable[Any], rebuild: bool = True) -> None:
        """
        Replace the change log.

        ManualChange instances are stored as their log dicts. Anything that is
        not a valid entry is kept and skipped with a warning at replay.
        """
        self._changelog = [
            entry.to_dict() if isinstance(entry, ManualChange) else copy.deepcopy(entry)
            for entry in entries
        ]
        if rebuild:
            self.build()

    def clear_changelog(self) -> None:
        self._changelog = []
        self.build()

    # ==========================================
    # EDITS
    # ==========================================

    def apply_manual_change(self, change) -> MazeState:
        """
        Apply one change to the owned state and log it.

        Args:
            change: ManualChange or log dict

        Returns:
            Snapshot of the updated state

        Raises:
            ManualChangeError, OutOfBoundsError, InvalidEdgeError: The change
            is rejected and not logged
        """
        parsed = parse_manual_change(change)
        parsed.apply(self._owned())
        self._changelog.append(parsed.to_dict())
        logger.debug(f"Applied manual change {parsed.to_dict()}")
        return self.state

    def add_edge(self, a: Position, b: Position) -> MazeState:
        return self.apply_manual_change(AddEdge(as_position(a), as_position(b)))

    def del_edge(self, a: Position, b: Position) -> MazeState:
        return self.apply_manual_change(DeleteEdge(as_position(a), as_position(b)))

    def toggle_cell(self, pos: Position) -> MazeState:
        return self.apply_manual_change(ToggleCell(as_position(pos)))

    def deactivate_all(self, include_edges: bool = True) -> MazeState:
        """Block every cell except start and goals, and by default drop all edges."""
        self.apply_manual_change(DeactivateAll())
        if include_edges:
            self.apply_manual_change(DeactivateAllEdges())
        return self.state

    def deactivate_all_edges(self) -> MazeState:
        return self.apply_manual_change(DeactivateAllEdges())

    # ==========================================
    # PUZZLE
    # ==========================================

    def placed_operation_nodes(self) -> List[Tuple[str, Position]]:
        return placed_operation_nodes(self._owned())

    def solve_activation_order(self, current: Picture, goal: Picture) -> SolverResult:
        state = self._owned()
        return find_valid_orders(
            current,
            goal,
            placed_operation_nodes(state),
            state.node_details,
            max_types=self.config.max_operation_types,
        )

    def new_session(
        self,
        picture: Optional[Picture] = None,
        rng: Optional[random.Random] = None,
    ) -> MazeSession:
        return MazeSession(
            self._owned(),
            picture if picture is not None else default_picture(),
            consumable=self.config.consumable,
            rng=rng,
            normalize_progress=self.config.normalize_progress,
            max_operation_types=self.config.max_operation_types,
        )


# ==========================================
# STATE-LEVEL API
# ==========================================
# Functional counterparts of the engine methods. Each returns or mutates the
# MazeState it is given.

def add_edge(state: MazeState, a: Position, b: Position) -> MazeState:
    graph_utils.add_edge(state.adj_matrix, state.rows, state.cols, as_position(a), as_position(b))
    return state


def del_edge(state: MazeState, a: Position, b: Position) -> MazeState:
    graph_utils.del_edge(state.adj_matrix, state.rows, state.cols, as_position(a), as_position(b))
    return state


def place_nodes(
    state: MazeState,
    role: Cell,
    quantity: int,
    predefined_positions: Optional[Sequence[Position]] = None,
    seed: Seed = None,
) -> List[Position]:
    return _place_nodes(state.grid, quantity, role, predefined_positions, seed)


def solve_activation_order(
    current: Picture,
    goal: Picture,
    placed_nodes: Sequence[Tuple[str, Position]],
    node_details,
    max_types: int = 8,
) -> SolverResult:
    return find_valid_orders(current, goal, placed_nodes, node_details, max_types=max_types)


__all__ = [
    'MazeEngine',
    'add_edge',
    'del_edge',
    'place_nodes',
    'solve_activation_order',
]
