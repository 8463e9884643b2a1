"""
Manual Changes
==============

Hand edits of a generated maze, recorded as a replayable log.

Log entries are plain dicts:

    {"type": "node", "action": "toggle", "position": [r, c]}
    {"type": "node", "action": "deactivate_all"}
    {"type": "edge", "action": "add" | "delete", "from": [r, c], "to": [r, c]}
    {"type": "deactivate_all_edges"}

Replaying the log against a freshly generated base reproduces the edited maze.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from opmaze.core.definitions import (
    BLOCKED_CELL,
    OPEN_CELL,
    CellKind,
    MazeError,
    ManualChangeError,
    OutOfBoundsError,
    Position,
    as_position,
)
from opmaze.core.state import MazeState
from opmaze.generation.grid_graph import add_edge, del_edge

logger = logging.getLogger(__name__)


class ManualChange:
    """Base class of log entries."""

    def apply(self, state: MazeState) -> None:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    @staticmethod
    def from_dict(entry: Dict[str, Any]) -> 'ManualChange':
        return parse_manual_change(entry)


@dataclass
class ToggleCell(ManualChange):
    position: Position

    def apply(self, state: MazeState) -> None:
        pos = self.position
        if not state.in_bounds(pos):
            raise OutOfBoundsError(
                f"Toggle at {pos} outside {state.rows}x{state.cols} grid", [pos]
            )
        cell = state.grid[pos]
        if cell.kind in (CellKind.START, CellKind.GOAL):
            logger.warning(f"Ignoring toggle of protected {cell.kind.name.lower()} cell at {pos}")
            return
        if cell.kind == CellKind.OPERATION:
            spec = state.node_details.operation.get(cell.node_key)
            if spec is not None and pos in spec.positions:
                spec.positions.remove(pos)
            state.grid[pos] = OPEN_CELL
        elif cell.kind == CellKind.OPEN:
            state.grid[pos] = BLOCKED_CELL
        else:
            state.grid[pos] = OPEN_CELL

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'node', 'action': 'toggle', 'position': list(self.position)}


@dataclass
class DeactivateAll(ManualChange):
    """Block every cell except start and goals."""

    def apply(self, state: MazeState) -> None:
        for pos, cell in state.iter_cells():
            if cell.kind not in (CellKind.START, CellKind.GOAL):
                state.grid[pos] = BLOCKED_CELL
        for spec in state.node_details.operation.values():
            spec.positions = []

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'node', 'action': 'deactivate_all'}


@dataclass
class AddEdge(ManualChange):
    a: Position
    b: Position

    def apply(self, state: MazeState) -> None:
        add_edge(state.adj_matrix, state.rows, state.cols, self.a, self.b)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'edge', 'action': 'add', 'from': list(self.a), 'to': list(self.b)}


@dataclass
class DeleteEdge(ManualChange):
    a: Position
    b: Position

    def apply(self, state: MazeState) -> None:
        del_edge(state.adj_matrix, state.rows, state.cols, self.a, self.b)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'edge', 'action': 'delete', 'from': list(self.a), 'to': list(self.b)}


@dataclass
class DeactivateAllEdges(ManualChange):

    def apply(self, state: MazeState) -> None:
        state.adj_matrix[:, :] = False

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'deactivate_all_edges'}


def _position_field(entry: Dict[str, Any], key: str) -> Position:
    try:
        return as_position(entry[key])
    except (KeyError, TypeError, ValueError) as e:
        raise ManualChangeError(f"Manual change {entry!r} has no valid '{key}'") from e


def parse_manual_change(entry: Dict[str, Any]) -> ManualChange:
    """
    Parse one log entry.

    Raises:
        ManualChangeError: Unknown type/action or missing fields
    """
    if isinstance(entry, ManualChange):
        return entry
    if not isinstance(entry, dict):
        raise ManualChangeError(f"Manual change must be a dict, got {type(entry).__name__}")

    change_type = entry.get('type')
    action = entry.get('action')

    if change_type == 'node':
        if action == 'toggle':
            return ToggleCell(_position_field(entry, 'position'))
        if action == 'deactivate_all':
            return DeactivateAll()
    elif change_type == 'edge':
        a = _position_field(entry, 'from')
        b = _position_field(entry, 'to')
        if action == 'add':
            return AddEdge(a, b)
        if action == 'delete':
            return DeleteEdge(a, b)
    elif change_type == 'deactivate_all_edges':
        return DeactivateAllEdges()

    raise ManualChangeError(f"Unknown manual change type={change_type!r} action={action!r}")


def apply_manual_change(state: MazeState, change) -> MazeState:
    """
    Apply one change (ManualChange or log dict) to state in place.

    Raises:
        ManualChangeError, OutOfBoundsError, InvalidEdgeError
    """
    parse_manual_change(change).apply(state)
    return state


def replay_changes(state: MazeState, entries: Iterable) -> List[ManualChange]:
    """
    Apply a change log in order, skipping entries that fail.

    Returns:
        The changes that were applied
    """
    applied = []
    for i, entry in enumerate(entries):
        try:
            change = parse_manual_change(entry)
            change.apply(state)
        except MazeError as e:
            logger.warning(f"Skipping manual change #{i}: {e}")
            continue
        applied.append(change)
    if applied:
        logger.info(f"Replayed {len(applied)} manual changes")
    return applied


__all__ = [
    'ManualChange',
    'ToggleCell',
    'DeactivateAll',
    'AddEdge',
    'DeleteEdge',
    'DeactivateAllEdges',
    'parse_manual_change',
    'apply_manual_change',
    'replay_changes',
]
