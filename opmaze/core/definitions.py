"""
OPMAZE DEFINITIONS
==================
Central constants and type definitions for the entire project.

This file is the SINGLE SOURCE OF TRUTH for:
- Cell kinds (tagged grid values)
- Neighbor order (up, down, left, right)
- Grid index arithmetic
- The exception hierarchy

Import from here instead of duplicating constants across modules.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

import numpy as np

Position = Tuple[int, int]


# ==========================================
# CELL KINDS
# ==========================================

class CellKind(IntEnum):
    """Kinds of grid cells. Everything except BLOCKED is traversable."""
    BLOCKED = 0
    OPEN = 1
    START = 2
    GOAL = 3
    OPERATION = 4


@dataclass(frozen=True)
class Cell:
    """
    Tagged grid value.

    GOAL cells carry the index of the goal in the registry, OPERATION cells
    carry the node-type key. Other kinds carry no payload.
    """
    kind: CellKind
    goal_index: Optional[int] = None
    node_key: Optional[str] = None

    @classmethod
    def goal(cls, goal_index: int) -> 'Cell':
        return cls(CellKind.GOAL, goal_index=goal_index)

    @classmethod
    def operation(cls, node_key: str) -> 'Cell':
        return cls(CellKind.OPERATION, node_key=node_key)

    @property
    def is_traversable(self) -> bool:
        return self.kind != CellKind.BLOCKED

    def symbol(self) -> str:
        """Single-character rendering used by the CLI and debug logs."""
        if self.kind == CellKind.OPERATION:
            return (self.node_key or '?')[-1].upper()
        return CELL_SYMBOLS[self.kind]


BLOCKED_CELL = Cell(CellKind.BLOCKED)
OPEN_CELL = Cell(CellKind.OPEN)
START_CELL = Cell(CellKind.START)

CELL_SYMBOLS = {
    CellKind.BLOCKED: '#',
    CellKind.OPEN: '.',
    CellKind.START: 'S',
    CellKind.GOAL: 'G',
}


# ==========================================
# NEIGHBORHOOD
# ==========================================
# Order matters: it fixes BFS tie-breaks and shortest-path recovery.

NEIGHBOR_DELTAS: Tuple[Position, ...] = (
    (-1, 0),  # up
    (1, 0),   # down
    (0, -1),  # left
    (0, 1),   # right
)


def get_neighbors(pos: Position) -> List[Position]:
    """4-neighbors of pos in fixed order, bounds not checked."""
    r, c = pos
    return [(r + dr, c + dc) for dr, dc in NEIGHBOR_DELTAS]


def in_bounds(pos: Sequence[int], rows: int, cols: int) -> bool:
    return 0 <= pos[0] < rows and 0 <= pos[1] < cols


def to_index(pos: Position, cols: int) -> int:
    return pos[0] * cols + pos[1]


def to_position(index: int, cols: int) -> Position:
    return (index // cols, index % cols)


def as_position(value) -> Position:
    """Coerce a 2-sequence (list, tuple, array) to a Position tuple."""
    if value is None or len(value) != 2:
        raise ValueError(f"Expected a (row, col) pair, got {value!r}")
    return (int(value[0]), int(value[1]))


# ==========================================
# GRID CONSTRUCTION
# ==========================================

def make_grid(rows: int, cols: int, fill: Cell = OPEN_CELL) -> np.ndarray:
    """Create a rows x cols object array filled with one cell value."""
    grid = np.empty((rows, cols), dtype=object)
    grid.fill(fill)
    return grid


def make_adjacency(rows: int, cols: int) -> np.ndarray:
    """Empty (rows*cols)^2 boolean adjacency matrix."""
    n = rows * cols
    return np.zeros((n, n), dtype=bool)


def is_traversable(grid: np.ndarray, pos: Position) -> bool:
    rows, cols = grid.shape
    return in_bounds(pos, rows, cols) and grid[pos].is_traversable


# ==========================================
# EXCEPTIONS
# ==========================================

class MazeError(Exception):
    """Base class for all engine errors."""


class OutOfBoundsError(MazeError, ValueError):
    """An edge or node operation referenced a cell outside the grid."""

    def __init__(self, message: str, positions: Sequence = ()):
        super().__init__(message)
        self.positions = list(positions)


class IsolatedTargetError(MazeError):
    """A node was relocated onto a Blocked cell (or no Open cell exists)."""


class InvalidEdgeError(MazeError, ValueError):
    """Edge request that can never be valid (e.g. a self-edge)."""


class ManualChangeError(MazeError, ValueError):
    """A manual change log entry is missing fields or has invalid values."""


class GenerationError(MazeError):
    """Generation exhausted its attempt budget without a valid maze."""


class SolverLimitError(MazeError):
    """Too many distinct operation-node types for brute-force search."""


class ConfigError(MazeError, ValueError):
    """Invalid configuration value."""


__all__ = [
    'Position',
    'CellKind',
    'Cell',
    'BLOCKED_CELL',
    'OPEN_CELL',
    'START_CELL',
    'NEIGHBOR_DELTAS',
    'get_neighbors',
    'in_bounds',
    'to_index',
    'to_position',
    'as_position',
    'make_grid',
    'make_adjacency',
    'is_traversable',
    'MazeError',
    'OutOfBoundsError',
    'IsolatedTargetError',
    'InvalidEdgeError',
    'ManualChangeError',
    'GenerationError',
    'SolverLimitError',
    'ConfigError',
]
