"""
Maze State
==========
The grid, adjacency matrix and node registry that travel together through
generation, cropping, placement and manual edits.
"""

import copy
from dataclasses import dataclass
from typing import Iterator, List, Tuple

import numpy as np

from opmaze.core.definitions import (
    CellKind,
    OutOfBoundsError,
    Position,
    in_bounds,
    to_index,
)
from opmaze.core.node_details import NodeDetails


@dataclass
class MazeState:
    """
    One maze.

    Attributes:
        grid: (rows, cols) object array of Cell
        adj_matrix: (rows*cols, rows*cols) bool array, symmetric
        node_details: Registry of start, goals and operation nodes
    """
    grid: np.ndarray
    adj_matrix: np.ndarray
    node_details: NodeDetails

    @property
    def rows(self) -> int:
        return self.grid.shape[0]

    @property
    def cols(self) -> int:
        return self.grid.shape[1]

    @property
    def start(self) -> Position:
        return self.node_details.start.position

    @property
    def goals(self) -> List[Position]:
        return list(self.node_details.goal.positions)

    def copy(self) -> 'MazeState':
        return MazeState(
            grid=self.grid.copy(),  # Cell is frozen, a shallow array copy is independent
            adj_matrix=self.adj_matrix.copy(),
            node_details=copy.deepcopy(self.node_details),
        )

    def in_bounds(self, pos: Position) -> bool:
        return in_bounds(pos, self.rows, self.cols)

    def index(self, pos: Position) -> int:
        if not self.in_bounds(pos):
            raise OutOfBoundsError(
                f"Position {pos} outside {self.rows}x{self.cols} grid", [pos]
            )
        return to_index(pos, self.cols)

    def iter_cells(self) -> Iterator[Tuple[Position, object]]:
        """Yield (position, cell) in row-major order."""
        for r in range(self.rows):
            for c in range(self.cols):
                yield (r, c), self.grid[r, c]

    def cells_of_kind(self, kind: CellKind) -> List[Position]:
        return [pos for pos, cell in self.iter_cells() if cell.kind == kind]

    def traversable_cells(self) -> List[Position]:
        return [pos for pos, cell in self.iter_cells() if cell.is_traversable]

    def edge_count(self) -> int:
        return int(np.count_nonzero(np.triu(self.adj_matrix, k=1)))

    def render(self) -> str:
        """ASCII rendering, one line per row."""
        return "\n".join(
            "".join(self.grid[r, c].symbol() for c in range(self.cols))
            for r in range(self.rows)
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, MazeState):
            return NotImplemented
        return (
            self.grid.shape == other.grid.shape
            and bool(np.all(self.grid == other.grid))
            and np.array_equal(self.adj_matrix, other.adj_matrix)
            and self.node_details == other.node_details
        )
