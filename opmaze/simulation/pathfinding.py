"""
Maze Pathfinding
================

Breadth-first reachability and shortest paths on a maze.

Two notions of connectivity coexist:
- Cell reachability: 4-adjacency over traversable cells, ignores the matrix.
- Edge reachability: traversal strictly over adjacency-matrix edges,
  ignores cell kinds. Used while edits may leave cells and edges out of sync.

Neighbor order is fixed (up, down, left, right) so that shortest-path
recovery is deterministic.
"""

import logging
from collections import deque
from typing import Dict, List, Optional, Set

import numpy as np

from opmaze.core.definitions import (
    Position,
    get_neighbors,
    in_bounds,
    to_index,
    to_position,
)

logger = logging.getLogger(__name__)


def manhattan(a: Position, b: Position) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


# ==========================================
# CELL BFS
# ==========================================

def reachable_cells(grid: np.ndarray, start: Position) -> Set[Position]:
    """All traversable cells 4-connected to start (empty if start is blocked)."""
    rows, cols = grid.shape
    if not in_bounds(start, rows, cols) or not grid[start].is_traversable:
        return set()

    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for nb in get_neighbors(current):
            if nb not in visited and in_bounds(nb, rows, cols) and grid[nb].is_traversable:
                visited.add(nb)
                queue.append(nb)
    return visited


def reachable_via_cells(grid: np.ndarray, start: Position, goal: Position) -> bool:
    """True if goal is reachable from start over traversable cells."""
    rows, cols = grid.shape
    if not in_bounds(goal, rows, cols) or not grid[goal].is_traversable:
        return False
    return goal in reachable_cells(grid, start)


def shortest_path(
    grid: np.ndarray,
    start: Position,
    goal: Position,
    through_blocked: bool = False,
) -> Optional[List[Position]]:
    """
    First-found BFS path from start to goal, inclusive of both ends.

    Args:
        grid: Cell grid
        start, goal: Endpoints
        through_blocked: Treat every in-bounds cell as passable (corridor carving)

    Returns:
        List of positions, or None if no path exists
    """
    rows, cols = grid.shape
    if not in_bounds(start, rows, cols) or not in_bounds(goal, rows, cols):
        return None

    def passable(pos: Position) -> bool:
        return through_blocked or grid[pos].is_traversable

    if not passable(start) or not passable(goal):
        return None

    came_from: Dict[Position, Optional[Position]] = {start: None}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current == goal:
            path = []
            node: Optional[Position] = current
            while node is not None:
                path.append(node)
                node = came_from[node]
            path.reverse()
            return path
        for nb in get_neighbors(current):
            if nb not in came_from and in_bounds(nb, rows, cols) and passable(nb):
                came_from[nb] = current
                queue.append(nb)
    return None


# ==========================================
# EDGE BFS
# ==========================================

def edge_reachable_indices(adj_matrix: np.ndarray, start_idx: int) -> np.ndarray:
    """Boolean mask of matrix indices reachable from start_idx over edges."""
    n = adj_matrix.shape[0]
    visited = np.zeros(n, dtype=bool)
    visited[start_idx] = True
    queue = deque([start_idx])
    while queue:
        current = queue.popleft()
        for nb in np.flatnonzero(adj_matrix[current]):
            if not visited[nb]:
                visited[nb] = True
                queue.append(int(nb))
    return visited


def edge_reachable_set(adj_matrix: np.ndarray, cols: int, start: Position) -> Set[Position]:
    mask = edge_reachable_indices(adj_matrix, to_index(start, cols))
    return {to_position(int(i), cols) for i in np.flatnonzero(mask)}


def reachable_via_edges(
    adj_matrix: np.ndarray,
    cols: int,
    start: Position,
    goal: Position,
) -> bool:
    """True if goal is reachable from start strictly over matrix edges."""
    rows = adj_matrix.shape[0] // cols
    if not in_bounds(start, rows, cols) or not in_bounds(goal, rows, cols):
        return False
    s, g = to_index(start, cols), to_index(goal, cols)
    return bool(edge_reachable_indices(adj_matrix, s)[g])


def is_graph_connected(grid: np.ndarray, adj_matrix: np.ndarray) -> bool:
    """
    True if an edge BFS from the first traversable cell (row-major) reaches
    every traversable cell. A grid with no traversable cell counts as connected.
    """
    traversable = np.array([cell.is_traversable for cell in grid.ravel()], dtype=bool)
    if not traversable.any():
        return True
    first = int(np.argmax(traversable))
    visited = edge_reachable_indices(adj_matrix, first)
    return bool(np.all(visited[traversable]))


__all__ = [
    'manhattan',
    'reachable_cells',
    'reachable_via_cells',
    'shortest_path',
    'edge_reachable_indices',
    'edge_reachable_set',
    'reachable_via_edges',
    'is_graph_connected',
]
