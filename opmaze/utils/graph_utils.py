"""
Maze Graph Utilities
====================

NetworkX views of a maze adjacency matrix.

This module provides:
- Conversion of the boolean adjacency matrix to a networkx Graph
- Connected components over traversable cells
- Adjacency invariant validation (symmetry, self-edges, blocked endpoints)
- Sorted undirected edge lists

Usage:
    from opmaze.utils.graph_utils import connected_components, validate_adjacency

    components = connected_components(state.grid, state.adj_matrix)
    is_valid, errors = validate_adjacency(state.adj_matrix, rows, cols, grid=state.grid)
    if not is_valid:
        print(f"Validation failed: {errors}")
"""

import logging
from typing import List, Optional, Tuple

import networkx as nx
import numpy as np

from opmaze.core.definitions import (
    InvalidEdgeError,
    OutOfBoundsError,
    Position,
    in_bounds,
    to_index,
    to_position,
)

logger = logging.getLogger(__name__)


# ==========================================
# EDGE EDITING
# ==========================================

def set_edge(
    adj_matrix: np.ndarray,
    rows: int,
    cols: int,
    a: Position,
    b: Position,
    present: bool,
) -> None:
    """
    Set or clear the undirected edge a-b.

    Any two distinct in-bound cells may be joined, not only 4-neighbors.

    Raises:
        OutOfBoundsError: Either endpoint lies outside the grid
        InvalidEdgeError: a == b
    """
    outside = [p for p in (a, b) if not in_bounds(p, rows, cols)]
    if outside:
        raise OutOfBoundsError(
            f"Edge {a}-{b} references cells outside {rows}x{cols} grid", outside
        )
    if tuple(a) == tuple(b):
        raise InvalidEdgeError(f"Self-edge requested at {a}")
    i, j = to_index(a, cols), to_index(b, cols)
    adj_matrix[i, j] = present
    adj_matrix[j, i] = present


def add_edge(adj_matrix: np.ndarray, rows: int, cols: int, a: Position, b: Position) -> None:
    set_edge(adj_matrix, rows, cols, a, b, True)


def del_edge(adj_matrix: np.ndarray, rows: int, cols: int, a: Position, b: Position) -> None:
    set_edge(adj_matrix, rows, cols, a, b, False)


# ==========================================
# CONVERSION
# ==========================================

def edge_list(adj_matrix: np.ndarray, cols: int) -> List[Tuple[Position, Position]]:
    """
    Undirected edges of the matrix as position pairs.

    Each edge appears once, lower index first, sorted by (index_a, index_b).
    """
    rows_idx, cols_idx = np.nonzero(np.triu(adj_matrix, k=1))
    return [
        (to_position(int(a), cols), to_position(int(b), cols))
        for a, b in zip(rows_idx, cols_idx)
    ]


def adjacency_to_graph(
    adj_matrix: np.ndarray,
    cols: int,
    grid: Optional[np.ndarray] = None,
) -> nx.Graph:
    """
    Build an undirected networkx graph on (row, col) nodes.

    Args:
        adj_matrix: (n, n) boolean adjacency matrix
        cols: Grid width, used to decode indices
        grid: Optional cell grid. When given, only traversable cells become
              nodes and edges touching blocked cells are dropped.

    Returns:
        nx.Graph with a 'kind' node attribute when grid is given
    """
    n = adj_matrix.shape[0]
    G = nx.Graph()

    if grid is None:
        G.add_nodes_from(to_position(i, cols) for i in range(n))
    else:
        for idx in range(n):
            pos = to_position(idx, cols)
            cell = grid[pos]
            if cell.is_traversable:
                G.add_node(pos, kind=cell.kind)

    for a, b in edge_list(adj_matrix, cols):
        if a in G and b in G:
            G.add_edge(a, b)
    return G


# ==========================================
# COMPONENTS
# ==========================================

def connected_components(grid: np.ndarray, adj_matrix: np.ndarray) -> List[List[Position]]:
    """
    Connected components of traversable cells over matrix edges.

    Each component is sorted row-major; components are ordered by their
    first cell, so the result is deterministic.
    """
    cols = grid.shape[1]
    G = adjacency_to_graph(adj_matrix, cols, grid=grid)
    components = [sorted(comp) for comp in nx.connected_components(G)]
    components.sort(key=lambda comp: comp[0])
    return components


def is_symmetric(adj_matrix: np.ndarray) -> bool:
    return bool(np.array_equal(adj_matrix, adj_matrix.T))


# ==========================================
# VALIDATION
# ==========================================

def validate_adjacency(
    adj_matrix: np.ndarray,
    rows: int,
    cols: int,
    grid: Optional[np.ndarray] = None,
    require_grid_adjacency: bool = False,
) -> Tuple[bool, List[str]]:
    """
    Validate adjacency matrix invariants.

    Checks:
    1. Shape is (rows*cols, rows*cols)
    2. Matrix is symmetric
    3. No self-edges
    4. (grid given) No edge touches a blocked cell
    5. (require_grid_adjacency) Every edge joins 4-neighbors

    Args:
        adj_matrix: Matrix to check
        rows, cols: Grid dimensions
        grid: Optional cell grid for the blocked-endpoint check
        require_grid_adjacency: Reject non-neighbor bridges

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []
    n = rows * cols

    if adj_matrix.shape != (n, n):
        errors.append(f"Adjacency shape {adj_matrix.shape} does not match {rows}x{cols} grid")
        return False, errors

    if not is_symmetric(adj_matrix):
        asym = np.argwhere(adj_matrix != adj_matrix.T)
        i, j = (int(v) for v in asym[0])
        errors.append(
            f"Adjacency not symmetric: {to_position(i, cols)} -> {to_position(j, cols)} "
            f"({len(asym) // 2 or 1} mismatched pairs)"
        )

    diag = np.nonzero(np.diagonal(adj_matrix))[0]
    for i in diag:
        errors.append(f"Self-edge at {to_position(int(i), cols)}")

    edges = edge_list(adj_matrix, cols)

    if grid is not None:
        for a, b in edges:
            if not grid[a].is_traversable or not grid[b].is_traversable:
                errors.append(f"Edge {a}-{b} touches a blocked cell")

    if require_grid_adjacency:
        for a, b in edges:
            if abs(a[0] - b[0]) + abs(a[1] - b[1]) != 1:
                errors.append(f"Edge {a}-{b} does not join 4-neighbors")

    if errors:
        logger.debug(f"Adjacency validation found {len(errors)} problems")
    return len(errors) == 0, errors


__all__ = [
    'set_edge',
    'add_edge',
    'del_edge',
    'edge_list',
    'adjacency_to_graph',
    'connected_components',
    'is_symmetric',
    'validate_adjacency',
]
