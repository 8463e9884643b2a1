"""
Region Cropper
==============

Derive a smaller maze from a rectangle of a larger one.

The rectangle is (x1, y1, x2, y2) inclusive, with x on the column axis and
y on the row axis. Cells outside it are dropped together with their edges;
the remaining sub-matrix is re-indexed to the cropped width. Connectivity
inside the rectangle is then repaired, and a start or goal that fell outside
is relocated onto an open cell of the crop:

- start -> open cell with the smallest row + col (top-left)
- goal  -> open cell with the largest row + col (bottom-right), removed from
           the pool before the next goal is relocated

Ties go to the last candidate in row-major order. The input state is not
modified.
"""

import logging
from typing import List, Sequence, Set, Tuple

import numpy as np

from opmaze.core.definitions import (
    START_CELL,
    Cell,
    CellKind,
    IsolatedTargetError,
    Position,
    get_neighbors,
    in_bounds,
    to_index,
    to_position,
)
from opmaze.core.state import MazeState
from opmaze.simulation.pathfinding import edge_reachable_indices

logger = logging.getLogger(__name__)

CropRect = Tuple[int, int, int, int]


def normalize_rect(rect: Sequence[int], rows: int, cols: int) -> CropRect:
    """Clamp x into [0, cols-1] and y into [0, rows-1]; swap reversed bounds."""
    x1, y1, x2, y2 = (int(v) for v in rect)
    x1, x2 = (min(max(x, 0), cols - 1) for x in (x1, x2))
    y1, y2 = (min(max(y, 0), rows - 1) for y in (y1, y2))
    if x1 > x2:
        x1, x2 = x2, x1
    if y1 > y2:
        y1, y2 = y2, y1
    return x1, y1, x2, y2


def _inside(pos: Position, rect: CropRect) -> bool:
    x1, y1, x2, y2 = rect
    return y1 <= pos[0] <= y2 and x1 <= pos[1] <= x2


def _translate(pos: Position, rect: CropRect) -> Position:
    return (pos[0] - rect[1], pos[1] - rect[0])


# ==========================================
# CONNECTIVITY REPAIR
# ==========================================

def _reached(adj_matrix: np.ndarray, cols: int, root: int) -> Set[Position]:
    mask = edge_reachable_indices(adj_matrix, root)
    return {to_position(int(i), cols) for i in np.flatnonzero(mask)}


def repair_connectivity(grid: np.ndarray, adj_matrix: np.ndarray) -> int:
    """
    Wire unreached traversable cells to a reached neighbor.

    Reachability is flooded over edges from the first traversable cell in
    row-major order. Each unreached cell is joined to its first reached
    4-neighbor (up, down, left, right); passes repeat until none adds an edge.

    Returns:
        Number of edges added
    """
    rows, cols = grid.shape
    traversable = [(r, c) for r in range(rows) for c in range(cols) if grid[r, c].is_traversable]
    if not traversable:
        return 0

    root = to_index(traversable[0], cols)
    reached = _reached(adj_matrix, cols, root)
    added = 0
    changed = True
    while changed:
        changed = False
        for pos in traversable:
            if pos in reached:
                continue
            for nb in get_neighbors(pos):
                if in_bounds(nb, rows, cols) and nb in reached and grid[nb].is_traversable:
                    i, j = to_index(pos, cols), to_index(nb, cols)
                    adj_matrix[i, j] = adj_matrix[j, i] = True
                    added += 1
                    changed = True
                    reached = _reached(adj_matrix, cols, root)
                    break
    if added:
        logger.debug(f"Crop repair added {added} edges")
    return added


# ==========================================
# RELOCATION
# ==========================================

def _open_cells(grid: np.ndarray) -> List[Position]:
    rows, cols = grid.shape
    return [(r, c) for r in range(rows) for c in range(cols) if grid[r, c].kind == CellKind.OPEN]


def _pick(candidates: List[Position], prefer_max: bool) -> Position:
    best = candidates[0]
    for pos in candidates[1:]:
        score, best_score = sum(pos), sum(best)
        if (score >= best_score) if prefer_max else (score <= best_score):
            best = pos
    return best


def relocate_start(grid: np.ndarray) -> Position:
    candidates = _open_cells(grid)
    if not candidates:
        logger.error("No open cell left in crop for the start")
        raise IsolatedTargetError("No open cell available to relocate the start")
    return _pick(candidates, prefer_max=False)


def relocate_goal(grid: np.ndarray, used: Set[Position]) -> Position:
    candidates = [p for p in _open_cells(grid) if p not in used]
    if not candidates:
        logger.error("No open cell left in crop for a goal")
        raise IsolatedTargetError("No open cell available to relocate a goal")
    return _pick(candidates, prefer_max=True)


# ==========================================
# CROP
# ==========================================

def crop(state: MazeState, rect: Sequence[int]) -> MazeState:
    """
    Crop state to rect.

    Args:
        state: Source maze (not modified)
        rect: (x1, y1, x2, y2), inclusive, clamped into the grid

    Returns:
        New MazeState of the cropped dimensions

    Raises:
        IsolatedTargetError: A start or goal must be relocated but no open
                             cell is available
    """
    rect = normalize_rect(rect, state.rows, state.cols)
    x1, y1, x2, y2 = rect
    details = state.node_details.copy()

    grid = state.grid[y1:y2 + 1, x1:x2 + 1].copy()
    kept = [r * state.cols + c for r in range(y1, y2 + 1) for c in range(x1, x2 + 1)]
    adj = state.adj_matrix[np.ix_(kept, kept)].copy()

    repair_connectivity(grid, adj)

    # start
    if _inside(details.start.position, rect):
        details.start.position = _translate(details.start.position, rect)
    else:
        new_start = relocate_start(grid)
        logger.info(f"Start {details.start.position} outside crop, relocated to {new_start}")
        details.start.position = new_start
        grid[new_start] = START_CELL

    # goals
    used: Set[Position] = set()
    for i, pos in enumerate(details.goal.positions):
        if _inside(pos, rect):
            details.goal.positions[i] = _translate(pos, rect)
            continue
        new_goal = relocate_goal(grid, used)
        used.add(new_goal)
        logger.info(f"Goal {i} {pos} outside crop, relocated to {new_goal}")
        details.goal.positions[i] = new_goal
        grid[new_goal] = Cell.goal(i)

    # operation nodes
    for key, spec in details.operation.items():
        inside = [_translate(p, rect) for p in spec.positions if _inside(p, rect)]
        dropped = len(spec.positions) - len(inside)
        if dropped:
            logger.debug(f"Crop dropped {dropped} '{key}' nodes")
        spec.positions = inside

    cropped = MazeState(grid=grid, adj_matrix=adj, node_details=details)
    logger.info(
        f"Cropped {state.rows}x{state.cols} maze to {cropped.rows}x{cropped.cols} "
        f"(rect={rect})"
    )
    return cropped


__all__ = [
    'normalize_rect',
    'repair_connectivity',
    'relocate_start',
    'relocate_goal',
    'crop',
]
