"""
Grid Graph Generation
=====================

Seeded generation of a grid maze and its adjacency matrix, with
connectivity-preserving edge removal and corridor repair.

Two modes:
- fully connected: random edges are removed as long as every traversable
  cell stays connected, then leftover components are joined by L-shaped
  corridors.
- not fully connected: random cells lose their edges as long as at least one
  goal stays reachable from start; cleanup passes then block isolated and
  unreachable cells and carve corridors between start and every goal.

All randomness comes from one `random.Random` stream created before the first
attempt and consumed in row-major order, so the same seed and configuration
always produce the same maze.

Usage:
    from opmaze.generation.grid_graph import generate

    state = generate(MazeConfig(rows=7, cols=7, sparsity=0.3, seed=42))
    print(state.render())
"""

import logging
import random
from typing import List, Optional, Sequence, Tuple

import numpy as np

from opmaze.core.config import MazeConfig, Seed
from opmaze.core.definitions import (
    BLOCKED_CELL,
    OPEN_CELL,
    START_CELL,
    Cell,
    ConfigError,
    GenerationError,
    IsolatedTargetError,
    MazeError,
    Position,
    get_neighbors,
    in_bounds,
    make_adjacency,
    make_grid,
    to_index,
    to_position,
)
from opmaze.core.node_details import NodeDetails
from opmaze.core.state import MazeState
from opmaze.simulation.pathfinding import (
    edge_reachable_indices,
    manhattan,
    reachable_via_cells,
    reachable_via_edges,
    shortest_path,
)
from opmaze.utils.graph_utils import (
    add_edge,
    connected_components,
    del_edge,
    set_edge,
    validate_adjacency,
)

logger = logging.getLogger(__name__)


def make_rng(seed: Seed) -> random.Random:
    """Seeded stream; None gives an unseeded one."""
    return random.Random(seed) if seed is not None else random.Random()


# ==========================================
# EDGE PRIMITIVES
# ==========================================

def clear_cell_edges(adj_matrix: np.ndarray, idx: int) -> None:
    adj_matrix[idx, :] = False
    adj_matrix[:, idx] = False


def carve_path(grid: np.ndarray, adj_matrix: np.ndarray, path: Sequence[Position]) -> None:
    """Open every blocked cell on path and wire consecutive cells."""
    cols = grid.shape[1]
    for pos in path:
        if not grid[pos].is_traversable:
            grid[pos] = OPEN_CELL
    for a, b in zip(path, path[1:]):
        i, j = to_index(a, cols), to_index(b, cols)
        adj_matrix[i, j] = True
        adj_matrix[j, i] = True


# ==========================================
# BASE GRID
# ==========================================

def build_base(
    rows: int,
    cols: int,
    node_details: NodeDetails,
    maze_structure: Optional[List[List[int]]] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Open grid (or the open cells of maze_structure) with every 4-neighbor edge.

    Start and goal cells are forced open when a structure mask is given.
    """
    if maze_structure is None:
        grid = make_grid(rows, cols, OPEN_CELL)
    else:
        grid = make_grid(rows, cols, BLOCKED_CELL)
        for r in range(rows):
            for c in range(cols):
                if maze_structure[r][c]:
                    grid[r, c] = OPEN_CELL
        for pos in [node_details.start.position] + list(node_details.goal.positions):
            grid[pos] = OPEN_CELL

    adj = make_adjacency(rows, cols)
    for r in range(rows):
        for c in range(cols):
            if not grid[r, c].is_traversable:
                continue
            idx = r * cols + c
            for nb in get_neighbors((r, c)):
                if in_bounds(nb, rows, cols) and grid[nb].is_traversable:
                    adj[idx, to_index(nb, cols)] = True
    return grid, adj


def collect_edges(adj_matrix: np.ndarray) -> List[Tuple[int, int]]:
    """Undirected edges (i < j) in row-major order of i, then j."""
    i_idx, j_idx = np.nonzero(np.triu(adj_matrix, k=1))
    return [(int(i), int(j)) for i, j in zip(i_idx, j_idx)]


# ==========================================
# FULLY CONNECTED MODE
# ==========================================

def remove_edges_only(adj_matrix: np.ndarray, sparsity: float, rng: random.Random) -> int:
    """
    Remove shuffled edges with probability sparsity, keeping each removal
    only if its endpoints stay connected over edges.

    Returns:
        Number of edges removed
    """
    edges = collect_edges(adj_matrix)
    rng.shuffle(edges)

    removed = 0
    for i, j in edges:
        if rng.random() < sparsity:
            adj_matrix[i, j] = adj_matrix[j, i] = False
            if not edge_reachable_indices(adj_matrix, i)[j]:
                adj_matrix[i, j] = adj_matrix[j, i] = True
                logger.debug(f"Reverted removal of edge {i}-{j}")
            else:
                removed += 1
    return removed


def _nearest_pair(comp_a: List[Position], comp_b: List[Position]) -> Tuple[Position, Position]:
    best = (comp_a[0], comp_b[0])
    best_dist = manhattan(*best)
    for a in comp_a:
        for b in comp_b:
            d = manhattan(a, b)
            if d < best_dist:
                best, best_dist = (a, b), d
    return best


def l_corridor(a: Position, b: Position) -> List[Position]:
    """Cells from a to b inclusive, moving along the row axis first."""
    (r, c), (br, bc) = a, b
    path = [(r, c)]
    while r != br:
        r += 1 if r < br else -1
        path.append((r, c))
    while c != bc:
        c += 1 if c < bc else -1
        path.append((r, c))
    return path


def ensure_full_connectivity(grid: np.ndarray, adj_matrix: np.ndarray) -> int:
    """
    Join all components of traversable cells with corridors.

    Consecutive components (ordered by first cell) are joined at their
    Manhattan-nearest cell pair until one component remains.

    Returns:
        Number of corridors carved
    """
    carved = 0
    components = connected_components(grid, adj_matrix)
    while len(components) > 1:
        for comp_a, comp_b in zip(components, components[1:]):
            a, b = _nearest_pair(comp_a, comp_b)
            carve_path(grid, adj_matrix, l_corridor(a, b))
            carved += 1
            logger.debug(f"Carved corridor {a} -> {b}")
        components = connected_components(grid, adj_matrix)
    return carved


# ==========================================
# NOT FULLY CONNECTED MODE
# ==========================================

def _any_goal_reachable(adj_matrix: np.ndarray, start_idx: int, goal_idx: Sequence[int]) -> bool:
    reach = edge_reachable_indices(adj_matrix, start_idx)
    return any(reach[g] for g in goal_idx)


def remove_edges_or_nodes(
    adj_matrix: np.ndarray,
    rows: int,
    cols: int,
    start: Position,
    goals: Sequence[Position],
    sparsity: float,
    rng: random.Random,
) -> int:
    """
    Visit cells row-major; with probability sparsity strip the cell's
    4-neighbor edges one at a time, restoring any edge whose removal leaves
    every goal unreachable from start.

    Returns:
        Number of edges removed
    """
    start_idx = to_index(start, cols)
    goal_idx = [to_index(g, cols) for g in goals]
    removed = 0
    for r in range(rows):
        for c in range(cols):
            if rng.random() >= sparsity:
                continue
            idx = r * cols + c
            for nb in get_neighbors((r, c)):
                if not in_bounds(nb, rows, cols):
                    continue
                nb_idx = to_index(nb, cols)
                if not adj_matrix[idx, nb_idx]:
                    continue
                adj_matrix[idx, nb_idx] = adj_matrix[nb_idx, idx] = False
                if not _any_goal_reachable(adj_matrix, start_idx, goal_idx):
                    adj_matrix[idx, nb_idx] = adj_matrix[nb_idx, idx] = True
                else:
                    removed += 1
    return removed


def remove_isolated_nodes(grid: np.ndarray, adj_matrix: np.ndarray) -> int:
    """Block every cell without edges."""
    cols = grid.shape[1]
    degree = adj_matrix.sum(axis=1)
    count = 0
    for idx in np.flatnonzero(degree == 0):
        pos = to_position(int(idx), cols)
        if grid[pos].is_traversable:
            grid[pos] = BLOCKED_CELL
            count += 1
    return count


def remove_invalid_edges(grid: np.ndarray, adj_matrix: np.ndarray) -> None:
    """Strip every edge with a blocked endpoint."""
    blocked = np.array([not cell.is_traversable for cell in grid.ravel()], dtype=bool)
    adj_matrix[blocked, :] = False
    adj_matrix[:, blocked] = False


def remove_unreachable_nodes(grid: np.ndarray, adj_matrix: np.ndarray, start: Position) -> int:
    """Block every cell not reachable from start over edges and drop its edges."""
    cols = grid.shape[1]
    reach = edge_reachable_indices(adj_matrix, to_index(start, cols))
    count = 0
    for idx in np.flatnonzero(~reach):
        pos = to_position(int(idx), cols)
        if grid[pos].is_traversable:
            count += 1
        grid[pos] = BLOCKED_CELL
        clear_cell_edges(adj_matrix, int(idx))
    return count


def ensure_connectivity(
    grid: np.ndarray,
    adj_matrix: np.ndarray,
    critical: Sequence[Position],
) -> int:
    """
    Make every pair of critical cells mutually reachable.

    Unreachable pairs get the first BFS path over the bounded grid (blocked
    cells allowed), which is opened and wired.

    Returns:
        Number of corridors carved
    """
    cols = grid.shape[1]
    carved = 0
    for i in range(len(critical) - 1):
        for j in range(i + 1, len(critical)):
            a, b = critical[i], critical[j]
            if reachable_via_cells(grid, a, b) and reachable_via_edges(adj_matrix, cols, a, b):
                continue
            path = shortest_path(grid, a, b, through_blocked=True)
            if path:
                carve_path(grid, adj_matrix, path)
                carved += 1
                logger.debug(f"Carved path {a} -> {b} ({len(path)} cells)")
    return carved


# ==========================================
# ROLES
# ==========================================

def tag_roles(grid: np.ndarray, node_details: NodeDetails) -> None:
    """Write start and goal cells into the grid."""
    for i, pos in enumerate(node_details.goal.positions):
        if not grid[pos].is_traversable:
            raise IsolatedTargetError(f"Goal {i} at {pos} landed on a blocked cell")
        grid[pos] = Cell.goal(i)

    start = node_details.start.position
    if not grid[start].is_traversable:
        raise IsolatedTargetError(f"Start {start} landed on a blocked cell")
    grid[start] = START_CELL


def check_invariants(state: MazeState) -> None:
    """Raise MazeError when the adjacency matrix is inconsistent with the grid."""
    is_valid, errors = validate_adjacency(
        state.adj_matrix, state.rows, state.cols, grid=state.grid
    )
    if not is_valid:
        for err in errors:
            logger.error(f"Adjacency invariant violated: {err}")
        raise MazeError(f"Invalid adjacency after generation: {errors[0]}")


# ==========================================
# GENERATION
# ==========================================

def generate_maze(
    node_details: NodeDetails,
    sparsity: float = 0.2,
    seed: Seed = "Maze",
    fully_connected: bool = True,
    rows: int = 7,
    cols: int = 7,
    maze_structure: Optional[List[List[int]]] = None,
    max_attempts: int = 100,
) -> MazeState:
    """
    Generate a maze.

    Args:
        node_details: Registry with start and goal positions (copied, not mutated)
        sparsity: Removal probability in [0, 1]
        seed: Seed of the generation stream, None for unseeded
        fully_connected: Keep every cell connected instead of only start/goals
        rows, cols: Grid dimensions
        maze_structure: Optional rows x cols mask, 0 = blocked
        max_attempts: Retry budget

    Returns:
        MazeState with start and goal roles tagged, no operation nodes

    Raises:
        ConfigError: Start or goals outside the grid
        GenerationError: No attempt produced a maze where every goal is
                         reachable from start
    """
    details = node_details.copy()
    is_valid, errors = details.validate(rows, cols)
    if not is_valid:
        raise ConfigError("; ".join(errors))

    start = details.start.position
    goals = list(details.goal.positions)
    rng = make_rng(seed)

    mode = "fully connected" if fully_connected else "start/goal connected"
    logger.info(f"Generating {rows}x{cols} maze ({mode}, sparsity={sparsity}, seed={seed!r})")

    for attempt in range(1, max_attempts + 1):
        grid, adj = build_base(rows, cols, details, maze_structure)

        if fully_connected:
            removed = remove_edges_only(adj, sparsity, rng)
            carved = ensure_full_connectivity(grid, adj)
        else:
            removed = remove_edges_or_nodes(adj, rows, cols, start, goals, sparsity, rng)
            remove_isolated_nodes(grid, adj)
            remove_invalid_edges(grid, adj)
            remove_unreachable_nodes(grid, adj, start)
            carved = ensure_connectivity(grid, adj, [start] + goals)
            remove_invalid_edges(grid, adj)

        if all(reachable_via_cells(grid, start, goal) for goal in goals):
            tag_roles(grid, details)
            state = MazeState(grid=grid, adj_matrix=adj, node_details=details)
            check_invariants(state)
            logger.info(
                f"Maze generated on attempt {attempt}: {state.edge_count()} edges, "
                f"{removed} removed, {carved} corridors carved"
            )
            return state

        logger.debug(f"Attempt {attempt} left a goal unreachable, retrying")

    logger.error(f"Maze generation failed after {max_attempts} attempts")
    raise GenerationError(f"No valid maze after {max_attempts} attempts")


def generate(config: MazeConfig) -> MazeState:
    """Generate the base maze described by config."""
    return generate_maze(
        config.node_details,
        sparsity=config.sparsity,
        seed=config.seed,
        fully_connected=config.fully_connected,
        rows=config.rows,
        cols=config.cols,
        maze_structure=config.maze_structure,
        max_attempts=config.max_attempts,
    )


__all__ = [
    'make_rng',
    'set_edge',
    'add_edge',
    'del_edge',
    'clear_cell_edges',
    'carve_path',
    'build_base',
    'collect_edges',
    'remove_edges_only',
    'l_corridor',
    'ensure_full_connectivity',
    'remove_edges_or_nodes',
    'remove_isolated_nodes',
    'remove_invalid_edges',
    'remove_unreachable_nodes',
    'ensure_connectivity',
    'tag_roles',
    'check_invariants',
    'generate_maze',
    'generate',
]
