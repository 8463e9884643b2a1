"""
Node Placer
===========

Put role-tagged nodes onto open cells: predefined positions first, then
seeded sampling without replacement. Run it after generation, cropping and
manual edits so nodes only land on cells that are currently open.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from opmaze.core.config import Seed
from opmaze.core.definitions import Cell, CellKind, Position, as_position, in_bounds
from opmaze.core.state import MazeState
from opmaze.generation.grid_graph import make_rng

logger = logging.getLogger(__name__)


def place_nodes(
    grid: np.ndarray,
    quantity: int,
    role: Cell,
    predefined_positions: Optional[Sequence[Position]] = None,
    seed: Seed = None,
    random_fill: bool = True,
) -> List[Position]:
    """
    Place up to quantity nodes of one role, mutating grid.

    Args:
        grid: Cell grid
        quantity: Number of nodes wanted
        role: Cell written at each placed position
        predefined_positions: Tried first in order; out-of-bounds or
                              non-open entries are skipped
        seed: Seed of the sampling stream (None = unseeded)
        random_fill: Sample the remaining slots from open cells

    Returns:
        Placed positions, predefined ones first
    """
    rows, cols = grid.shape
    placed: List[Position] = []

    for value in predefined_positions or []:
        if len(placed) >= quantity:
            break
        pos = as_position(value)
        if in_bounds(pos, rows, cols) and grid[pos].kind == CellKind.OPEN:
            grid[pos] = role
            placed.append(pos)
        else:
            logger.warning(f"Predefined position {pos} is not an open cell, skipped")

    if random_fill and len(placed) < quantity:
        rng = make_rng(seed)
        available = [
            (r, c) for r in range(rows) for c in range(cols)
            if grid[r, c].kind == CellKind.OPEN
        ]
        while len(placed) < quantity and available:
            pos = available.pop(rng.randrange(len(available)))
            grid[pos] = role
            placed.append(pos)

    if len(placed) < quantity:
        logger.warning(f"Placed {len(placed)} of {quantity} nodes, no open cells left")
    return placed


def place_operation_nodes(state: MazeState, seed: Seed = None) -> MazeState:
    """
    Place every operation-node type of the registry, in insertion order.

    Each type samples from its own stream seeded with seed, and its placed
    positions are written back to the registry.
    """
    for key, spec in state.node_details.operation.items():
        spec.positions = place_nodes(
            state.grid,
            spec.quantity,
            Cell.operation(key),
            predefined_positions=spec.predefined_positions,
            seed=seed,
            random_fill=spec.random_positions,
        )
        logger.debug(f"Placed '{key}' at {spec.positions}")
    logger.info(
        f"Placed {sum(len(s.positions) for s in state.node_details.operation.values())} "
        f"operation nodes"
    )
    return state


__all__ = [
    'place_nodes',
    'place_operation_nodes',
]
