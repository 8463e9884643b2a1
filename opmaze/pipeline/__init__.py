"""
OPMAZE Pipeline Module
======================

The MazeEngine ties generation, cropping, placement, manual edits and the
activation solver together for one session.

Usage:
    from opmaze.pipeline import MazeEngine

    engine = MazeEngine(config)
    state = engine.build()
    result = engine.solve_activation_order(current_picture, goal_picture)
"""

from opmaze.pipeline.maze_engine import (
    MazeEngine,
    add_edge,
    del_edge,
    place_nodes,
    solve_activation_order,
)

__all__ = [
    'MazeEngine',
    'add_edge',
    'del_edge',
    'place_nodes',
    'solve_activation_order',
]
