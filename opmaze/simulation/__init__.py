"""
OPMAZE Simulation Module
========================

Pathfinding, pictures, the activation-order solver and the trial session.

Usage:
    from opmaze.simulation import reachable_via_cells, find_valid_orders
    from opmaze.simulation import MazeSession, default_picture
"""

from opmaze.simulation.pathfinding import (
    manhattan,
    reachable_cells,
    reachable_via_cells,
    reachable_via_edges,
    shortest_path,
    edge_reachable_set,
    is_graph_connected,
)
from opmaze.simulation.picture import (
    Element,
    Picture,
    default_picture,
    apply_operations,
    pictures_equal,
    synthesize_goal_picture,
)
from opmaze.simulation.activation_solver import (
    ImplicatedNode,
    SolverResult,
    find_valid_orders,
    next_activation_targets,
)
from opmaze.simulation.session import (
    Direction,
    MoveResult,
    MazeSession,
    calculate_progress,
    placed_operation_nodes,
    reward_at,
)

__all__ = [
    # Pathfinding
    'manhattan',
    'reachable_cells',
    'reachable_via_cells',
    'reachable_via_edges',
    'shortest_path',
    'edge_reachable_set',
    'is_graph_connected',
    # Pictures
    'Element',
    'Picture',
    'default_picture',
    'apply_operations',
    'pictures_equal',
    'synthesize_goal_picture',
    # Solver
    'ImplicatedNode',
    'SolverResult',
    'find_valid_orders',
    'next_activation_targets',
    # Session
    'Direction',
    'MoveResult',
    'MazeSession',
    'calculate_progress',
    'placed_operation_nodes',
    'reward_at',
]
