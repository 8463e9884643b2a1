"""
OPMAZE - Operation-Node Maze Engine
===================================

Procedural grid-graph mazes with start, goal and operation nodes, and a
brute-force solver for picture-transform activation orders.

Modules:
- core: definitions, configuration, maze state
- generation: seeded generation, manual edits, cropping, node placement
- simulation: pathfinding, pictures, activation solver, trial session
- pipeline: MazeEngine, the per-session state owner
- utils: networkx graph helpers

Usage:
    from opmaze import MazeConfig, MazeEngine

    engine = MazeEngine(MazeConfig(rows=7, cols=7, seed="Maze"))
    state = engine.build()
    print(state.render())
"""

from opmaze.core import MazeConfig, MazeState, default_node_details
from opmaze.pipeline import MazeEngine

__version__ = '0.1.0'

__all__ = [
    'MazeConfig',
    'MazeState',
    'MazeEngine',
    'default_node_details',
]
