"""
OPMAZE Core Module
==================

Definitions, configuration and state shared by every other module.

Components:
- definitions: Cell kinds, neighbor order, index arithmetic, exceptions
- node_details: Start/goal/operation-node registry
- config: MazeConfig dataclass (dict / JSON loading)
- state: MazeState (grid + adjacency matrix + registry)

Usage:
    from opmaze.core import MazeConfig, MazeState, Cell, CellKind
    from opmaze.core import default_node_details
"""

from opmaze.core.definitions import (
    Position,
    CellKind,
    Cell,
    BLOCKED_CELL,
    OPEN_CELL,
    START_CELL,
    NEIGHBOR_DELTAS,
    MazeError,
    OutOfBoundsError,
    IsolatedTargetError,
    InvalidEdgeError,
    ManualChangeError,
    GenerationError,
    SolverLimitError,
    ConfigError,
)
from opmaze.core.node_details import (
    OperationKind,
    Operation,
    OperationNodeSpec,
    StartDetails,
    GoalDetails,
    NodeDetails,
    default_node_details,
)
from opmaze.core.config import MazeConfig
from opmaze.core.state import MazeState

__all__ = [
    # Definitions
    'Position',
    'CellKind',
    'Cell',
    'BLOCKED_CELL',
    'OPEN_CELL',
    'START_CELL',
    'NEIGHBOR_DELTAS',
    # Errors
    'MazeError',
    'OutOfBoundsError',
    'IsolatedTargetError',
    'InvalidEdgeError',
    'ManualChangeError',
    'GenerationError',
    'SolverLimitError',
    'ConfigError',
    # Registry
    'OperationKind',
    'Operation',
    'OperationNodeSpec',
    'StartDetails',
    'GoalDetails',
    'NodeDetails',
    'default_node_details',
    # Config / state
    'MazeConfig',
    'MazeState',
]
