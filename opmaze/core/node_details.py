"""
Node Registry
=============
Start, goal and operation-node descriptions for one maze.

The registry is plain configuration: it says where roles *should* go and
what each operation node does when activated. The engine writes placed
positions back into it (``OperationNodeSpec.positions``, relocated start and
goals after a crop).

Serialised keys follow snake_case; the camelCase spellings used by exported
game settings (``targetElementIndex``, ``predefinedPositions``, ...) are
accepted on input.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from opmaze.core.definitions import ConfigError, Position, as_position

logger = logging.getLogger(__name__)


def _get(data: Dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return default


def _positions(values) -> List[Position]:
    if not values:
        return []
    return [as_position(v) for v in values]


class OperationKind(Enum):
    """What an operation does when its node is activated."""
    ROTATE_45 = "addRotate45"
    ROTATE_180 = "rotate180"
    ADD_EDGE = "addEdge"

    @classmethod
    def parse(cls, value) -> 'OperationKind':
        if isinstance(value, cls):
            return value
        aliases = {
            'addRotate45': cls.ROTATE_45,
            'rotate45': cls.ROTATE_45,
            'rotate_45': cls.ROTATE_45,
            'rotate180': cls.ROTATE_180,
            'rotate_180': cls.ROTATE_180,
            'addEdge': cls.ADD_EDGE,
            'add_edge': cls.ADD_EDGE,
        }
        try:
            return aliases[str(value)]
        except KeyError:
            raise ConfigError(f"Unknown operation type: {value!r}") from None


@dataclass
class Operation:
    """One action of an operation node."""
    kind: OperationKind
    target_element_indices: List[int] = field(default_factory=list)
    params: Optional[Tuple[Position, Position]] = None  # ADD_EDGE only

    @property
    def affects_picture(self) -> bool:
        return self.kind != OperationKind.ADD_EDGE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Operation':
        kind = OperationKind.parse(_get(data, 'kind', 'type'))
        targets = _get(data, 'target_element_indices', 'targetElementIndex', default=[])
        if isinstance(targets, int):
            targets = [targets]
        params = _get(data, 'params')
        if kind == OperationKind.ADD_EDGE:
            if not params or len(params) != 2:
                raise ConfigError(f"addEdge operation needs a node pair, got {params!r}")
            params = (as_position(params[0]), as_position(params[1]))
        else:
            params = None
        return cls(kind=kind, target_element_indices=[int(t) for t in targets], params=params)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.kind.value,
            'target_element_indices': list(self.target_element_indices),
            'params': [list(p) for p in self.params] if self.params else None,
        }


@dataclass
class OperationNodeSpec:
    """Configuration and placement of one operation-node type."""
    quantity: int = 1
    color: str = 'red'
    operations: List[Operation] = field(default_factory=list)
    predefined_positions: Optional[List[Position]] = None
    random_positions: bool = True
    positions: List[Position] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OperationNodeSpec':
        predefined = _get(data, 'predefined_positions', 'predefinedPositions')
        return cls(
            quantity=int(_get(data, 'quantity', default=1)),
            color=_get(data, 'color', default='red'),
            operations=[Operation.from_dict(op) for op in _get(data, 'operations', default=[])],
            predefined_positions=_positions(predefined) if predefined is not None else None,
            random_positions=bool(_get(data, 'random_positions', 'randomPositions', default=True)),
            positions=_positions(_get(data, 'positions', default=[])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'quantity': self.quantity,
            'color': self.color,
            'operations': [op.to_dict() for op in self.operations],
            'predefined_positions': (
                [list(p) for p in self.predefined_positions]
                if self.predefined_positions is not None else None
            ),
            'random_positions': self.random_positions,
            'positions': [list(p) for p in self.positions],
        }


@dataclass
class StartDetails:
    position: Position = (0, 0)
    color: str = 'yellow'


@dataclass
class GoalDetails:
    positions: List[Position] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    rewards: List[float] = field(default_factory=list)

    def reward_at(self, goal_index: int) -> Optional[float]:
        if 0 <= goal_index < len(self.rewards):
            return self.rewards[goal_index]
        return None


@dataclass
class NodeDetails:
    """Registry of role nodes for one maze."""
    start: StartDetails = field(default_factory=StartDetails)
    goal: GoalDetails = field(default_factory=GoalDetails)
    operation: Dict[str, OperationNodeSpec] = field(default_factory=dict)

    def copy(self) -> 'NodeDetails':
        return copy.deepcopy(self)

    def operation_positions(self) -> List[Tuple[str, Position]]:
        return [(key, pos) for key, spec in self.operation.items() for pos in spec.positions]

    def validate(self, rows: int, cols: int) -> Tuple[bool, List[str]]:
        """Check that start and goals lie inside a rows x cols grid."""
        errors = []
        r, c = self.start.position
        if not (0 <= r < rows and 0 <= c < cols):
            errors.append(f"Start {self.start.position} outside {rows}x{cols} grid")
        if not self.goal.positions:
            errors.append("At least one goal position is required")
        for i, (r, c) in enumerate(self.goal.positions):
            if not (0 <= r < rows and 0 <= c < cols):
                errors.append(f"Goal {i} at {(r, c)} outside {rows}x{cols} grid")
        for key, spec in self.operation.items():
            if spec.quantity < 0:
                errors.append(f"Operation node '{key}' has negative quantity {spec.quantity}")
        return len(errors) == 0, errors

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NodeDetails':
        start_data = data.get('start', {})
        if 'position' in start_data:
            start_pos = as_position(start_data['position'])
        else:
            # exported settings keep start as a one-element position list
            start_positions = _positions(start_data.get('positions', [[0, 0]]))
            start_pos = start_positions[0] if start_positions else (0, 0)
        start = StartDetails(position=start_pos, color=start_data.get('color', 'yellow'))

        goal_data = data.get('goal', {})
        colors = _get(goal_data, 'colors', 'color', default=[])
        if isinstance(colors, str):
            colors = [colors]
        goal = GoalDetails(
            positions=_positions(goal_data.get('positions', [])),
            colors=list(colors),
            rewards=[float(r) for r in goal_data.get('rewards', [])],
        )

        operation = {
            str(key): OperationNodeSpec.from_dict(spec)
            for key, spec in data.get('operation', {}).items()
        }
        return cls(start=start, goal=goal, operation=operation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': {'position': list(self.start.position), 'color': self.start.color},
            'goal': {
                'positions': [list(p) for p in self.goal.positions],
                'colors': list(self.goal.colors),
                'rewards': list(self.goal.rewards),
            },
            'operation': {key: spec.to_dict() for key, spec in self.operation.items()},
        }


def default_node_details() -> NodeDetails:
    """The stock registry: two goals and two operation-node types."""
    return NodeDetails(
        start=StartDetails(position=(0, 0), color='yellow'),
        goal=GoalDetails(
            positions=[(4, 4), (6, 6)],
            colors=['green', '#90EE90'],
            rewards=[25.0, 75.0],
        ),
        operation={
            'node1': OperationNodeSpec(
                quantity=2,
                color='red',
                operations=[Operation(OperationKind.ROTATE_45, [1])],
            ),
            'node2': OperationNodeSpec(
                quantity=1,
                color='purple',
                operations=[
                    Operation(OperationKind.ROTATE_180, [2]),
                    Operation(OperationKind.ADD_EDGE, [2], params=((1, 2), (1, 4))),
                ],
            ),
        },
    )
