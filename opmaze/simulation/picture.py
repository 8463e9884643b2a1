"""
Picture Transform
=================

A picture is an ordered list of shape elements. Operation nodes rotate
elements by index; the trial goal is a picture produced by a random
sequence of activations.

Usage:
    from opmaze.simulation.picture import default_picture, apply_operations

    picture = default_picture()
    rotated = apply_operations(picture, [Operation(OperationKind.ROTATE_180, [2])])
    assert not pictures_equal(picture, rotated)
"""

import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from opmaze.core.node_details import NodeDetails, Operation, OperationKind

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 500

ROTATION_STEPS = {
    OperationKind.ROTATE_45: 45,
    OperationKind.ROTATE_180: 180,
}


@dataclass
class Element:
    """One shape of a picture. Circles use radius, rects use width/height."""
    shape: str
    color: str
    x: float = 0.0
    y: float = 0.0
    radius: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    rotation_angle: float = 0
    offset_x: float = 0
    offset_y: float = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Element':
        return cls(
            shape=data['shape'],
            color=data.get('color', 'white'),
            x=data.get('x', 0.0),
            y=data.get('y', 0.0),
            radius=data.get('radius'),
            width=data.get('width'),
            height=data.get('height'),
            rotation_angle=data.get('rotation_angle', data.get('rotationAngle', 0)),
            offset_x=data.get('offset_x', data.get('offsetX', 0)),
            offset_y=data.get('offset_y', data.get('offsetY', 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'shape': self.shape,
            'color': self.color,
            'x': self.x,
            'y': self.y,
            'radius': self.radius,
            'width': self.width,
            'height': self.height,
            'rotation_angle': self.rotation_angle,
            'offset_x': self.offset_x,
            'offset_y': self.offset_y,
        }


@dataclass
class Picture:
    elements: List[Element] = field(default_factory=list)

    def copy(self) -> 'Picture':
        return copy.deepcopy(self)

    def __len__(self) -> int:
        return len(self.elements)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Picture':
        return cls(elements=[Element.from_dict(e) for e in data.get('elements', [])])

    def to_dict(self) -> Dict[str, Any]:
        return {'elements': [e.to_dict() for e in self.elements]}

    def describe(self) -> str:
        return ", ".join(
            f"{e.shape}({e.color})@{e.rotation_angle:g}" for e in self.elements
        )


def default_picture() -> Picture:
    """The stock picture: a white circle and two rectangles."""
    x = CANVAS_WIDTH / 2 - 150
    return Picture(elements=[
        Element(shape='circle', color='white', x=x, y=50, radius=30),
        Element(shape='rect', color='#1700ff', x=x, y=50, width=30, height=10.5,
                rotation_angle=45, offset_y=5),
        Element(shape='rect', color='#3ba6ff', x=x, y=50, width=30, height=10.5,
                rotation_angle=0, offset_y=5),
    ])


# ==========================================
# TRANSFORMS
# ==========================================

def expand_steps(operations: Iterable[Operation]) -> List[Tuple[OperationKind, int]]:
    """Flatten operations into (kind, element_index) steps, skipping ADD_EDGE."""
    steps = []
    for op in operations:
        if not op.affects_picture:
            continue
        for index in op.target_element_indices:
            steps.append((op.kind, index))
    return steps


def apply_operations(picture: Picture, operations: Sequence[Operation]) -> Picture:
    """
    Apply operations to a copy of picture.

    Rotations add their step modulo 360. Target indices outside the element
    list, negative ones included, are ignored. ADD_EDGE operations act on the
    maze graph and leave the picture untouched.
    """
    result = picture.copy()
    for kind, index in expand_steps(operations):
        if not 0 <= index < len(result.elements):
            continue
        element = result.elements[index]
        element.rotation_angle = (element.rotation_angle + ROTATION_STEPS[kind]) % 360
    return result


def pictures_equal(a: Picture, b: Picture) -> bool:
    """Ordered field-by-field comparison."""
    if len(a.elements) != len(b.elements):
        return False
    for ea, eb in zip(a.elements, b.elements):
        if (
            ea.shape != eb.shape
            or ea.width != eb.width
            or ea.height != eb.height
            or ea.radius != eb.radius
            or ea.color != eb.color
            or ea.offset_x != eb.offset_x
            or ea.offset_y != eb.offset_y
            or ea.rotation_angle != eb.rotation_angle
            or ea.x != eb.x
            or ea.y != eb.y
        ):
            return False
    return True


# ==========================================
# GOAL SYNTHESIS
# ==========================================

def synthesize_goal_picture(
    picture: Picture,
    node_details: NodeDetails,
    rng: Optional[random.Random] = None,
) -> Tuple[Picture, List[str]]:
    """
    Build a trial goal picture from a random activation order.

    Every placed operation-node type contributes `quantity` instances; the
    instances are shuffled and a random non-empty prefix is applied in order.

    Args:
        picture: Current picture
        node_details: Registry with placed operation nodes
        rng: Session-local random stream (unseeded if None)

    Returns:
        Tuple of (goal picture, node keys of the chosen instances in order)
    """
    rng = rng or random.Random()
    instances = [
        key
        for key, spec in node_details.operation.items()
        if spec.positions
        for _ in range(spec.quantity)
    ]
    if not instances:
        logger.warning("No placed operation nodes, goal picture equals current picture")
        return picture.copy(), []

    rng.shuffle(instances)
    chosen = instances[:rng.randrange(len(instances)) + 1]
    operations = [op for key in chosen for op in node_details.operation[key].operations]
    goal = apply_operations(picture, operations)
    logger.debug(f"Goal picture from activation order {chosen}")
    return goal, chosen


__all__ = [
    'Element',
    'Picture',
    'default_picture',
    'expand_steps',
    'apply_operations',
    'pictures_equal',
    'synthesize_goal_picture',
]
