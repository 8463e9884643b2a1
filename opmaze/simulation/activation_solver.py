"""
Activation Sequence Solver
==========================

Brute-force search for operation-node activation orders that turn the
current picture into the goal picture.

Each distinct operation-node type on the grid may appear in an ordering up
to as many times as it has placed nodes. Every such multiset is tried in
every distinct order, shortest orderings first. With one node per type the
number of orderings checked is

    sum_{k=0}^{n} C(n, k) * k!

for n types (1, 2, 5, 16, 65, 326, 1957, 13700, 109601 for n = 0..8);
repeated nodes add the orderings that use a type more than once. The search
refuses to start above `max_types` distinct types.

Usage:
    from opmaze.simulation.activation_solver import find_valid_orders, next_activation_targets

    result = find_valid_orders(current, goal, placed_nodes, node_details)
    targets = next_activation_targets(result, node_details.goal.positions)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Tuple
from opmaze.core.definitions import Position, SolverLimitError
from opmaze.core.node_details import NodeDetails, Operation
from opmaze.simulation.picture import Picture, apply_operations, pictures_equal

logger = logging.getLogger(__name__)

DEFAULT_MAX_TYPES = 8


@dataclass
class ImplicatedNode:
    node_key: str
    position: Position


@dataclass
class SolverResult:
    """
    Outcome of an activation-order search.

    Attributes:
        implicated_nodes: Unique (node_key, position) pairs of every placed
                          node whose type appears in a successful ordering
        valid_orders: Successful orderings as tuples of node keys
        orderings_checked: Number of orderings simulated
    """
    implicated_nodes: List[ImplicatedNode] = field(default_factory=list)
    valid_orders: List[Tuple[str, ...]] = field(default_factory=list)
    orderings_checked: int = 0

    @property
    def solved(self) -> bool:
        return len(self.valid_orders) > 0

    @property
    def positions(self) -> List[Position]:
        return [node.position for node in self.implicated_nodes]


def _instance_counts(placed_nodes: Sequence[Tuple[str, Position]]) -> Dict[str, int]:
    """Placed nodes per type, in order of first appearance; repeated positions count once."""
    counts: Dict[str, int] = {}
    seen = set()
    for key, pos in placed_nodes:
        if (key, tuple(pos)) in seen:
            continue
        seen.add((key, tuple(pos)))
        counts[key] = counts.get(key, 0) + 1
    return counts


def _orderings(keys: List[str], remaining: List[int], length: int) -> Iterator[Tuple[str, ...]]:
    """Distinct orders of `length` keys, key i used at most remaining[i] times."""
    if length == 0:
        yield ()
        return
    for i, key in enumerate(keys):
        if not remaining[i]:
            continue
        remaining[i] -= 1
        for rest in _orderings(keys, remaining, length - 1):
            yield (key,) + rest
        remaining[i] += 1


def find_valid_orders(
    current: Picture,
    goal: Picture,
    placed_nodes: Sequence[Tuple[str, Position]],
    node_details: NodeDetails,
    max_types: int = DEFAULT_MAX_TYPES,
) -> SolverResult:
    """
    Search all activation orders of the placed operation nodes.

    A type with m placed nodes may appear up to m times in one ordering.

    Args:
        current: Picture before any activation
        goal: Target picture
        placed_nodes: (node_key, position) pairs found on the grid, row-major
        node_details: Registry providing each type's operation list
        max_types: Upper bound on distinct types

    Returns:
        SolverResult

    Raises:
        SolverLimitError: More than max_types distinct types are placed
    """
    counts = _instance_counts(placed_nodes)
    keys = list(counts)
    if len(keys) > max_types:
        logger.error(f"{len(keys)} operation-node types exceed solver limit {max_types}")
        raise SolverLimitError(
            f"{len(keys)} distinct operation-node types exceed the limit of {max_types}"
        )

    operations: Dict[str, List[Operation]] = {}
    for key in keys:
        spec = node_details.operation.get(key)
        operations[key] = [op for op in spec.operations if op.affects_picture] if spec else []

    result = SolverResult()
    remaining = [counts[key] for key in keys]
    for length in range(sum(remaining) + 1):
        for order in _orderings(keys, remaining, length):
            result.orderings_checked += 1
            ops = [op for key in order for op in operations[key]]
            if pictures_equal(apply_operations(current, ops), goal):
                result.valid_orders.append(order)

    implicated = {key for order in result.valid_orders for key in order}
    seen = set()
    for key, pos in placed_nodes:
        if key in implicated and (key, pos) not in seen:
            seen.add((key, pos))
            result.implicated_nodes.append(ImplicatedNode(node_key=key, position=pos))

    logger.debug(
        f"Checked {result.orderings_checked} orderings over {len(keys)} types, "
        f"{len(result.valid_orders)} valid"
    )
    return result


def next_activation_targets(
    result: SolverResult,
    fallback_goal_positions: Sequence[Position],
) -> List[Position]:
    """Positions of implicated nodes, or the goal positions if none were implicated."""
    if not result.implicated_nodes:
        return list(fallback_goal_positions)
    return result.positions


__all__ = [
    'DEFAULT_MAX_TYPES',
    'ImplicatedNode',
    'SolverResult',
    'find_valid_orders',
    'next_activation_targets',
]
