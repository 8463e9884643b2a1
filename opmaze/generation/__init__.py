"""
OPMAZE Generation Module
========================

Building and editing mazes.

Components:
- grid_graph: seeded generation, edge primitives, connectivity repair
- manual_changes: replayable hand edits
- region_cropper: rectangle crop with start/goal relocation
- node_placer: operation-node placement

Usage:
    from opmaze.generation import generate, crop, place_operation_nodes

    state = generate(config)
    state = crop(state, (0, 0, 4, 4))
    place_operation_nodes(state, seed=config.operation_node_seed)
"""

from opmaze.generation.grid_graph import (
    generate,
    generate_maze,
    add_edge,
    del_edge,
    make_rng,
)
from opmaze.generation.manual_changes import (
    ManualChange,
    ToggleCell,
    DeactivateAll,
    AddEdge,
    DeleteEdge,
    DeactivateAllEdges,
    parse_manual_change,
    apply_manual_change,
    replay_changes,
)
from opmaze.generation.region_cropper import crop, normalize_rect
from opmaze.generation.node_placer import place_nodes, place_operation_nodes

__all__ = [
    'generate',
    'generate_maze',
    'add_edge',
    'del_edge',
    'make_rng',
    'ManualChange',
    'ToggleCell',
    'DeactivateAll',
    'AddEdge',
    'DeleteEdge',
    'DeactivateAllEdges',
    'parse_manual_change',
    'apply_manual_change',
    'replay_changes',
    'crop',
    'normalize_rect',
    'place_nodes',
    'place_operation_nodes',
]
