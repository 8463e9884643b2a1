"""
OPMAZE Utilities
================

Helper functions shared across modules.
"""

from opmaze.utils.graph_utils import (
    set_edge,
    add_edge,
    del_edge,
    edge_list,
    adjacency_to_graph,
    connected_components,
    is_symmetric,
    validate_adjacency,
)

__all__ = [
    'set_edge',
    'add_edge',
    'del_edge',
    'edge_list',
    'adjacency_to_graph',
    'connected_components',
    'is_symmetric',
    'validate_adjacency',
]
