"""Topic forest storage and visibility.

Provides:
- GraphStore: canonical node/edge collections with forest validation
- AdjacencyIndex: per-call parent/child index with guarded traversals
- Visibility: hidden set for collapsed nodes, connected set for focus
"""

from topicmap.graph.index import AdjacencyIndex
from topicmap.graph.store import GraphStore
from topicmap.graph.visibility import (
    FocusState,
    compute_connected,
    compute_hidden,
    edge_focus_state,
    hidden_edge_ids,
    node_focus_state,
)

__all__ = [
    "AdjacencyIndex",
    "GraphStore",
    # Visibility
    "FocusState",
    "compute_hidden",
    "compute_connected",
    "hidden_edge_ids",
    "node_focus_state",
    "edge_focus_state",
]
