"""Visibility engine - hidden and focus-connected sets.

Both computations are pure functions of the node/edge snapshot and the
collapsed set (or focus id). They return frozensets so callers can compare
results by value and skip downstream work when nothing changed.
"""

import logging
from collections.abc import Iterable
from typing import Literal

from topicmap.graph.index import AdjacencyIndex
from topicmap.models import TopicEdge, TopicNode

logger = logging.getLogger(__name__)

FocusState = Literal["connected", "dimmed"]


def compute_hidden(
    nodes: Iterable[TopicNode],
    edges: Iterable[TopicEdge],
    collapsed: Iterable[str],
) -> frozenset[str]:
    """
    Transitive descendants of every collapsed node.

    A collapsed node itself stays visible unless one of its own ancestors
    is collapsed too. Collapsed ids that are not in the node set are
    ignored.

    Args:
        nodes: Current node snapshot
        edges: Current edge snapshot
        collapsed: Ids marked collapsed

    Returns:
        Ids of nodes that must not be drawn
    """
    node_ids = {n.id for n in nodes}
    index = AdjacencyIndex(edges)
    seeds = [cid for cid in collapsed if cid in node_ids]
    return frozenset(index.descendants(seeds) & node_ids)


def hidden_edge_ids(edges: Iterable[TopicEdge], hidden: frozenset[str]) -> frozenset[str]:
    """Edges with a hidden endpoint."""
    return frozenset(
        e.id for e in edges if e.source in hidden or e.target in hidden
    )


def compute_connected(
    nodes: Iterable[TopicNode],
    edges: Iterable[TopicEdge],
    focus_id: str | None,
) -> frozenset[str]:
    """
    Focused node plus all of its ancestors and descendants.

    Hidden status is ignored. Ancestors and descendants are collected by
    two separate traversals because they follow opposite edge directions.
    """
    if focus_id is None:
        return frozenset()

    node_ids = {n.id for n in nodes}
    if focus_id not in node_ids:
        logger.warning(f"Focus on unknown node {focus_id}, nothing is connected")
        return frozenset()

    index = AdjacencyIndex(edges)
    connected = {focus_id}
    connected.update(index.ancestors(focus_id))
    connected.update(index.descendants([focus_id]))
    return frozenset(connected & node_ids)


def node_focus_state(node_id: str, connected: frozenset[str]) -> FocusState | None:
    """Highlight class of a node while a focus is active."""
    if not connected:
        return None
    return "connected" if node_id in connected else "dimmed"


def edge_focus_state(edge: TopicEdge, connected: frozenset[str]) -> FocusState | None:
    """An edge is connected when both endpoints are."""
    if not connected:
        return None
    if edge.source in connected and edge.target in connected:
        return "connected"
    return "dimmed"
