"""Topic map data models."""

from topicmap.models.topic import ORIGIN, GraphSnapshot, Position, TopicEdge, TopicNode

__all__ = [
    "ORIGIN",
    "Position",
    "TopicNode",
    "TopicEdge",
    "GraphSnapshot",
]
