"""Layered layout for the visible part of the topic forest."""

from topicmap.layout.config import LayoutConfig, NodeBox
from topicmap.layout.engine import LayoutOrchestrator, positions_changed

__all__ = [
    "LayoutConfig",
    "NodeBox",
    "LayoutOrchestrator",
    "positions_changed",
]
