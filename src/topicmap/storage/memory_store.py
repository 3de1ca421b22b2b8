"""In-memory persistent store (tests and ephemeral sessions)."""

from collections.abc import Iterable

from topicmap.models import GraphSnapshot, TopicEdge, TopicNode
from topicmap.storage.base import dump_snapshot, parse_snapshot


class MemoryStore:
    """Keeps the last saved snapshot as serialized text."""

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.save_count = 0

    def load(self) -> GraphSnapshot | None:
        if self.text is None:
            return None
        return parse_snapshot(self.text)

    def save(self, nodes: Iterable[TopicNode], edges: Iterable[TopicEdge]) -> None:
        self.text = dump_snapshot(nodes, edges)
        self.save_count += 1

    def clear(self) -> None:
        self.text = None
