"""Persistent store contract and the shared {nodes, edges} text codec."""

import json
from collections.abc import Iterable
from typing import Protocol

from topicmap.errors import PersistedStateInvalid
from topicmap.models import GraphSnapshot, TopicEdge, TopicNode


class PersistentStore(Protocol):
    """Durability across sessions: load at start, save after commits, clear on reset."""

    def load(self) -> GraphSnapshot | None:
        ...

    def save(self, nodes: Iterable[TopicNode], edges: Iterable[TopicEdge]) -> None:
        ...

    def clear(self) -> None:
        ...


def dump_snapshot(nodes: Iterable[TopicNode], edges: Iterable[TopicEdge]) -> str:
    """Serialize nodes and edges to JSON text."""
    snapshot = GraphSnapshot(nodes=tuple(nodes), edges=tuple(edges))
    return json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2)


def parse_snapshot(text: str) -> GraphSnapshot:
    """
    Parse JSON text into a snapshot.

    Raises:
        PersistedStateInvalid: if the text is not an object holding a
            ``nodes`` list and an ``edges`` list of valid entries
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PersistedStateInvalid(f"Saved state is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise PersistedStateInvalid("Saved state is not an object")
    if not isinstance(data.get("nodes"), list) or not isinstance(data.get("edges"), list):
        raise PersistedStateInvalid(
            "Saved state must hold 'nodes' and 'edges' arrays",
            {"keys": sorted(data)},
        )

    try:
        return GraphSnapshot.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise PersistedStateInvalid(f"Saved state has an invalid entry: {e}") from e
