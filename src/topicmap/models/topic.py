"""Topic forest models - nodes, parent->child edges and snapshots."""

from dataclasses import dataclass, field
from typing import Any


def _require_str(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Field '{key}' must be a non-empty string, got {value!r}")
    return value


def _non_negative_int(data: dict, key: str, default: int) -> int:
    value = data.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"Field '{key}' must be a non-negative integer, got {value!r}")
    return value


@dataclass(frozen=True)
class Position:
    """Top-left anchor of a node box in layout coordinates."""

    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Any) -> "Position":
        """Create from dictionary; a missing position means the origin."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Position must be an object, got {data!r}")
        return cls(x=float(data.get("x", 0.0)), y=float(data.get("y", 0.0)))


ORIGIN = Position()


@dataclass(frozen=True)
class TopicNode:
    """
    A topic in the exploration forest.

    The position is a cached layout result and is never authoritative:
    it can always be recomputed from the edges and the collapse state.
    """

    id: str
    label: str
    description: str = ""
    level: int = 0  # 0=root, 1=category, 2+=detail
    is_root: bool = False

    # Expected/known number of children; 0 offers "explore more",
    # anything else offers the collapse/expand toggle
    child_hint: int = 0

    position: Position = field(default=ORIGIN)

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "level": self.level,
            "is_root": self.is_root,
            "child_hint": self.child_hint,
            "position": self.position.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TopicNode":
        """Create from a persisted dictionary."""
        if not isinstance(data, dict):
            raise ValueError(f"Node must be an object, got {type(data).__name__}")
        label = data.get("label", "")
        description = data.get("description") or ""
        if not isinstance(label, str) or not isinstance(description, str):
            raise ValueError("Node label and description must be strings")
        return cls(
            id=_require_str(data, "id"),
            label=label,
            description=description,
            level=_non_negative_int(data, "level", 0),
            is_root=bool(data.get("is_root", False)),
            child_hint=_non_negative_int(data, "child_hint", 0),
            position=Position.from_dict(data.get("position")),
        )


@dataclass(frozen=True)
class TopicEdge:
    """A parent -> child link. Each node has at most one incoming edge."""

    id: str
    source: str
    target: str

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {"id": self.id, "source": self.source, "target": self.target}

    @classmethod
    def from_dict(cls, data: dict) -> "TopicEdge":
        """Create from a persisted dictionary."""
        if not isinstance(data, dict):
            raise ValueError(f"Edge must be an object, got {type(data).__name__}")
        return cls(
            id=_require_str(data, "id"),
            source=_require_str(data, "source"),
            target=_require_str(data, "target"),
        )


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable node/edge lists handed between components."""

    nodes: tuple[TopicNode, ...] = ()
    edges: tuple[TopicEdge, ...] = ()

    def to_dict(self) -> dict:
        """Convert to the persisted {nodes, edges} shape."""
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GraphSnapshot":
        """Create from the persisted {nodes, edges} shape."""
        return cls(
            nodes=tuple(TopicNode.from_dict(n) for n in data["nodes"]),
            edges=tuple(TopicEdge.from_dict(e) for e in data["edges"]),
        )
