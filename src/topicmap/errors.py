"""Error taxonomy for the topic map core."""

from typing import Any


class TopicMapError(Exception):
    """Base exception for topic map operations."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(TopicMapError):
    """Raised when an operation references a node id absent from the graph."""

    def __init__(self, node_id: str, operation: str | None = None) -> None:
        details = {"node_id": node_id}
        if operation:
            details["operation"] = operation
        super().__init__(f"Node not found: {node_id}", details)
        self.node_id = node_id


class MalformedUpstreamPayload(TopicMapError):
    """Raised when a generation result is missing its required shape."""
    pass


class PersistedStateInvalid(TopicMapError):
    """Raised when a saved snapshot fails shape validation on load."""
    pass


class DuplicateIdError(TopicMapError):
    """Raised when an id is allocated or inserted twice.

    This is a programming defect: id allocation mixes a role token, a
    per-batch index, a nanosecond timestamp and random entropy.
    """

    def __init__(self, ids: list[str]) -> None:
        super().__init__(f"Duplicate ids: {', '.join(sorted(ids))}", {"ids": sorted(ids)})
        self.ids = ids


class ForestViolationError(TopicMapError):
    """Raised when an edge batch would break the forest invariant."""
    pass


class ExpansionBusyError(TopicMapError):
    """Raised when an expansion is requested while another is in flight."""

    def __init__(self) -> None:
        super().__init__("An expansion is already in progress")


class KnowledgeSourceError(TopicMapError):
    """Raised by a knowledge source when generation fails (transport or parse)."""
    pass
