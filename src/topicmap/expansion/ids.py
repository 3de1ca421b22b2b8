"""Session-unique id allocation for generated nodes and edges."""

import time
import uuid
from collections.abc import Iterable

from topicmap.errors import DuplicateIdError


class IdAllocator:
    """
    Allocates ids from a role token, a local index, a nanosecond
    timestamp and a random suffix.

    Every id already present in the graph is registered up front, and a
    collision raises DuplicateIdError instead of being tolerated.
    """

    def __init__(self, existing: Iterable[str] = ()) -> None:
        self._issued: set[str] = set(existing)

    def _claim(self, candidate: str) -> str:
        if candidate in self._issued:
            raise DuplicateIdError([candidate])
        self._issued.add(candidate)
        return candidate

    def node_id(self, role: str, *indices: int) -> str:
        """Allocate a node id, e.g. ``l1-3-1718000000000000000-9f2c41ab``."""
        parts = [role, *(str(i) for i in indices), str(time.time_ns()), uuid.uuid4().hex[:8]]
        return self._claim("-".join(parts))

    def edge_id(self, source: str, target: str) -> str:
        """Allocate the id of a parent -> child edge."""
        return self._claim(f"e-{source}-{target}")
