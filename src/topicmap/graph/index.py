"""Adjacency index over a parent -> child edge list.

Built once per call from an immutable edge snapshot. All traversals are
iterative and guarded by a visited set, so an invariant violation that
introduces a cycle terminates instead of recursing forever.
"""

from collections.abc import Iterable

from topicmap.models import TopicEdge


class AdjacencyIndex:
    """node id -> outgoing targets, node id -> incoming source."""

    def __init__(self, edges: Iterable[TopicEdge]) -> None:
        self.children: dict[str, list[str]] = {}
        self.parent: dict[str, str] = {}
        for edge in edges:
            self.children.setdefault(edge.source, []).append(edge.target)
            # First incoming edge wins if the forest invariant is broken
            self.parent.setdefault(edge.target, edge.source)

    def children_of(self, node_id: str) -> list[str]:
        return self.children.get(node_id, [])

    def parent_of(self, node_id: str) -> str | None:
        return self.parent.get(node_id)

    def descendants(self, seeds: Iterable[str]) -> set[str]:
        """All ids reachable from any seed by one or more outgoing edges."""
        reached: set[str] = set()
        for seed in seeds:
            stack = list(self.children_of(seed))
            while stack:
                node_id = stack.pop()
                if node_id in reached:
                    continue
                reached.add(node_id)
                stack.extend(self.children_of(node_id))
        return reached

    def ancestors(self, node_id: str) -> list[str]:
        """Parent chain of a node, nearest first."""
        chain: list[str] = []
        seen = {node_id}
        current = self.parent_of(node_id)
        while current is not None and current not in seen:
            chain.append(current)
            seen.add(current)
            current = self.parent_of(current)
        return chain

    def subtree(self, root_id: str) -> list[str]:
        """Root followed by its descendants in pre-order (children in edge order)."""
        ordered: list[str] = []
        seen: set[str] = set()
        stack = [root_id]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            ordered.append(node_id)
            # Reverse so the first child is visited first
            stack.extend(reversed(self.children_of(node_id)))
        return ordered
