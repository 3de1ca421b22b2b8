"""Graph store - the canonical node and edge collections of a session.

Every mutating call validates its whole batch first and only then
touches the collections, so a rejected call leaves the store unchanged.
"""

import logging
from collections.abc import Iterable

from topicmap.errors import DuplicateIdError, ForestViolationError, NotFoundError
from topicmap.graph.index import AdjacencyIndex
from topicmap.models import GraphSnapshot, TopicEdge, TopicNode

logger = logging.getLogger(__name__)


class GraphStore:
    """Mutable source of truth for one topic forest (insertion ordered)."""

    def __init__(
        self,
        nodes: Iterable[TopicNode] = (),
        edges: Iterable[TopicEdge] = (),
    ) -> None:
        self._nodes: dict[str, TopicNode] = {}
        self._edges: dict[str, TopicEdge] = {}
        self.add_nodes(nodes)
        self.add_edges(edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def nodes(self) -> tuple[TopicNode, ...]:
        return tuple(self._nodes.values())

    @property
    def edges(self) -> tuple[TopicEdge, ...]:
        return tuple(self._edges.values())

    def node_ids(self) -> set[str]:
        return set(self._nodes)

    def edge_ids(self) -> set[str]:
        return set(self._edges)

    def get_node(self, node_id: str) -> TopicNode:
        """Get a node or raise NotFoundError."""
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFoundError(node_id) from None

    def snapshot(self) -> GraphSnapshot:
        """Immutable copy of the current nodes and edges."""
        return GraphSnapshot(nodes=self.nodes, edges=self.edges)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_nodes(self, nodes: Iterable[TopicNode]) -> None:
        """Insert new nodes; any id collision rejects the whole batch."""
        batch = list(nodes)
        self._check_nodes(batch)
        for node in batch:
            self._nodes[node.id] = node

    def add_edges(self, edges: Iterable[TopicEdge]) -> None:
        """Insert new parent -> child edges between existing nodes."""
        batch = list(edges)
        self._check_edges(batch, self.node_ids())
        for edge in batch:
            self._edges[edge.id] = edge

    def merge(self, nodes: Iterable[TopicNode], edges: Iterable[TopicEdge]) -> None:
        """Insert nodes and the edges wiring them in one atomic step."""
        node_batch = list(nodes)
        edge_batch = list(edges)
        self._check_nodes(node_batch)
        self._check_edges(edge_batch, self.node_ids() | {n.id for n in node_batch})
        for node in node_batch:
            self._nodes[node.id] = node
        for edge in edge_batch:
            self._edges[edge.id] = edge
        logger.info(f"Merged {len(node_batch)} nodes and {len(edge_batch)} edges")

    def update_nodes(self, nodes: Iterable[TopicNode]) -> None:
        """Replace existing nodes by id (labels, hints, cached positions)."""
        batch = list(nodes)
        for node in batch:
            if node.id not in self._nodes:
                raise NotFoundError(node.id, "update")
        for node in batch:
            self._nodes[node.id] = node

    def remove_subtree(self, root_id: str) -> frozenset[str]:
        """
        Remove a node, all of its descendants and every edge touching them.

        This includes the edge from the root's own parent, so no edge is
        left referencing a removed node.

        Returns:
            Ids of the removed nodes
        """
        if root_id not in self._nodes:
            raise NotFoundError(root_id, "remove_subtree")

        index = AdjacencyIndex(self._edges.values())
        removed = frozenset({root_id} | (index.descendants([root_id]) & self._nodes.keys()))

        self._nodes = {nid: n for nid, n in self._nodes.items() if nid not in removed}
        self._edges = {
            eid: e for eid, e in self._edges.items()
            if e.source not in removed and e.target not in removed
        }
        logger.info(f"Removed subtree {root_id}: {len(removed)} nodes")
        return removed

    def replace_all(self, nodes: Iterable[TopicNode], edges: Iterable[TopicEdge]) -> None:
        """Swap in a complete node/edge set (bulk load or reset)."""
        staged = GraphStore(nodes, edges)
        self._nodes = staged._nodes
        self._edges = staged._edges

    def clear(self) -> None:
        self._nodes = {}
        self._edges = {}

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_nodes(self, batch: list[TopicNode]) -> None:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for node in batch:
            if node.id in self._nodes or node.id in seen:
                duplicates.add(node.id)
            seen.add(node.id)
        if duplicates:
            raise DuplicateIdError(sorted(duplicates))

    def _check_edges(self, batch: list[TopicEdge], known_nodes: set[str]) -> None:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for edge in batch:
            if edge.id in self._edges or edge.id in seen:
                duplicates.add(edge.id)
            seen.add(edge.id)
        if duplicates:
            raise DuplicateIdError(sorted(duplicates))

        index = AdjacencyIndex(self._edges.values())
        for edge in batch:
            if edge.source == edge.target:
                raise ForestViolationError(
                    f"Self-loop on {edge.source}", {"edge_id": edge.id}
                )
            missing = [nid for nid in (edge.source, edge.target) if nid not in known_nodes]
            if missing:
                raise ForestViolationError(
                    f"Edge {edge.id} references missing nodes: {', '.join(missing)}",
                    {"edge_id": edge.id, "missing": missing},
                )
            existing_parent = index.parent_of(edge.target)
            if existing_parent is not None:
                raise ForestViolationError(
                    f"Node {edge.target} already has parent {existing_parent}",
                    {"edge_id": edge.id, "parent": existing_parent},
                )
            if edge.target in index.ancestors(edge.source):
                raise ForestViolationError(
                    f"Edge {edge.id} would close a cycle through {edge.target}",
                    {"edge_id": edge.id},
                )
            # Later edges in the batch see this one
            index.children.setdefault(edge.source, []).append(edge.target)
            index.parent[edge.target] = edge.source
