"""Map session - single owner of one topic forest.

Every user action runs one synchronous pipeline:

    mutate -> recompute hidden set -> recompute layout -> commit once -> save

The only suspension point is the knowledge source call inside expand().
While it is outstanding the session is busy and rejects a second
expansion, so ids and merge order can never race.
"""

import logging
from dataclasses import dataclass, replace

from topicmap.errors import (
    DuplicateIdError,
    ExpansionBusyError,
    ForestViolationError,
    MalformedUpstreamPayload,
    PersistedStateInvalid,
)
from topicmap.expansion import ExpansionOutcome, ExpansionProtocol
from topicmap.graph import (
    AdjacencyIndex,
    FocusState,
    GraphStore,
    compute_connected,
    compute_hidden,
    edge_focus_state,
    hidden_edge_ids,
    node_focus_state,
)
from topicmap.knowledge.source import KnowledgeSource
from topicmap.layout import LayoutConfig, LayoutOrchestrator, positions_changed
from topicmap.models import Position, TopicNode
from topicmap.storage import PersistentStore

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "


# ============================================================================
# Renderer view
# ============================================================================


@dataclass(frozen=True)
class ViewNode:
    """A node as the renderer draws it."""

    node: TopicNode
    hidden: bool
    collapsed: bool
    focus_state: FocusState | None = None

    @property
    def can_expand(self) -> bool:
        """Nodes without known children offer "explore more" instead of a toggle."""
        return self.node.child_hint == 0

    def to_dict(self) -> dict:
        data = self.node.to_dict()
        data.update({
            "hidden": self.hidden,
            "collapsed": self.collapsed,
            "can_expand": self.can_expand,
            "focus_state": self.focus_state,
        })
        return data


@dataclass(frozen=True)
class ViewEdge:
    """An edge as the renderer draws it."""

    id: str
    source: str
    target: str
    hidden: bool
    focus_state: FocusState | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "hidden": self.hidden,
            "focus_state": self.focus_state,
        }


@dataclass(frozen=True)
class MapView:
    """Full annotated snapshot handed to the renderer on every refresh."""

    nodes: tuple[ViewNode, ...]
    edges: tuple[ViewEdge, ...]
    busy: bool = False
    focus_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "busy": self.busy,
            "focus_id": self.focus_id,
        }


# ============================================================================
# Session
# ============================================================================


class MapSession:
    """
    Owns the graph store, the collapsed set and the focus of one map.

    Callers never mutate these directly. They call the actions below and
    read back an immutable MapView.
    """

    def __init__(
        self,
        store: PersistentStore,
        knowledge: KnowledgeSource,
        layout_config: LayoutConfig | None = None,
    ) -> None:
        self.store = store
        self.protocol = ExpansionProtocol(knowledge)
        self.orchestrator = LayoutOrchestrator(layout_config)

        self._graph = GraphStore()
        self._collapsed: frozenset[str] = frozenset()
        self._focus: str | None = None
        self._busy = False
        self._closed = False

    @property
    def graph(self) -> GraphStore:
        return self._graph

    @property
    def collapsed(self) -> frozenset[str]:
        return self._collapsed

    @property
    def focus_id(self) -> str | None:
        return self._focus

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Restore the saved forest; invalid saved state is discarded."""
        try:
            snapshot = self.store.load()
        except PersistedStateInvalid as e:
            logger.warning(f"Discarding saved state: {e.message}")
            self._clear_store()
            snapshot = None

        if snapshot is None:
            logger.info("No saved state, starting with an empty map")
            return

        try:
            self._graph.replace_all(snapshot.nodes, snapshot.edges)
        except (ForestViolationError, DuplicateIdError) as e:
            logger.warning(f"Discarding saved state that is not a forest: {e.message}")
            self._clear_store()
            self._graph.clear()
            return

        self._collapsed = frozenset()
        self._focus = None
        logger.info(f"Loaded map with {len(self._graph)} nodes")
        if self._relayout():
            self._persist()

    def reset(self) -> None:
        """Clear the graph, collapsed set, focus and the saved state."""
        self._graph.clear()
        self._collapsed = frozenset()
        self._focus = None
        self._clear_store()
        logger.info("Map reset")

    def close(self) -> None:
        """Stop accepting work; an in-flight expansion result is dropped."""
        self._closed = True

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    def view(self) -> MapView:
        nodes = self._graph.nodes
        edges = self._graph.edges
        hidden = compute_hidden(nodes, edges, self._collapsed)
        hidden_edges = hidden_edge_ids(edges, hidden)
        connected = compute_connected(nodes, edges, self._focus)

        return MapView(
            nodes=tuple(
                ViewNode(
                    node=n,
                    hidden=n.id in hidden,
                    collapsed=n.id in self._collapsed,
                    focus_state=node_focus_state(n.id, connected),
                )
                for n in nodes
            ),
            edges=tuple(
                ViewEdge(
                    id=e.id,
                    source=e.source,
                    target=e.target,
                    hidden=e.id in hidden_edges,
                    focus_state=edge_focus_state(e, connected),
                )
                for e in edges
            ),
            busy=self._busy,
            focus_id=self._focus,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def toggle_collapse(self, node_id: str) -> bool:
        """
        Flip a node's collapsed flag and re-layout.

        Returns:
            True if the node is collapsed afterwards
        """
        self._graph.get_node(node_id)
        if node_id in self._collapsed:
            self._collapsed = self._collapsed - {node_id}
        else:
            self._collapsed = self._collapsed | {node_id}

        if self._relayout():
            self._persist()
        return node_id in self._collapsed

    async def expand(self, topic: str, parent_id: str | None = None) -> ExpansionOutcome:
        """
        Grow the forest with generated topics.

        Without a parent this seeds a new tree; with one it attaches new
        siblings under it. Generation failures, malformed payloads and a
        parent deleted during the call all give a failed outcome and leave
        the graph unchanged.

        Raises:
            ExpansionBusyError: if another expansion is in flight
            NotFoundError: if parent_id is not in the graph
        """
        if self._closed:
            return ExpansionOutcome.failed("Session is closed")
        if self._busy:
            raise ExpansionBusyError()

        topic = (topic or "").strip()
        if not topic:
            return ExpansionOutcome.failed("Topic is empty")

        path_context = ""
        if parent_id is not None:
            self._graph.get_node(parent_id)
            path_context = self._path_context(parent_id)

        self._busy = True
        try:
            payload = await self.protocol.request(
                topic, parent_id=parent_id, path_context=path_context
            )
        finally:
            self._busy = False

        if self._closed:
            logger.info(f"Dropping expansion result for '{topic}', session closed")
            return ExpansionOutcome.failed("Session is closed")
        if payload is None:
            return ExpansionOutcome.failed(f"Generation failed for '{topic}'")

        parent = None
        if parent_id is not None:
            if parent_id not in self._graph:
                logger.warning(f"Parent {parent_id} was deleted during expansion")
                return ExpansionOutcome.failed(f"Node {parent_id} no longer exists")
            # Re-read: label or child hint may have changed while waiting
            parent = self._graph.get_node(parent_id)

        try:
            delta = self.protocol.build(payload, topic, parent, self._graph.node_ids())
        except MalformedUpstreamPayload as e:
            logger.warning(f"Malformed payload for '{topic}': {e.message}")
            return ExpansionOutcome.failed(e.message)

        self._collapsed = self.protocol.commit(self._graph, self._collapsed, delta)
        self._relayout()
        self._persist()
        logger.info(f"Expanded '{topic}': {len(delta.nodes)} new nodes")
        return ExpansionOutcome(delta=delta, succeeded=True)

    def delete_branch(self, node_id: str) -> frozenset[str]:
        """
        Remove a node with all of its descendants.

        The parent's child hint drops by one (never below zero), removed
        ids leave the collapsed set, and a removed focus is cleared.

        Returns:
            Ids of the removed nodes
        """
        parent_id = AdjacencyIndex(self._graph.edges).parent_of(node_id)
        removed = self._graph.remove_subtree(node_id)

        if parent_id is not None and parent_id in self._graph:
            parent = self._graph.get_node(parent_id)
            self._graph.update_nodes([
                replace(parent, child_hint=max(parent.child_hint - 1, 0))
            ])

        self._collapsed = self._collapsed - removed
        if self._focus in removed:
            self._focus = None

        self._relayout()
        self._persist()
        return removed

    def set_focus(self, node_id: str | None) -> None:
        """Highlight a node's lineage; None clears the focus."""
        if node_id is not None:
            self._graph.get_node(node_id)
        self._focus = node_id

    def edit_label(self, node_id: str, label: str) -> TopicNode:
        """Rename a node; positions are not affected."""
        label = (label or "").strip()
        if not label:
            raise ValueError("Label must not be empty")
        node = replace(self._graph.get_node(node_id), label=label)
        self._graph.update_nodes([node])
        self._persist()
        return node

    def commit_drag(self, node_id: str, position: Position) -> TopicNode:
        """Store a manually dragged position without re-layout."""
        node = self._graph.get_node(node_id)
        if node.position == position:
            return node
        node = replace(node, position=position)
        self._graph.update_nodes([node])
        self._persist()
        return node

    def relayout(self) -> bool:
        """Rearrange all nodes; returns False when nothing moved."""
        changed = self._relayout()
        if changed:
            self._persist()
        return changed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _relayout(self) -> bool:
        nodes = self._graph.nodes
        edges = self._graph.edges
        hidden = compute_hidden(nodes, edges, self._collapsed)
        positioned = self.orchestrator.layout(nodes, edges, hidden)
        if not positions_changed(nodes, positioned):
            logger.debug("Layout unchanged, skipping commit")
            return False
        self._graph.update_nodes(positioned)
        return True

    def _path_context(self, node_id: str) -> str:
        index = AdjacencyIndex(self._graph.edges)
        lineage = [node_id, *index.ancestors(node_id)]
        labels = [self._graph.get_node(nid).label for nid in reversed(lineage) if nid in self._graph]
        return PATH_SEPARATOR.join(labels)

    def _persist(self) -> None:
        try:
            self.store.save(self._graph.nodes, self._graph.edges)
        except OSError as e:
            logger.warning(f"Failed to save map: {e}")

    def _clear_store(self) -> None:
        try:
            self.store.clear()
        except OSError as e:
            logger.warning(f"Failed to clear saved map: {e}")
