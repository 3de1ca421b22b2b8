"""Expansion merge protocol - grows the forest with generated subtrees.

Two modes:
- Seed (no parent): a synthetic root, its categories and their
  sub-categories. The root and every category start collapsed, so a new
  topic first shows only its root.
- Expansion (parent given): new siblings under the parent plus one level
  of children each. The parent is un-collapsed and its child hint grows
  by the number of new siblings.

Building a delta is pure. Committing it validates everything before the
store is touched, so a failure never leaves partial nodes behind.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from topicmap.errors import KnowledgeSourceError
from topicmap.expansion.ids import IdAllocator
from topicmap.expansion.payload import (
    TopicDraft,
    parse_expansion_payload,
    parse_seed_payload,
)
from topicmap.graph.store import GraphStore
from topicmap.knowledge.source import KnowledgeSource
from topicmap.models import ORIGIN, Position, TopicEdge, TopicNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpansionDelta:
    """New material plus the collapse-set and parent changes it implies."""

    nodes: tuple[TopicNode, ...] = ()
    edges: tuple[TopicEdge, ...] = ()
    collapse: frozenset[str] = frozenset()  # ids to add to the collapsed set
    uncollapse: frozenset[str] = frozenset()  # ids to remove from it
    updated: tuple[TopicNode, ...] = ()  # existing nodes with new attributes

    @property
    def is_empty(self) -> bool:
        return not (self.nodes or self.edges or self.collapse or self.uncollapse or self.updated)


EMPTY_DELTA = ExpansionDelta()


@dataclass(frozen=True)
class ExpansionOutcome:
    """Result handed back to the caller of an expansion."""

    delta: ExpansionDelta
    succeeded: bool
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "ExpansionOutcome":
        return cls(delta=EMPTY_DELTA, succeeded=False, error=error)


def build_seed_delta(
    root: TopicDraft,
    allocator: IdAllocator,
    spawn: Position = ORIGIN,
) -> ExpansionDelta:
    """Root (level 0) + categories (level 1) + sub-categories (level 2)."""
    nodes: list[TopicNode] = []
    edges: list[TopicEdge] = []

    root_id = allocator.node_id("root")
    nodes.append(TopicNode(
        id=root_id,
        label=root.label,
        description=root.description,
        level=0,
        is_root=True,
        child_hint=len(root.children),
        position=spawn,
    ))
    collapsed = {root_id}

    for i, category in enumerate(root.children):
        category_id = allocator.node_id("l1", i)
        nodes.append(TopicNode(
            id=category_id,
            label=category.label,
            description=category.description,
            level=1,
            child_hint=len(category.children),
            position=spawn,
        ))
        edges.append(TopicEdge(allocator.edge_id(root_id, category_id), root_id, category_id))
        collapsed.add(category_id)

        for j, item in enumerate(category.children):
            item_id = allocator.node_id("l2", i, j)
            nodes.append(TopicNode(
                id=item_id,
                label=item.label,
                description=item.description,
                level=2,
                position=spawn,
            ))
            edges.append(TopicEdge(allocator.edge_id(category_id, item_id), category_id, item_id))

    return ExpansionDelta(
        nodes=tuple(nodes),
        edges=tuple(edges),
        collapse=frozenset(collapsed),
    )


def build_expansion_delta(
    parent: TopicNode,
    drafts: list[TopicDraft],
    allocator: IdAllocator,
) -> ExpansionDelta:
    """Siblings at parent.level + 1 and their children at parent.level + 2."""
    nodes: list[TopicNode] = []
    edges: list[TopicEdge] = []
    child_level = parent.level + 1

    # New material spawns at the parent's anchor until the layout pass runs
    for i, draft in enumerate(drafts):
        node_id = allocator.node_id(f"l{child_level}", i)
        nodes.append(TopicNode(
            id=node_id,
            label=draft.label,
            description=draft.description,
            level=child_level,
            child_hint=len(draft.children),
            position=parent.position,
        ))
        edges.append(TopicEdge(allocator.edge_id(parent.id, node_id), parent.id, node_id))

        for j, detail in enumerate(draft.children):
            detail_id = allocator.node_id(f"l{child_level + 1}", i, j)
            nodes.append(TopicNode(
                id=detail_id,
                label=detail.label,
                description=detail.description,
                level=child_level + 1,
                position=parent.position,
            ))
            edges.append(TopicEdge(allocator.edge_id(node_id, detail_id), node_id, detail_id))

    return ExpansionDelta(
        nodes=tuple(nodes),
        edges=tuple(edges),
        uncollapse=frozenset({parent.id}),
        updated=(replace(parent, child_hint=parent.child_hint + len(drafts)),),
    )


def apply_collapse(collapsed: Iterable[str], delta: ExpansionDelta) -> frozenset[str]:
    """Collapsed set after a delta; an expanded parent is never collapsed."""
    return (frozenset(collapsed) | delta.collapse) - delta.uncollapse


class ExpansionProtocol:
    """
    Fetches generated subtrees and turns them into committed deltas.

    Steps:
    1. request(): call the knowledge source, converting every failure into None
    2. build(): normalize the payload and allocate ids against the current graph
    3. commit(): merge nodes/edges into the store and return the new collapsed set
    """

    def __init__(self, knowledge: KnowledgeSource) -> None:
        self.knowledge = knowledge

    async def request(
        self,
        topic: str,
        parent_id: str | None = None,
        path_context: str = "",
    ) -> Any | None:
        """Call the knowledge source; None means the generation failed."""
        try:
            return await self.knowledge.expand(topic, parent_id=parent_id, path_context=path_context)
        except KnowledgeSourceError as e:
            logger.warning(f"Generation failed for '{topic}': {e.message}")
            return None
        except Exception as e:
            logger.exception(f"Knowledge source raised for '{topic}': {e}")
            return None

    def build(
        self,
        payload: Any,
        topic: str,
        parent: TopicNode | None,
        existing_ids: Iterable[str],
    ) -> ExpansionDelta:
        """
        Turn a payload into a delta for seed or expansion mode.

        Raises:
            MalformedUpstreamPayload: if the payload lacks the mode's shape
        """
        allocator = IdAllocator(existing_ids)
        if parent is None:
            return build_seed_delta(parse_seed_payload(payload, topic), allocator)
        return build_expansion_delta(parent, parse_expansion_payload(payload), allocator)

    def commit(
        self,
        store: GraphStore,
        collapsed: Iterable[str],
        delta: ExpansionDelta,
    ) -> frozenset[str]:
        """Merge a delta into the store; returns the updated collapsed set."""
        # Fail before merging if an updated node disappeared
        for node in delta.updated:
            store.get_node(node.id)
        store.merge(delta.nodes, delta.edges)
        store.update_nodes(delta.updated)
        return apply_collapse(collapsed, delta)
