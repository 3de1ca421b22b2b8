"""Layout orchestrator for the topic forest.

Algorithm:
1. Split nodes into visible and hidden using the hidden-id set
2. Size every visible node by level (three box tiers)
3. Run a layered (Sugiyama) placement per visible tree, restricted to
   edges whose endpoints are both visible
4. Stack the trees along the cross axis and convert box centers to
   top-left anchors
5. Snap each hidden node to the anchor of its nearest visible ancestor
   (origin when it has none), so a collapsed subtree converges on the
   node that hides it

The computation has no randomness and no dependence on previous
positions: identical inputs give bit-identical output.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from grandalf.graphs import Edge, Graph, Vertex
from grandalf.layouts import SugiyamaLayout

from topicmap.graph.index import AdjacencyIndex
from topicmap.layout.config import LayoutConfig, NodeBox
from topicmap.models import ORIGIN, Position, TopicEdge, TopicNode

logger = logging.getLogger(__name__)


class _VertexView:
    """Minimal view object required by grandalf's SugiyamaLayout."""

    def __init__(self, w: float, h: float) -> None:
        self.w = w
        self.h = h
        # xy is set by the layout engine (center coordinates)
        self.xy = (0.0, 0.0)


def positions_changed(before: Iterable[TopicNode], after: Iterable[TopicNode]) -> bool:
    """
    Jitter guard: True if any node moved, appeared or disappeared.

    Positions are compared with exact equality on both axes. Callers that
    re-layout on every collapse change skip their commit when this is
    False, which keeps a layout pass from re-triggering itself.
    """
    old = {n.id: n.position for n in before}
    new = {n.id: n.position for n in after}
    if old.keys() != new.keys():
        return True
    return any(old[nid] != pos for nid, pos in new.items())


class LayoutOrchestrator:
    """Assigns a top-left anchor to every node of the forest."""

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig.from_settings()

    def layout(
        self,
        nodes: Iterable[TopicNode],
        edges: Iterable[TopicEdge],
        hidden: frozenset[str] | set[str],
    ) -> tuple[TopicNode, ...]:
        """
        Position all nodes for the given hidden set.

        Args:
            nodes: Full node snapshot
            edges: Full edge snapshot
            hidden: Ids that must not take part in placement

        Returns:
            The same nodes in the same order with fresh positions
        """
        all_nodes = list(nodes)
        all_edges = list(edges)

        visible = [n for n in all_nodes if n.id not in hidden]
        visible_ids = {n.id for n in visible}
        visible_edges = [
            e for e in all_edges if e.source in visible_ids and e.target in visible_ids
        ]

        anchors = self.place_visible(visible, visible_edges)

        index = AdjacencyIndex(all_edges)
        positioned: list[TopicNode] = []
        for node in all_nodes:
            position = anchors.get(node.id)
            if position is None:
                position = self._snap_to_visible_ancestor(node.id, index, anchors)
            positioned.append(node if node.position == position else replace(node, position=position))

        logger.debug(
            f"Laid out {len(visible)} visible nodes, "
            f"snapped {len(all_nodes) - len(visible)} hidden nodes"
        )
        return tuple(positioned)

    def place_visible(
        self,
        nodes: list[TopicNode],
        edges: list[TopicEdge],
    ) -> dict[str, Position]:
        """Layered placement of visible nodes; returns top-left anchors."""
        if not nodes:
            return {}

        cfg = self.config
        boxes = {n.id: cfg.box_for(n.level) for n in nodes}
        index = AdjacencyIndex(edges)
        roots = [n.id for n in nodes if index.parent_of(n.id) is None]

        anchors: dict[str, Position] = {}
        # Trees are stacked along the cross axis, separated by node_sep
        cursor = cfg.margin_y if cfg.is_horizontal else cfg.margin_x

        for root_id in roots:
            members = index.subtree(root_id)
            centers = self._tree_centers(root_id, members, index, boxes)

            min_x = min(centers[nid][0] - boxes[nid].width / 2 for nid in members)
            max_x = max(centers[nid][0] + boxes[nid].width / 2 for nid in members)
            min_y = min(centers[nid][1] - boxes[nid].height / 2 for nid in members)
            max_y = max(centers[nid][1] + boxes[nid].height / 2 for nid in members)

            if cfg.is_horizontal:
                dx = cfg.margin_x - min_x
                dy = cursor - min_y
                cursor += (max_y - min_y) + cfg.node_sep
            else:
                dx = cursor - min_x
                dy = cfg.margin_y - min_y
                cursor += (max_x - min_x) + cfg.node_sep

            for nid in members:
                cx, cy = centers[nid]
                box = boxes[nid]
                # Downstream consumers expect top-left anchors, not centers
                anchors[nid] = Position(
                    x=cx + dx - box.width / 2,
                    y=cy + dy - box.height / 2,
                )

        return anchors

    def _tree_centers(
        self,
        root_id: str,
        members: list[str],
        index: AdjacencyIndex,
        boxes: dict[str, NodeBox],
    ) -> dict[str, tuple[float, float]]:
        """Box centers of one tree in screen orientation (unshifted)."""
        if len(members) == 1:
            return {root_id: (0.0, 0.0)}

        cfg = self.config
        member_set = set(members)

        # grandalf layers top-down: w is the extent inside a rank, h across ranks
        vertices: dict[str, Vertex] = {}
        for nid in members:
            box = boxes[nid]
            v = Vertex(nid)
            if cfg.is_horizontal:
                v.view = _VertexView(box.height, box.width)
            else:
                v.view = _VertexView(box.width, box.height)
            vertices[nid] = v

        edges_list = [
            Edge(vertices[parent], vertices[child])
            for parent in members
            for child in index.children_of(parent)
            if child in member_set
        ]

        g = Graph(list(vertices.values()), edges_list)
        sug = SugiyamaLayout(g.C[0])
        sug.xspace = cfg.node_sep
        sug.yspace = cfg.rank_sep
        sug.init_all(roots=[vertices[root_id]], inverted_edges=[])
        sug.draw()

        centers: dict[str, tuple[float, float]] = {}
        for nid, v in vertices.items():
            cross, rank = v.view.xy
            if cfg.direction == "LR":
                centers[nid] = (rank, cross)
            elif cfg.direction == "RL":
                centers[nid] = (-rank, cross)
            elif cfg.direction == "TB":
                centers[nid] = (cross, rank)
            else:
                centers[nid] = (cross, -rank)
        return centers

    @staticmethod
    def _snap_to_visible_ancestor(
        node_id: str,
        index: AdjacencyIndex,
        anchors: dict[str, Position],
    ) -> Position:
        for ancestor_id in index.ancestors(node_id):
            if ancestor_id in anchors:
                return anchors[ancestor_id]
        return ORIGIN
