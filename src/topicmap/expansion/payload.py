"""Normalization of knowledge source payloads into draft topic trees.

Seed payloads look like ``{"root": {...}, "children": [...]}`` (two levels
below the root); expansion payloads look like ``{"nodes": [...]}`` (one
level below each entry). Missing labels and descriptions are filled with
defaults; a payload without the shape its mode requires is malformed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from topicmap.errors import MalformedUpstreamPayload

logger = logging.getLogger(__name__)

# Default labels per depth below the synthetic root
SEED_DEFAULT_LABELS = ("Topic", "Category", "Sub-category")
EXPANSION_DEFAULT_LABELS = ("Topic", "Detail")


@dataclass
class TopicDraft:
    """A generated topic before it receives ids and a level."""

    label: str
    description: str = ""
    children: list["TopicDraft"] = field(default_factory=list)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _draft(entry: dict, labels: tuple[str, ...], depth: int) -> TopicDraft:
    """Build a draft for ``entry`` and, while labels remain, its children."""
    draft = TopicDraft(
        label=_text(entry.get("label")) or labels[depth],
        description=_text(entry.get("desc")) or _text(entry.get("description")),
    )
    if depth + 1 < len(labels):
        draft.children = _drafts(entry.get("children"), labels, depth + 1)
    return draft


def _drafts(entries: Any, labels: tuple[str, ...], depth: int) -> list[TopicDraft]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        logger.warning(f"Ignoring non-list children: {type(entries).__name__}")
        return []
    drafts = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.warning(f"Ignoring malformed topic entry: {entry!r}")
            continue
        drafts.append(_draft(entry, labels, depth))
    return drafts


def parse_seed_payload(payload: Any, topic: str) -> TopicDraft:
    """
    Parse a seed result into a root draft with category/sub-category children.

    Raises:
        MalformedUpstreamPayload: if there is no ``root`` object
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("root"), dict):
        raise MalformedUpstreamPayload(
            "Seed payload has no root object",
            {"keys": sorted(payload) if isinstance(payload, dict) else None},
        )

    root = payload["root"]
    return TopicDraft(
        label=_text(root.get("label")) or topic.strip() or SEED_DEFAULT_LABELS[0],
        description=_text(root.get("desc")) or _text(root.get("description")),
        children=_drafts(payload.get("children"), SEED_DEFAULT_LABELS, 1),
    )


def parse_expansion_payload(payload: Any) -> list[TopicDraft]:
    """
    Parse an expansion result into sibling drafts with one level of children.

    Raises:
        MalformedUpstreamPayload: if there is no ``nodes`` list
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("nodes"), list):
        raise MalformedUpstreamPayload(
            "Expansion payload has no nodes list",
            {"keys": sorted(payload) if isinstance(payload, dict) else None},
        )
    return _drafts(payload["nodes"], EXPANSION_DEFAULT_LABELS, 0)
