"""Expansion merge protocol - ids, payload normalization and deltas."""

from topicmap.expansion.ids import IdAllocator
from topicmap.expansion.merge import (
    EMPTY_DELTA,
    ExpansionDelta,
    ExpansionOutcome,
    ExpansionProtocol,
    apply_collapse,
    build_expansion_delta,
    build_seed_delta,
)
from topicmap.expansion.payload import (
    TopicDraft,
    parse_expansion_payload,
    parse_seed_payload,
)

__all__ = [
    # Ids
    "IdAllocator",
    # Payloads
    "TopicDraft",
    "parse_seed_payload",
    "parse_expansion_payload",
    # Deltas
    "EMPTY_DELTA",
    "ExpansionDelta",
    "ExpansionOutcome",
    "ExpansionProtocol",
    "apply_collapse",
    "build_seed_delta",
    "build_expansion_delta",
]
