"""Pytest configuration and fixtures."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from topicmap.config import Settings, get_test_settings
from topicmap.knowledge.llm_client import LLMClient
from topicmap.layout import LayoutConfig
from topicmap.models import TopicEdge, TopicNode
from topicmap.session import MapSession
from topicmap.storage import MemoryStore


SEED_PAYLOAD: dict[str, Any] = {
    "root": {"label": "Rust", "desc": "A systems programming language."},
    "children": [
        {
            "label": "Ownership",
            "desc": "Memory safety without a garbage collector.",
            "children": [{"label": "Borrowing", "desc": "References with rules."}],
        },
        {
            "label": "Tooling",
            "desc": "Cargo and friends.",
            "children": [],
        },
    ],
}

EXPANSION_PAYLOAD: dict[str, Any] = {
    "nodes": [
        {"label": "Lifetimes", "desc": "How long references live.", "children": []},
        {"label": "Smart pointers", "desc": "Box, Rc and Arc.", "children": []},
    ],
}


def make_node(node_id: str, level: int = 0, **kwargs: Any) -> TopicNode:
    """Node with a readable default label."""
    return TopicNode(id=node_id, label=kwargs.pop("label", node_id.upper()), level=level, **kwargs)


def make_edge(source: str, target: str) -> TopicEdge:
    return TopicEdge(id=f"e-{source}-{target}", source=source, target=target)


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with defaults."""
    return get_test_settings()


@pytest.fixture
def chain_forest() -> tuple[list[TopicNode], list[TopicEdge]]:
    """root -> A -> B -> C, plus a sibling root -> D."""
    nodes = [
        make_node("root", 0, is_root=True, child_hint=2),
        make_node("a", 1, child_hint=1),
        make_node("b", 2, child_hint=1),
        make_node("c", 3),
        make_node("d", 1),
    ]
    edges = [
        make_edge("root", "a"),
        make_edge("a", "b"),
        make_edge("b", "c"),
        make_edge("root", "d"),
    ]
    return nodes, edges


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def mock_knowledge() -> MagicMock:
    """Knowledge source answering seeds and expansions with fixed payloads."""
    knowledge = MagicMock()

    async def fake_expand(topic: str, parent_id: str | None = None, path_context: str = ""):
        return SEED_PAYLOAD if parent_id is None else EXPANSION_PAYLOAD

    knowledge.expand = AsyncMock(side_effect=fake_expand)
    return knowledge


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Mock LLM client for testing without a model endpoint."""
    client = MagicMock(spec=LLMClient)
    client.generate_json = AsyncMock(return_value=SEED_PAYLOAD)
    client.generate = AsyncMock(return_value="Test response")
    client.close = AsyncMock()
    return client


@pytest.fixture
def session(memory_store: MemoryStore, mock_knowledge: MagicMock) -> MapSession:
    return MapSession(memory_store, mock_knowledge, LayoutConfig())
