"""Knowledge source layer - LLM-backed topic generation."""

from topicmap.knowledge.llm_client import LLMClient, close_llm_client, get_llm_client
from topicmap.knowledge.output_parser import OutputParser, ThinkingStripper
from topicmap.knowledge.source import KnowledgeSource, LLMKnowledgeSource

__all__ = [
    # LLM
    "LLMClient",
    "get_llm_client",
    "close_llm_client",
    # Parsing
    "OutputParser",
    "ThinkingStripper",
    # Source
    "KnowledgeSource",
    "LLMKnowledgeSource",
]
