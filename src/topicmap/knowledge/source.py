"""Knowledge source - turns a topic into generated child-topic data."""

import logging
from typing import Any, Protocol

from topicmap.errors import KnowledgeSourceError
from topicmap.knowledge.llm_client import LLMClient, get_llm_client
from topicmap.knowledge.prompts import expansion_messages, seed_messages

logger = logging.getLogger(__name__)


class KnowledgeSource(Protocol):
    """
    Generation service contract.

    Seed calls (no parent_id) return ``{"root": {...}, "children": [...]}``;
    expansion calls return ``{"nodes": [...]}``.
    """

    async def expand(
        self,
        topic: str,
        parent_id: str | None = None,
        path_context: str = "",
    ) -> dict[str, Any]:
        ...


class LLMKnowledgeSource:
    """Knowledge source backed by an OpenAI-compatible chat model."""

    def __init__(self, llm_client: LLMClient | None = None) -> None:
        self.llm = llm_client or get_llm_client()

    async def expand(
        self,
        topic: str,
        parent_id: str | None = None,
        path_context: str = "",
    ) -> dict[str, Any]:
        """
        Generate a seed map or an expansion for a topic.

        Args:
            topic: Topic label to generate for
            parent_id: Node being expanded (None for a new seed)
            path_context: Labels from the root down to the parent

        Raises:
            KnowledgeSourceError: on transport failure or unparseable output
        """
        if parent_id is None:
            system_prompt, prompt = seed_messages(topic)
        else:
            system_prompt, prompt = expansion_messages(topic, path_context)

        try:
            result = await self.llm.generate_json(prompt=prompt, system_prompt=system_prompt)
        except Exception as e:
            logger.error(f"LLM generation failed for '{topic}': {e}")
            raise KnowledgeSourceError(
                f"Generation failed: {e}",
                {"topic": topic, "parent_id": parent_id},
            ) from e

        if not isinstance(result, dict):
            raise KnowledgeSourceError(
                f"Generation returned {type(result).__name__}, expected an object",
                {"topic": topic, "parent_id": parent_id},
            )

        logger.info(
            f"Generated {'seed' if parent_id is None else 'expansion'} for '{topic}'"
        )
        return result
