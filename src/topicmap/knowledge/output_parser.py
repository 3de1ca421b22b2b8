"""
Output cleanup and JSON recovery for generated knowledge maps.

Handles:
- <think>...</think> reasoning blocks and orphan tags
- Markdown code fences around JSON
- Prose before/after the JSON object
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)


class ThinkingStripper:
    """
    Strips thinking/reasoning content from LLM output.

    Only complete tag pairs are removed with their content; orphan tags are
    removed on their own so valid content is never truncated.
    """

    THINKING_PATTERNS = [
        re.compile(r'<think>[\s\S]*?</think>', re.DOTALL),
        re.compile(r'<thinking>[\s\S]*?</thinking>', re.DOTALL),
    ]

    ORPHAN_TAGS = re.compile(r'</?think(?:ing)?>')

    @classmethod
    def strip(cls, text: str) -> str:
        """Strip thinking content from text SAFELY."""
        if not text:
            return ""

        result = text
        for pattern in cls.THINKING_PATTERNS:
            result = pattern.sub('', result)
        result = cls.ORPHAN_TAGS.sub('', result)

        return result.strip()


class OutputParser:
    """Robust JSON recovery from LLM output."""

    CODE_PATTERNS = [
        re.compile(r'```json\s*([\s\S]*?)\s*```', re.DOTALL),
        re.compile(r'```\s*([\s\S]*?)\s*```', re.DOTALL),
    ]

    OBJECT_PATTERN = re.compile(r'(\{[\s\S]*\})', re.DOTALL)

    @classmethod
    def parse_json(cls, raw_output: str, fallback: Any = None) -> Any:
        """
        Parse a JSON object from LLM output.

        Tries, in order: the whole text, a fenced code block, then the
        outermost ``{...}`` span.
        """
        if not raw_output:
            return fallback

        text = ThinkingStripper.strip(raw_output)
        if not text:
            return fallback

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        for pattern in cls.CODE_PATTERNS:
            match = pattern.search(text)
            if match:
                try:
                    return json.loads(match.group(1))
                except json.JSONDecodeError:
                    continue

        match = cls.OBJECT_PATTERN.search(text)
        if match:
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError:
                pass

        logger.warning(f"Failed to parse JSON from output: {text[:200]}...")
        return fallback
