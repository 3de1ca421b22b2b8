"""LLM client for OpenAI-compatible chat endpoints (Ollama, vLLM, etc.).

Requests are blocking, so each call runs in a worker thread. The reply is
read from ``content``, then ``text``, then the ``reasoning`` field some
thinking models answer in.
"""

import asyncio
import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from topicmap.config import settings
from topicmap.knowledge.output_parser import OutputParser, ThinkingStripper

logger = logging.getLogger(__name__)


def extract_reply(data: dict[str, Any]) -> str:
    """Pull the answer text out of a chat completion body."""
    choices = data.get("choices") or []
    if not choices:
        raise ValueError(f"LLM returned no choices: {data}")

    choice = choices[0]
    message = choice.get("message") or {}
    text = message.get("content")
    if text is None:
        text = choice.get("text")
    if not text:
        text = message.get("reasoning_content") or message.get("reasoning") or text
    if text is None:
        raise ValueError(f"LLM returned no content: {data}")

    return ThinkingStripper.strip(text)


class LLMClient:
    """Chat-completions client with a retrying requests session."""

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ) -> None:
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        self.model = model or settings.llm_model
        self.api_key = api_key or settings.llm_api_key
        self.timeout = timeout or settings.llm_timeout
        self.max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self.temperature = settings.llm_temperature
        self.max_tokens = settings.llm_max_tokens

        self._session: requests.Session | None = None

    def _get_session(self) -> requests.Session:
        if self._session is None:
            session = requests.Session()
            session.headers.update({"Authorization": f"Bearer {self.api_key}"})
            adapter = HTTPAdapter(max_retries=Retry(total=self.max_retries, backoff_factor=0.5))
            session.mount("http://", adapter)
            session.mount("https://", adapter)
            self._session = session
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def _post(self, messages: list[dict[str, str]], json_mode: bool) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        response = self._get_session().post(
            f"{self.base_url}/chat/completions",
            json=payload,
            timeout=self.timeout,
        )
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.error(f"LLM API error: {e.response.status_code} - {e.response.text}")
            raise
        return extract_reply(response.json())

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> str:
        """Send one user prompt, optionally preceded by a system prompt."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return await asyncio.to_thread(self._post, messages, json_mode)

    async def generate_json(self, prompt: str, system_prompt: str | None = None) -> Any:
        """Generate in JSON mode and parse the reply with OutputParser."""
        response = await self.generate(prompt, system_prompt=system_prompt, json_mode=True)
        result = OutputParser.parse_json(response)
        if result is None:
            raise ValueError(f"Could not parse LLM response as JSON: {response[:200]}")
        return result


_llm_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Get or create the shared LLM client."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


async def close_llm_client() -> None:
    global _llm_client
    if _llm_client is not None:
        await _llm_client.close()
        _llm_client = None
