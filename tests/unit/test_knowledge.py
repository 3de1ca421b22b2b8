"""Unit tests for the knowledge source layer."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import requests

from conftest import SEED_PAYLOAD
from topicmap.errors import KnowledgeSourceError
from topicmap.knowledge import LLMClient, LLMKnowledgeSource, OutputParser, ThinkingStripper
from topicmap.knowledge.llm_client import extract_reply
from topicmap.knowledge.prompts import expansion_messages, seed_messages


class TestThinkingStripper:
    """Test ThinkingStripper class."""

    def test_strip_basic_think_tags(self):
        """Test stripping basic <think> tags."""
        text = "<think>Let me think about this...</think>{\"root\": {}}"
        assert ThinkingStripper.strip(text) == "{\"root\": {}}"

    def test_strip_multiline_thinking(self):
        text = """<thinking>
        First, list the categories...
        </thinking>

        Final map."""
        result = ThinkingStripper.strip(text)
        assert result == "Final map."

    def test_orphan_tags_removed_content_kept(self):
        text = "Answer</think> continues"
        assert ThinkingStripper.strip(text) == "Answer continues"

    def test_empty(self):
        assert ThinkingStripper.strip("") == ""


class TestOutputParser:
    """Test JSON recovery."""

    def test_plain_json(self):
        assert OutputParser.parse_json('{"nodes": []}') == {"nodes": []}

    def test_fenced_json(self):
        raw = 'Here you go:\n```json\n{"nodes": [{"label": "A"}]}\n```'
        assert OutputParser.parse_json(raw) == {"nodes": [{"label": "A"}]}

    def test_unlabelled_fence(self):
        raw = '```\n{"nodes": []}\n```'
        assert OutputParser.parse_json(raw) == {"nodes": []}

    def test_object_in_prose(self):
        raw = 'Sure! {"root": {"label": "X"}} Hope this helps.'
        assert OutputParser.parse_json(raw) == {"root": {"label": "X"}}

    def test_after_thinking(self):
        raw = '<think>{"draft": true}</think>{"nodes": []}'
        assert OutputParser.parse_json(raw) == {"nodes": []}

    def test_fallback(self):
        assert OutputParser.parse_json("no json here", fallback={}) == {}
        assert OutputParser.parse_json("") is None


class TestPrompts:
    """Test prompt construction."""

    def test_seed_prompt_mentions_topic(self):
        system, user = seed_messages("Quantum computing")
        assert "Quantum computing" in system
        assert "Quantum computing" in user
        assert '"root"' in system

    def test_expansion_prompt_includes_path(self):
        system, user = expansion_messages("Qubits", "Quantum computing > Qubits")
        assert "Quantum computing > Qubits" in system
        assert '"nodes"' in system
        assert "Qubits" in user

    def test_expansion_path_defaults_to_topic(self):
        system, _ = expansion_messages("Qubits", "")
        assert "Qubits" in system


class TestExtractReply:
    """Test reading the answer out of a completion body."""

    def test_text_field(self):
        assert extract_reply({"choices": [{"text": "plain"}]}) == "plain"

    def test_strips_thinking(self):
        body = {"choices": [{"message": {"content": "<think>hmm</think>answer"}}]}
        assert extract_reply(body) == "answer"

    def test_no_choices(self):
        with pytest.raises(ValueError):
            extract_reply({"choices": []})

    def test_no_content(self):
        with pytest.raises(ValueError):
            extract_reply({"choices": [{"message": {}}]})


class TestLLMClient:
    """Test LLMClient against a mocked HTTP session."""

    def _client_with_reply(self, message: dict) -> tuple[LLMClient, MagicMock]:
        client = LLMClient(base_url="http://llm/v1/", model="m", api_key="k", timeout=5, max_retries=0)
        response = MagicMock()
        response.json.return_value = {"choices": [{"message": message}]}
        session = MagicMock()
        session.post.return_value = response
        client._session = session
        return client, session

    def test_base_url_normalized(self):
        client = LLMClient(base_url="http://llm/v1/", model="m")
        assert client.base_url == "http://llm/v1"

    @pytest.mark.asyncio
    async def test_generate_sends_messages(self):
        client, session = self._client_with_reply({"content": "hello"})

        result = await client.generate("prompt", system_prompt="system")

        assert result == "hello"
        url = session.post.call_args.args[0]
        payload = session.post.call_args.kwargs["json"]
        assert url == "http://llm/v1/chat/completions"
        assert payload["model"] == "m"
        assert payload["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "prompt"},
        ]

    @pytest.mark.asyncio
    async def test_reasoning_field_fallback(self):
        client, _ = self._client_with_reply({"content": "", "reasoning": '{"nodes": []}'})
        assert await client.generate_json("prompt") == {"nodes": []}

    @pytest.mark.asyncio
    async def test_generate_json_requests_json_mode(self):
        client, session = self._client_with_reply({"content": '{"nodes": []}'})
        await client.generate_json("prompt")
        assert session.post.call_args.kwargs["json"]["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_generate_json_unparseable(self):
        client, _ = self._client_with_reply({"content": "I cannot do that"})
        with pytest.raises(ValueError):
            await client.generate_json("prompt")

    @pytest.mark.asyncio
    async def test_http_error_propagates(self):
        client, session = self._client_with_reply({"content": "x"})
        error_response = MagicMock(status_code=503, text="unavailable")
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError(
            response=error_response
        )
        with pytest.raises(requests.HTTPError):
            await client.generate("prompt")

    @pytest.mark.asyncio
    async def test_close(self):
        client, session = self._client_with_reply({"content": "x"})
        await client.close()
        session.close.assert_called_once()
        assert client._session is None


class TestLLMKnowledgeSource:
    """Test the LLM-backed knowledge source."""

    @pytest.mark.asyncio
    async def test_seed_uses_seed_prompt(self, mock_llm_client):
        source = LLMKnowledgeSource(mock_llm_client)

        result = await source.expand("Rust")

        assert result == SEED_PAYLOAD
        kwargs = mock_llm_client.generate_json.call_args.kwargs
        assert '"root"' in kwargs["system_prompt"]

    @pytest.mark.asyncio
    async def test_expansion_uses_path(self, mock_llm_client):
        mock_llm_client.generate_json = AsyncMock(return_value={"nodes": []})
        source = LLMKnowledgeSource(mock_llm_client)

        await source.expand("Borrowing", parent_id="n1", path_context="Rust > Ownership > Borrowing")

        kwargs = mock_llm_client.generate_json.call_args.kwargs
        assert "Rust > Ownership > Borrowing" in kwargs["system_prompt"]

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self, mock_llm_client):
        mock_llm_client.generate_json = AsyncMock(side_effect=requests.ConnectionError("refused"))
        source = LLMKnowledgeSource(mock_llm_client)

        with pytest.raises(KnowledgeSourceError) as exc:
            await source.expand("Rust")
        assert exc.value.details["topic"] == "Rust"

    @pytest.mark.asyncio
    async def test_non_object_result_raises(self, mock_llm_client):
        mock_llm_client.generate_json = AsyncMock(return_value=["not", "an", "object"])
        with pytest.raises(KnowledgeSourceError):
            await LLMKnowledgeSource(mock_llm_client).expand("Rust")

    def test_default_client(self):
        with patch("topicmap.knowledge.source.get_llm_client") as get_client:
            source = LLMKnowledgeSource()
        assert source.llm is get_client.return_value
