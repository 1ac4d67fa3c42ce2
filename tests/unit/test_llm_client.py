"""Unit tests for the LLM client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from kglearner.generation.llm_client import LLMClient, LLMResponse


def make_client(payload: dict) -> tuple[LLMClient, MagicMock]:
    client = LLMClient(base_url="http://llm.local/v1/", model="test-model", api_key="key")
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = payload
    session.post.return_value = response
    client._session = session
    return client, session


def completion(content: str | None, **message_fields) -> dict:
    return {"choices": [{"message": {"content": content, **message_fields}}]}


class TestReadCompletion:
    """Tests for LLMClient.read_completion."""

    def test_strips_thinking(self) -> None:
        response = LLMClient.read_completion(completion("<think>hmm</think>answer"))

        assert response == LLMResponse(content="answer")

    def test_text_choice_fallback(self) -> None:
        """Test completions-style choices carrying `text` are accepted."""
        response = LLMClient.read_completion({"choices": [{"text": "legacy"}]})

        assert response.content == "legacy"

    def test_citations_top_level(self) -> None:
        payload = completion("plan")
        payload["citations"] = ["https://example.com/a"]

        assert LLMClient.read_completion(payload).citations == ["https://example.com/a"]

    def test_citations_on_message(self) -> None:
        payload = completion("plan", citations=[{"url": "https://x.org"}])

        assert LLMClient.read_completion(payload).citations == [{"url": "https://x.org"}]

    def test_no_citations_is_empty(self) -> None:
        assert LLMClient.read_completion(completion("plan")).citations == []

    def test_empty_choices_raises(self) -> None:
        with pytest.raises(ValueError):
            LLMClient.read_completion({"choices": []})

    def test_none_content_raises(self) -> None:
        with pytest.raises(ValueError):
            LLMClient.read_completion(completion(None))


class TestGenerate:
    """Tests for LLMClient.generate."""

    @pytest.mark.asyncio
    async def test_posts_to_chat_completions(self) -> None:
        """Test the request targets the OpenAI-compatible endpoint."""
        client, session = make_client(completion("hello"))

        result = await client.generate("hi", temperature=0.4, max_tokens=100)

        assert result == "hello"
        url = session.post.call_args.args[0]
        payload = session.post.call_args.kwargs["json"]
        assert url == "http://llm.local/v1/chat/completions"
        assert payload["model"] == "test-model"
        assert payload["temperature"] == 0.4
        assert payload["max_tokens"] == 100
        assert payload["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_system_prompt_first(self) -> None:
        """Test the system prompt precedes the user message."""
        client, session = make_client(completion("{}"))

        await client.generate("prompt", system_prompt="system")

        messages = session.post.call_args.kwargs["json"]["messages"]
        assert [m["role"] for m in messages] == ["system", "user"]

    @pytest.mark.asyncio
    async def test_return_response_carries_citations(self) -> None:
        payload = completion("1. Read the docs")
        payload["citations"] = ["https://docs.example.com"]
        client, _ = make_client(payload)

        response = await client.generate("plan", return_response=True)

        assert isinstance(response, LLMResponse)
        assert response.content == "1. Read the docs"
        assert response.citations == ["https://docs.example.com"]

    @pytest.mark.asyncio
    async def test_http_error_propagates(self) -> None:
        client, session = make_client({})
        error_response = MagicMock(status_code=503, text="overloaded")
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError(
            response=error_response
        )

        with pytest.raises(requests.HTTPError):
            await client.generate("hi")


class TestGenerateJson:
    """Tests for LLMClient.generate_json."""

    @pytest.mark.asyncio
    async def test_parses_fenced_json(self) -> None:
        client, _ = make_client(completion('```json\n{"nodes": []}\n```'))

        result = await client.generate_json("prompt", system_prompt="system")

        assert result == {"nodes": []}

    @pytest.mark.asyncio
    async def test_unparsable_raises(self) -> None:
        client, _ = make_client(completion("not json"))

        with pytest.raises(ValueError):
            await client.generate_json("prompt")

    @pytest.mark.asyncio
    async def test_uses_low_temperature(self) -> None:
        client = LLMClient(base_url="http://llm.local/v1", model="m")
        with patch.object(client, "generate", return_value="{}") as generate:
            await client.generate_json("prompt")

        assert generate.call_args.kwargs["temperature"] == 0.3


class TestSession:
    """Tests for session lifecycle."""

    @pytest.mark.asyncio
    async def test_close_drops_session(self) -> None:
        client = LLMClient(base_url="http://llm.local/v1", model="m", api_key="secret")
        session = client._get_session()
        assert session.headers["Authorization"] == "Bearer secret"
        assert client._get_session() is session

        await client.close()

        assert client._session is None
