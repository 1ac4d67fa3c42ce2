"""Unit tests for graph and plan generation."""

from unittest.mock import AsyncMock

import pytest

from kglearner.exceptions import GenerationError
from kglearner.generation.generator import GraphGenerator, parse_sources, to_fragment
from kglearner.generation.llm_client import LLMClient, LLMResponse
from kglearner.generation.prompts import GRAPH_SYSTEM_PROMPT


class TestToFragment:
    """Tests for to_fragment."""

    def test_keeps_lists(self) -> None:
        fragment = to_fragment({"nodes": [{"id": "a"}], "links": [], "extra": 1})
        assert fragment == {"nodes": [{"id": "a"}], "links": []}

    def test_non_list_fields_become_empty(self) -> None:
        assert to_fragment({"nodes": "a", "links": None}) == {"nodes": [], "links": []}

    def test_non_object_raises(self) -> None:
        with pytest.raises(GenerationError):
            to_fragment([{"id": "a"}])


class TestParseSources:
    """Tests for parse_sources."""

    def test_citations_and_markdown_links(self) -> None:
        """Test sources from citations and markdown are merged by uri."""
        markdown = "Read [Docs](https://docs.example.com) and [Dup](https://a.example.com)."
        sources = parse_sources(
            [{"title": "A", "uri": "https://a.example.com"}, "https://b.example.com", 3],
            markdown,
        )

        assert [(s.title, s.uri) for s in sources] == [
            ("A", "https://a.example.com"),
            ("https://b.example.com", "https://b.example.com"),
            ("Docs", "https://docs.example.com"),
        ]

    def test_url_key(self) -> None:
        sources = parse_sources([{"url": "https://c.example.com"}], "")
        assert sources[0].title == "https://c.example.com"

    def test_no_sources(self) -> None:
        assert parse_sources(None, "plain text") == []


class TestGraphGenerator:
    """Tests for GraphGenerator."""

    @pytest.mark.asyncio
    async def test_generate_graph(self, mock_llm_client: LLMClient, graph_payload: dict) -> None:
        """Test the initial graph prompt carries topic and status."""
        generator = GraphGenerator(llm_client=mock_llm_client)

        fragment = await generator.generate_graph("Machine Learning", "Beginner")

        assert fragment == graph_payload
        prompt = mock_llm_client.generate_json.await_args.args[0]
        assert "Machine Learning" in prompt
        assert "Beginner" in prompt
        assert mock_llm_client.generate_json.await_args.kwargs["system_prompt"] == GRAPH_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_generate_graph_failure(self, mock_llm_client: LLMClient) -> None:
        """Test transport errors surface as GenerationError."""
        mock_llm_client.generate_json = AsyncMock(side_effect=ValueError("unparsable"))
        generator = GraphGenerator(llm_client=mock_llm_client)

        with pytest.raises(GenerationError, match="Failed to generate knowledge graph"):
            await generator.generate_graph("Topic", "Beginner")

    @pytest.mark.asyncio
    async def test_generate_graph_non_object(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client.generate_json = AsyncMock(return_value=["not", "an", "object"])
        generator = GraphGenerator(llm_client=mock_llm_client)

        with pytest.raises(GenerationError):
            await generator.generate_graph("Topic", "Beginner")

    @pytest.mark.asyncio
    async def test_expand_prompt(self, mock_llm_client: LLMClient) -> None:
        """Test the expansion prompt lists the selected nodes."""
        generator = GraphGenerator(llm_client=mock_llm_client)

        await generator.expand([{"id": "gd", "label": "Gradient Descent"}], "Machine Learning")

        prompt = mock_llm_client.generate_json.await_args.args[0]
        assert '"id": "gd"' in prompt
        assert "Gradient Descent" in prompt
        assert "Machine Learning" in prompt

    @pytest.mark.asyncio
    async def test_expand_failure(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client.generate_json = AsyncMock(side_effect=RuntimeError("timeout"))
        generator = GraphGenerator(llm_client=mock_llm_client)

        with pytest.raises(GenerationError, match="Failed to expand selected nodes"):
            await generator.expand([{"id": "a", "label": "A"}], "Topic")

    @pytest.mark.asyncio
    async def test_generate_plan(self, mock_llm_client: LLMClient) -> None:
        """Test plan markdown and citations become a PlanResponse."""
        mock_llm_client.generate = AsyncMock(
            return_value=LLMResponse(
                content="1. Watch [lecture](https://video.example.com)",
                citations=[{"title": "Notes", "uri": "https://notes.example.com"}],
            )
        )
        generator = GraphGenerator(llm_client=mock_llm_client)

        plan = await generator.generate_plan("Gradient Descent", "Beginner", "Machine Learning")

        assert plan.markdown.startswith("1. Watch")
        assert [s.uri for s in plan.sources] == [
            "https://notes.example.com",
            "https://video.example.com",
        ]
        assert mock_llm_client.generate.await_args.kwargs["return_response"] is True

    @pytest.mark.asyncio
    async def test_generate_plan_empty(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client.generate = AsyncMock(return_value=LLMResponse(content=""))
        generator = GraphGenerator(llm_client=mock_llm_client)

        plan = await generator.generate_plan("X", "Beginner", "Topic")

        assert plan.markdown == "No plan generated."
        assert plan.sources == []

    @pytest.mark.asyncio
    async def test_generate_plan_failure(self, mock_llm_client: LLMClient) -> None:
        mock_llm_client.generate = AsyncMock(side_effect=ConnectionError("down"))
        generator = GraphGenerator(llm_client=mock_llm_client)

        with pytest.raises(GenerationError, match="Failed to generate action plan"):
            await generator.generate_plan("X", "Beginner", "Topic")
