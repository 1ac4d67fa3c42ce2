"""Graph, expansion and plan generation using the LLM."""

import json
import logging
from typing import Any

from kglearner.config import settings
from kglearner.exceptions import GenerationError
from kglearner.generation.llm_client import LLMClient, LLMResponse, get_llm_client
from kglearner.generation.parsing import OutputParser
from kglearner.generation.prompts import (
    ACTION_PLAN_PROMPT,
    GRAPH_EXPANSION_PROMPT,
    GRAPH_GENERATION_PROMPT,
    GRAPH_SYSTEM_PROMPT,
)
from kglearner.models import GroundingSource, PlanResponse

logger = logging.getLogger(__name__)


def to_fragment(parsed: Any) -> dict[str, list]:
    """Coerce parsed model output into a raw {nodes, links} fragment."""
    if not isinstance(parsed, dict):
        raise GenerationError("Model output is not a JSON object")
    nodes = parsed.get("nodes")
    links = parsed.get("links")
    return {
        "nodes": nodes if isinstance(nodes, list) else [],
        "links": links if isinstance(links, list) else [],
    }


def parse_sources(citations: Any, markdown: str) -> list[GroundingSource]:
    """Collect sources from endpoint citations and markdown links, deduped by uri."""
    sources: list[GroundingSource] = []
    seen: set[str] = set()

    for citation in citations or []:
        if isinstance(citation, dict):
            uri = citation.get("uri") or citation.get("url")
            title = citation.get("title") or uri
        elif isinstance(citation, str):
            uri, title = citation, citation
        else:
            continue
        if uri and title and uri not in seen:
            seen.add(uri)
            sources.append(GroundingSource(title=str(title), uri=str(uri)))

    for title, uri in OutputParser.extract_links(markdown):
        if uri not in seen:
            seen.add(uri)
            sources.append(GroundingSource(title=title, uri=uri))

    return sources


class GraphGenerator:
    """Produces raw graph fragments and learning plans.

    Fragments are returned unvalidated; the graph store sanitizes them.
    Every failure surfaces as GenerationError.
    """

    def __init__(self, llm_client: LLMClient | None = None) -> None:
        self.llm = llm_client or get_llm_client()

    async def _generate_fragment(self, prompt: str, failure_message: str) -> dict[str, list]:
        try:
            parsed = await self.llm.generate_json(
                prompt,
                system_prompt=GRAPH_SYSTEM_PROMPT,
                temperature=settings.graph_temperature,
            )
        except Exception as e:
            logger.error(f"{failure_message}: {e}")
            raise GenerationError(failure_message) from e

        try:
            return to_fragment(parsed)
        except GenerationError as e:
            logger.error(f"{failure_message}: {e}")
            raise GenerationError(failure_message) from e

    async def generate_graph(self, topic: str, status: str) -> dict[str, list]:
        """
        Generate an initial knowledge graph for a topic.

        Args:
            topic: What the user wants to learn
            status: The user's current level (e.g. "Beginner")

        Returns:
            Raw fragment with "nodes" and "links" lists
        """
        prompt = GRAPH_GENERATION_PROMPT.format(topic=topic, status=status)
        fragment = await self._generate_fragment(
            prompt, "Failed to generate knowledge graph. Please try again."
        )
        logger.info(
            f"Generated graph for '{topic}': "
            f"{len(fragment['nodes'])} nodes, {len(fragment['links'])} links"
        )
        return fragment

    async def expand(self, selected: list[dict[str, str]], topic: str) -> dict[str, list]:
        """Generate sub-concepts for the selected {id, label} nodes."""
        prompt = GRAPH_EXPANSION_PROMPT.format(
            topic=topic,
            selected=json.dumps(selected, indent=2, ensure_ascii=False),
        )
        return await self._generate_fragment(
            prompt, "Failed to expand selected nodes. The model returned invalid data."
        )

    async def generate_plan(self, label: str, status: str, topic: str) -> PlanResponse:
        """Generate a learning plan for one concept."""
        prompt = ACTION_PLAN_PROMPT.format(label=label, status=status, topic=topic)
        try:
            response = await self.llm.generate(
                prompt,
                temperature=settings.plan_temperature,
                return_response=True,
            )
        except Exception as e:
            logger.error(f"Failed to generate plan for '{label}': {e}")
            raise GenerationError("Failed to generate action plan.") from e

        if isinstance(response, LLMResponse):
            markdown, citations = response.content, response.citations
        else:
            markdown, citations = str(response), None

        markdown = markdown or "No plan generated."
        return PlanResponse(markdown=markdown, sources=parse_sources(citations, markdown))
