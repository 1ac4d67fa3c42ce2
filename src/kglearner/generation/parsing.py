"""
Output parsing for LLM responses.

Handles:
- <think>...</think> reasoning blocks from local reasoning models
- Markdown code fences around JSON
- Conversational text before or after the JSON object
- Markdown links in plan text (harvested as sources)
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)


class ThinkingStripper:
    """
    Strips thinking/reasoning content from LLM output.

    Only complete tag pairs are removed; orphan tags lose the tag itself but
    keep the text after it.
    """

    THINKING_PATTERNS = [
        re.compile(r'<think>[\s\S]*?</think>', re.DOTALL),
        re.compile(r'<thinking>[\s\S]*?</thinking>', re.DOTALL),
    ]

    ORPHAN_TAGS = re.compile(r'</?think(?:ing)?>')

    @classmethod
    def strip(cls, text: str) -> str:
        """Strip thinking content from text."""
        if not text:
            return ""

        result = text
        for pattern in cls.THINKING_PATTERNS:
            result = pattern.sub('', result)
        result = cls.ORPHAN_TAGS.sub('', result)
        result = re.sub(r'\n{3,}', '\n\n', result)

        return result.strip()


class OutputParser:
    """Robust JSON / link extraction from free-form model output."""

    CODE_FENCE = re.compile(r'```(?:json)?', re.IGNORECASE)
    MARKDOWN_LINK = re.compile(r'\[([^\]\n]+)\]\((https?://[^)\s]+)\)')

    @classmethod
    def clean_json(cls, text: str) -> str:
        """Remove code fences and keep the span from the first '{' to the last '}'."""
        clean = cls.CODE_FENCE.sub('', text)

        first_open = clean.find('{')
        last_close = clean.rfind('}')
        if first_open != -1 and last_close > first_open:
            clean = clean[first_open:last_close + 1]

        return clean.strip()

    @classmethod
    def parse_json(
        cls,
        raw_output: str,
        fallback: Any = None,
        strip_thinking: bool = True,
    ) -> Any:
        """
        Parse a JSON object from LLM output.

        Returns `fallback` when nothing parsable is found.
        """
        if not raw_output:
            return fallback

        text = ThinkingStripper.strip(raw_output) if strip_thinking else raw_output
        if not text:
            return fallback

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        try:
            return json.loads(cls.clean_json(text))
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse JSON from output: {text[:200]}...")
            return fallback

    @classmethod
    def extract_links(cls, text: str) -> list[tuple[str, str]]:
        """Markdown links as (title, uri) pairs, first occurrence of each uri."""
        seen: set[str] = set()
        links: list[tuple[str, str]] = []
        for match in cls.MARKDOWN_LINK.finditer(text or ""):
            title, uri = match.group(1).strip(), match.group(2)
            if uri in seen:
                continue
            seen.add(uri)
            links.append((title, uri))
        return links
