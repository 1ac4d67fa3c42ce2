"""Chat-completions client used by the graph and plan generators.

Works against any OpenAI-compatible endpoint (Ollama, vLLM, hosted APIs).
Requests run on a pooled `requests` session in a worker thread, so the
layout loop keeps stepping while the model answers.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from kglearner.config import settings
from kglearner.generation.parsing import OutputParser, ThinkingStripper

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Completion text plus any sources a search-enabled endpoint cited."""

    content: str
    citations: list[Any] = field(default_factory=list)


class LLMClient:
    """Async facade over blocking chat-completion requests."""

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_concurrent: int | None = None,
    ) -> None:
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        self.model = model or settings.llm_model
        self.api_key = api_key or settings.llm_api_key
        self.timeout = timeout or settings.llm_timeout
        self.max_concurrent = max_concurrent or settings.llm_max_concurrent

        self._limit = asyncio.Semaphore(self.max_concurrent)
        self._session: requests.Session | None = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _get_session(self) -> requests.Session:
        if self._session is None:
            session = requests.Session()
            session.headers["Authorization"] = f"Bearer {self.api_key}"
            retrying = HTTPAdapter(
                pool_maxsize=self.max_concurrent,
                max_retries=Retry(total=2, backoff_factor=0.5, status_forcelist=(502, 503, 504)),
            )
            session.mount("http://", retrying)
            session.mount("https://", retrying)
            self._session = session
        return self._session

    async def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Blocking request; called from a worker thread."""
        response = self._get_session().post(self.endpoint, json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def read_completion(data: dict[str, Any]) -> LLMResponse:
        """Pull the answer text and citations out of a completion body.

        Reasoning blocks are stripped from the text. Citations may sit on
        the body (Perplexity-style) or on the message.

        Raises:
            ValueError: the body carries no answer
        """
        choices = data.get("choices") or []
        if not choices:
            raise ValueError(f"Completion has no choices: {str(data)[:200]}")

        message = choices[0].get("message") or {}
        text = message.get("content")
        if text is None:
            text = choices[0].get("text")
        if text is None:
            raise ValueError(f"Completion has no content: {str(data)[:200]}")

        citations = data.get("citations") or message.get("citations") or []
        return LLMResponse(content=ThinkingStripper.strip(text), citations=list(citations))

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
        return_response: bool = False,
    ) -> str | LLMResponse:
        """Single-turn completion; the cleaned text, or the full response."""
        messages = [{"role": "user", "content": prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        async with self._limit:
            try:
                data = await asyncio.to_thread(self._post, payload)
            except requests.HTTPError as e:
                logger.error(
                    f"Completion rejected by {self.endpoint}: "
                    f"{e.response.status_code} {e.response.text[:200]}"
                )
                raise
            except requests.RequestException as e:
                logger.error(f"Completion request to {self.endpoint} failed: {e}")
                raise

        response = self.read_completion(data)
        return response if return_response else response.content

    async def generate_json(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 8192,
    ) -> Any:
        """Completion parsed as JSON.

        Raises:
            ValueError: nothing parsable in the answer
        """
        text = await self.generate(
            prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        parsed = OutputParser.parse_json(text)
        if parsed is None:
            raise ValueError(f"Could not parse LLM response as JSON: {text[:200]}")
        return parsed


_llm_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Shared client for the running process."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


async def close_llm_client() -> None:
    global _llm_client
    if _llm_client is not None:
        await _llm_client.close()
        _llm_client = None
