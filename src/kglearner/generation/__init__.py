"""Generation collaborators: LLM client, prompts and graph generator."""

from kglearner.generation.generator import GraphGenerator
from kglearner.generation.llm_client import LLMClient, LLMResponse, get_llm_client
from kglearner.generation.parsing import OutputParser, ThinkingStripper

__all__ = [
    "GraphGenerator",
    "LLMClient",
    "LLMResponse",
    "get_llm_client",
    "OutputParser",
    "ThinkingStripper",
]
