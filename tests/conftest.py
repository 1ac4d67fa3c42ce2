"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kglearner.config import Settings
from kglearner.generation.generator import GraphGenerator
from kglearner.generation.llm_client import LLMClient
from kglearner.graph.store import GraphStore, sanitize
from kglearner.layout.engine import LayoutEngine
from kglearner.models import GroundingSource, KnowledgeGraph, PlanResponse
from kglearner.session import LearnerSession


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with defaults."""
    return Settings(
        llm_base_url="http://localhost:11434/v1",
        llm_model="test-model",
        layout_width=800.0,
        layout_height=600.0,
        frame_interval=0.0,
    )


@pytest.fixture
def graph_payload() -> dict:
    """Raw generation output for a small machine learning graph."""
    return {
        "nodes": [
            {"id": "la", "label": "Linear Algebra", "group": "Math", "description": "Vectors and matrices"},
            {"id": "calc", "label": "Calculus", "group": "Math", "description": "Derivatives"},
            {"id": "gd", "label": "Gradient Descent", "group": "Optimization", "description": "Iterative minimization"},
            {"id": "nn", "label": "Neural Networks", "group": "Models", "description": "Layered function approximators"},
        ],
        "links": [
            {"source": "la", "target": "nn", "relation": "prerequisite"},
            {"source": "calc", "target": "gd", "relation": "prerequisite"},
            {"source": "gd", "target": "nn", "relation": "trains"},
        ],
    }


@pytest.fixture
def expansion_payload() -> dict:
    """Raw expansion output subdividing gradient descent."""
    return {
        "nodes": [
            {"id": "sgd", "label": "Stochastic GD", "group": "Optimization", "description": "Mini-batch updates"},
            {"id": "lr", "label": "Learning Rate", "group": "Optimization", "description": "Step size"},
        ],
        "links": [
            {"source": "gd", "target": "sgd", "relation": "variant"},
            {"source": "lr", "target": "gd", "relation": "parameter"},
        ],
    }


@pytest.fixture
def sample_graph(graph_payload: dict) -> KnowledgeGraph:
    """Sanitized sample graph."""
    return sanitize(graph_payload["nodes"], graph_payload["links"])


@pytest.fixture
def store(graph_payload: dict) -> GraphStore:
    """Graph store holding the sample graph."""
    store = GraphStore()
    store.topic = "Machine Learning"
    store.status = "Beginner"
    store.replace(graph_payload["nodes"], graph_payload["links"])
    return store


@pytest.fixture
def sample_plan() -> PlanResponse:
    return PlanResponse(
        markdown="1. Read chapter 3\n2. Implement it",
        sources=[GroundingSource(title="Course", uri="https://example.com/course")],
    )


@pytest.fixture
def mock_llm_client(graph_payload: dict) -> LLMClient:
    """Mock LLM client for testing without an actual LLM."""
    client = MagicMock(spec=LLMClient)
    client.generate_json = AsyncMock(return_value=graph_payload)
    client.generate = AsyncMock(return_value="Test plan")
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_generator(graph_payload: dict, expansion_payload: dict, sample_plan: PlanResponse) -> GraphGenerator:
    """Mock generator returning the sample fragments."""
    generator = MagicMock(spec=GraphGenerator)
    generator.generate_graph = AsyncMock(return_value=graph_payload)
    generator.expand = AsyncMock(return_value=expansion_payload)
    generator.generate_plan = AsyncMock(return_value=sample_plan)
    return generator


@pytest.fixture
def engine(test_settings: Settings) -> LayoutEngine:
    """Layout engine with a fixed seed."""
    return LayoutEngine(config=test_settings, seed=7)


@pytest.fixture
def session(mock_generator: GraphGenerator, test_settings: Settings) -> LearnerSession:
    """Session wired to the mock generator."""
    return LearnerSession(
        generator=mock_generator,
        engine=LayoutEngine(config=test_settings, seed=7),
        config=test_settings,
    )
