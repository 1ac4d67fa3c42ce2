"""Knowledge graph data models."""

from kglearner.models.graph import (
    DEFAULT_GROUP,
    GraphLink,
    GraphNode,
    GroundingSource,
    KnowledgeGraph,
    PlanResponse,
    endpoint_id,
    parse_link,
    parse_node,
)

__all__ = [
    "DEFAULT_GROUP",
    "GraphNode",
    "GraphLink",
    "KnowledgeGraph",
    "GroundingSource",
    "PlanResponse",
    "endpoint_id",
    "parse_node",
    "parse_link",
]
