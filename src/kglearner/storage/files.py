"""Graph import/export as JSON files and NotebookLM-style text sources."""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiofiles

from kglearner.exceptions import ImportFormatError
from kglearner.graph.store import replace
from kglearner.models import GraphNode, KnowledgeGraph, PlanResponse

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1


@dataclass
class ImportedGraph:
    """A validated import: the sanitized graph plus optional metadata."""

    graph: KnowledgeGraph
    topic: str | None = None
    status: str | None = None


def _has_graph_shape(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and isinstance(data.get("nodes"), list)
        and isinstance(data.get("links"), list)
    )


def parse_import(payload: Any) -> ImportedGraph:
    """
    Validate an import payload and build a sanitized graph.

    Accepts either an export envelope `{"graphData": {nodes, links}, "topic", "status"}`
    or a raw `{nodes, links}` object.

    Raises:
        ImportFormatError: payload has neither shape
    """
    if isinstance(payload, dict) and _has_graph_shape(payload.get("graphData")):
        data = payload["graphData"]
        graph = replace(data["nodes"], data["links"])
        topic = payload.get("topic")
        status = payload.get("status")
        return ImportedGraph(
            graph=graph,
            topic=str(topic) if topic else None,
            status=str(status) if status else None,
        )

    if _has_graph_shape(payload):
        return ImportedGraph(graph=replace(payload["nodes"], payload["links"]))

    raise ImportFormatError("Failed to import graph: Invalid JSON format.")


def parse_import_text(content: str) -> ImportedGraph:
    """Parse JSON text and validate it as an import payload."""
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise ImportFormatError("Failed to import graph: Invalid JSON format.") from e
    return parse_import(payload)


async def load_graph_file(path: Path | str) -> ImportedGraph:
    """Read and validate a graph file."""
    async with aiofiles.open(path, encoding="utf-8") as f:
        content = await f.read()
    imported = parse_import_text(content)
    logger.info(f"Imported {len(imported.graph.nodes)} nodes from {path}")
    return imported


def build_export(topic: str, status: str, graph: KnowledgeGraph) -> dict[str, Any]:
    """Export envelope understood by `parse_import`."""
    return {
        "version": EXPORT_VERSION,
        "topic": topic,
        "status": status,
        "graphData": graph.to_dict(),
    }


async def save_graph_file(path: Path | str, payload: dict[str, Any]) -> Path:
    """Write an export payload as pretty-printed JSON."""
    path = Path(path)
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(json.dumps(payload, indent=2, ensure_ascii=False))
    return path


def slugify(topic: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", topic, flags=re.IGNORECASE).lower()


def export_filename(topic: str) -> str:
    """File name for a graph export, e.g. "machine-learning.json"."""
    return f"{slugify(topic) or 'knowledge-graph'}.json"


def notebook_filename(topic: str) -> str:
    return f"{slugify(topic)}-notebook-source.txt"


def export_notebook_text(
    topic: str,
    status: str,
    graph: KnowledgeGraph,
    node: GraphNode | None = None,
    plan: PlanResponse | None = None,
) -> str:
    """Markdown source document: concepts grouped by category plus an optional deep dive."""
    lines = [
        f"# Knowledge Graph: {topic}",
        f"**User Status/Level:** {status}",
        "",
        "## Concept Overview",
        f"This document contains the structured learning path generated for {topic}.",
        "",
    ]

    groups: dict[str, list[GraphNode]] = {}
    for graph_node in graph.nodes:
        groups.setdefault(graph_node.group, []).append(graph_node)

    for group, members in groups.items():
        lines.append(f"### {group}")
        lines.extend(f"- **{member.label}**: {member.description}" for member in members)
        lines.append("")

    if node is not None and plan is not None:
        lines += [
            "",
            "---",
            "",
            f"## Deep Dive: {node.label}",
            f"**Context:** Part of {node.group}",
            "",
            "### Learning Action Plan",
            plan.markdown,
            "",
        ]
        if plan.sources:
            lines.append("### Verified Sources")
            lines.extend(f"- [{source.title}]({source.uri})" for source in plan.sources)
    else:
        lines += [
            "",
            "---",
            "> Note: Select specific nodes and generate action plans to append "
            "more detailed study materials to this export.",
        ]

    return "\n".join(lines) + "\n"
