"""Unit tests for graph import/export."""

import json
from pathlib import Path

import pytest

from kglearner.exceptions import ImportFormatError
from kglearner.models import GraphNode, KnowledgeGraph, PlanResponse
from kglearner.storage.files import (
    build_export,
    export_filename,
    export_notebook_text,
    load_graph_file,
    notebook_filename,
    parse_import,
    parse_import_text,
    save_graph_file,
)


class TestParseImport:
    """Tests for parse_import."""

    def test_export_envelope(self, graph_payload: dict) -> None:
        """Test the export envelope restores graph, topic and status."""
        imported = parse_import(
            {"version": 1, "topic": "ML", "status": "Beginner", "graphData": graph_payload}
        )

        assert len(imported.graph.nodes) == 4
        assert imported.topic == "ML"
        assert imported.status == "Beginner"

    def test_raw_graph(self, graph_payload: dict) -> None:
        imported = parse_import(graph_payload)
        assert len(imported.graph.links) == 3
        assert imported.topic is None

    def test_import_is_sanitized(self) -> None:
        """Test imports go through the same validation as generation."""
        imported = parse_import(
            {
                "nodes": [{"id": "a"}, {"id": "a"}, {"id": "b"}],
                "links": [
                    {"source": "a", "target": "b"},
                    {"source": "a", "target": "b"},
                    {"source": "a", "target": "zzz"},
                ],
            }
        )
        assert [n.id for n in imported.graph.nodes] == ["a", "b"]
        assert len(imported.graph.links) == 1

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            "graph",
            {"nodes": []},
            {"links": []},
            {"nodes": {}, "links": []},
            {"graphData": {"nodes": []}},
        ],
    )
    def test_invalid_shape(self, payload) -> None:
        with pytest.raises(ImportFormatError, match="Invalid JSON format"):
            parse_import(payload)

    def test_invalid_text(self) -> None:
        with pytest.raises(ImportFormatError):
            parse_import_text("{not json")


class TestExport:
    """Tests for export helpers."""

    def test_build_export_reimports(self, sample_graph: KnowledgeGraph) -> None:
        """Test an export can be imported back to the same graph."""
        payload = build_export("Machine Learning", "Beginner", sample_graph)

        assert payload["version"] == 1
        imported = parse_import(json.loads(json.dumps(payload)))
        assert imported.graph == sample_graph
        assert imported.topic == "Machine Learning"

    def test_export_includes_positions(self) -> None:
        graph = KnowledgeGraph(nodes=[GraphNode(id="a", label="A", x=1.0, y=2.0)])
        payload = build_export("T", "S", graph)
        assert payload["graphData"]["nodes"][0]["x"] == 1.0

    def test_filenames(self) -> None:
        assert export_filename("Machine Learning") == "machine-learning.json"
        assert export_filename("") == "knowledge-graph.json"
        assert notebook_filename("C++ basics") == "c---basics-notebook-source.txt"

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path: Path, sample_graph: KnowledgeGraph) -> None:
        path = tmp_path / "graph.json"
        await save_graph_file(path, build_export("ML", "Beginner", sample_graph))

        imported = await load_graph_file(path)

        assert imported.graph == sample_graph
        assert imported.status == "Beginner"

    @pytest.mark.asyncio
    async def test_load_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text('{"hello": "world"}', encoding="utf-8")

        with pytest.raises(ImportFormatError):
            await load_graph_file(path)


class TestNotebookText:
    """Tests for export_notebook_text."""

    def test_groups_concepts(self, sample_graph: KnowledgeGraph) -> None:
        text = export_notebook_text("Machine Learning", "Beginner", sample_graph)

        assert text.startswith("# Knowledge Graph: Machine Learning")
        assert "**User Status/Level:** Beginner" in text
        assert "### Math" in text
        assert "- **Calculus**: Derivatives" in text
        assert text.index("### Math") < text.index("### Optimization")
        assert "> Note:" in text

    def test_deep_dive(self, sample_graph: KnowledgeGraph, sample_plan: PlanResponse) -> None:
        """Test the open plan and its sources are appended."""
        node = sample_graph.get_node("gd")

        text = export_notebook_text("ML", "Beginner", sample_graph, node=node, plan=sample_plan)

        assert "## Deep Dive: Gradient Descent" in text
        assert "**Context:** Part of Optimization" in text
        assert "1. Read chapter 3" in text
        assert "### Verified Sources" in text
        assert "- [Course](https://example.com/course)" in text
        assert "> Note:" not in text
