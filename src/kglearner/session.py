"""Learning session - top-level controller tying graph, selection and layout together.

The session owns the only shared mutable state (the current graph snapshot
and the selection set) and passes snapshots into the layout engine and the
expansion coordinator.
"""

import inspect
import logging
from typing import Any

from kglearner.config import Settings, settings as default_settings
from kglearner.exceptions import ExpansionError, GenerationError, ImportFormatError
from kglearner.generation.generator import GraphGenerator
from kglearner.graph.expansion import ExpansionCoordinator, ExpansionResult
from kglearner.graph.selection import SelectionController
from kglearner.graph.store import GraphStore
from kglearner.layout.engine import LayoutEngine, PointerResult
from kglearner.models import GraphNode, KnowledgeGraph, PlanResponse
from kglearner.storage.files import build_export, export_notebook_text, parse_import

logger = logging.getLogger(__name__)


class LearnerSession:
    """One user's knowledge graph, selection, layout and detail view."""

    def __init__(
        self,
        generator: GraphGenerator | None = None,
        engine: LayoutEngine | None = None,
        config: Settings | None = None,
    ) -> None:
        self.config = config or default_settings
        self.generator = generator or GraphGenerator()
        self.store = GraphStore()
        self.selection = SelectionController()
        self.coordinator = ExpansionCoordinator(self.store, self.generator)
        self.engine = engine or LayoutEngine(config=self.config)
        self.engine.register_click_handler(self.click_node)

        self.selection_mode = False
        self.detail_node: GraphNode | None = None
        self.plan: PlanResponse | None = None
        self.loading_graph = False
        self.loading_details = False
        self.error = ""

    # ── Read-only views ──────────────────────────────────────────

    @property
    def graph(self) -> KnowledgeGraph | None:
        return self.store.current

    @property
    def topic(self) -> str:
        return self.store.topic

    @property
    def status(self) -> str:
        return self.store.status

    @property
    def expanding(self) -> bool:
        return self.coordinator.busy

    def selected_nodes(self) -> list[GraphNode]:
        return self.selection.list(self.store.current)

    # ── Graph lifecycle ──────────────────────────────────────────

    def _reset_details(self) -> None:
        self.detail_node = None
        self.plan = None
        self.loading_details = False

    def _on_graph_replaced(self) -> None:
        self.selection.revalidate(self.store.current)
        self.engine.on_graph_changed(self.store.current)
        self.engine.on_selection_changed(self.selection.ids)

    async def generate(self, topic: str, status: str = "Beginner") -> KnowledgeGraph | None:
        """Discard the current graph and generate a new one for `topic`.

        Raises:
            GenerationError: the graph stays discarded and `error` is set
        """
        topic = topic.strip()
        if not topic:
            return None

        self.loading_graph = True
        self.error = ""
        self.store.clear()
        self.selection.clear()
        self._reset_details()
        self.engine.on_graph_changed(None)
        self.store.topic = topic
        self.store.status = status
        version = self.store.version

        try:
            fragment = await self.generator.generate_graph(topic, status)
        except GenerationError as e:
            self.error = str(e)
            raise
        finally:
            self.loading_graph = False

        if self.store.version != version:
            logger.warning(f"Discarding graph for '{topic}': superseded while generating")
            return self.store.current

        graph = self.store.replace(fragment["nodes"], fragment["links"])
        self._on_graph_replaced()
        return graph

    def import_payload(self, payload: Any) -> KnowledgeGraph:
        """Replace the graph with an imported payload.

        Raises:
            ImportFormatError: nothing is changed except `error`
        """
        try:
            imported = parse_import(payload)
        except ImportFormatError as e:
            self.error = str(e)
            raise

        graph = self.store.replace(imported.graph.nodes, imported.graph.links)
        if imported.topic:
            self.store.topic = imported.topic
        if imported.status:
            self.store.status = imported.status

        self.selection.clear()
        self._reset_details()
        self.error = ""
        self._on_graph_replaced()
        return graph

    # ── Selection & clicks ───────────────────────────────────────

    def toggle_selection_mode(self, enabled: bool | None = None) -> bool:
        self.selection_mode = (not self.selection_mode) if enabled is None else enabled
        return self.selection_mode

    def clear_selection(self) -> None:
        self.selection.clear()
        self.engine.on_selection_changed(self.selection.ids)

    async def click_node(self, node: GraphNode | str) -> PlanResponse | None:
        """Selection mode toggles the node; otherwise opens its learning plan."""
        node_id = node.id if isinstance(node, GraphNode) else node
        graph = self.store.current

        if self.selection_mode:
            self.selection.toggle(node_id, graph)
            self.engine.on_selection_changed(self.selection.ids)
            return None

        target = graph.get_node(node_id) if graph is not None else None
        if target is None:
            return None

        self.detail_node = target
        self.plan = None
        self.loading_details = True
        version = self.store.version

        try:
            plan = await self.generator.generate_plan(target.label, self.status, self.topic)
        except GenerationError as e:
            logger.warning(f"No plan for '{target.label}': {e}")
            plan = None
        finally:
            if self.detail_node is target:
                self.loading_details = False

        # Another click or a new graph may have taken over the detail view
        if self.detail_node is target and self.store.version == version:
            self.plan = plan
        return plan

    async def pointer_up(self, sx: float, sy: float) -> PointerResult:
        """Finish a pointer gesture, awaiting the click handler if it was a click."""
        result = self.engine.pointer_up(sx, sy)
        if inspect.isawaitable(result.handler_result):
            result.handler_result = await result.handler_result
        return result

    # ── Expansion ────────────────────────────────────────────────

    async def expand_selection(self) -> ExpansionResult:
        """Expand the selected nodes; the selection is kept for further work.

        Raises:
            ExpansionBusyError: another expansion is running
            ExpansionError: the graph is unchanged and `error` is set
        """
        self.error = ""
        try:
            result = await self.coordinator.expand(self.selection)
        except ExpansionError as e:
            self.error = str(e)
            raise

        if result.merged:
            self.sync_positions()
            self.engine.on_graph_changed(self.store.current)
            self.engine.on_selection_changed(self.selection.ids)
        return result

    # ── Layout ───────────────────────────────────────────────────

    def sync_positions(self) -> int:
        """Write the engine's coordinates back into the store."""
        return self.store.update_positions(self.engine.positions())

    def resize(self, width: float, height: float) -> None:
        self.sync_positions()
        self.engine.on_resize(width, height, self.store.current)

    async def run_layout(self, max_frames: int | None = None) -> int:
        frames = await self.engine.run(max_frames=max_frames)
        self.sync_positions()
        return frames

    # ── Export ───────────────────────────────────────────────────

    def export(self) -> dict[str, Any] | None:
        if self.store.current is None:
            return None
        self.sync_positions()
        return build_export(self.topic, self.status, self.store.current)

    def notebook_text(self) -> str | None:
        if self.store.current is None:
            return None
        return export_notebook_text(
            self.topic,
            self.status,
            self.store.current,
            node=self.detail_node,
            plan=self.plan,
        )
