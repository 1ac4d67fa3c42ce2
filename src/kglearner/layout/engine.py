"""Force layout and render engine.

Two independent handlers drive the engine:

- `on_graph_changed` / `on_resize` rebuild the simulation from a snapshot,
  discarding velocities and pins;
- `on_selection_changed` restyles nodes over existing positions and never
  touches the simulation.

The simulation advances one step per animation frame (`run`), yielding to
the event loop between steps so pointer and resize events can interleave.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from kglearner.config import Settings, settings as default_settings
from kglearner.layout.forces import CenterForce, CollideForce, LinkForce, ManyBodyForce
from kglearner.layout.render import (
    GroupColors,
    NodeStyle,
    RenderedLink,
    RenderedNode,
    Scene,
    ViewTransform,
    node_style,
)
from kglearner.layout.simulation import Simulation
from kglearner.models import GraphNode, KnowledgeGraph

logger = logging.getLogger(__name__)

ClickHandler = Callable[[GraphNode], Any]


class LayoutState(str, Enum):
    """Lifecycle of the layout for the current snapshot."""

    UNINITIALIZED = "uninitialized"
    SIMULATING = "simulating"
    SETTLED = "settled"
    STOPPED = "stopped"  # halted by stop() before settling


class PointerOutcome(str, Enum):
    NONE = "none"
    CLICK = "click"
    DRAG = "drag"
    PAN = "pan"


@dataclass
class PointerResult:
    """What a completed pointer gesture turned out to be."""

    outcome: PointerOutcome
    node_id: str | None = None
    handler_result: Any = None  # Return value of the click handler (may be awaitable)


@dataclass
class _Gesture:
    node_id: str | None
    start_x: float
    start_y: float
    last_x: float
    last_y: float
    dragging: bool = False


class LayoutEngine:
    """Keeps a rendered scene in sync with a force simulation."""

    def __init__(
        self,
        width: float | None = None,
        height: float | None = None,
        config: Settings | None = None,
        seed: int | None = None,
    ) -> None:
        self.config = config or default_settings
        self.width = width if width is not None else self.config.layout_width
        self.height = height if height is not None else self.config.layout_height
        self.seed = seed

        self.transform = ViewTransform(
            min_scale=self.config.zoom_min,
            max_scale=self.config.zoom_max,
        )
        self.colors = GroupColors()

        self.simulation: Simulation | None = None
        self.rebuild_count = 0
        self.style_pass_count = 0

        self._graph: KnowledgeGraph | None = None
        self._nodes: dict[str, RenderedNode] = {}
        self._node_data: dict[str, GraphNode] = {}
        self._links: list[RenderedLink] = []
        self._selected: frozenset[str] = frozenset()
        self._click_handler: ClickHandler | None = None
        self._gesture: _Gesture | None = None
        self._dragged: set[str] = set()
        self._running = False
        self._halted = False

    # ── State ────────────────────────────────────────────────────

    @property
    def state(self) -> LayoutState:
        if self.simulation is None:
            return LayoutState.UNINITIALIZED
        if self._halted:
            return LayoutState.STOPPED
        if self.simulation.stopped:
            return LayoutState.SETTLED
        return LayoutState.SIMULATING

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    @property
    def is_dragging(self) -> bool:
        return bool(self._dragged)

    # ── Graph / resize handlers ──────────────────────────────────

    def on_graph_changed(self, graph: KnowledgeGraph | None) -> LayoutState:
        """Rebuild the simulation for a new node/link set."""
        self._graph = graph
        self._rebuild()
        return self.state

    def on_resize(
        self,
        width: float,
        height: float,
        graph: KnowledgeGraph | None = None,
    ) -> LayoutState:
        """Viewport size changed; rebuild so the centering force follows.

        A fresher snapshot of the same graph (e.g. with written-back
        positions) may be passed to seed the rebuild.
        """
        self.width = width
        self.height = height
        if graph is not None:
            self._graph = graph
        self._rebuild()
        return self.state

    def _rebuild(self) -> None:
        if self.simulation is not None:
            self.simulation.stop()
        self._halted = False
        self._gesture = None
        self._dragged.clear()

        graph = self._graph
        if graph is None or graph.is_empty():
            self.simulation = None
            self._nodes = {}
            self._node_data = {}
            self._links = []
            return

        # Working copies; the store's nodes are never mutated here
        positions = {
            node.id: (node.x, node.y)
            for node in graph.nodes
            if node.x is not None and node.y is not None
        }
        sim = Simulation(
            [node.id for node in graph.nodes],
            positions=positions,
            center=self.center,
            alpha_min=self.config.alpha_min,
            alpha_decay_iterations=self.config.alpha_decay_iterations,
            velocity_decay=self.config.velocity_decay,
            seed=self.seed,
        )

        link_pairs = [
            (sim.index[link.source], sim.index[link.target])
            for link in graph.links
            if link.source in sim.index and link.target in sim.index
        ]
        cx, cy = self.center
        sim.add_force("link", LinkForce(link_pairs, distance=self.config.link_distance))
        sim.add_force("charge", ManyBodyForce(strength=self.config.charge_strength))
        sim.add_force("center", CenterForce(cx, cy))
        sim.add_force("collide", CollideForce(radius=self.config.collide_radius))
        self.simulation = sim

        self._node_data = {node.id: node for node in graph.nodes}
        self._nodes = {
            node.id: RenderedNode(
                id=node.id,
                label=node.label,
                group=node.group,
                fill=self.colors(node.group),
                x=sim.position(node.id)[0],
                y=sim.position(node.id)[1],
            )
            for node in graph.nodes
        }
        self._links = [
            RenderedLink(source=link.source, target=link.target, relation=link.relation)
            for link in graph.links
            if link.source in sim.index and link.target in sim.index
        ]
        self.rebuild_count += 1

        self._update_positions()
        self._apply_styles()
        logger.debug(
            f"Layout rebuilt: {sim.n} nodes, {len(link_pairs)} links, "
            f"viewport {self.width}x{self.height}"
        )

    # ── Selection handler ────────────────────────────────────────

    def on_selection_changed(self, selected_ids: frozenset[str] | set[str]) -> None:
        """Restyle nodes for a new selection; positions and physics untouched."""
        self._selected = frozenset(selected_ids)
        self._apply_styles()

    def _apply_styles(self) -> None:
        for node_id, rendered in self._nodes.items():
            rendered.style = node_style(
                node_id in self._selected,
                self.config.node_radius,
                self.config.selected_node_radius,
            )
        self.style_pass_count += 1

    def style_of(self, node_id: str) -> NodeStyle | None:
        rendered = self._nodes.get(node_id)
        return rendered.style if rendered else None

    # ── Stepping ─────────────────────────────────────────────────

    def step(self) -> bool:
        """Advance one frame and re-render. Returns False when nothing moved."""
        if self.simulation is None:
            return False
        ticks_before = self.simulation.tick_count
        active = self.simulation.step()
        if self.simulation.tick_count != ticks_before:
            self._update_positions()
        return active

    def _update_positions(self) -> None:
        sim = self.simulation
        if sim is None:
            return
        for node_id, rendered in self._nodes.items():
            rendered.x, rendered.y = sim.position(node_id)
        for link in self._links:
            source = self._nodes[link.source]
            target = self._nodes[link.target]
            link.x1, link.y1 = source.x, source.y
            link.x2, link.y2 = target.x, target.y

    async def run(self, frame_interval: float | None = None, max_frames: int | None = None) -> int:
        """Step once per frame until settled or stopped. Returns frames stepped."""
        interval = self.config.frame_interval if frame_interval is None else frame_interval
        frames = 0
        self._running = True
        try:
            while self._running and self.step():
                frames += 1
                if max_frames is not None and frames >= max_frames:
                    break
                await asyncio.sleep(interval)
        finally:
            self._running = False
        return frames

    def stop(self) -> None:
        """Halt stepping; the layout reports STOPPED unless it had already settled."""
        self._running = False
        if self.simulation is not None:
            self._halted = self._halted or not self.simulation.stopped
            self.simulation.stop()

    def settle(self, max_ticks: int = 1000) -> int:
        """Step synchronously until settled (headless layout). Returns ticks run."""
        ticks = 0
        while ticks < max_ticks and self.step():
            ticks += 1
        return ticks

    # ── Drag ─────────────────────────────────────────────────────

    def drag_start(self, node_id: str, x: float, y: float) -> None:
        """Pin a node at layout point (x, y) and boost energy."""
        sim = self.simulation
        if sim is None or node_id not in sim.index:
            return
        if not self._dragged:
            sim.alpha_target = self.config.drag_alpha_target
            sim.restart()
            self._halted = False
        self._dragged.add(node_id)
        sim.pin(node_id, x, y)

    def drag_move(self, node_id: str, x: float, y: float) -> None:
        sim = self.simulation
        if sim is None or node_id not in self._dragged:
            return
        sim.pin(node_id, x, y)

    def drag_end(self, node_id: str) -> None:
        """Release the pin and the energy boost."""
        sim = self.simulation
        if sim is None or node_id not in self._dragged:
            return
        self._dragged.discard(node_id)
        sim.unpin(node_id)
        if not self._dragged:
            sim.alpha_target = 0.0

    # ── Pointer disambiguation ───────────────────────────────────

    def register_click_handler(self, handler: ClickHandler | None) -> None:
        """Set the click callback; the latest registration is always used.

        The handler is called synchronously from `pointer_up`. A coroutine
        function is allowed, but its coroutine comes back un-awaited in
        `PointerResult.handler_result` and the caller must await it
        (`LearnerSession.pointer_up` does).
        """
        self._click_handler = handler

    def pointer_down(self, node_id: str | None, sx: float, sy: float) -> None:
        """Press at screen point (sx, sy) on a node, or on the background if None."""
        if node_id is not None and node_id not in self._nodes:
            node_id = None
        self._gesture = _Gesture(node_id, sx, sy, sx, sy)

    def pointer_move(self, sx: float, sy: float) -> None:
        gesture = self._gesture
        if gesture is None:
            return

        if not gesture.dragging:
            travelled = math.hypot(sx - gesture.start_x, sy - gesture.start_y)
            if travelled <= self.config.click_threshold:
                return
            gesture.dragging = True
            if gesture.node_id is not None:
                self.drag_start(gesture.node_id, *self.transform.invert(gesture.start_x, gesture.start_y))

        if gesture.node_id is None:
            self.transform.pan(sx - gesture.last_x, sy - gesture.last_y)
        else:
            self.drag_move(gesture.node_id, *self.transform.invert(sx, sy))
        gesture.last_x, gesture.last_y = sx, sy

    def pointer_up(self, sx: float, sy: float) -> PointerResult:
        gesture = self._gesture
        if gesture is None:
            return PointerResult(PointerOutcome.NONE)

        self.pointer_move(sx, sy)
        self._gesture = None

        if gesture.dragging:
            if gesture.node_id is None:
                return PointerResult(PointerOutcome.PAN)
            self.drag_end(gesture.node_id)
            return PointerResult(PointerOutcome.DRAG, gesture.node_id)

        if gesture.node_id is None:
            return PointerResult(PointerOutcome.NONE)

        handler_result = None
        node = self._node_data.get(gesture.node_id)
        if self._click_handler is not None and node is not None:
            handler_result = self._click_handler(node)
        return PointerResult(PointerOutcome.CLICK, gesture.node_id, handler_result)

    # ── Viewport ─────────────────────────────────────────────────

    def zoom(self, factor: float, sx: float | None = None, sy: float | None = None) -> ViewTransform:
        """Zoom around a screen point (default: viewport center), clamped."""
        cx, cy = self.center
        self.transform.zoom_by(factor, cx if sx is None else sx, cy if sy is None else sy)
        return self.transform

    def pan(self, dx: float, dy: float) -> ViewTransform:
        self.transform.pan(dx, dy)
        return self.transform

    # ── Output ───────────────────────────────────────────────────

    def positions(self) -> dict[str, tuple[float, float]]:
        """Current layout coordinates, for writing back into the store."""
        if self.simulation is None:
            return {}
        return self.simulation.positions()

    def render(self) -> Scene:
        alpha = self.simulation.alpha if self.simulation is not None else 0.0
        return Scene(
            nodes=list(self._nodes.values()),
            links=list(self._links),
            transform=self.transform,
            state=self.state.value,
            alpha=alpha,
        )
