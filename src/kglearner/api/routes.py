"""API routes for the knowledge graph learner.

Provides:
- Graph generation, import and export
- Selection mode, node clicks and expansion
- Layout stepping, scene, resize, zoom and drag
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from kglearner.exceptions import ExpansionBusyError, ExpansionError, GenerationError, ImportFormatError
from kglearner.session import LearnerSession

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request / Response Models
# ============================================================================


class GenerateRequest(BaseModel):
    """Request to generate a new graph."""

    topic: str = Field(min_length=1)
    status: str = "Beginner"


class GraphResponse(BaseModel):
    """Current graph with session context."""

    topic: str
    status: str
    nodes: list[dict[str, Any]]
    links: list[dict[str, Any]]
    selected: list[str] = Field(default_factory=list)
    expanding: bool = False
    error: str = ""


class SelectionModeRequest(BaseModel):
    enabled: bool | None = None


class SelectionModeResponse(BaseModel):
    selection_mode: bool
    selected: list[str]


class ClickResponse(BaseModel):
    """Result of clicking a node."""

    node_id: str
    selection_mode: bool
    selected: list[str]
    plan: dict[str, Any] | None = None


class ExpandResponse(BaseModel):
    added_ids: list[str]
    called: bool
    discarded: bool
    node_count: int
    link_count: int


class StepRequest(BaseModel):
    frames: int = Field(default=1, ge=1, le=1000)


class ResizeRequest(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class ZoomRequest(BaseModel):
    factor: float = Field(gt=0)
    x: float | None = None
    y: float | None = None


class DragRequest(BaseModel):
    """One drag phase; coordinates are in layout space."""

    node_id: str
    phase: str = Field(pattern="^(start|move|end)$")
    x: float = 0.0
    y: float = 0.0


class HealthResponse(BaseModel):
    status: str
    has_graph: bool
    layout_state: str


# ============================================================================
# Helpers
# ============================================================================


def get_session(request: Request) -> LearnerSession:
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


def graph_response(session: LearnerSession) -> GraphResponse:
    graph = session.graph
    data = graph.to_dict() if graph is not None else {"nodes": [], "links": []}
    return GraphResponse(
        topic=session.topic,
        status=session.status,
        nodes=data["nodes"],
        links=data["links"],
        selected=sorted(session.selection.ids),
        expanding=session.expanding,
        error=session.error,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    session = get_session(request)
    return HealthResponse(
        status="ok",
        has_graph=session.graph is not None,
        layout_state=session.engine.state.value,
    )


@router.post("/graph/generate", response_model=GraphResponse)
async def generate_graph(body: GenerateRequest, request: Request) -> GraphResponse:
    session = get_session(request)
    try:
        await session.generate(body.topic, body.status)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return graph_response(session)


@router.get("/graph", response_model=GraphResponse)
async def get_graph(request: Request) -> GraphResponse:
    return graph_response(get_session(request))


@router.post("/graph/import", response_model=GraphResponse)
async def import_graph(payload: dict[str, Any], request: Request) -> GraphResponse:
    session = get_session(request)
    try:
        session.import_payload(payload)
    except ImportFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return graph_response(session)


@router.get("/graph/export")
async def export_graph(request: Request) -> dict[str, Any]:
    payload = get_session(request).export()
    if payload is None:
        raise HTTPException(status_code=404, detail="No graph to export")
    return payload


@router.get("/graph/notebook", response_class=PlainTextResponse)
async def notebook_source(request: Request) -> str:
    text = get_session(request).notebook_text()
    if text is None:
        raise HTTPException(status_code=404, detail="No graph to export")
    return text


@router.post("/graph/expand", response_model=ExpandResponse)
async def expand_selection(request: Request) -> ExpandResponse:
    session = get_session(request)
    try:
        result = await session.expand_selection()
    except ExpansionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ExpansionError as e:
        raise HTTPException(status_code=502, detail=str(e))

    graph = session.graph
    return ExpandResponse(
        added_ids=result.added_ids,
        called=result.called,
        discarded=result.discarded,
        node_count=len(graph.nodes) if graph else 0,
        link_count=len(graph.links) if graph else 0,
    )


@router.post("/selection/mode", response_model=SelectionModeResponse)
async def set_selection_mode(body: SelectionModeRequest, request: Request) -> SelectionModeResponse:
    session = get_session(request)
    mode = session.toggle_selection_mode(body.enabled)
    return SelectionModeResponse(selection_mode=mode, selected=sorted(session.selection.ids))


@router.delete("/selection", response_model=SelectionModeResponse)
async def clear_selection(request: Request) -> SelectionModeResponse:
    session = get_session(request)
    session.clear_selection()
    return SelectionModeResponse(selection_mode=session.selection_mode, selected=[])


@router.post("/nodes/{node_id}/click", response_model=ClickResponse)
async def click_node(node_id: str, request: Request) -> ClickResponse:
    session = get_session(request)
    graph = session.graph
    if graph is None or not graph.has_node(node_id):
        raise HTTPException(status_code=404, detail=f"Unknown node: {node_id}")

    plan = await session.click_node(node_id)
    return ClickResponse(
        node_id=node_id,
        selection_mode=session.selection_mode,
        selected=sorted(session.selection.ids),
        plan=plan.to_dict() if plan else None,
    )


@router.post("/layout/step")
async def step_layout(body: StepRequest, request: Request) -> dict[str, Any]:
    session = get_session(request)
    for _ in range(body.frames):
        if not session.engine.step():
            break
    return session.engine.render().to_dict()


@router.get("/layout/scene")
async def get_scene(request: Request) -> dict[str, Any]:
    return get_session(request).engine.render().to_dict()


@router.post("/layout/resize")
async def resize_layout(body: ResizeRequest, request: Request) -> dict[str, Any]:
    session = get_session(request)
    session.resize(body.width, body.height)
    return session.engine.render().to_dict()


@router.post("/layout/zoom")
async def zoom_layout(body: ZoomRequest, request: Request) -> dict[str, Any]:
    transform = get_session(request).engine.zoom(body.factor, body.x, body.y)
    return transform.to_dict()


@router.post("/layout/drag")
async def drag_node(body: DragRequest, request: Request) -> dict[str, Any]:
    engine = get_session(request).engine
    if body.phase == "start":
        engine.drag_start(body.node_id, body.x, body.y)
    elif body.phase == "move":
        engine.drag_move(body.node_id, body.x, body.y)
    else:
        engine.drag_end(body.node_id)
    return {"state": engine.state.value, "dragging": engine.is_dragging}
