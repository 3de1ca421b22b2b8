"""API routes for TopicMap.

Provides:
- /v1/map: the annotated view the renderer draws
- Renderer callbacks: expand, toggle, delete, focus, edit label, drag
- /v1/map/layout and /v1/map/reset actions, /health
"""

import logging
from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from topicmap.models import Position
from topicmap.session import MapSession, MapView

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# View Models
# ============================================================================


class PositionModel(BaseModel):
    """Top-left anchor of a node box."""

    x: float
    y: float


class NodeModel(BaseModel):
    """Node annotated for drawing."""

    id: str
    label: str
    description: str = ""
    level: int
    is_root: bool
    child_hint: int
    position: PositionModel
    hidden: bool
    collapsed: bool
    can_expand: bool
    focus_state: Literal["connected", "dimmed"] | None = None


class EdgeModel(BaseModel):
    """Edge annotated for drawing."""

    id: str
    source: str
    target: str
    hidden: bool
    focus_state: Literal["connected", "dimmed"] | None = None


class MapViewResponse(BaseModel):
    """Full map snapshot."""

    nodes: list[NodeModel]
    edges: list[EdgeModel]
    busy: bool
    focus_id: str | None = None


# ============================================================================
# Action Models
# ============================================================================


class ExpandRequest(BaseModel):
    """Seed a new tree (no parent) or grow an existing node."""

    topic: str = Field(min_length=1)
    parent_id: str | None = None


class ExpandResponse(BaseModel):
    """Outcome of an expansion plus the refreshed map."""

    succeeded: bool
    error: str | None = None
    new_node_ids: list[str] = []
    map: MapViewResponse


class ToggleResponse(BaseModel):
    node_id: str
    collapsed: bool
    map: MapViewResponse


class DeleteResponse(BaseModel):
    removed_ids: list[str]
    map: MapViewResponse


class FocusRequest(BaseModel):
    node_id: str | None = None


class LabelRequest(BaseModel):
    label: str = Field(min_length=1)


class LayoutResponse(BaseModel):
    changed: bool
    map: MapViewResponse


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    nodes: int
    busy: bool
    version: str = "0.1.0"


# ============================================================================
# Helper Functions
# ============================================================================


def get_session(request: Request) -> MapSession:
    """Get map session from app state."""
    return request.app.state.session


def to_response(view: MapView) -> MapViewResponse:
    return MapViewResponse.model_validate(view.to_dict())


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    session = get_session(request)
    return HealthResponse(status="ok", nodes=len(session.graph), busy=session.busy)


@router.get("/v1/map", response_model=MapViewResponse)
async def get_map(request: Request) -> MapViewResponse:
    return to_response(get_session(request).view())


@router.post("/v1/map/expand", response_model=ExpandResponse)
async def expand(request: Request, body: ExpandRequest) -> ExpandResponse:
    """
    Generate topics for a new root or under an existing node.

    A failed generation is not an HTTP error: the map is returned
    unchanged with succeeded=false.
    """
    session = get_session(request)
    outcome = await session.expand(body.topic, parent_id=body.parent_id)
    return ExpandResponse(
        succeeded=outcome.succeeded,
        error=outcome.error,
        new_node_ids=[n.id for n in outcome.delta.nodes],
        map=to_response(session.view()),
    )


@router.post("/v1/map/nodes/{node_id}/toggle", response_model=ToggleResponse)
async def toggle_node(request: Request, node_id: str) -> ToggleResponse:
    session = get_session(request)
    collapsed = session.toggle_collapse(node_id)
    return ToggleResponse(node_id=node_id, collapsed=collapsed, map=to_response(session.view()))


@router.delete("/v1/map/nodes/{node_id}", response_model=DeleteResponse)
async def delete_node(request: Request, node_id: str) -> DeleteResponse:
    """Delete a node and its whole branch."""
    session = get_session(request)
    removed = session.delete_branch(node_id)
    return DeleteResponse(removed_ids=sorted(removed), map=to_response(session.view()))


@router.post("/v1/map/focus", response_model=MapViewResponse)
async def set_focus(request: Request, body: FocusRequest) -> MapViewResponse:
    session = get_session(request)
    session.set_focus(body.node_id)
    return to_response(session.view())


@router.patch("/v1/map/nodes/{node_id}", response_model=MapViewResponse)
async def edit_label(request: Request, node_id: str, body: LabelRequest) -> MapViewResponse:
    session = get_session(request)
    session.edit_label(node_id, body.label)
    return to_response(session.view())


@router.post("/v1/map/nodes/{node_id}/position", response_model=MapViewResponse)
async def commit_drag(request: Request, node_id: str, body: PositionModel) -> MapViewResponse:
    session = get_session(request)
    session.commit_drag(node_id, Position(x=body.x, y=body.y))
    return to_response(session.view())


@router.post("/v1/map/layout", response_model=LayoutResponse)
async def relayout(request: Request) -> LayoutResponse:
    session = get_session(request)
    changed = session.relayout()
    return LayoutResponse(changed=changed, map=to_response(session.view()))


@router.post("/v1/map/reset", response_model=MapViewResponse)
async def reset(request: Request) -> MapViewResponse:
    session = get_session(request)
    session.reset()
    logger.info("Map reset via API")
    return to_response(session.view())
