"""
FastAPI routes for the production pipeline.

Settings Endpoints:
  GET  /settings                       - Configured keys and model selection
  PUT  /settings                       - Update keys (persisted) and selections

Production Endpoints:
  POST  /production/start              - Analyze product URL + generate storyboard
  GET   /production/storyboard         - Current product and storyboard
  PATCH /production/scenes/{index}     - Edit one scene field
  POST  /production/execute            - Render all scenes, then assemble
  POST  /production/cancel             - Stop a running render
  GET   /production/status             - Current ProductionSnapshot
  GET   /production/master             - Download the master video
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse

from ..errors import InvalidStateError
from .models import (
    ProductionSnapshot,
    SceneUpdateRequest,
    SettingsRequest,
    SettingsResponse,
    StartRequest,
)
from .orchestrator import ProductionOrchestrator

logger = logging.getLogger(__name__)


def get_orchestrator(request: Request) -> ProductionOrchestrator:
    return request.app.state.orchestrator


# ═════════════════════════════════════════════════════════════════════════════
# Settings Router
# ═════════════════════════════════════════════════════════════════════════════

settings_router = APIRouter(prefix="/settings", tags=["settings"])


def _settings_response(orchestrator: ProductionOrchestrator) -> SettingsResponse:
    session = orchestrator.session
    return SettingsResponse(
        configured=session.configured(),
        reasoning_model=session.reasoning_model,
        video_model=session.video_model,
        aspect_ratio=session.aspect_ratio,
        resolution=session.resolution,
    )


@settings_router.get("", response_model=SettingsResponse)
async def get_settings(orchestrator: ProductionOrchestrator = Depends(get_orchestrator)):
    return _settings_response(orchestrator)


@settings_router.put("", response_model=SettingsResponse)
async def update_settings(
    request: SettingsRequest,
    orchestrator: ProductionOrchestrator = Depends(get_orchestrator),
):
    """Keys are persisted; selections last for the session."""
    session = orchestrator.session
    try:
        if request.credentials is not None:
            session.update_credentials(request.credentials)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if request.reasoning_model is not None:
        session.reasoning_model = request.reasoning_model
    if request.video_model is not None:
        session.video_model = request.video_model
    if request.aspect_ratio is not None:
        session.aspect_ratio = request.aspect_ratio
    if request.resolution is not None:
        session.resolution = request.resolution

    return _settings_response(orchestrator)


# ═════════════════════════════════════════════════════════════════════════════
# Production Router
# ═════════════════════════════════════════════════════════════════════════════

production_router = APIRouter(prefix="/production", tags=["production"])


@production_router.post("/start", response_model=ProductionSnapshot)
async def start_production(
    request: StartRequest,
    orchestrator: ProductionOrchestrator = Depends(get_orchestrator),
):
    """
    Kick off analysis + storyboard in the background.

    Errors:
      - 412: No reasoning key configured (configure in /settings first)
      - 409: A phase is already running
    """
    orchestrator.session.reference_image = request.reference_image
    try:
        snapshot = orchestrator.start_background(request.url)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if snapshot.configuration_required:
        raise HTTPException(status_code=412, detail="Configure a Gemini API key in /settings first")
    return snapshot


@production_router.get("/storyboard")
async def get_storyboard(orchestrator: ProductionOrchestrator = Depends(get_orchestrator)):
    session = orchestrator.session
    if session.storyboard is None:
        raise HTTPException(status_code=404, detail="No storyboard yet")
    return {
        "product": session.product.model_dump(exclude={"image_url"}) if session.product else None,
        "storyboard": session.storyboard.model_dump(mode="json"),
    }


@production_router.patch("/scenes/{index}")
async def update_scene(
    index: int,
    request: SceneUpdateRequest,
    orchestrator: ProductionOrchestrator = Depends(get_orchestrator),
):
    """
    Edit one field of one scene.

    Errors:
      - 400: Bad index, field or transition value
      - 409: A phase is running
    """
    try:
        storyboard = orchestrator.update_scene(index, request.field, request.value)
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (IndexError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return storyboard.scenes[index].model_dump(mode="json")


@production_router.post("/execute", response_model=ProductionSnapshot)
async def execute_production(orchestrator: ProductionOrchestrator = Depends(get_orchestrator)):
    """Render all scenes sequentially, then assemble (async)."""
    try:
        return orchestrator.execute_background()
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


@production_router.post("/cancel")
async def cancel_production(orchestrator: ProductionOrchestrator = Depends(get_orchestrator)):
    return {"cancelled": orchestrator.cancel()}


@production_router.get("/status", response_model=ProductionSnapshot)
async def get_status(orchestrator: ProductionOrchestrator = Depends(get_orchestrator)):
    return orchestrator.snapshot()


@production_router.get("/master")
async def download_master(orchestrator: ProductionOrchestrator = Depends(get_orchestrator)):
    master = orchestrator.snapshot().master
    if master is None or not Path(master.path).exists():
        raise HTTPException(status_code=404, detail="No master video yet")
    return FileResponse(master.path, media_type="video/mp4", filename="master.mp4")
