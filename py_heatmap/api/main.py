"""FastAPI main application."""

from typing import List, Optional

import structlog
from fastapi import FastAPI, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..config import configure_logging, list_presets, settings, get_preset
from ..core.color_maps import BUILTIN_COLOR_MAPS
from ..core.session import HeightfieldSession
from ..utils.random import new_seed
from .editor import router as editor_router
from .registry import registry

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

app = FastAPI(
    title="Heatmap Heightfield API",
    description="Diamond-square heightfield generation and brush editing",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(editor_router)


# Request/Response models
class SessionCreateRequest(BaseModel):
    """Request to create a new heightfield session."""

    width: Optional[int] = Field(None, ge=2, le=settings.max_grid_size, description="Grid width")
    height: Optional[int] = Field(None, ge=2, le=settings.max_grid_size, description="Grid height")
    resolution: Optional[int] = Field(
        None, ge=1, le=12, description="Square grid of side 2^resolution + 1; overrides width/height"
    )
    fill_value: float = Field(0.0, ge=0.0, le=1.0, description="Initial cell value")


class SessionStatus(BaseModel):
    """Status of a heightfield session."""

    session_id: str
    width: int
    height: int
    dirty: bool
    generating: bool
    color_map_index: int
    last_error: Optional[str] = None


class GenerateRequest(BaseModel):
    """Request to regenerate the grid."""

    seed: Optional[str] = Field(None, description="Seed for reproducible terrain")


class GenerateResponse(BaseModel):
    accepted: bool
    seed: str
    message: str


class ViewResponse(BaseModel):
    """Derived view of the grid as nested lists."""

    session_id: str
    colored: bool
    generating: bool
    width: int
    height: int
    data: list


def session_status(session_id: str, session: HeightfieldSession) -> SessionStatus:
    error = session.last_generation_error
    return SessionStatus(
        session_id=session_id,
        width=session.width,
        height=session.height,
        dirty=session.dirty,
        generating=session.is_generating,
        color_map_index=session.color_map_index,
        last_error=str(error) if error is not None else None,
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Let running generations finish before exit."""
    logger.info("Shutting down heightfield API")
    if not await run_in_threadpool(registry.wait_all, 5.0):
        logger.warning("Generations still running at shutdown")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Heatmap Heightfield API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "sessions": len(registry.items())}


@app.get("/brush-presets")
async def brush_presets():
    """Named brush presets usable in brush edits."""
    return {name: get_preset(name).model_dump() for name in list_presets()}


@app.get("/color-maps", response_model=List[str])
async def builtin_color_maps():
    """Color map names that can be registered on a session."""
    return list(BUILTIN_COLOR_MAPS.keys())


@app.post("/sessions", response_model=SessionStatus, status_code=201)
async def create_session(request: SessionCreateRequest):
    """Create a session with a flat grid."""
    if request.resolution is not None:
        width = height = 2**request.resolution + 1
    else:
        width = request.width or settings.default_size
        height = request.height or settings.default_size

    session_id, session = registry.create(
        width, height, request.fill_value, settings.strict_dimensions
    )
    return session_status(session_id, session)


@app.get("/sessions", response_model=List[SessionStatus])
async def list_sessions():
    """List all live sessions."""
    return [session_status(sid, session) for sid, session in registry.items()]


@app.get("/sessions/{session_id}", response_model=SessionStatus)
async def get_session(session_id: str):
    """Get session status. Poll this until generating is false."""
    return session_status(session_id, registry.get(session_id))


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    """Discard a session and its grid."""
    registry.delete(session_id)
    return Response(status_code=204)


@app.post("/sessions/{session_id}/generate", response_model=GenerateResponse)
async def generate_terrain(session_id: str, request: GenerateRequest, response: Response):
    """
    Start diamond-square generation in the background.

    Returns 202 when a run started. A request made while a run is in flight
    is dropped and answered with 200 and accepted=false.
    """
    session = registry.get(session_id)
    seed = request.seed or new_seed()
    logger.info("Generation requested", session_id=session_id, seed=seed)

    accepted = session.generate(seed=seed)
    if accepted:
        response.status_code = 202
        message = "Terrain generation started"
    else:
        message = "Terrain generation already running, request dropped"

    return GenerateResponse(accepted=accepted, seed=seed, message=message)


@app.get("/sessions/{session_id}/view", response_model=ViewResponse)
async def get_view(session_id: str, colored: bool = False):
    """
    Derived view of the grid.

    While a generation runs the last computed view is returned unchanged.
    """
    session = registry.get(session_id)
    view = session.get_derived_view(colored)
    return ViewResponse(
        session_id=session_id,
        colored=colored,
        generating=session.is_generating,
        width=session.width,
        height=session.height,
        data=view.tolist(),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
