"""
Heightfield editing API endpoints.

This module provides endpoints for editing a session's grid:
- Reading and writing single cells
- Brush strokes using named presets or explicit parameters
- Bulk fill
- Color map registration and selection

Edits are rejected with 409 while a terrain generation is running.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..config.editor_settings import BrushSettings, get_preset
from ..core.color_maps import get_color_map
from .registry import core_errors, registry

logger = structlog.get_logger()

router = APIRouter(prefix="/sessions/{session_id}/edit", tags=["Editor"])


# Pydantic models for editing operations
class EditResponse(BaseModel):
    """Standard response for editing operations."""

    success: bool = Field(description="Whether the operation succeeded")
    message: str = Field(description="Human-readable message")
    affected_count: int = Field(default=0, description="Number of cells affected")


class CellValue(BaseModel):
    row: int
    col: int
    value: float


class CellWrite(BaseModel):
    value: float = Field(description="New value, clamped into [0, 1]")


class BrushStroke(BaseModel):
    """Brush application at one position."""

    x: float = Field(description="Column coordinate of the brush center")
    y: float = Field(description="Row coordinate of the brush center")
    preset: Optional[str] = Field(default=None, description="Named preset: add, subtract, flatten-soft")
    radius: Optional[float] = Field(default=None, gt=0, description="Brush radius in cells")
    min_effect: float = Field(default=0.0, description="Offset on the rim")
    max_effect: Optional[float] = Field(default=None, description="Offset at the center")


class FillRequest(BaseModel):
    value: float = Field(ge=0.0, le=1.0, description="Value written to every cell")


class ColorMapSelect(BaseModel):
    index: int = Field(description="Color map index, wrapped modulo the number of maps")


class ColorMapAdd(BaseModel):
    name: str = Field(description="Built-in color map name: heat, grayscale")


class ColorMapState(BaseModel):
    """Registered color maps and the selected index."""

    color_map_index: int
    color_maps: List[str]


def color_map_state(session) -> ColorMapState:
    return ColorMapState(
        color_map_index=session.color_map_index,
        color_maps=[getattr(cmap, "name", repr(cmap)) for cmap in session.color_maps],
    )


def resolve_color_map(name: str):
    try:
        return get_color_map(name)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e.args[0]))


def resolve_brush(stroke: BrushStroke) -> BrushSettings:
    """Preset lookup or explicit parameters."""
    if stroke.preset is not None:
        try:
            return get_preset(stroke.preset)
        except KeyError as e:
            raise HTTPException(status_code=400, detail=str(e.args[0]))

    if stroke.radius is None or stroke.max_effect is None:
        raise HTTPException(
            status_code=400,
            detail="Either preset or radius and max_effect are required",
        )
    return BrushSettings(
        radius=stroke.radius, min_effect=stroke.min_effect, max_effect=stroke.max_effect
    )


@router.get("/cells/{row}/{col}", response_model=CellValue)
async def read_cell(session_id: str, row: int, col: int):
    """Read one cell."""
    session = registry.get(session_id)
    with core_errors():
        value = session.get(row, col)
    return CellValue(row=row, col=col, value=value)


@router.put("/cells/{row}/{col}", response_model=CellValue)
async def write_cell(session_id: str, row: int, col: int, request: CellWrite):
    """Write one cell."""
    session = registry.get(session_id)
    with core_errors():
        session.set(row, col, request.value)
        value = session.get(row, col)
    return CellValue(row=row, col=col, value=value)


@router.post("/brush", response_model=EditResponse)
async def apply_brush(session_id: str, stroke: BrushStroke):
    """Apply a brush stroke centered at (x, y)."""
    session = registry.get(session_id)
    brush = resolve_brush(stroke)
    logger.debug("Brush stroke", session_id=session_id, x=stroke.x, y=stroke.y, radius=brush.radius)

    with core_errors():
        affected = session.apply_brush(brush.to_pen(), (stroke.x, stroke.y))

    return EditResponse(
        success=True,
        message=f"Brush modified {affected} cells",
        affected_count=affected,
    )


@router.post("/fill", response_model=EditResponse)
async def fill_grid(session_id: str, request: FillRequest):
    """Set every cell to one value."""
    session = registry.get(session_id)
    with core_errors():
        session.fill(request.value)
    return EditResponse(
        success=True,
        message=f"Grid filled with {request.value}",
        affected_count=session.width * session.height,
    )


@router.get("/color-maps", response_model=ColorMapState)
async def list_color_maps(session_id: str):
    """Color maps registered on the session."""
    return color_map_state(registry.get(session_id))


@router.post("/color-maps", response_model=ColorMapState)
async def add_color_map(session_id: str, request: ColorMapAdd):
    """Register a built-in color map on the session."""
    session = registry.get(session_id)
    session.add_color_map(resolve_color_map(request.name))
    return color_map_state(session)


@router.delete("/color-maps/{name}", response_model=ColorMapState)
async def remove_color_map(session_id: str, name: str):
    """Unregister a built-in color map; maps not registered are ignored."""
    session = registry.get(session_id)
    session.remove_color_map(resolve_color_map(name))
    return color_map_state(session)


@router.put("/color-map", response_model=ColorMapState)
async def select_color_map(session_id: str, request: ColorMapSelect):
    """Select the color map used by the colored view."""
    session = registry.get(session_id)
    session.color_map_index = request.index
    return color_map_state(session)
