"""
Brush settings for the heightfield editor.

This module defines validated brush parameter sets and the named presets
exposed by the editing API.
"""

from typing import Dict

from pydantic import BaseModel, Field

from .config import settings
from ..core.brush import Pen


class BrushSettings(BaseModel):
    """Parameters of one brush."""

    radius: float = Field(gt=0, description="Footprint radius in cells")
    min_effect: float = Field(default=0.0, description="Offset added on the rim")
    max_effect: float = Field(description="Offset added at the center")

    def to_pen(self) -> Pen:
        return Pen(self.radius, self.min_effect, self.max_effect)


BRUSH_PRESETS: Dict[str, BrushSettings] = {
    "add": BrushSettings(
        radius=settings.brush_radius, min_effect=0.0, max_effect=abs(settings.brush_pressure)
    ),
    "subtract": BrushSettings(
        radius=settings.brush_radius, min_effect=0.0, max_effect=-abs(settings.brush_pressure)
    ),
    # Wide, gentle lowering for smoothing peaks
    "flatten-soft": BrushSettings(
        radius=settings.brush_radius * 2, min_effect=0.0, max_effect=-abs(settings.brush_pressure) / 3
    ),
}


def get_preset(name: str) -> BrushSettings:
    """Look up a preset by name, raising KeyError for unknown names."""
    if name not in BRUSH_PRESETS:
        raise KeyError(f"Unknown brush preset '{name}'")
    return BRUSH_PRESETS[name]


def list_presets() -> list:
    return list(BRUSH_PRESETS.keys())
