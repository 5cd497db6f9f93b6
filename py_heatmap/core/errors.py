"""Exceptions raised by the heightfield core."""


class HeatmapError(Exception):
    """Base class for heightfield errors."""


class OutOfBoundsError(HeatmapError, IndexError):
    """Grid access outside [0, height) x [0, width)."""

    def __init__(self, row: int, col: int, width: int, height: int):
        self.row = row
        self.col = col
        self.width = width
        self.height = height
        super().__init__(
            f"Cell ({row}, {col}) is outside a {width}x{height} grid"
        )


class DimensionMismatchError(HeatmapError, ValueError):
    """Grid dimensions unusable for the requested operation."""


class GenerationInProgressError(HeatmapError, RuntimeError):
    """An edit was attempted while a terrain generation owns the grid."""
