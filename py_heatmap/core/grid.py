"""
Intensity grid storage.

The grid is the authoritative numeric heightfield: a fixed-size, row-major
array of floats backed by NumPy. All writes go through the clamping policy so
that interactive edits stay inside [0, 1] while generation can temporarily
store raw values.
"""

from typing import Optional, Tuple

import numpy as np
import structlog

from .easing import lerp
from .errors import DimensionMismatchError, OutOfBoundsError

logger = structlog.get_logger()


class Grid:
    """
    Fixed-size 2D array of float32 intensities.

    Cells are addressed as ``(row, col)``; ``row`` runs over ``height`` and
    ``col`` over ``width``. Resizing is not supported, a new grid has to be
    created instead.
    """

    def __init__(
        self, width: int, height: int, fill_value: float = 0.0, clamping: bool = True
    ):
        """
        Create a grid.

        Args:
            width: Number of columns, must be positive
            height: Number of rows, must be positive
            fill_value: Initial value of every cell
            clamping: Whether writes are clamped into [0, 1]
        """
        if width <= 0 or height <= 0:
            raise DimensionMismatchError(
                f"Grid dimensions must be positive, got {width}x{height}"
            )

        self._width = int(width)
        self._height = int(height)
        self.clamping = clamping
        self._cells = np.zeros((self._height, self._width), dtype=np.float32)
        self.fill(fill_value)

    @classmethod
    def from_array(cls, values: np.ndarray, clamping: bool = True) -> "Grid":
        """Build a grid from a 2D array shaped (height, width)."""
        values = np.asarray(values, dtype=np.float32)
        if values.ndim != 2:
            raise DimensionMismatchError(
                f"Expected a 2D array, got shape {values.shape}"
            )
        height, width = values.shape
        grid = cls(width, height, clamping=clamping)
        grid.set_region(0, 0, values)
        return grid

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._height, self._width)

    @property
    def size(self) -> int:
        return self._width * self._height

    def _check_bounds(self, row: int, col: int) -> None:
        if not (0 <= row < self._height and 0 <= col < self._width):
            raise OutOfBoundsError(row, col, self._width, self._height)

    def _limit(self, values):
        if self.clamping:
            return np.clip(values, 0.0, 1.0)
        return values

    def get(self, row: int, col: int) -> float:
        """Read one cell."""
        self._check_bounds(row, col)
        return float(self._cells[row, col])

    def set(self, row: int, col: int, value: float) -> None:
        """Write one cell, clamped into [0, 1] while clamping is enabled."""
        self._check_bounds(row, col)
        self._cells[row, col] = self._limit(value)

    def __getitem__(self, key: Tuple[int, int]) -> float:
        row, col = key
        return self.get(row, col)

    def __setitem__(self, key: Tuple[int, int], value: float) -> None:
        row, col = key
        self.set(row, col, value)

    def fill(self, value: float) -> None:
        """Overwrite every cell with value."""
        self._cells.fill(self._limit(value))

    def region(self, min_row: int, max_row: int, min_col: int, max_col: int) -> np.ndarray:
        """Return a copy of the inclusive block [min_row, max_row] x [min_col, max_col]."""
        self._check_bounds(min_row, min_col)
        self._check_bounds(max_row, max_col)
        return self._cells[min_row : max_row + 1, min_col : max_col + 1].copy()

    def set_region(
        self, min_row: int, min_col: int, values: np.ndarray, mask: Optional[np.ndarray] = None
    ) -> None:
        """
        Write a block of values whose top-left corner is (min_row, min_col).

        When mask is given only the cells where it is True are written; the
        rest of the block keeps its current contents.
        """
        values = np.asarray(values, dtype=np.float32)
        rows, cols = values.shape
        self._check_bounds(min_row, min_col)
        self._check_bounds(min_row + rows - 1, min_col + cols - 1)
        target = self._cells[min_row : min_row + rows, min_col : min_col + cols]
        if mask is None:
            target[...] = self._limit(values)
        else:
            target[mask] = self._limit(values[mask])

    def min_max(self) -> Tuple[float, float]:
        """Smallest and largest cell values."""
        return float(self._cells.min()), float(self._cells.max())

    def normalize(self, target_min: float = 0.0, target_max: float = 1.0) -> None:
        """
        Linearly remap the grid so its data range becomes [target_min, target_max].

        A flat grid has no range to stretch; every cell is set to target_min.
        """
        data_min, data_max = self.min_max()
        data_range = data_max - data_min

        if data_range == 0:
            logger.debug(
                "Degenerate normalization, grid is flat",
                value=data_min,
                target_min=target_min,
            )
            self._cells.fill(self._limit(target_min))
            return

        t = (self._cells - data_min) / data_range
        self._cells[:] = self._limit(lerp(target_min, target_max, t))

    def to_array(self) -> np.ndarray:
        """Copy of the cell data shaped (height, width)."""
        return self._cells.copy()

    def as_alpha_map(self) -> np.ndarray:
        """Cells as uint8 intensities in 0..255."""
        return np.rint(np.clip(self._cells, 0.0, 1.0) * 255).astype(np.uint8)

    def __repr__(self) -> str:
        return f"Grid(width={self._width}, height={self._height}, clamping={self.clamping})"
