"""
Radial brush (pen) editing.

A pen adds a radially attenuated offset to every cell within its radius.
The offset is max_effect at the center and eases to min_effect on the rim,
so positive and negative max_effect values give "raise" and "lower" brushes
sharing one formula.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from .easing import lerp, smoothstep
from .grid import Grid

DEFAULT_RADIUS = 15.0
DEFAULT_PRESSURE = 0.03


@dataclass
class Pen:
    """
    Stateless brush parameters.

    Attributes:
        radius: Footprint radius in cells
        min_effect: Offset added on the rim of the footprint
        max_effect: Offset added at the center of the footprint
        falloff: Easing applied to the normalized squared distance
    """

    radius: float
    min_effect: float
    max_effect: float
    falloff: Callable = field(default=smoothstep, repr=False)

    def __post_init__(self):
        if self.radius <= 0:
            raise ValueError(f"Pen radius must be positive, got {self.radius}")

    @classmethod
    def additive(cls, radius: float = DEFAULT_RADIUS, pressure: float = DEFAULT_PRESSURE) -> "Pen":
        """Brush that raises the heightfield."""
        return cls(radius, 0.0, abs(pressure))

    @classmethod
    def subtractive(cls, radius: float = DEFAULT_RADIUS, pressure: float = DEFAULT_PRESSURE) -> "Pen":
        """Brush that lowers the heightfield."""
        return cls(radius, 0.0, -abs(pressure))

    def bounding_box(self, grid: Grid, center: Sequence[float]):
        """
        Inclusive cell bounds ``(min_x, max_x, min_y, max_y)`` that can lie within the radius.

        The lower bound is biased inward by half a cell: for x=5.5, r=3 the
        column 2 is 3.5 away and is skipped, column 3 is kept.
        """
        x, y = center
        min_x = max(math.floor(0.5 + x - self.radius), 0)
        min_y = max(math.floor(0.5 + y - self.radius), 0)
        max_x = min(math.floor(x + self.radius), grid.width - 1)
        max_y = min(math.floor(y + self.radius), grid.height - 1)
        return min_x, max_x, min_y, max_y

    def apply(self, grid: Grid, center: Sequence[float]) -> int:
        """
        Apply the brush to grid around center.

        Args:
            grid: Grid to modify in place
            center: (x, y) position, x along columns and y along rows

        Returns:
            Number of cells modified
        """
        min_x, max_x, min_y, max_y = self.bounding_box(grid, center)
        if min_x > max_x or min_y > max_y:
            return 0

        x, y = center
        rows, cols = np.mgrid[min_y : max_y + 1, min_x : max_x + 1]
        dist2 = (x - cols) ** 2 + (y - rows) ** 2
        radius2 = self.radius * self.radius

        inside = dist2 <= radius2
        if not inside.any():
            return 0

        pct = self.falloff(dist2 / radius2)
        offset = lerp(self.min_effect, self.max_effect, 1 - pct)

        block = grid.region(min_y, max_y, min_x, max_x)
        grid.set_region(min_y, min_x, block + offset, mask=inside)

        return int(inside.sum())
