"""
Color maps for the colorized derived view.

A color map is any callable taking an array of intensities in [0, 1] and
returning RGBA bytes with one extra trailing axis of length 4. Matplotlib
colormaps called with ``bytes=True`` have the same shape, so they can be
wrapped with ``functools.partial`` and registered on a session as well.
"""

from typing import Sequence, Tuple

import numpy as np

Color = Tuple[int, int, int, int]


class GradientColorMap:
    """Piecewise-linear gradient baked into a 256-entry lookup table."""

    def __init__(self, name: str, stops: Sequence[Tuple[float, Color]]):
        """
        Args:
            name: Display name
            stops: (position, rgba) pairs, positions ascending in [0, 1]
        """
        if len(stops) < 2:
            raise ValueError("A gradient needs at least two stops")

        self.name = name
        positions = np.array([p for p, _ in stops], dtype=np.float64)
        colors = np.array([c for _, c in stops], dtype=np.float64)
        if np.any(np.diff(positions) < 0):
            raise ValueError("Gradient stops must be sorted by position")

        samples = np.linspace(0.0, 1.0, 256)
        self.lut = np.stack(
            [np.interp(samples, positions, colors[:, channel]) for channel in range(4)],
            axis=-1,
        ).round().astype(np.uint8)

    def __call__(self, values: np.ndarray) -> np.ndarray:
        indices = np.rint(np.clip(values, 0.0, 1.0) * 255).astype(np.intp)
        return self.lut[indices]

    def __repr__(self) -> str:
        return f"GradientColorMap({self.name!r})"


DEFAULT_COLOR_MAP = GradientColorMap(
    "heat",
    [
        (0.0, (0, 0, 128, 255)),
        (0.25, (0, 128, 255, 255)),
        (0.5, (0, 200, 80, 255)),
        (0.75, (255, 220, 0, 255)),
        (1.0, (200, 0, 0, 255)),
    ],
)

GRAYSCALE = GradientColorMap("grayscale", [(0.0, (0, 0, 0, 255)), (1.0, (255, 255, 255, 255))])

BUILTIN_COLOR_MAPS = {cmap.name: cmap for cmap in (DEFAULT_COLOR_MAP, GRAYSCALE)}


def get_color_map(name: str) -> GradientColorMap:
    """Look up a built-in color map by name, raising KeyError for unknown names."""
    if name not in BUILTIN_COLOR_MAPS:
        raise KeyError(f"Unknown color map '{name}'")
    return BUILTIN_COLOR_MAPS[name]
