"""
Heightfield session.

The session owns one Grid and coordinates everything that touches it: brush
edits, background terrain generation and the cached derived views handed to
a renderer. A re-entrant lock guards the grid; background generation holds it
for the whole run and edits are rejected while a run is in flight.
"""

import threading
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from .brush import Pen
from .color_maps import DEFAULT_COLOR_MAP
from .errors import GenerationInProgressError
from .grid import Grid
from .terrain_generator import NoiseFunction, TerrainGenerator, damped_noise
from ..utils.random import make_rng

logger = structlog.get_logger()

ColorMap = Callable[[np.ndarray], np.ndarray]


class HeightfieldSession:
    """
    Grid plus dirty tracking, generation state and derived-view caches.

    Typical use from an interactive loop::

        session = HeightfieldSession(129, 129)
        session.generate(seed="alpha")
        ...
        if not session.is_generating:
            session.apply_brush(Pen.additive(), (64.0, 64.0))
            image = session.get_derived_view(colored=True)
    """

    def __init__(
        self,
        width: int,
        height: int,
        fill_value: float = 0.0,
        strict_dimensions: bool = True,
    ):
        """
        Args:
            width: Grid width, 2^n + 1 recommended
            height: Grid height, 2^n + 1 recommended
            fill_value: Initial cell value
            strict_dimensions: Reject sizes diamond-square cannot subdivide
                exactly (raises DimensionMismatchError)
        """
        self._generator = TerrainGenerator(allow_irregular=not strict_dimensions)
        if strict_dimensions:
            self._generator.check_dimensions(width, height)

        self._grid = Grid(width, height, fill_value)
        self._lock = threading.RLock()
        self._dirty = True

        self._color_maps: List[ColorMap] = []
        self._color_map_index = 0

        self._intensity_cache = self._empty_view((height, width))
        self._colored_cache = self._empty_view((height, width, 4))

        logger.debug("Session created", width=width, height=height)

    @staticmethod
    def _empty_view(shape: Tuple[int, ...]) -> np.ndarray:
        view = np.zeros(shape, dtype=np.uint8)
        view.setflags(write=False)
        return view

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def width(self) -> int:
        return self._grid.width

    @property
    def height(self) -> int:
        return self._grid.height

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def is_generating(self) -> bool:
        return self._generator.is_generating

    @property
    def last_generation_error(self) -> Optional[BaseException]:
        return self._generator.last_error

    @contextmanager
    def _idle_grid(self, operation: str):
        """
        Hold the grid lock for a foreground operation.

        Never waits: a lock held by a generation run, or a run accepted but
        not yet holding the lock, raises GenerationInProgressError.
        """
        if not self._lock.acquire(blocking=False):
            raise GenerationInProgressError(
                f"Cannot {operation} while terrain generation is running"
            )
        try:
            if self._generator.is_generating:
                raise GenerationInProgressError(
                    f"Cannot {operation} while terrain generation is running"
                )
            yield self._grid
        finally:
            self._lock.release()

    # Editing

    def get(self, row: int, col: int) -> float:
        with self._idle_grid("read the grid") as grid:
            return grid.get(row, col)

    def set(self, row: int, col: int, value: float) -> None:
        with self._idle_grid("edit the grid") as grid:
            grid.set(row, col, value)
            self._dirty = True

    def fill(self, value: float) -> None:
        with self._idle_grid("fill the grid") as grid:
            grid.fill(value)
            self._dirty = True

    def apply_brush(self, pen: Pen, position: Sequence[float]) -> int:
        """
        Apply pen at position (x along columns, y along rows).

        Returns:
            Number of cells modified

        Raises:
            GenerationInProgressError: a generation owns the grid
        """
        with self._idle_grid("apply a brush") as grid:
            affected = pen.apply(grid, position)
            self._dirty = True
        return affected

    # Generation

    def generate(
        self,
        noise: Optional[NoiseFunction] = None,
        on_complete: Optional[Callable[[], None]] = None,
        seed: Optional[str] = None,
    ) -> bool:
        """
        Regenerate the grid with diamond-square on a background thread.

        Args:
            noise: Noise function; damped noise seeded from seed by default
            on_complete: Called on the worker thread once the grid is ready
            seed: Seed for the default noise function

        Returns:
            True if generation started, False if one was already running
        """
        if noise is None:
            noise = damped_noise(make_rng(seed))

        def finished():
            self._dirty = True
            if on_complete is not None:
                on_complete()

        def failed(error):
            self._dirty = True

        return self._generator.generate_async(
            self._grid, noise, on_complete=finished, guard=self._lock, on_error=failed
        )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until generation ends; True if idle afterwards."""
        return self._generator.join(timeout)

    # Derived views

    def get_derived_view(self, colored: bool = False) -> np.ndarray:
        """
        Cached renderable view of the grid.

        Recomputed only when the grid changed since the last call and no
        generation is in flight; otherwise the previous view is returned.

        Args:
            colored: RGBA view through the current color map instead of the
                grayscale intensity view

        Returns:
            Read-only uint8 array, (height, width) or (height, width, 4)
        """
        if self._dirty and self._lock.acquire(blocking=False):
            try:
                if self._dirty and not self._generator.is_generating:
                    self._render_views()
            finally:
                self._lock.release()
        return self._colored_cache if colored else self._intensity_cache

    def _render_views(self) -> None:
        intensity = self._grid.as_alpha_map()
        values = self._grid.to_array()
        self._dirty = False

        colored = np.asarray(self.current_color_map()(values), dtype=np.uint8)
        intensity.setflags(write=False)
        colored.setflags(write=False)
        self._intensity_cache = intensity
        self._colored_cache = colored

    # Color maps

    @property
    def color_maps(self) -> Tuple[ColorMap, ...]:
        return tuple(self._color_maps)

    @property
    def color_map_index(self) -> int:
        return self._color_map_index

    @color_map_index.setter
    def color_map_index(self, value: int) -> None:
        count = len(self._color_maps)
        self._color_map_index = value % count if count > 0 else 0
        self._dirty = True

    def current_color_map(self) -> ColorMap:
        """Selected color map, or the built-in gradient when none is registered."""
        if not self._color_maps:
            return DEFAULT_COLOR_MAP
        return self._color_maps[self._color_map_index]

    def add_color_map(self, color_map: ColorMap) -> None:
        self._color_maps.append(color_map)
        self._dirty = True

    def remove_color_map(self, color_map: ColorMap) -> None:
        if color_map not in self._color_maps:
            logger.debug("Color map not registered, nothing removed")
            return
        self._color_maps.remove(color_map)
        self.color_map_index = self._color_map_index

    def __repr__(self) -> str:
        return (
            f"HeightfieldSession({self.width}x{self.height}, dirty={self._dirty}, "
            f"generating={self.is_generating})"
        )


def generate_random(
    width: int,
    height: int,
    noise: Optional[NoiseFunction] = None,
    seed: Optional[str] = None,
) -> HeightfieldSession:
    """New session with a background generation already started."""
    session = HeightfieldSession(width, height)
    session.generate(noise, seed=seed)
    return session


def generate_uniform(width: int, height: int, value: float) -> HeightfieldSession:
    """New session with every cell set to value."""
    return HeightfieldSession(width, height, fill_value=value)
