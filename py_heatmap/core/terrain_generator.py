"""
Diamond-square terrain generation.

This module fills a Grid with a tileable fractal heightfield. Edges wrap
around: row 0 equals row height-1 and column 0 equals column width-1 once
generation completes, so the result tiles seamlessly.

Generation can run synchronously (``generate``) or on a background thread
(``generate_async``). Only one background run per generator is allowed;
further requests are dropped while one is in flight.
"""

import threading
from typing import Callable, Optional

import numpy as np
import structlog

from .easing import lerp
from .errors import DimensionMismatchError
from .grid import Grid

logger = structlog.get_logger()

NoiseFunction = Callable[[float, float, int], float]


def damped_noise(rng: np.random.Generator) -> NoiseFunction:
    """
    Noise whose amplitude halves with every subdivision level.

    Args:
        rng: Random stream, see ``py_heatmap.utils.random.make_rng``

    Returns:
        Function (min, max, iteration) -> float
    """

    def noise(min_val: float, max_val: float, iteration: int) -> float:
        decay = 2.0 ** -iteration
        return lerp(min_val * decay, max_val * decay, rng.random())

    return noise


def constant_noise(value: float) -> NoiseFunction:
    """Noise that always returns value. Used for reproducible traces."""

    def noise(min_val: float, max_val: float, iteration: int) -> float:
        return value

    return noise


def is_power_of_two_plus_one(n: int) -> bool:
    """True for 2, 3, 5, 9, 17, ..."""
    m = n - 1
    return m >= 1 and (m & (m - 1)) == 0


class TerrainGenerator:
    """
    Diamond-square heightfield generator.

    The generator itself holds no grid; it tracks whether a background run
    is active so that at most one generation writes at a time.
    """

    def __init__(self, allow_irregular: bool = False):
        """
        Args:
            allow_irregular: Run on grids whose sides are not 2^n + 1. The
                subdivision may then stop before single-cell resolution and
                leave some cells at 0.
        """
        self.allow_irregular = allow_irregular
        self.last_error: Optional[BaseException] = None
        self._generating = False
        self._state_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_generating(self) -> bool:
        return self._generating

    def check_dimensions(self, width: int, height: int) -> None:
        """Raise DimensionMismatchError unless both sides are 2^n + 1."""
        if min(width, height) < 2:
            raise DimensionMismatchError(
                f"Diamond-square needs at least 2 cells per side, got {width}x{height}"
            )
        if is_power_of_two_plus_one(width) and is_power_of_two_plus_one(height):
            return
        if self.allow_irregular:
            logger.warning(
                "Grid is not 2^n+1, subdivision may stop early",
                width=width,
                height=height,
            )
            return
        raise DimensionMismatchError(
            f"Diamond-square needs 2^n+1 sides, got {width}x{height}"
        )

    def generate(self, grid: Grid, noise: NoiseFunction) -> None:
        """
        Run diamond-square synchronously over grid.

        If the noise function raises, the grid is put back to its previous
        contents before the error propagates.

        Args:
            grid: Grid to overwrite
            noise: Function (min, max, iteration) -> float
        """
        self.check_dimensions(grid.width, grid.height)

        previous = grid.to_array()
        grid.fill(0.0)
        grid.clamping = False
        try:
            self._diamond_square(grid, noise)
            grid.normalize(0.0, 1.0)
        except Exception:
            grid.set_region(0, 0, previous)
            raise
        finally:
            grid.clamping = True

    def _diamond_square(self, grid: Grid, noise: NoiseFunction) -> None:
        width, height = grid.width, grid.height
        last_row, last_col = height - 1, width - 1
        side = min(width, height) - 1

        corner = noise(-1.0, 1.0, 0)
        for row in range(0, height, side):
            for col in range(0, width, side):
                grid.set(row, col, corner)

        offset = 1
        squares = 1
        while side > 1:
            half = side // 2
            corners_y = range(0, last_row - side + 1, side)
            corners_x = range(0, last_col - side + 1, side)

            # Diamond step: square centers
            for y0 in corners_y:
                for x0 in corners_x:
                    average = (
                        grid.get(y0, x0)
                        + grid.get(y0, x0 + side)
                        + grid.get(y0 + side, x0)
                        + grid.get(y0 + side, x0 + side)
                    ) / 4
                    grid.set(y0 + half, x0 + half, average + noise(-1.0, 1.0, offset))

            # Square step: top and left edge midpoints of every square.
            # Bottom/right edges are the next square's top/left or the
            # mirrored grid boundary.
            for y0 in corners_y:
                for x0 in corners_x:
                    mid_x = x0 + half
                    above = y0 - half if y0 > 0 else last_row - half
                    average = (
                        grid.get(y0, x0)
                        + grid.get(y0, x0 + side)
                        + grid.get(y0 + half, mid_x)
                        + grid.get(above, mid_x)
                    ) / 4
                    value = average + noise(-1.0, 1.0, offset)
                    grid.set(y0, mid_x, value)
                    if y0 == 0:
                        grid.set(last_row, mid_x, value)

                    mid_y = y0 + half
                    left = x0 - half if x0 > 0 else last_col - half
                    average = (
                        grid.get(y0, x0)
                        + grid.get(y0 + side, x0)
                        + grid.get(mid_y, x0 + half)
                        + grid.get(mid_y, left)
                    ) / 4
                    value = average + noise(-1.0, 1.0, offset)
                    grid.set(mid_y, x0, value)
                    if x0 == 0:
                        grid.set(mid_y, last_col, value)

            side //= 2
            squares *= 2
            offset += 1

        logger.debug("Diamond-square finished", levels=offset - 1, squares=squares)

    def generate_async(
        self,
        grid: Grid,
        noise: NoiseFunction,
        on_complete: Optional[Callable[[], None]] = None,
        guard: Optional[threading.RLock] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> bool:
        """
        Start a background generation unless one is already running.

        Args:
            grid: Grid to overwrite
            noise: Function (min, max, iteration) -> float
            on_complete: Called on the worker thread after a successful run
            guard: Lock held by the worker for the whole run
            on_error: Called on the worker thread with the exception of a
                failed run

        Returns:
            True if a run was started, False if the request was dropped
        """
        with self._state_lock:
            if self._generating:
                logger.debug("Generation already in flight, request dropped")
                return False
            # Fail fast on the caller's thread rather than inside the worker
            self.check_dimensions(grid.width, grid.height)
            self._generating = True

        self.last_error = None
        self._thread = threading.Thread(
            target=self._run,
            args=(grid, noise, on_complete, guard, on_error),
            name="terrain-generator",
            daemon=True,
        )
        self._thread.start()
        logger.info("Terrain generation started", width=grid.width, height=grid.height)
        return True

    def _run(self, grid, noise, on_complete, guard, on_error):
        try:
            if guard is not None:
                with guard:
                    self.generate(grid, noise)
            else:
                self.generate(grid, noise)
            logger.info("Terrain generation completed")
            if on_complete is not None:
                on_complete()
        except Exception as e:
            self.last_error = e
            logger.error("Terrain generation failed", error=str(e))
            if on_error is not None:
                on_error(e)
        finally:
            with self._state_lock:
                self._generating = False

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the background run ends. Meant for shutdown and tests;
        interactive callers poll ``is_generating`` instead.

        Returns:
            True if no run is active afterwards
        """
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        return not self._generating
