"""
Tests for diamond-square terrain generation.
"""

import threading

import numpy as np
import pytest

from py_heatmap.core.errors import DimensionMismatchError
from py_heatmap.core.grid import Grid
from py_heatmap.core.terrain_generator import (
    TerrainGenerator,
    constant_noise,
    damped_noise,
    is_power_of_two_plus_one,
)
from py_heatmap.utils.random import make_rng

# Hand-traced result for a 5x5 grid with noise fixed at 0.5. Before
# normalization the grid holds 0.5, 1.0, 1.25, 1.5, 1.6875 and 1.8125,
# which map to 0, 8, 12, 16, 19 and 21 twenty-firsts.
GOLDEN_5X5 = (
    np.array(
        [
            [0, 19, 12, 19, 0],
            [19, 16, 21, 16, 19],
            [12, 21, 8, 21, 12],
            [19, 16, 21, 16, 19],
            [0, 19, 12, 19, 0],
        ],
        dtype=np.float64,
    )
    / 21.0
)


class TestNoise:
    """Noise strategies."""

    def test_constant_noise(self):
        noise = constant_noise(0.5)
        assert noise(-1, 1, 0) == 0.5
        assert noise(-1, 1, 7) == 0.5

    def test_damped_noise_amplitude_decays(self):
        noise = damped_noise(make_rng("decay"))

        for iteration in range(6):
            bound = 2.0 ** -iteration
            samples = [noise(-1.0, 1.0, iteration) for _ in range(200)]
            assert all(-bound <= s <= bound for s in samples)

    def test_damped_noise_is_reproducible(self):
        a = damped_noise(make_rng("seed-1"))
        b = damped_noise(make_rng("seed-1"))

        assert [a(-1, 1, 1) for _ in range(10)] == [b(-1, 1, 1) for _ in range(10)]

    @pytest.mark.parametrize("n,expected", [(2, True), (3, True), (5, True), (129, True),
                                            (1, False), (4, False), (6, False), (128, False)])
    def test_power_of_two_plus_one(self, n, expected):
        assert is_power_of_two_plus_one(n) is expected


class TestDiamondSquare:
    """Synchronous generation."""

    def test_golden_5x5_constant_noise(self):
        grid = Grid(5, 5)
        TerrainGenerator().generate(grid, constant_noise(0.5))

        np.testing.assert_allclose(grid.to_array(), GOLDEN_5X5, atol=1e-6)

    @pytest.mark.parametrize("size", [3, 5, 9, 17, 33, 65])
    def test_seam_continuity(self, size):
        grid = Grid(size, size)
        TerrainGenerator().generate(grid, damped_noise(make_rng(f"seam-{size}")))

        data = grid.to_array()
        np.testing.assert_array_equal(data[0, :], data[-1, :])
        np.testing.assert_array_equal(data[:, 0], data[:, -1])

    def test_output_normalized(self):
        grid = Grid(33, 33)
        TerrainGenerator().generate(grid, damped_noise(make_rng("range")))

        lo, hi = grid.min_max()
        assert lo == pytest.approx(0.0, abs=1e-6)
        assert hi == pytest.approx(1.0, abs=1e-6)
        assert grid.clamping is True

    def test_same_seed_same_terrain(self):
        a, b = Grid(17, 17), Grid(17, 17)
        TerrainGenerator().generate(a, damped_noise(make_rng("repeat")))
        TerrainGenerator().generate(b, damped_noise(make_rng("repeat")))

        np.testing.assert_array_equal(a.to_array(), b.to_array())

    def test_previous_contents_discarded(self):
        grid = Grid(5, 5, fill_value=0.9)
        TerrainGenerator().generate(grid, constant_noise(0.5))

        np.testing.assert_allclose(grid.to_array(), GOLDEN_5X5, atol=1e-6)

    def test_rectangular_power_of_two_grid(self):
        grid = Grid(9, 5)
        TerrainGenerator().generate(grid, damped_noise(make_rng("rect")))

        data = grid.to_array()
        np.testing.assert_array_equal(data[0, :], data[-1, :])
        np.testing.assert_array_equal(data[:, 0], data[:, -1])

    def test_dimension_mismatch(self):
        grid = Grid(10, 10)

        with pytest.raises(DimensionMismatchError):
            TerrainGenerator().generate(grid, constant_noise(0.5))

    def test_irregular_dimensions_allowed(self):
        grid = Grid(7, 7)
        TerrainGenerator(allow_irregular=True).generate(grid, damped_noise(make_rng("odd")))

        lo, hi = grid.min_max()
        assert 0.0 <= lo <= hi <= 1.0

    def test_clamping_restored_after_failure(self):
        def broken_noise(min_val, max_val, iteration):
            if iteration > 0:
                raise RuntimeError("noise source exhausted")
            return 0.0

        grid = Grid(5, 5)
        with pytest.raises(RuntimeError):
            TerrainGenerator().generate(grid, broken_noise)

        assert grid.clamping is True

    def test_failed_run_restores_previous_contents(self):
        def broken_noise(min_val, max_val, iteration):
            if iteration >= 2:
                raise RuntimeError("noise source exhausted")
            return 0.5

        grid = Grid(5, 5, fill_value=0.3)
        with pytest.raises(RuntimeError):
            TerrainGenerator().generate(grid, broken_noise)

        lo, hi = grid.min_max()
        assert 0.0 <= lo <= hi <= 1.0
        np.testing.assert_allclose(grid.to_array(), 0.3, atol=1e-7)

    @pytest.mark.parametrize("width,height", [(1, 5), (5, 1), (1, 1)])
    def test_single_cell_side_rejected_even_when_irregular(self, width, height):
        generator = TerrainGenerator(allow_irregular=True)

        with pytest.raises(DimensionMismatchError):
            generator.generate(Grid(width, height), constant_noise(0.5))
        with pytest.raises(DimensionMismatchError):
            generator.generate_async(Grid(width, height), constant_noise(0.5))
        assert not generator.is_generating


class TestAsyncGeneration:
    """Background generation and the single in-flight rule."""

    def test_generate_async_completes(self):
        generator = TerrainGenerator()
        grid = Grid(5, 5)
        done = threading.Event()

        assert generator.generate_async(grid, constant_noise(0.5), on_complete=done.set)
        assert done.wait(timeout=5.0)
        assert generator.join(timeout=5.0)

        assert not generator.is_generating
        np.testing.assert_allclose(grid.to_array(), GOLDEN_5X5, atol=1e-6)

    def test_second_request_dropped(self):
        generator = TerrainGenerator()
        grid = Grid(5, 5)
        release = threading.Event()
        runs = []

        def blocking_noise(min_val, max_val, iteration):
            release.wait(timeout=5.0)
            return 0.5

        first = generator.generate_async(grid, blocking_noise, on_complete=lambda: runs.append(1))
        assert generator.is_generating

        second = generator.generate_async(grid, constant_noise(0.0), on_complete=lambda: runs.append(2))

        release.set()
        assert generator.join(timeout=5.0)

        assert first is True
        assert second is False
        assert runs == [1]
        np.testing.assert_allclose(grid.to_array(), GOLDEN_5X5, atol=1e-6)

    def test_request_accepted_again_after_completion(self):
        generator = TerrainGenerator()
        grid = Grid(5, 5)

        assert generator.generate_async(grid, constant_noise(0.5))
        assert generator.join(timeout=5.0)
        assert generator.generate_async(grid, constant_noise(0.5))
        assert generator.join(timeout=5.0)

    def test_failure_recorded_and_flag_cleared(self):
        generator = TerrainGenerator()
        grid = Grid(5, 5)
        completed = []

        def broken_noise(min_val, max_val, iteration):
            raise ValueError("bad noise")

        assert generator.generate_async(grid, broken_noise, on_complete=lambda: completed.append(True))
        assert generator.join(timeout=5.0)

        assert completed == []
        assert isinstance(generator.last_error, ValueError)
        assert not generator.is_generating

    def test_on_error_receives_exception(self):
        generator = TerrainGenerator()
        grid = Grid(5, 5, fill_value=0.6)
        errors = []

        def broken_noise(min_val, max_val, iteration):
            raise ValueError("bad noise")

        assert generator.generate_async(grid, broken_noise, on_error=errors.append)
        assert generator.join(timeout=5.0)

        assert len(errors) == 1
        assert errors[0] is generator.last_error
        np.testing.assert_allclose(grid.to_array(), 0.6, atol=1e-7)

    def test_async_dimension_mismatch_raised_on_caller(self):
        generator = TerrainGenerator()

        with pytest.raises(DimensionMismatchError):
            generator.generate_async(Grid(6, 6), constant_noise(0.5))
        assert not generator.is_generating

    def test_guard_held_during_run(self):
        generator = TerrainGenerator()
        grid = Grid(5, 5)
        guard = threading.RLock()
        release = threading.Event()
        started = threading.Event()

        def blocking_noise(min_val, max_val, iteration):
            started.set()
            release.wait(timeout=5.0)
            return 0.5

        generator.generate_async(grid, blocking_noise, guard=guard)
        assert started.wait(timeout=5.0)

        assert guard.acquire(blocking=False) is False

        release.set()
        assert generator.join(timeout=5.0)
        assert guard.acquire(blocking=False) is True
        guard.release()
