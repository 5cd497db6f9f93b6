"""
Tests for radial brush editing.
"""

import numpy as np
import pytest

from py_heatmap.core.brush import Pen
from py_heatmap.core.easing import OscillatingFunction
from py_heatmap.core.grid import Grid


class TestPen:
    """Brush application on flat grids."""

    @pytest.fixture
    def flat_grid(self):
        return Grid(21, 21, fill_value=0.2)

    @pytest.fixture
    def pen(self):
        return Pen(radius=5.0, min_effect=0.1, max_effect=0.5)

    def test_center_receives_max_effect(self, flat_grid, pen):
        pen.apply(flat_grid, (10.0, 10.0))

        assert flat_grid.get(10, 10) == pytest.approx(0.7)

    def test_rim_is_included_with_min_effect(self, flat_grid, pen):
        """A cell at exactly the radius is inside the footprint."""
        pen.apply(flat_grid, (10.0, 10.0))

        # (row 15, col 10) is exactly 5 cells below the center
        assert flat_grid.get(15, 10) == pytest.approx(0.3)
        assert flat_grid.get(10, 5) == pytest.approx(0.3)

    def test_cells_outside_radius_untouched(self, flat_grid, pen):
        pen.apply(flat_grid, (10.0, 10.0))

        assert flat_grid.get(16, 10) == pytest.approx(0.2)
        assert flat_grid.get(14, 14) == pytest.approx(0.2)  # d2 = 32 > 25
        assert flat_grid.get(0, 0) == pytest.approx(0.2)

    def test_affected_count(self, flat_grid, pen):
        affected = pen.apply(flat_grid, (10.0, 10.0))

        # Lattice points with x^2 + y^2 <= 25
        assert affected == 81
        assert np.sum(flat_grid.to_array() > np.float32(0.2) + 1e-6) == 81

    def test_radial_monotonicity(self, pen):
        grid = Grid(21, 21)
        pen.apply(grid, (10.0, 10.0))

        row = [grid.get(10, col) for col in range(10, 16)]
        assert all(a >= b for a, b in zip(row, row[1:]))
        assert row[0] >= row[-1]

    def test_subtractive_pen_lowers(self):
        grid = Grid(11, 11, fill_value=0.5)
        Pen.subtractive(radius=3, pressure=0.2).apply(grid, (5.0, 5.0))

        assert grid.get(5, 5) == pytest.approx(0.3)
        assert grid.get(5, 8) == pytest.approx(0.5)
        assert grid.get(0, 0) == pytest.approx(0.5)

    def test_presets(self):
        add = Pen.additive()
        sub = Pen.subtractive()

        assert add.radius == 15
        assert add.min_effect == 0
        assert add.max_effect == pytest.approx(0.03)
        assert sub.max_effect == pytest.approx(-0.03)

    def test_writes_are_clamped(self):
        grid = Grid(5, 5, fill_value=0.9)
        Pen(2, 0.5, 0.5).apply(grid, (2.0, 2.0))

        assert grid.get(2, 2) == 1.0

    def test_writes_unclamped_when_disabled(self):
        grid = Grid(5, 5, fill_value=0.9, clamping=False)
        Pen(2, 0.5, 0.5).apply(grid, (2.0, 2.0))

        assert grid.get(2, 2) == pytest.approx(1.4)

    def test_cells_outside_circle_not_rewritten(self):
        grid = Grid(10, 10, clamping=False)
        # (2, 2) lies in the bounding box of a radius 3 brush at (5, 5) but
        # 18 > 9 puts it outside the circle
        grid.set(2, 2, 1.5)
        grid.clamping = True

        Pen(3, 0.0, 0.1).apply(grid, (5.0, 5.0))

        assert grid.get(2, 2) == pytest.approx(1.5)
        assert grid.get(5, 5) == pytest.approx(0.1)

    def test_invalid_radius(self):
        with pytest.raises(ValueError):
            Pen(0, 0.0, 0.1)
        with pytest.raises(ValueError):
            Pen(-2, 0.0, 0.1)

    def test_custom_falloff(self):
        grid = Grid(11, 11)
        # Constant falloff of 0.5 gives the midpoint effect everywhere
        pen = Pen(3, 0.0, 0.4, falloff=OscillatingFunction(0.5, 0.0, 1.0))
        pen.apply(grid, (5.0, 5.0))

        assert grid.get(5, 5) == pytest.approx(0.2)
        assert grid.get(5, 8) == pytest.approx(0.2)


class TestBoundingBox:
    """Bounding box and edge clipping."""

    def test_half_cell_bias(self):
        grid = Grid(20, 20)
        pen = Pen(3, 0.0, 0.1)

        min_x, max_x, min_y, max_y = pen.bounding_box(grid, (5.5, 5.5))

        # Column 2 is 3.5 away and skipped
        assert (min_x, max_x) == (3, 8)
        assert (min_y, max_y) == (3, 8)

    def test_box_clipped_to_grid(self):
        grid = Grid(10, 10)
        pen = Pen(3, 0.0, 0.1)

        assert pen.bounding_box(grid, (0.0, 9.0)) == (0, 3, 6, 9)

    def test_corner_application(self):
        grid = Grid(10, 10)
        affected = Pen(3, 0.1, 0.1).apply(grid, (0.0, 0.0))

        # Quarter disc of radius 3 including the axes
        assert affected == 11
        assert grid.get(0, 3) == pytest.approx(0.1)
        assert grid.get(3, 3) == 0.0

    def test_brush_off_grid_does_nothing(self):
        grid = Grid(10, 10, fill_value=0.5)
        affected = Pen(3, 0.1, 0.1).apply(grid, (-20.0, -20.0))

        assert affected == 0
        assert np.all(grid.to_array() == np.float32(0.5))

    def test_fractional_center_distance(self):
        grid = Grid(10, 10)
        Pen(1.0, 0.1, 0.1).apply(grid, (4.5, 4.5))

        # Four nearest cells are ~0.707 away, next ring is > 1
        touched = np.argwhere(grid.to_array() > 0)
        assert sorted(map(tuple, touched)) == [(4, 4), (4, 5), (5, 4), (5, 5)]
