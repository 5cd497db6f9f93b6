#!/usr/bin/env python3
"""
Simple demo script showing heightfield generation and brush editing.
"""

import time

import numpy as np

from py_heatmap.core import GRAYSCALE, HeightfieldSession, Pen


def print_stats(session):
    values = session.grid.to_array()
    print(f"  Size: {session.width}x{session.height}")
    print(f"  Range: {values.min():.3f}-{values.max():.3f}")
    print(f"  Mean: {values.mean():.3f}")

    # Coarse histogram of intensities
    counts, _ = np.histogram(values, bins=5, range=(0.0, 1.0))
    for i, count in enumerate(counts):
        bar = "#" * int(40 * count / values.size)
        print(f"  {i * 0.2:.1f}-{(i + 1) * 0.2:.1f}: {bar}")


def main():
    """Demonstrate heightfield generation."""
    print("Py-Heatmap Heightfield Demo")
    print("=" * 40)

    session = HeightfieldSession(65, 65)
    session.add_color_map(GRAYSCALE)

    print("\nGenerating terrain in the background (seed 'demo123')...")
    started = time.time()
    session.generate(seed="demo123")

    # Interactive callers poll instead of blocking
    while session.is_generating:
        time.sleep(0.01)
    print(f"Finished in {time.time() - started:.2f}s")
    print_stats(session)

    data = session.grid.to_array()
    seams = np.array_equal(data[0], data[-1]) and np.array_equal(data[:, 0], data[:, -1])
    print(f"  Tileable edges: {seams}")

    print("\nRaising a hill at the center...")
    for _ in range(10):
        session.apply_brush(Pen.additive(radius=12, pressure=0.05), (32.0, 32.0))
    print_stats(session)

    print("\nDigging a pit in the corner...")
    affected = session.apply_brush(Pen.subtractive(radius=8, pressure=0.3), (0.0, 0.0))
    print(f"  Cells affected: {affected}")

    view = session.get_derived_view(colored=True)
    print(f"\nColored view: shape {view.shape}, dtype {view.dtype}")
    print(f"  Center pixel: {tuple(view[32, 32])}")


if __name__ == "__main__":
    main()
