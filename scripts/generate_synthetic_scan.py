#!/usr/bin/env python3
"""
Generate a synthetic room scan export.

Samples points on the four walls of a box-shaped room plus a low table
and two chairs, and writes them in the scan export JSON format
({points, colors, metadata}). Use this to exercise the layout pipeline
without a depth sensor.

Usage:
    python scripts/generate_synthetic_scan.py [output.json]

Then run the pipeline:
    python -m roomscan.process process synthetic_scan.json
"""

import sys
import time
from pathlib import Path

import numpy as np

sys.path.append(str(Path(__file__).parent.parent))

from roomscan.export import build_scan_export, write_scan_export


# ── Scene: box room ──────────────────────────────────────────────────

ROOM_WIDTH = 4.0   # X extent in meters
ROOM_DEPTH = 3.5   # Z extent in meters
ROOM_HEIGHT = 2.4
WALL_POINTS_PER_M2 = 12
SEED = 7

# (center xyz, size whd) for each piece of furniture
FURNITURE = [
    ((2.0, 0.6, 1.8), (0.8, 0.4, 0.5)),    # coffee table
    ((1.2, 0.45, 1.0), (0.4, 0.3, 0.4)),   # chair
    ((2.8, 0.45, 1.0), (0.4, 0.3, 0.4)),   # chair
]
FURNITURE_POINTS = 40


# ── Sampling helpers ─────────────────────────────────────────────────

def sample_wall(rng, start, end, height, density):
    """Uniform points on a vertical wall between two floor points (x, z)."""
    start = np.asarray(start, dtype=float)
    end = np.asarray(end, dtype=float)
    length = np.linalg.norm(end - start)
    count = max(1, int(length * height * density))

    t = rng.random(count)
    y = rng.random(count) * height
    xz = start + np.outer(t, end - start)
    return np.column_stack([xz[:, 0], y, xz[:, 1]])


def sample_box(rng, center, size, count):
    """Points inside an axis-aligned box, seed point at the center first."""
    center = np.asarray(center, dtype=float)
    size = np.asarray(size, dtype=float)
    offsets = (rng.random((count - 1, 3)) - 0.5) * size
    return np.vstack([center, center + offsets])


def generate_points(seed=SEED):
    rng = np.random.default_rng(seed)
    corners = [(0, 0), (ROOM_WIDTH, 0), (ROOM_WIDTH, ROOM_DEPTH), (0, ROOM_DEPTH)]

    parts = []
    for furniture_center, furniture_size in FURNITURE:
        parts.append(sample_box(rng, furniture_center, furniture_size, FURNITURE_POINTS))
    for start, end in zip(corners, corners[1:] + corners[:1]):
        parts.append(sample_wall(rng, start, end, ROOM_HEIGHT, WALL_POINTS_PER_M2))

    return np.vstack(parts)


# ── Main ─────────────────────────────────────────────────────────────

def main():
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("synthetic_scan.json")

    points = generate_points()
    print(f"Generating synthetic room scan with {len(points)} points …")

    document = build_scan_export(
        points,
        scan_time=time.time() * 1000.0,
        room_dimensions={"width": ROOM_WIDTH, "height": ROOM_HEIGHT, "depth": ROOM_DEPTH},
        source="synthetic",
    )
    path = write_scan_export(document, out)

    print(f"\nSynthetic scan export: {path}")
    print(f"  Room: {ROOM_WIDTH} m × {ROOM_DEPTH} m × {ROOM_HEIGHT} m")
    print(f"  Furniture: {len(FURNITURE)} boxes × {FURNITURE_POINTS} points")
    print(f"\nRun pipeline:  python -m roomscan.process process {path}")


if __name__ == "__main__":
    main()
