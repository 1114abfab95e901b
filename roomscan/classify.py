"""
Point Classification Stage

Splits a raw vertex buffer into wall and furniture candidates using
height bands on the Y (up) axis.

The two bands overlap: the furniture band sits inside the wall band,
so a point may be both a wall and a furniture candidate. Callers run
both downstream passes independently.
"""

import math
from dataclasses import dataclass
from typing import Optional
import numpy as np

from utils.geometry import VertexInput, as_points, finite_mask, read_only


# Height bands in scanner-local meters (exclusive bounds)
WALL_MIN_HEIGHT = 0.1
WALL_MAX_HEIGHT = 2.5
FURNITURE_MIN_HEIGHT = 0.3
FURNITURE_MAX_HEIGHT = 1.2

# Per-tick processing cap
MAX_TICK_POINTS = 1000


@dataclass(frozen=True)
class PointClassification:
    """Result of classifying one vertex buffer."""
    cleaned: np.ndarray
    walls: np.ndarray
    furniture: np.ndarray
    discarded_count: int

    @property
    def is_empty(self) -> bool:
        """True when neither band received a point."""
        return len(self.walls) == 0 and len(self.furniture) == 0


def band_mask(heights: np.ndarray, low: float, high: float) -> np.ndarray:
    return (heights > low) & (heights < high)


def classify_points(
    vertices: VertexInput,
    wall_band: tuple = (WALL_MIN_HEIGHT, WALL_MAX_HEIGHT),
    furniture_band: tuple = (FURNITURE_MIN_HEIGHT, FURNITURE_MAX_HEIGHT),
) -> PointClassification:
    """
    Classify points by height.

    Args:
        vertices: Flat stride-3 buffer or (N, 3) array
        wall_band: (low, high) exclusive Y range for wall candidates
        furniture_band: (low, high) exclusive Y range for furniture candidates

    Returns:
        PointClassification. Points with NaN/Inf coordinates are counted
        as discarded and never reach either band.
    """
    points = as_points(vertices)
    valid = finite_mask(points)
    cleaned = points[valid]

    heights = cleaned[:, 1]
    wall_mask = band_mask(heights, *wall_band)
    furniture_mask = band_mask(heights, *furniture_band)
    in_neither = ~(wall_mask | furniture_mask)

    discarded_count = int((~valid).sum() + in_neither.sum())

    return PointClassification(
        cleaned=read_only(cleaned.copy()),
        walls=read_only(cleaned[wall_mask]),
        furniture=read_only(cleaned[furniture_mask]),
        discarded_count=discarded_count,
    )


def decimate_points(
    points: np.ndarray,
    max_points: int = MAX_TICK_POINTS,
    step: Optional[int] = None,
) -> np.ndarray:
    """
    Subsample a point set to bound per-tick processing cost.

    Takes every `step`-th point (by default the smallest step that brings
    the set under `max_points`) and caps the result at `max_points`.
    """
    points = as_points(points)
    total = len(points)

    if max_points <= 0:
        return points[:0]

    if step is None:
        step = max(1, math.ceil(total / max_points))
    else:
        step = max(1, int(step))

    return points[::step][:max_points]
