"""Array helpers for converting between sensor vertex buffers and point sets."""

import math
import numpy as np
from typing import Any, List, Sequence, Union

VertexInput = Union[np.ndarray, Sequence[float], Sequence[Sequence[float]]]


def as_points(vertices: VertexInput) -> np.ndarray:
    """
    Convert a vertex buffer to an (N, 3) float array.

    Accepts a flat stride-3 buffer or anything already shaped (N, 3).
    A trailing incomplete triple is dropped, matching how the sensor
    delivers partially written frames. Values that are not numbers become
    NaN so the classifier discards their points.
    """
    try:
        arr = np.asarray(vertices, dtype=np.float64)
    except (TypeError, ValueError):
        arr = np.array(_coerce_values(vertices), dtype=np.float64)

    if arr.size == 0:
        return np.empty((0, 3), dtype=np.float64)

    if arr.ndim == 2 and arr.shape[1] == 3:
        return arr

    flat = arr.reshape(-1)
    usable = (len(flat) // 3) * 3
    return flat[:usable].reshape(-1, 3)


def flatten_points(points: np.ndarray) -> List[float]:
    """Convert (N, 3) points to a flat [x0, y0, z0, x1, ...] list."""
    return np.asarray(points, dtype=np.float64).reshape(-1).tolist()


def points_to_rows(points: np.ndarray) -> List[List[float]]:
    """Convert (N, 3) points to a list of [x, y, z] rows."""
    return np.asarray(points, dtype=np.float64).reshape(-1, 3).tolist()


def finite_mask(points: np.ndarray) -> np.ndarray:
    """Boolean mask of rows with no NaN or Inf coordinate."""
    if len(points) == 0:
        return np.zeros(0, dtype=bool)
    return np.isfinite(points).all(axis=1)


def project_to_floor(points: np.ndarray) -> np.ndarray:
    """Drop the vertical (Y) axis, returning (N, 2) [x, z] coordinates."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return points[:, [0, 2]].copy()


def polyline_length(points: np.ndarray) -> float:
    """Sum of Euclidean distances between consecutive points."""
    points = np.asarray(points, dtype=np.float64)
    if len(points) < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(points, axis=0), axis=1).sum())


def read_only(points: np.ndarray) -> np.ndarray:
    """Return a read-only view of an array."""
    view = points.view()
    view.setflags(write=False)
    return view


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _coerce_values(vertices) -> List[float]:
    """Flatten nested vertex data, mapping non-numeric entries to NaN."""
    values = []
    for item in vertices:
        if isinstance(item, (list, tuple, np.ndarray)):
            values.extend(_coerce_values(item))
        else:
            values.append(_to_float(item))
    return values
