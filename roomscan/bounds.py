"""Axis-aligned bounding volumes for point clusters."""

from typing import Union
import numpy as np

from utils.geometry import as_points
from .models import BoundingVolume, PointCluster


def compute_bounding_volume(points: Union[np.ndarray, PointCluster]) -> BoundingVolume:
    """
    Compute extents (max - min per axis) and centroid (arithmetic mean).

    An empty input yields a zero volume at the origin instead of raising.
    """
    if isinstance(points, PointCluster):
        points = points.points
    points = as_points(points)

    if len(points) == 0:
        return BoundingVolume()

    mins = points.min(axis=0)
    maxs = points.max(axis=0)
    extents = np.maximum(maxs - mins, 0.0)
    centroid = points.mean(axis=0)

    # The mean can land a ULP outside [min, max] for near-constant axes
    centroid = np.clip(centroid, mins, maxs)

    return BoundingVolume(
        width=float(extents[0]),
        height=float(extents[1]),
        depth=float(extents[2]),
        centroid=(float(centroid[0]), float(centroid[1]), float(centroid[2])),
    )
