"""
Wall Segment Stage

Turns wall clusters into wall segments. One segment per cluster; no
merging of adjacent or colinear clusters.
"""

from typing import Iterable, Tuple

from utils.geometry import polyline_length, project_to_floor
from .models import FloorPlanWall, PointCluster, WallSegment


UP_NORMAL = (0.0, 1.0, 0.0)


def build_wall_segment(cluster: PointCluster) -> WallSegment:
    """
    Build a wall segment from a cluster.

    Points stay in discovery order (not sorted along the wall), so
    `length` is the perimeter of that polyline, not the wall's extent.
    The normal is a constant up vector.
    """
    return WallSegment(
        points=cluster.points,
        normal=UP_NORMAL,
        length=polyline_length(cluster.points),
    )


def build_wall_segments(clusters: Iterable[PointCluster]) -> Tuple[WallSegment, ...]:
    return tuple(build_wall_segment(c) for c in clusters)


def project_wall(segment: WallSegment, index: int) -> FloorPlanWall:
    """Project a wall segment onto the floor plane as [x, z] pairs."""
    floor_points = project_to_floor(segment.points)
    return FloorPlanWall(
        id=f"wall_{index}",
        points=tuple((float(x), float(z)) for x, z in floor_points),
        length=segment.length,
    )
