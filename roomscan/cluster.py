"""
Spatial Clustering Stage

Groups candidate points by proximity to a seed point.

This is a single-pass, seed-relative linkage rather than true connected
components: a point joins a cluster only if it lies within the distance
threshold of that cluster's seed, and points added to a cluster are not
used as seeds themselves. Two points chained through a third can end up
in different clusters. Downstream wall and furniture counts depend on
this exact behavior.
"""

from typing import List
import numpy as np

from utils.geometry import as_points
from .models import ClusterPurpose, PointCluster


WALL_CLUSTER_DISTANCE = 1.0
WALL_MIN_CLUSTER_SIZE = 10
FURNITURE_CLUSTER_DISTANCE = 0.5
FURNITURE_MIN_CLUSTER_SIZE = 5


def cluster_points(
    points: np.ndarray,
    distance: float,
    min_size: int,
    purpose: ClusterPurpose,
) -> List[PointCluster]:
    """
    Cluster points around successive unassigned seeds.

    Args:
        points: (N, 3) candidate points
        distance: Strict distance threshold from the seed
        min_size: A cluster is kept only if it has more than this many points
        purpose: Tag attached to every returned cluster

    Returns:
        Retained clusters in seed order. Points of a rejected cluster stay
        assigned and are not offered to later seeds.
    """
    points = as_points(points)
    n = len(points)
    if n == 0:
        return []

    assigned = np.zeros(n, dtype=bool)
    clusters = []

    for i in range(n):
        if assigned[i]:
            continue

        # Every index below i is already assigned, so only look ahead
        candidates = np.flatnonzero(~assigned[i:]) + i
        dists = np.linalg.norm(points[candidates] - points[i], axis=1)
        members = candidates[dists < distance]

        # The seed is always a member (distance 0) unless the threshold is non-positive
        if len(members) == 0 or members[0] != i:
            members = np.concatenate(([i], members[members != i]))

        assigned[members] = True

        if len(members) > min_size:
            clusters.append(PointCluster(points=points[members], purpose=purpose))

    return clusters


def cluster_walls(
    points: np.ndarray,
    distance: float = WALL_CLUSTER_DISTANCE,
    min_size: int = WALL_MIN_CLUSTER_SIZE,
) -> List[PointCluster]:
    return cluster_points(points, distance, min_size, ClusterPurpose.WALL)


def cluster_furniture(
    points: np.ndarray,
    distance: float = FURNITURE_CLUSTER_DISTANCE,
    min_size: int = FURNITURE_MIN_CLUSTER_SIZE,
) -> List[PointCluster]:
    return cluster_points(points, distance, min_size, ClusterPurpose.FURNITURE)
