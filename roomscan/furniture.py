"""
Furniture Classification Stage

Maps a cluster's bounding volume to a furniture type with fixed
heuristic rules. Rules are checked in order and the first match wins.
"""

from typing import Iterable, Tuple

from .bounds import compute_bounding_volume
from .models import BoundingVolume, FurnitureObject, FurnitureType, PointCluster


# Static score attached to every classification, not a computed probability
FURNITURE_CONFIDENCE = 0.75


def classify_furniture(volume: BoundingVolume) -> FurnitureType:
    """
    Classify a bounding volume.

    Rules (first match wins):
        table    - height < 0.5 and volume > 0.1
        bed      - 0.8 < height < 1.5 and max(width, depth) > 1.5
        wardrobe - height > 1.5 and volume > 0.5
        chair    - height < 0.6 and max(width, depth) < 0.8
        unknown  - anything else
    """
    height = volume.height
    footprint_span = max(volume.width, volume.depth)
    box_volume = volume.volume

    if height < 0.5 and box_volume > 0.1:
        return FurnitureType.TABLE
    if 0.8 < height < 1.5 and footprint_span > 1.5:
        return FurnitureType.BED
    if height > 1.5 and box_volume > 0.5:
        return FurnitureType.WARDROBE
    if height < 0.6 and footprint_span < 0.8:
        return FurnitureType.CHAIR
    return FurnitureType.UNKNOWN


def build_furniture_object(cluster: PointCluster, index: int) -> FurnitureObject:
    volume = compute_bounding_volume(cluster)
    return FurnitureObject(
        id=f"furniture_{index}",
        type=classify_furniture(volume),
        position=volume.centroid,
        dimensions=volume.dimensions,
        confidence=FURNITURE_CONFIDENCE,
    )


def build_furniture(clusters: Iterable[PointCluster]) -> Tuple[FurnitureObject, ...]:
    """Build one furniture object per retained cluster, ids in cluster order."""
    return tuple(build_furniture_object(c, i) for i, c in enumerate(clusters))
