"""
Data model shared by the pipeline stages.

Every record is a frozen dataclass; point arrays stored on them are
read-only so a stage can hand its output downstream by value.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple
import numpy as np

from utils.geometry import read_only


class ClusterPurpose(str, Enum):
    WALL = "wall"
    FURNITURE = "furniture"


class FurnitureType(str, Enum):
    TABLE = "table"
    BED = "bed"
    WARDROBE = "wardrobe"
    CHAIR = "chair"
    UNKNOWN = "unknown"


class RoomType(str, Enum):
    BEDROOM = "bedroom"
    LIVING_ROOM = "living_room"
    ROOM = "room"


class SessionState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    STOPPED = "stopped"


def _frozen_points(points) -> np.ndarray:
    return read_only(np.array(points, dtype=np.float64).reshape(-1, 3))


@dataclass(frozen=True)
class PointCluster:
    """A spatially coherent group of points produced by one clustering pass."""
    points: np.ndarray
    purpose: ClusterPurpose

    def __post_init__(self):
        points = _frozen_points(self.points)
        if len(points) == 0:
            raise ValueError("PointCluster must contain at least one point")
        object.__setattr__(self, "points", points)

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class BoundingVolume:
    """Axis-aligned extents and centroid of a point set."""
    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0
    centroid: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def dimensions(self) -> Tuple[float, float, float]:
        return (self.width, self.height, self.depth)

    @property
    def volume(self) -> float:
        return self.width * self.height * self.depth

    @property
    def footprint(self) -> float:
        """Planar (X/Z) area of the box."""
        return self.width * self.depth


@dataclass(frozen=True)
class FurnitureObject:
    id: str
    type: FurnitureType
    position: Tuple[float, float, float]
    dimensions: Tuple[float, float, float]
    confidence: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "position": list(self.position),
            "dimensions": list(self.dimensions),
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class WallSegment:
    """
    Wall built from one wall cluster.

    `points` keep the cluster's discovery order; `length` is the
    polyline perimeter along that order.
    """
    points: np.ndarray
    normal: Tuple[float, float, float]
    length: float

    def __post_init__(self):
        object.__setattr__(self, "points", _frozen_points(self.points))


@dataclass(frozen=True)
class FloorPlanWall:
    """A wall segment projected onto the floor plane."""
    id: str
    points: Tuple[Tuple[float, float], ...]
    length: float
    type: str = "wall"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "points": [list(p) for p in self.points],
            "length": self.length,
            "type": self.type,
        }


@dataclass(frozen=True)
class RoomLayout:
    floor_plan: Tuple[FloorPlanWall, ...] = field(default_factory=tuple)
    room_type: RoomType = RoomType.ROOM
    total_area: float = 0.0
    wall_count: int = 0
    furniture_count: int = 0

    def to_dict(self) -> dict:
        return {
            "floorPlan": [wall.to_dict() for wall in self.floor_plan],
            "roomType": self.room_type.value,
            "totalArea": self.total_area,
            "wallCount": self.wall_count,
            "furnitureCount": self.furniture_count,
        }
