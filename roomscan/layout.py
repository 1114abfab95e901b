"""
Room Layout Stage

Composes wall segments, furniture and the overall scan bounds into a
floor-plan summary.
"""

from typing import Sequence

from .models import BoundingVolume, FurnitureObject, FurnitureType, RoomLayout, RoomType, WallSegment
from .walls import project_wall


def classify_room(furniture: Sequence[FurnitureObject]) -> RoomType:
    """
    Label the room from its furniture.

    Any bed makes it a bedroom regardless of what else is present.
    """
    types = {item.type for item in furniture}

    if FurnitureType.BED in types:
        return RoomType.BEDROOM
    if FurnitureType.TABLE in types and len(furniture) > 2:
        return RoomType.LIVING_ROOM
    return RoomType.ROOM


def synthesize_layout(
    walls: Sequence[WallSegment],
    furniture: Sequence[FurnitureObject],
    bounds: BoundingVolume,
) -> RoomLayout:
    """
    Build a RoomLayout.

    `total_area` is the planar footprint of the overall scan bounds
    (width * depth), an approximation that ignores the wall outline.
    """
    floor_plan = tuple(project_wall(segment, i) for i, segment in enumerate(walls))

    return RoomLayout(
        floor_plan=floor_plan,
        room_type=classify_room(furniture),
        total_area=bounds.width * bounds.depth,
        wall_count=len(walls),
        furniture_count=len(furniture),
    )
