"""Wire models for sensor frames, streaming events and scan export documents."""

import json
from pathlib import Path
from typing import ClassVar, FrozenSet, List, Optional, Tuple
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


# Pydantic models for data crossing the package boundary


class Frame(BaseModel):
    """One batch of raw vertices delivered by a point source."""

    vertices: List[float] = Field(default_factory=list)
    frame_timestamp: float = Field(default=0.0, alias="frameTimestamp")

    model_config = {"populate_by_name": True}


class RoomDimensions(BaseModel):
    width: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)
    depth: float = Field(default=0.0, ge=0)


class FurnitureEntry(BaseModel):
    id: str
    type: str
    position: List[float] = Field(..., min_length=3, max_length=3)
    dimensions: List[float] = Field(..., min_length=3, max_length=3)
    confidence: float = Field(..., ge=0, le=1)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        valid_types = {"table", "bed", "wardrobe", "chair", "unknown"}
        if v not in valid_types:
            raise ValueError(f"Invalid furniture type: {v}. Must be one of {valid_types}")
        return v

    @field_validator("dimensions")
    @classmethod
    def validate_dimensions(cls, v):
        if any(d < 0 for d in v):
            raise ValueError("Furniture dimensions must be non-negative")
        return v


class FloorPlanEntry(BaseModel):
    id: str
    points: List[List[float]] = Field(default_factory=list)
    length: float = Field(default=0.0, ge=0)
    type: str = Field(default="wall")

    @field_validator("points")
    @classmethod
    def validate_points(cls, v):
        for point in v:
            if len(point) != 2:
                raise ValueError("Floor plan points must be [x, z] pairs")
        return v


class RoomLayoutData(BaseModel):
    floor_plan: List[FloorPlanEntry] = Field(default_factory=list, alias="floorPlan")
    room_type: str = Field(default="room", alias="roomType")
    total_area: float = Field(default=0.0, ge=0, alias="totalArea")
    wall_count: int = Field(default=0, ge=0, alias="wallCount")
    furniture_count: int = Field(default=0, ge=0, alias="furnitureCount")

    model_config = {"populate_by_name": True}


class ScanUpdate(BaseModel):
    """Streaming event emitted to consumers once per tick."""

    allowed_status: ClassVar[FrozenSet[str]] = frozenset({"scanning", "completed", "stopped"})

    points: List[List[float]] = Field(default_factory=list)
    point_count: int = Field(default=0, ge=0, alias="pointCount")
    scan_time_millis: float = Field(
        default=0.0,
        validation_alias=AliasChoices("scanTimeMillis", "scanTime", "scan_time_millis"),
        serialization_alias="scanTimeMillis",
    )
    room_dimensions: RoomDimensions = Field(default_factory=RoomDimensions, alias="roomDimensions")
    walls: List[List[List[float]]] = Field(default_factory=list)
    furniture: List[FurnitureEntry] = Field(default_factory=list)
    room_layout: RoomLayoutData = Field(default_factory=RoomLayoutData, alias="roomLayout")
    status: str = Field(default="scanning")

    model_config = {"populate_by_name": True}

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in cls.allowed_status:
            raise ValueError(f"Invalid status: {v}. Must be one of {set(cls.allowed_status)}")
        return v

    def to_wire(self) -> dict:
        """Serialize with the camelCase keys consumers expect."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ScanResult(ScanUpdate):
    """Final result handed back when a session stops."""

    allowed_status: ClassVar[FrozenSet[str]] = frozenset({"completed", "success", "stopped"})

    status: str = Field(default="completed")
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.status in ("completed", "success")


class ExportMetadata(BaseModel):
    point_count: int = Field(..., ge=0, alias="pointCount")
    scan_time: float = Field(default=0.0, alias="scanTime")
    room_dimensions: Optional[RoomDimensions] = Field(default=None, alias="roomDimensions")

    model_config = {"populate_by_name": True, "extra": "allow"}


class ScanExport(BaseModel):
    """Pydantic model for the flat JSON scan export document."""

    points: List[float] = Field(default_factory=list)
    colors: Optional[List[int]] = None
    metadata: ExportMetadata

    @field_validator("points")
    @classmethod
    def validate_points(cls, v):
        if len(v) % 3 != 0:
            raise ValueError(f"Point buffer length must be a multiple of 3, got {len(v)}")
        return v

    @field_validator("colors")
    @classmethod
    def validate_colors(cls, v):
        if v is not None and any(c < 0 or c > 255 for c in v):
            raise ValueError("Colors must be bytes in [0, 255]")
        return v

    @model_validator(mode="after")
    def validate_counts(self):
        count = len(self.points) // 3
        if self.metadata.point_count != count:
            raise ValueError(
                f"metadata.pointCount ({self.metadata.point_count}) does not match "
                f"point buffer ({count} points)"
            )
        if self.colors is not None and len(self.colors) != len(self.points):
            raise ValueError(
                f"Expected {len(self.points)} color bytes (one RGB triple per point), "
                f"got {len(self.colors)}"
            )
        return self


def validate_export(export_path: Path) -> Tuple[bool, Optional[ScanExport], List[str]]:
    """
    Validate a scan export JSON file.

    Args:
        export_path: Path to the exported scan document

    Returns:
        Tuple of (is_valid, parsed_export, list_of_errors)
    """
    errors = []

    if not export_path.exists():
        return False, None, ["Export file does not exist"]

    try:
        with open(export_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        return False, None, [f"Invalid JSON: {e}"]

    try:
        document = ScanExport(**data)
        return True, document, []
    except Exception as e:
        errors.append(str(e))
        return False, None, errors
