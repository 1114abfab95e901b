"""Utility functions for the room scan pipeline."""

from .geometry import (
    as_points,
    flatten_points,
    finite_mask,
    project_to_floor,
    polyline_length,
)
from .validation import (
    Frame,
    ScanUpdate,
    ScanResult,
    ScanExport,
    validate_export,
)

__all__ = [
    "as_points",
    "flatten_points",
    "finite_mask",
    "project_to_floor",
    "polyline_length",
    "Frame",
    "ScanUpdate",
    "ScanResult",
    "ScanExport",
    "validate_export",
]
