"""
Scan Export

Serializes scan results to the flat JSON document used for download and
persistence ({points, colors, metadata}), and to PLY point clouds.
"""

import json
from pathlib import Path
from typing import Optional, Union
import numpy as np
from rich.console import Console

from utils.geometry import VertexInput, as_points, flatten_points
from utils.validation import ScanExport, ScanUpdate, validate_export

console = Console()


class ExportError(Exception):
    """Error while reading or writing scan exports."""
    pass


def height_colors(points: VertexInput) -> np.ndarray:
    """
    Color points by height for visualization.

    Red rises with height, green falls with it, blue is constant.

    Returns:
        (N, 3) uint8 RGB array
    """
    points = as_points(points)
    heights = np.nan_to_num(points[:, 1])
    colors = np.empty((len(points), 3), dtype=np.uint8)
    colors[:, 0] = np.clip((heights + 2) * 60, 0, 255).astype(np.uint8)
    colors[:, 1] = np.clip(150 - heights * 30, 0, 255).astype(np.uint8)
    colors[:, 2] = 100
    return colors


def build_scan_export(
    points: VertexInput,
    scan_time: float = 0.0,
    room_dimensions: Optional[dict] = None,
    include_colors: bool = True,
    **metadata,
) -> ScanExport:
    """
    Build an export document from a point set.

    Args:
        points: Flat stride-3 buffer or (N, 3) array
        scan_time: Scan timestamp in milliseconds
        room_dimensions: Optional {width, height, depth}
        include_colors: Attach height-based RGB bytes
        **metadata: Extra metadata keys stored alongside the required ones
    """
    points = as_points(points)
    colors = height_colors(points).reshape(-1).tolist() if include_colors else None

    return ScanExport(
        points=flatten_points(points),
        colors=colors,
        metadata={
            "pointCount": len(points),
            "scanTime": scan_time,
            "roomDimensions": room_dimensions,
            **metadata,
        },
    )


def export_scan_result(result: ScanUpdate, include_colors: bool = True) -> ScanExport:
    """Build an export document from a streaming update or final result."""
    return build_scan_export(
        result.points,
        scan_time=result.scan_time_millis,
        room_dimensions=result.room_dimensions.model_dump(),
        include_colors=include_colors,
        roomLayout=result.room_layout.model_dump(by_alias=True),
    )


def export_points(document: ScanExport) -> np.ndarray:
    """(N, 3) points of an export document."""
    return as_points(document.points)


def write_scan_export(document: ScanExport, output_path: Path) -> Path:
    """Write an export document as JSON."""
    output_path = output_path.with_suffix('.json')
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(document.model_dump(by_alias=True), f)

    console.print(f"[green]Exported {document.metadata.point_count:,} points to {output_path}[/green]")
    return output_path


def load_scan_export(export_path: Path) -> ScanExport:
    """
    Load and validate an export document.

    Raises:
        ExportError: the file is missing or does not validate
    """
    is_valid, document, errors = validate_export(export_path)
    if not is_valid:
        raise ExportError(f"Invalid scan export {export_path}: {'; '.join(errors)}")
    return document


def export_ply(
    points: Union[VertexInput, ScanExport],
    output_path: Path,
    colors: Optional[np.ndarray] = None,
) -> Path:
    """
    Write a point cloud to PLY.

    Args:
        points: Points or an export document (its colors are used when
            `colors` is not given)
        output_path: Output path for the PLY file
        colors: Optional (N, 3) uint8 RGB array

    Returns:
        Path to the exported PLY file
    """
    try:
        import trimesh
    except ImportError:
        raise ExportError("trimesh not installed. Run: pip install trimesh")

    if isinstance(points, ScanExport):
        if colors is None and points.colors is not None:
            colors = np.asarray(points.colors, dtype=np.uint8).reshape(-1, 3)
        points = export_points(points)
    else:
        points = as_points(points)

    if len(points) == 0:
        raise ExportError("Cannot export an empty point cloud")

    cloud = trimesh.PointCloud(points, colors=colors)

    output_path = output_path.with_suffix('.ply')
    output_path.parent.mkdir(parents=True, exist_ok=True)
    cloud.export(str(output_path), file_type='ply')

    console.print(f"[green]Exported point cloud to {output_path}[/green]")
    return output_path
