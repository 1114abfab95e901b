"""
Floor Plan Artefacts

Draws room layouts as SVG floor plans and builds simple box meshes
(walls + furniture) exported as GLB.
"""

from pathlib import Path
from typing import Dict, List, Sequence, Tuple
import numpy as np
from rich.console import Console

from .models import FurnitureObject, RoomLayout

console = Console()

FURNITURE_COLORS = {
    "table": "#F59E0B",
    "bed": "#10B981",
    "wardrobe": "#EF4444",
    "chair": "#8B5CF6",
    "unknown": "#6B7280",
}

# Triangles of an 8-corner box: bottom corners 0-3, top corners 4-7
BOX_FACES = [
    # Front
    [0, 1, 5], [0, 5, 4],
    # Back
    [2, 3, 7], [2, 7, 6],
    # Left
    [0, 3, 7], [0, 7, 4],
    # Right
    [1, 2, 6], [1, 6, 5],
    # Top
    [4, 5, 6], [4, 6, 7],
    # Bottom
    [0, 2, 1], [0, 3, 2],
]


class FloorplanError(Exception):
    """Error during floor plan artefact generation."""
    pass


def generate_floorplan_svg(
    layout: RoomLayout,
    furniture: Sequence[FurnitureObject],
    output_path: Path,
    width: int = 800,
    height: int = 600,
    padding: int = 50
) -> Path:
    """
    Generate an SVG floor plan from a room layout.

    Wall polylines are drawn in discovery order; furniture is drawn as
    its X/Z footprint rectangle with a type label.

    Args:
        layout: Room layout with projected floor plan walls
        furniture: Furniture objects to draw
        output_path: Output path for SVG file
        width: SVG width in pixels
        height: SVG height in pixels
        padding: Padding around content

    Returns:
        Path to exported SVG file
    """
    output_path = output_path.with_suffix('.svg')
    output_path.parent.mkdir(parents=True, exist_ok=True)

    all_points = [p for wall in layout.floor_plan for p in wall.points]
    for item in furniture:
        x, _, z = item.position
        w, _, d = item.dimensions
        all_points.append((x - w / 2, z - d / 2))
        all_points.append((x + w / 2, z + d / 2))

    if not all_points:
        console.print("[yellow]No wall or furniture data available for floorplan[/yellow]")
        svg_content = f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}"></svg>'
        output_path.write_text(svg_content)
        return output_path

    all_points = np.array(all_points)
    min_x, min_y = all_points.min(axis=0)
    max_x, max_y = all_points.max(axis=0)

    # Calculate scale to fit in SVG
    data_width = max_x - min_x
    data_height = max_y - min_y
    available_width = width - 2 * padding
    available_height = height - 2 * padding

    if data_width > 0 and data_height > 0:
        scale = min(available_width / data_width, available_height / data_height)
    elif data_width > 0 or data_height > 0:
        scale = min(available_width, available_height) / max(data_width, data_height)
    else:
        scale = 1

    def transform(x, y):
        """Transform floor coordinates to SVG coordinates."""
        sx = padding + (x - min_x) * scale
        sy = padding + (max_y - y) * scale  # Flip Y axis
        return sx, sy

    svg_elements = []

    # Walls
    for wall in layout.floor_plan:
        if len(wall.points) < 2:
            continue
        coords = " ".join(
            f"{sx:.1f},{sy:.1f}" for sx, sy in (transform(x, z) for x, z in wall.points)
        )
        svg_elements.append(
            f'<polyline id="{wall.id}" points="{coords}" fill="none" '
            f'stroke="#333" stroke-width="3" stroke-linejoin="round"/>'
        )

    # Furniture
    for item in furniture:
        x, _, z = item.position
        w, _, d = item.dimensions
        left, top = transform(x - w / 2, z + d / 2)
        color = FURNITURE_COLORS.get(item.type.value, FURNITURE_COLORS["unknown"])
        svg_elements.append(
            f'<rect id="{item.id}" x="{left:.1f}" y="{top:.1f}" '
            f'width="{w * scale:.1f}" height="{d * scale:.1f}" '
            f'fill="{color}" fill-opacity="0.6" stroke="{color}" stroke-width="2"/>'
        )
        label_x, label_y = transform(x, z)
        svg_elements.append(
            f'<text x="{label_x:.1f}" y="{label_y:.1f}" font-size="12" '
            f'text-anchor="middle" fill="#1f2937">{item.type.value.upper()}</text>'
        )

    svg_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" viewBox="0 0 {width} {height}">
  <rect width="100%" height="100%" fill="#f5f5f5"/>
  <g id="floorplan" data-room-type="{layout.room_type.value}" data-area="{layout.total_area:.2f}">
    {''.join(svg_elements)}
  </g>
</svg>'''

    output_path.write_text(svg_content)

    console.print(f"[green]Generated floorplan SVG: {output_path}[/green]")
    return output_path


def wall_edge_box(
    start: np.ndarray,
    end: np.ndarray,
    thickness: float,
    wall_height: float,
) -> List[np.ndarray]:
    """8 corners of a wall box along one floor-plan edge, or [] for tiny edges."""
    direction = end - start
    length = np.linalg.norm(direction)
    if length < 0.01:
        return []

    direction = direction / length
    normal = np.array([-direction[1], direction[0]])  # Perpendicular in 2D
    half = thickness / 2

    # Bottom corners
    v0 = np.array([start[0] - normal[0] * half, 0, start[1] - normal[1] * half])
    v1 = np.array([start[0] + normal[0] * half, 0, start[1] + normal[1] * half])
    v2 = np.array([end[0] + normal[0] * half, 0, end[1] + normal[1] * half])
    v3 = np.array([end[0] - normal[0] * half, 0, end[1] - normal[1] * half])

    # Top corners
    up = np.array([0, wall_height, 0])
    return [v0, v1, v2, v3, v0 + up, v1 + up, v2 + up, v3 + up]


def furniture_box(item: FurnitureObject) -> List[np.ndarray]:
    """8 corners of a furniture object's axis-aligned box."""
    center = np.array(item.position)
    half = np.array(item.dimensions) / 2
    lo = center - half
    hi = center + half

    bottom = [
        np.array([lo[0], lo[1], lo[2]]),
        np.array([hi[0], lo[1], lo[2]]),
        np.array([hi[0], lo[1], hi[2]]),
        np.array([lo[0], lo[1], hi[2]]),
    ]
    return bottom + [np.array([v[0], hi[1], v[2]]) for v in bottom]


def build_layout_mesh(
    layout: RoomLayout,
    furniture: Sequence[FurnitureObject],
    wall_thickness: float = 0.15,
    wall_height: float = 2.5,
) -> Tuple[np.ndarray, np.ndarray, Dict]:
    """
    Build box geometry for every wall edge and furniture object.

    Returns:
        Tuple of (vertices Nx3, faces Mx3, stats)
    """
    all_vertices = []
    all_faces = []
    wall_boxes = 0

    def add_box(corners):
        offset = len(all_vertices)
        all_vertices.extend(corners)
        for face in BOX_FACES:
            all_faces.append([f + offset for f in face])

    for wall in layout.floor_plan:
        points = np.array(wall.points, dtype=np.float64).reshape(-1, 2)
        for start, end in zip(points[:-1], points[1:]):
            corners = wall_edge_box(start, end, wall_thickness, wall_height)
            if corners:
                add_box(corners)
                wall_boxes += 1

    for item in furniture:
        add_box(furniture_box(item))

    stats = {
        'wall_count': layout.wall_count,
        'wall_boxes': wall_boxes,
        'furniture_boxes': len(furniture),
        'vertices': len(all_vertices),
        'faces': len(all_faces),
    }

    vertices = np.array(all_vertices, dtype=np.float64).reshape(-1, 3)
    faces = np.array(all_faces, dtype=np.int64).reshape(-1, 3)
    return vertices, faces, stats


def generate_layout_mesh(
    layout: RoomLayout,
    furniture: Sequence[FurnitureObject],
    output_path: Path,
    wall_thickness: float = 0.15,
    wall_height: float = 2.5,
) -> Tuple[Path, Dict]:
    """
    Export walls and furniture as a GLB box mesh.

    Returns:
        Tuple of (mesh_path, mesh_stats)
    """
    try:
        import trimesh
    except ImportError:
        raise FloorplanError("trimesh not installed. Run: pip install trimesh")

    vertices, faces, stats = build_layout_mesh(layout, furniture, wall_thickness, wall_height)

    if len(faces) == 0:
        raise FloorplanError("No wall or furniture geometry in layout")

    mesh = trimesh.Trimesh(vertices=vertices, faces=faces)

    output_path = output_path.with_suffix('.glb')
    output_path.parent.mkdir(parents=True, exist_ok=True)
    mesh.export(str(output_path), file_type='glb')

    stats['file_size'] = output_path.stat().st_size
    console.print(f"[green]Exported layout mesh to {output_path}[/green]")
    return output_path, stats
