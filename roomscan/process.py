"""
Main Processing Pipeline Orchestrator

Runs the room-layout stages over one point set:
classify -> cluster -> furniture / walls -> layout.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Type
import numpy as np
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import typer

from utils.geometry import VertexInput, points_to_rows, read_only
from utils.validation import ScanResult, ScanUpdate
from .bounds import compute_bounding_volume
from .classify import (
    classify_points,
    FURNITURE_MAX_HEIGHT,
    FURNITURE_MIN_HEIGHT,
    WALL_MAX_HEIGHT,
    WALL_MIN_HEIGHT,
)
from .cluster import (
    cluster_furniture,
    cluster_walls,
    FURNITURE_CLUSTER_DISTANCE,
    FURNITURE_MIN_CLUSTER_SIZE,
    WALL_CLUSTER_DISTANCE,
    WALL_MIN_CLUSTER_SIZE,
)
from .furniture import build_furniture
from .layout import synthesize_layout
from .models import BoundingVolume, FurnitureObject, RoomLayout, WallSegment
from .walls import build_wall_segments

console = Console()
app = typer.Typer(help="Room layout inference pipeline")


@dataclass
class PipelineConfig:
    """Configuration for the processing pipeline."""
    # Height bands (meters, exclusive)
    wall_min_height: float = WALL_MIN_HEIGHT
    wall_max_height: float = WALL_MAX_HEIGHT
    furniture_min_height: float = FURNITURE_MIN_HEIGHT
    furniture_max_height: float = FURNITURE_MAX_HEIGHT

    # Clustering
    wall_cluster_distance: float = WALL_CLUSTER_DISTANCE
    wall_min_cluster_size: int = WALL_MIN_CLUSTER_SIZE
    furniture_cluster_distance: float = FURNITURE_CLUSTER_DISTANCE
    furniture_min_cluster_size: int = FURNITURE_MIN_CLUSTER_SIZE

    # Output
    verbose: bool = False

    @property
    def wall_band(self) -> Tuple[float, float]:
        return (self.wall_min_height, self.wall_max_height)

    @property
    def furniture_band(self) -> Tuple[float, float]:
        return (self.furniture_min_height, self.furniture_max_height)


@dataclass
class PipelineStats:
    """Statistics collected during pipeline execution."""
    start_time: float = 0
    end_time: float = 0
    stages: Dict = field(default_factory=dict)

    def start(self):
        self.start_time = time.time()

    def stop(self):
        self.end_time = time.time()

    def record_stage(self, name: str, duration: float, **kwargs):
        self.stages[name] = {"duration_seconds": duration, **kwargs}

    @property
    def total_duration(self) -> float:
        return self.end_time - self.start_time

    def to_dict(self) -> Dict:
        return {
            "total_duration_seconds": self.total_duration,
            "stages": self.stages,
        }


@dataclass(frozen=True)
class PipelineResult:
    """Everything one pipeline pass produces."""
    cleaned_points: np.ndarray
    walls: Tuple[WallSegment, ...]
    furniture: Tuple[FurnitureObject, ...]
    layout: RoomLayout
    bounds: BoundingVolume
    discarded_count: int
    stats: PipelineStats

    @property
    def point_count(self) -> int:
        return len(self.cleaned_points)

    def to_update(
        self,
        status: str = "scanning",
        scan_time_millis: float = 0.0,
        model: Type[ScanUpdate] = ScanUpdate,
        **extra,
    ) -> ScanUpdate:
        """Build the outbound event (or final result) for this pass."""
        return model(
            points=points_to_rows(self.cleaned_points),
            point_count=self.point_count,
            scan_time_millis=scan_time_millis,
            room_dimensions={
                "width": self.bounds.width,
                "height": self.bounds.height,
                "depth": self.bounds.depth,
            },
            walls=[points_to_rows(wall.points) for wall in self.walls],
            furniture=[item.to_dict() for item in self.furniture],
            room_layout=self.layout.to_dict(),
            status=status,
            **extra,
        )

    def to_result(
        self,
        status: str = "completed",
        scan_time_millis: float = 0.0,
        error: Optional[str] = None,
    ) -> ScanResult:
        return self.to_update(status, scan_time_millis, model=ScanResult, error=error)


def run_pipeline(
    vertices: VertexInput,
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """
    Run the complete room-layout pipeline over one point set.

    Args:
        vertices: Flat stride-3 buffer or (N, 3) array
        config: Pipeline configuration

    Returns:
        PipelineResult with cleaned points, walls, furniture, layout and
        the overall scan bounds
    """
    config = config or PipelineConfig()
    stats = PipelineStats()
    stats.start()

    # Stage 1: Classify
    stage_start = time.time()
    classification = classify_points(
        vertices,
        wall_band=config.wall_band,
        furniture_band=config.furniture_band,
    )
    stats.record_stage("classify", time.time() - stage_start,
                       cleaned=len(classification.cleaned),
                       wall_candidates=len(classification.walls),
                       furniture_candidates=len(classification.furniture),
                       discarded=classification.discarded_count)

    if classification.is_empty and config.verbose:
        console.print("[yellow]No points in wall or furniture bands[/yellow]")

    # Stage 2: Cluster
    stage_start = time.time()
    wall_clusters = cluster_walls(
        classification.walls,
        distance=config.wall_cluster_distance,
        min_size=config.wall_min_cluster_size,
    )
    furniture_clusters = cluster_furniture(
        classification.furniture,
        distance=config.furniture_cluster_distance,
        min_size=config.furniture_min_cluster_size,
    )
    stats.record_stage("cluster", time.time() - stage_start,
                       wall_clusters=len(wall_clusters),
                       furniture_clusters=len(furniture_clusters))

    # Stage 3: Furniture and walls
    stage_start = time.time()
    furniture = build_furniture(furniture_clusters)
    walls = build_wall_segments(wall_clusters)
    stats.record_stage("objects", time.time() - stage_start,
                       furniture=len(furniture), walls=len(walls))

    # Stage 4: Layout
    stage_start = time.time()
    bounds = compute_bounding_volume(classification.cleaned)
    layout = synthesize_layout(walls, furniture, bounds)
    stats.record_stage("layout", time.time() - stage_start,
                       room_type=layout.room_type.value,
                       total_area=layout.total_area)
    stats.stop()

    if config.verbose:
        console.print(f"[green]Pipeline: {len(walls)} walls, {len(furniture)} furniture, "
                      f"{layout.room_type.value} ({layout.total_area:.1f} m²) "
                      f"in {stats.total_duration * 1000:.1f} ms[/green]")

    return PipelineResult(
        cleaned_points=read_only(np.array(classification.cleaned)),
        walls=walls,
        furniture=furniture,
        layout=layout,
        bounds=bounds,
        discarded_count=classification.discarded_count,
        stats=stats,
    )


def print_summary(result: PipelineResult, title: str = "Room Layout"):
    """Print a layout summary panel and furniture table."""
    layout = result.layout
    console.print(Panel.fit(
        f"[bold green]{title}[/bold green]\n\n"
        f"Points: {result.point_count:,} ({result.discarded_count:,} discarded)\n"
        f"Bounds: {result.bounds.width:.2f}m x {result.bounds.height:.2f}m x {result.bounds.depth:.2f}m\n"
        f"Room type: {layout.room_type.value}\n"
        f"Area: {layout.total_area:.1f} m²\n"
        f"Walls: {layout.wall_count}  Furniture: {layout.furniture_count}",
        border_style="green"
    ))

    if result.furniture:
        table = Table(title="Detected Furniture")
        table.add_column("ID")
        table.add_column("Type")
        table.add_column("Position")
        table.add_column("Dimensions (w x h x d)")
        for item in result.furniture:
            table.add_row(
                item.id,
                item.type.value,
                ", ".join(f"{v:.2f}" for v in item.position),
                " x ".join(f"{v:.2f}" for v in item.dimensions),
            )
        console.print(table)


@app.command()
def process(
    scan_path: Path = typer.Argument(..., help="Path to exported scan JSON"),
    output_dir: Path = typer.Option(Path("./output"), help="Output directory"),
    svg: bool = typer.Option(True, "--svg/--no-svg", help="Write floorplan.svg"),
    glb: bool = typer.Option(False, "--glb", help="Write layout.glb mesh"),
    verbose: bool = typer.Option(False, "--verbose", help="Print per-stage output"),
):
    """
    Run the room-layout pipeline over an exported scan.

    Writes layout.json (final scan result) and optionally a floorplan
    SVG and a GLB mesh of walls and furniture boxes.
    """
    from .export import ExportError, load_scan_export, export_points
    from .floorplan import FloorplanError, generate_floorplan_svg, generate_layout_mesh

    try:
        document = load_scan_export(scan_path)
    except ExportError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    result = run_pipeline(export_points(document), PipelineConfig(verbose=verbose))
    print_summary(result, title=f"Room Layout: {scan_path.name}")

    output_dir.mkdir(parents=True, exist_ok=True)
    final = result.to_result(scan_time_millis=document.metadata.scan_time)
    layout_path = output_dir / "layout.json"
    with open(layout_path, "w") as f:
        json.dump(final.to_wire(), f, indent=2)
    console.print(f"[green]Wrote {layout_path}[/green]")

    try:
        if svg:
            generate_floorplan_svg(result.layout, result.furniture, output_dir / "floorplan.svg")
        if glb:
            generate_layout_mesh(result.layout, result.furniture, output_dir / "layout.glb")
    except FloorplanError as e:
        console.print(f"[bold red]Floorplan export failed:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def simulate(
    scan_path: Path = typer.Argument(..., help="Path to exported scan JSON"),
    chunks: int = typer.Option(5, help="Number of frames to split the scan into"),
    max_tick_points: int = typer.Option(1000, help="Point cap per streaming tick"),
):
    """Replay an exported scan through a live scan session, tick by tick."""
    from .export import ExportError, load_scan_export
    from .session import ScanSession, SessionConfig, ScanError
    from .sources import ReplayPointSource

    try:
        document = load_scan_export(scan_path)
    except ExportError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    source = ReplayPointSource.from_export(document, chunks=chunks)
    session = ScanSession(source, SessionConfig(max_tick_points=max_tick_points))

    def on_update(update: ScanUpdate):
        layout = update.room_layout
        console.print(f"  {update.status}: points={update.point_count} "
                      f"walls={layout.wall_count} furniture={layout.furniture_count} "
                      f"room={layout.room_type}")

    session.add_listener(on_update)

    try:
        if not session.check_support():
            console.print("[bold red]Error:[/bold red] Scanning not supported by this source")
            raise typer.Exit(1)
        session.start()
        while source.has_pending():
            session.tick()
        final = session.stop()
    except ScanError as e:
        console.print(f"[bold red]Scan failed:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold green]Final: {final.point_count} points, "
                  f"{final.room_layout.room_type}[/bold green]")


@app.command("stages")
def list_stages():
    """List all pipeline stages."""
    stages = [
        ("1. Classify", "Split points into wall and furniture height bands"),
        ("2. Cluster", "Group candidates around seed points"),
        ("3. Objects", "Classify furniture boxes and build wall segments"),
        ("4. Layout", "Synthesize floor plan, area and room type"),
    ]

    console.print("[bold]Pipeline Stages:[/bold]\n")
    for name, desc in stages:
        console.print(f"  [blue]{name}[/blue]: {desc}")


if __name__ == "__main__":
    app()
