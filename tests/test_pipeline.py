"""Integration tests for the processing pipeline."""

import json
from pathlib import Path

import numpy as np
import pytest


def create_test_export(output_dir: Path, points: np.ndarray, scan_time: float = 1700000000000.0) -> Path:
    """Write a scan export document for the given points."""
    from roomscan.export import build_scan_export, write_scan_export

    document = build_scan_export(points, scan_time=scan_time, source="test")
    return write_scan_export(document, output_dir / "scan")


class TestValidation:
    """Tests for wire and export validation."""

    def test_validate_valid_export(self, tmp_path, room_cloud):
        """Test validation of a valid export document."""
        from utils.validation import validate_export

        export_path = create_test_export(tmp_path, room_cloud)
        is_valid, document, errors = validate_export(export_path)

        assert is_valid
        assert document is not None
        assert len(errors) == 0
        assert document.metadata.point_count == 200
        assert document.metadata.scan_time == 1700000000000.0

    def test_validate_missing_file(self, tmp_path):
        """Test validation of missing file."""
        from utils.validation import validate_export

        is_valid, document, errors = validate_export(tmp_path / "nonexistent.json")

        assert not is_valid
        assert document is None
        assert "does not exist" in errors[0]

    def test_validate_invalid_json(self, tmp_path):
        """Test validation of invalid JSON."""
        from utils.validation import validate_export

        export_path = tmp_path / "scan.json"
        export_path.write_text("{ invalid json }")

        is_valid, document, errors = validate_export(export_path)

        assert not is_valid
        assert "Invalid JSON" in errors[0]

    @pytest.mark.parametrize("data", [
        {"points": [0, 1, 2, 3], "metadata": {"pointCount": 1}},
        {"points": [0, 1, 2], "metadata": {"pointCount": 2}},
        {"points": [0, 1, 2], "colors": [1, 2], "metadata": {"pointCount": 1}},
        {"points": [0, 1, 2], "colors": [1, 2, 300], "metadata": {"pointCount": 1}},
        {"points": [0, 1, 2]},
    ])
    def test_validate_bad_documents(self, tmp_path, data):
        """Broken buffers, counts and colors are rejected."""
        from utils.validation import validate_export

        export_path = tmp_path / "scan.json"
        export_path.write_text(json.dumps(data))

        is_valid, document, errors = validate_export(export_path)

        assert not is_valid
        assert document is None
        assert errors

    def test_scan_time_alias(self):
        """Updates accept both scanTimeMillis and scanTime."""
        from utils.validation import ScanUpdate

        assert ScanUpdate.model_validate({"scanTimeMillis": 1500}).scan_time_millis == 1500
        assert ScanUpdate.model_validate({"scanTime": 2500}).scan_time_millis == 2500

    def test_invalid_status(self):
        from pydantic import ValidationError
        from utils.validation import ScanResult, ScanUpdate

        with pytest.raises(ValidationError):
            ScanUpdate(status="done")
        with pytest.raises(ValidationError):
            ScanResult(status="scanning")

    def test_invalid_furniture_entry(self):
        from pydantic import ValidationError
        from utils.validation import FurnitureEntry

        with pytest.raises(ValidationError):
            FurnitureEntry(id="f", type="sofa", position=[0, 0, 0], dimensions=[1, 1, 1], confidence=0.75)
        with pytest.raises(ValidationError):
            FurnitureEntry(id="f", type="bed", position=[0, 0, 0], dimensions=[1, 1, 1], confidence=1.5)


class TestPipeline:
    """End-to-end tests over the synthetic room cloud."""

    def test_room_cloud_layout(self, room_cloud):
        """200 points give two walls and one table."""
        from roomscan.process import run_pipeline

        result = run_pipeline(room_cloud)

        assert result.point_count == 200
        assert result.discarded_count == 0
        assert len(result.walls) == 2
        assert len(result.furniture) == 1
        assert result.furniture[0].type.value == "table"
        assert result.furniture[0].id == "furniture_0"
        assert result.layout.room_type.value == "room"
        assert result.layout.wall_count == 2
        assert result.layout.furniture_count == 1

    def test_area_from_overall_bounds(self, room_cloud):
        from roomscan.process import run_pipeline

        result = run_pipeline(room_cloud)

        assert result.bounds.width == pytest.approx(5.625)
        assert result.bounds.depth == pytest.approx(0.5)
        assert result.layout.total_area == pytest.approx(result.bounds.width * result.bounds.depth)

    def test_flat_buffer_input(self, room_cloud):
        """A flat vertex buffer gives the same layout as an (N, 3) array."""
        from roomscan.process import run_pipeline

        result = run_pipeline(room_cloud.reshape(-1).tolist())

        assert len(result.walls) == 2
        assert len(result.furniture) == 1

    def test_non_finite_points_dropped(self, room_cloud):
        from roomscan.process import run_pipeline

        noisy = np.vstack([room_cloud, [[np.nan, 1.0, 0.0], [0.0, np.inf, 0.0]]])
        result = run_pipeline(noisy)

        assert result.point_count == 200
        assert result.discarded_count == 2
        assert np.isfinite(result.cleaned_points).all()

    def test_empty_input(self):
        """An empty cloud yields an empty layout, not an error."""
        from roomscan.process import run_pipeline

        result = run_pipeline([])

        assert result.point_count == 0
        assert result.walls == ()
        assert result.furniture == ()
        assert result.layout.total_area == 0.0
        assert result.layout.room_type.value == "room"

    def test_custom_config(self, room_cloud):
        """A tighter wall distance splits the table and the stack above it."""
        from roomscan.process import PipelineConfig, run_pipeline

        result = run_pipeline(room_cloud, PipelineConfig(wall_cluster_distance=0.5))

        assert len(result.walls) > 2

    def test_stats_recorded(self, room_cloud):
        from roomscan.process import run_pipeline

        result = run_pipeline(room_cloud)
        stats = result.stats.to_dict()

        assert set(stats["stages"]) == {"classify", "cluster", "objects", "layout"}
        assert stats["stages"]["cluster"]["wall_clusters"] == 2
        assert stats["total_duration_seconds"] >= 0

    def test_update_wire_format(self, room_cloud):
        """Streaming updates serialize with camelCase keys."""
        from roomscan.process import run_pipeline

        update = run_pipeline(room_cloud).to_update(status="scanning", scan_time_millis=1500.0)
        wire = update.to_wire()

        assert set(wire) == {
            "points", "pointCount", "scanTimeMillis", "roomDimensions",
            "walls", "furniture", "roomLayout", "status",
        }
        assert wire["pointCount"] == 200
        assert len(wire["points"]) == 200
        assert wire["scanTimeMillis"] == 1500.0
        assert wire["roomLayout"]["wallCount"] == 2
        assert wire["roomLayout"]["floorPlan"][0]["id"] == "wall_0"
        assert len(wire["roomLayout"]["floorPlan"][0]["points"][0]) == 2
        assert wire["furniture"][0]["type"] == "table"
        assert wire["furniture"][0]["confidence"] == 0.75
        assert len(wire["walls"]) == 2

    def test_result_wire_format(self, room_cloud):
        from roomscan.process import run_pipeline

        pipeline_result = run_pipeline(room_cloud)
        final = pipeline_result.to_result(scan_time_millis=10.0)
        failed = pipeline_result.to_result(status="stopped", error="sensor lost")

        assert final.succeeded
        assert "error" not in final.to_wire()
        assert final.to_wire()["status"] == "completed"
        assert not failed.succeeded
        assert failed.to_wire()["error"] == "sensor lost"

    def test_wire_round_trip(self, room_cloud):
        from roomscan.process import run_pipeline
        from utils.validation import ScanUpdate

        update = run_pipeline(room_cloud).to_update()
        parsed = ScanUpdate.model_validate(json.loads(json.dumps(update.to_wire())))

        assert parsed.point_count == update.point_count
        assert parsed.room_layout.total_area == pytest.approx(update.room_layout.total_area)


class TestExport:
    """Tests for export documents and PLY output."""

    def test_height_colors(self):
        from roomscan.export import height_colors

        colors = height_colors([[0, 0, 0], [0, 1, 0], [0, 3, 0], [0, -3, 0]])

        assert colors.dtype == np.uint8
        np.testing.assert_array_equal(colors[0], [120, 150, 100])
        np.testing.assert_array_equal(colors[1], [180, 120, 100])
        np.testing.assert_array_equal(colors[2], [255, 60, 100])
        np.testing.assert_array_equal(colors[3], [0, 240, 100])

    def test_export_round_trip(self, tmp_path, room_cloud):
        from roomscan.export import export_points, load_scan_export

        export_path = create_test_export(tmp_path, room_cloud)
        document = load_scan_export(export_path)

        assert export_path.suffix == ".json"
        np.testing.assert_allclose(export_points(document), room_cloud)
        assert len(document.colors) == 600

    def test_export_keys(self, tmp_path, room_cloud):
        export_path = create_test_export(tmp_path, room_cloud)

        with open(export_path) as f:
            data = json.load(f)

        assert set(data) == {"points", "colors", "metadata"}
        assert data["metadata"]["pointCount"] == 200
        assert data["metadata"]["scanTime"] == 1700000000000.0
        assert data["metadata"]["source"] == "test"

    def test_export_without_colors(self, room_cloud):
        from roomscan.export import build_scan_export

        document = build_scan_export(room_cloud, include_colors=False)

        assert document.colors is None

    def test_export_scan_result(self, room_cloud):
        from roomscan.export import export_scan_result
        from roomscan.process import run_pipeline

        final = run_pipeline(room_cloud).to_result(scan_time_millis=42.0)
        document = export_scan_result(final)

        assert document.metadata.point_count == 200
        assert document.metadata.scan_time == 42.0
        assert document.metadata.room_dimensions.width == pytest.approx(5.625)

    def test_load_invalid_raises(self, tmp_path):
        from roomscan.export import ExportError, load_scan_export

        export_path = tmp_path / "scan.json"
        export_path.write_text(json.dumps({"points": [0, 1], "metadata": {"pointCount": 0}}))

        with pytest.raises(ExportError):
            load_scan_export(export_path)

    def test_export_ply(self, tmp_path, room_cloud):
        from roomscan.export import build_scan_export, export_ply

        ply_path = export_ply(build_scan_export(room_cloud), tmp_path / "cloud")

        assert ply_path.suffix == ".ply"
        assert b"element vertex 200" in ply_path.read_bytes()

    def test_export_ply_empty(self, tmp_path):
        from roomscan.export import ExportError, export_ply

        with pytest.raises(ExportError):
            export_ply(np.empty((0, 3)), tmp_path / "cloud")


class TestFloorplan:
    """Tests for SVG and mesh artefacts."""

    def test_floorplan_svg(self, tmp_path, room_cloud):
        from roomscan.floorplan import generate_floorplan_svg
        from roomscan.process import run_pipeline

        result = run_pipeline(room_cloud)
        svg_path = generate_floorplan_svg(result.layout, result.furniture, tmp_path / "floorplan")

        content = svg_path.read_text()
        assert svg_path.suffix == ".svg"
        assert 'id="wall_0"' in content
        assert 'id="wall_1"' in content
        assert 'id="furniture_0"' in content
        assert "TABLE" in content

    def test_empty_floorplan_svg(self, tmp_path):
        from roomscan.floorplan import generate_floorplan_svg
        from roomscan.models import RoomLayout

        svg_path = generate_floorplan_svg(RoomLayout(), [], tmp_path / "empty.svg")

        assert svg_path.read_text().startswith("<svg")

    def test_layout_mesh_boxes(self):
        """One box per polyline edge plus one per furniture object."""
        from roomscan.floorplan import build_layout_mesh
        from roomscan.models import FloorPlanWall, FurnitureObject, FurnitureType, RoomLayout

        layout = RoomLayout(
            floor_plan=(FloorPlanWall(id="wall_0", points=((0, 0), (3, 0), (3, 4)), length=7.0),),
            wall_count=1,
            furniture_count=1,
        )
        furniture = [FurnitureObject(
            id="furniture_0",
            type=FurnitureType.TABLE,
            position=(1.0, 0.4, 1.0),
            dimensions=(1.0, 0.4, 0.6),
            confidence=0.75,
        )]

        vertices, faces, stats = build_layout_mesh(layout, furniture)

        assert stats["wall_boxes"] == 2
        assert stats["furniture_boxes"] == 1
        assert vertices.shape == (24, 3)
        assert faces.shape == (36, 3)
        assert faces.max() < len(vertices)

    def test_degenerate_edges_skipped(self):
        from roomscan.floorplan import build_layout_mesh
        from roomscan.models import FloorPlanWall, RoomLayout

        layout = RoomLayout(
            floor_plan=(FloorPlanWall(id="wall_0", points=((1, 1), (1, 1.001)), length=0.001),),
            wall_count=1,
        )

        _, faces, stats = build_layout_mesh(layout, [])

        assert stats["wall_boxes"] == 0
        assert len(faces) == 0

    def test_layout_mesh_glb(self, tmp_path, room_cloud):
        from roomscan.floorplan import generate_layout_mesh
        from roomscan.process import run_pipeline

        result = run_pipeline(room_cloud)
        mesh_path, stats = generate_layout_mesh(result.layout, result.furniture, tmp_path / "layout")

        assert mesh_path.suffix == ".glb"
        assert mesh_path.exists()
        assert stats["file_size"] > 0
        assert stats["furniture_boxes"] == 1

    def test_empty_layout_mesh_raises(self, tmp_path):
        from roomscan.floorplan import FloorplanError, generate_layout_mesh
        from roomscan.models import RoomLayout

        with pytest.raises(FloorplanError):
            generate_layout_mesh(RoomLayout(), [], tmp_path / "layout")


class TestCLI:
    """Tests for the command line interface."""

    def test_process_command(self, tmp_path, room_cloud):
        from typer.testing import CliRunner
        from roomscan.process import app

        export_path = create_test_export(tmp_path, room_cloud)
        output_dir = tmp_path / "out"

        result = CliRunner().invoke(app, ["process", str(export_path), "--output-dir", str(output_dir), "--glb"])

        assert result.exit_code == 0, result.output
        with open(output_dir / "layout.json") as f:
            layout = json.load(f)
        assert layout["status"] == "completed"
        assert layout["pointCount"] == 200
        assert layout["scanTimeMillis"] == 1700000000000.0
        assert layout["roomLayout"]["wallCount"] == 2
        assert (output_dir / "floorplan.svg").exists()
        assert (output_dir / "layout.glb").exists()

    def test_process_invalid_export(self, tmp_path):
        from typer.testing import CliRunner
        from roomscan.process import app

        export_path = tmp_path / "scan.json"
        export_path.write_text("{ invalid json }")

        result = CliRunner().invoke(app, ["process", str(export_path), "--output-dir", str(tmp_path / "out")])

        assert result.exit_code == 1

    def test_simulate_command(self, tmp_path, room_cloud):
        from typer.testing import CliRunner
        from roomscan.process import app

        export_path = create_test_export(tmp_path, room_cloud)

        result = CliRunner().invoke(app, ["simulate", str(export_path), "--chunks", "4"])

        assert result.exit_code == 0, result.output
        assert "scanning: points=" in result.output
        assert "Final: 200 points" in result.output

    def test_simulate_missing_file(self, tmp_path):
        from typer.testing import CliRunner
        from roomscan.process import app

        result = CliRunner().invoke(app, ["simulate", str(tmp_path / "missing.json")])

        assert result.exit_code == 1

    def test_stages_command(self):
        from typer.testing import CliRunner
        from roomscan.process import app

        result = CliRunner().invoke(app, ["stages"])

        assert result.exit_code == 0
        assert "Classify" in result.output
