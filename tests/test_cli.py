"""Tests for the command line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from export_toolkit.cli.failure_table import format_failure_table
from export_toolkit.cli.main import ExportToolkitCLI
from export_toolkit.core.base import ProcessingStatus
from export_toolkit.core.metadata import MediaMetadata
from export_toolkit.core.models import MediaKind, Strategy

BATCH = "export_toolkit.cli.commands.export.get_metadata_batch"
HARDWARE_CHECK = "export_toolkit.core.ffmpeg.FFmpegProcessor.is_hardware_encoder_available"


def clip(name: str, width: int = 1920, height: int = 1080, timestamp: int = 0) -> MediaMetadata:
    return MediaMetadata(Path(name), name, MediaKind.VIDEO, 5.0, width, height, timestamp, framerate=30.0)


def test_presets_listed(capsys: pytest.CaptureFixture[str]) -> None:
    """Presets are printed grouped by category."""
    assert ExportToolkitCLI().run(["presets"]) == 0
    out = capsys.readouterr().out
    assert "Social:" in out
    assert "Professional:" in out
    assert "portrait" in out
    assert "1080x1920" in out


def test_config_file_adds_presets(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Presets from --config are listed and selectable."""
    config = tmp_path / "custom.yaml"
    config.write_text("presets:\n  story:\n    width: 720\n    height: 1280\n    codec: software_h264\n")
    assert ExportToolkitCLI().run(["--config", str(config), "presets"]) == 0
    assert "story" in capsys.readouterr().out


def test_dry_run_prints_plan_in_argument_order(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Probed files keep the command line order and the planned command is printed, not run."""
    probed = [clip("b.mp4", timestamp=1), clip("a.mp4", timestamp=2)]
    with (
        patch(BATCH, return_value=probed),
        patch(HARDWARE_CHECK, return_value=False),
        patch("export_toolkit.core.ffmpeg.FFmpegProcessor.run_command") as mock_run,
    ):
        code = ExportToolkitCLI().run(
            ["--dry-run", "export", "a.mp4", "b.mp4", "-o", str(tmp_path / "out.mp4"), "--codec", "software_h264"]
        )

    assert code == 0
    mock_run.assert_not_called()
    out = capsys.readouterr().out
    assert "Strategy: fast_concat" in out
    assert "ffmpeg -hide_banner -v error -stats -f concat" in out
    assert not (tmp_path / "out.mp4").exists()


def test_dry_run_suggests_preset_and_names_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Without --preset a portrait source picks the portrait preset; a directory output gets a generated name."""
    with patch(BATCH, return_value=[clip("a.mp4", 1080, 1920)]), patch(HARDWARE_CHECK, return_value=False):
        code = ExportToolkitCLI().run(
            ["--dry-run", "export", "a.mp4", "-o", str(tmp_path), "--codec", "software_h264", "--title", "Hi"]
        )

    assert code == 0
    out = capsys.readouterr().out
    assert "Strategy: filter_graph" in out
    assert "color=white:s=1080x1920" in out
    assert f"{tmp_path}/export-portrait-" in out


def test_export_reports_failure(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A failed export exits 1 and shows the failure table."""
    with (
        patch(BATCH, return_value=[clip("a.mp4", 640, 480)]),
        patch("export_toolkit.cli.commands.export.Exporter.run") as mock_run,
    ):
        mock_run.return_value.ok = False
        mock_run.return_value.status = ProcessingStatus.ERROR
        mock_run.return_value.message = "Conversion failed!"
        code = ExportToolkitCLI().run(["export", "a.mp4", "-o", str(tmp_path / "out.mp4")])

    assert code == 1
    assert "EXPORT FAILURES" in capsys.readouterr().out


def test_export_success(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """A successful export prints the output path."""
    output = tmp_path / "out.mp4"
    with (
        patch(BATCH, return_value=[clip("a.mp4")]),
        patch("export_toolkit.cli.commands.export.Exporter.run") as mock_run,
    ):
        mock_run.return_value.ok = True
        mock_run.return_value.output_file = output
        mock_run.return_value.strategy = Strategy.STREAM_COPY
        mock_run.return_value.processing_time = 1.5
        code = ExportToolkitCLI().run(["export", "a.mp4", "-o", str(output), "--preset", "landscape"])

    assert code == 0
    assert f"Exported {output} (stream_copy, 1.5s)" in capsys.readouterr().out


def test_export_fails_when_a_file_cannot_be_probed(capsys: pytest.CaptureFixture[str]) -> None:
    """Dropping a timeline entry silently would change the export, so it is an error."""
    with patch(BATCH, return_value=[clip("a.mp4")]):
        code = ExportToolkitCLI().run(["export", "a.mp4", "missing.mp4", "-o", "out.mp4"])

    assert code == 1
    assert "missing.mp4" in capsys.readouterr().out


def test_probe_json(capsys: pytest.CaptureFixture[str]) -> None:
    """Probe prints metadata as JSON."""
    with patch("export_toolkit.cli.commands.media.get_metadata_batch", return_value=[clip("a.mp4")]):
        assert ExportToolkitCLI().run(["probe", "a.mp4", "--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data[0]["path"] == "a.mp4"
    assert data[0]["media_type"] == "video"


def test_probe_lists_failures(capsys: pytest.CaptureFixture[str]) -> None:
    """Files missing from the probe results are listed as failures."""
    with patch("export_toolkit.cli.commands.media.get_metadata_batch", return_value=[clip("a.mp4")]):
        assert ExportToolkitCLI().run(["probe", "a.mp4", "notes.txt"]) == 1

    out = capsys.readouterr().out
    assert "PROBE FAILURES" in out
    assert "Unsupported media type" in out


def test_thumbnails_written(tmp_path: Path) -> None:
    """Decoded thumbnails land in the output directory."""
    out_dir = tmp_path / "thumbs"
    with patch(
        "export_toolkit.cli.commands.media.generate_thumbnails_batch",
        return_value=[(Path("a.mp4"), "data:image/jpeg;base64,anBn")],
    ):
        assert ExportToolkitCLI().run(["thumbnails", "a.mp4", "--output-dir", str(out_dir)]) == 0

    assert (out_dir / "a.jpg").read_bytes() == b"jpg"


def test_info_without_engine(capsys: pytest.CaptureFixture[str]) -> None:
    """Missing binaries are reported and the command fails."""
    with patch("export_toolkit.core.ffmpeg.shutil.which", return_value=None):
        assert ExportToolkitCLI().run(["info"]) == 1
    assert "Missing" in capsys.readouterr().out


def test_failure_table_truncates() -> None:
    """Long names and messages are shortened."""
    table = format_failure_table([(Path("x" * 50 + ".mp4"), "e" * 60)], "export")
    assert "x" * 34 + "..." in table
    assert "e" * 29 + "..." in table
    assert format_failure_table([]) == ""
