"""Shared fixtures for the export toolkit tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

from export_toolkit.config import ExportToolkitConfig, reset_config
from export_toolkit.core.config import ConfigManager
from export_toolkit.core.ffmpeg import FFmpegProcessor
from export_toolkit.core.models import ExportTarget, MediaKind, Segment


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep a stray config.yaml in the working directory out of the tests."""
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config_manager() -> ConfigManager:
    return ConfigManager(config=ExportToolkitConfig())


@pytest.fixture
def landscape() -> ExportTarget:
    return ExportTarget(preset_id="landscape", width=1920, height=1080)


def make_video(
    name: str = "clip.mp4",
    width: int | None = 1920,
    height: int | None = 1080,
    framerate: float | None = 30.0,
    duration: float = 10.0,
) -> Segment:
    return Segment(Path("/media") / name, MediaKind.VIDEO, duration, width, height, framerate)


def make_image(name: str = "still.jpg", duration: float = 4.0) -> Segment:
    return Segment(Path("/media") / name, MediaKind.IMAGE, duration)


def fake_processor(*, hardware: bool = True, create_output: bool = True) -> Mock:
    """A processor double whose run_command writes the file named by the last argument."""
    processor = Mock(spec=FFmpegProcessor)
    processor.is_hardware_encoder_available.return_value = hardware

    def run_command(args, file_path=None, **kwargs):
        if create_output:
            Path(args[-1]).write_bytes(b"video")
        return Mock(returncode=0, stdout="", stderr="")

    processor.run_command.side_effect = run_command
    return processor
