"""Tests for metadata extraction and thumbnails."""

import base64
import logging
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from export_toolkit.config import ExportToolkitConfig
from export_toolkit.core.base import ConfigurationError
from export_toolkit.core.ffmpeg import BinaryLocator, EncodeError, FFmpegProbe, FFmpegProcessor, ProbeParseError
from export_toolkit.core.metadata import (
    MediaMetadata,
    generate_thumbnail,
    generate_thumbnails_batch,
    get_metadata,
    get_metadata_batch,
    media_kind_for,
)
from export_toolkit.core.models import MediaKind

VIDEO_PROBE = {
    "streams": [
        {"codec_type": "audio", "bit_rate": "128000"},
        {"codec_type": "video", "width": 1080, "height": 1920, "r_frame_rate": "30000/1001", "bit_rate": "8000000"},
    ],
    "format": {"duration": "12.5", "bit_rate": "8200000"},
}
IMAGE_PROBE = {"streams": [{"codec_type": "video", "width": 4032, "height": 3024}], "format": {}}


@pytest.fixture
def config() -> ExportToolkitConfig:
    return ExportToolkitConfig()


def touch(path: Path) -> Path:
    path.write_bytes(b"\0")
    return path


def test_media_kind_by_extension(config: ExportToolkitConfig) -> None:
    """Extensions are matched case-insensitively."""
    assert media_kind_for(Path("a.MP4"), config) is MediaKind.VIDEO
    assert media_kind_for(Path("b.jpeg"), config) is MediaKind.IMAGE
    assert media_kind_for(Path("c.txt"), config) is None


def test_video_metadata(tmp_path: Path, config: ExportToolkitConfig) -> None:
    """The first video stream supplies geometry, rate and bitrate; the container the duration."""
    path = touch(tmp_path / "clip.mov")
    probe = Mock(spec=FFmpegProbe)
    probe.probe_media.return_value = VIDEO_PROBE

    metadata = get_metadata(path, probe=probe, config=config)

    assert metadata.name == "clip.mov"
    assert metadata.media_type is MediaKind.VIDEO
    assert (metadata.width, metadata.height) == (1080, 1920)
    assert metadata.framerate == pytest.approx(29.97, abs=0.01)
    assert metadata.bitrate == 8_000_000
    assert metadata.duration == 12.5
    assert metadata.timestamp > 0
    assert metadata.thumbnail is None


def test_image_metadata_uses_still_duration(tmp_path: Path, config: ExportToolkitConfig) -> None:
    """Stills get the configured duration regardless of the probe."""
    path = touch(tmp_path / "photo.jpg")
    probe = Mock(spec=FFmpegProbe)
    probe.probe_media.return_value = IMAGE_PROBE

    metadata = get_metadata(path, probe=probe, config=config)

    assert metadata.media_type is MediaKind.IMAGE
    assert metadata.duration == 4.0
    assert metadata.bitrate is None
    assert metadata.to_segment().is_image


def test_missing_streams_default_to_zero(tmp_path: Path, config: ExportToolkitConfig) -> None:
    """Audio-only probes leave geometry at zero and fall back to the container bitrate."""
    path = touch(tmp_path / "clip.mp4")
    probe = Mock(spec=FFmpegProbe)
    probe.probe_media.return_value = {"streams": [{"codec_type": "audio"}], "format": {"bit_rate": "192000"}}

    metadata = get_metadata(path, probe=probe, config=config)

    assert (metadata.width, metadata.height) == (0, 0)
    assert metadata.framerate is None
    assert metadata.bitrate == 192_000
    assert metadata.duration == 0.0


def test_unsupported_extension_rejected(tmp_path: Path, config: ExportToolkitConfig) -> None:
    """Files that are neither video nor image are not probed."""
    probe = Mock(spec=FFmpegProbe)
    with pytest.raises(ConfigurationError, match="Unsupported media type"):
        get_metadata(touch(tmp_path / "notes.txt"), probe=probe, config=config)
    probe.probe_media.assert_not_called()


def test_to_segment_leaves_unknown_geometry_unset() -> None:
    """Zero width/height become unknown on the segment."""
    metadata = MediaMetadata(Path("/m/a.mp4"), "a.mp4", MediaKind.VIDEO, 3.0, 0, 0, 0)
    segment = metadata.to_segment()
    assert segment.width is None
    assert segment.height is None
    assert metadata.to_dict()["media_type"] == "video"


def test_batch_drops_failures_and_sorts_by_timestamp(tmp_path: Path, config: ExportToolkitConfig) -> None:
    """Failed files are skipped; the rest come back oldest first."""
    newer = touch(tmp_path / "newer.mp4")
    older = touch(tmp_path / "older.mp4")
    broken = touch(tmp_path / "broken.mp4")
    timestamps = {newer: 2000, older: 1000, broken: 500}

    probe = Mock(spec=FFmpegProbe)

    def probe_media(path: Path) -> dict:
        if path == broken:
            msg = "bad json"
            raise ProbeParseError(msg)
        return VIDEO_PROBE

    probe.probe_media.side_effect = probe_media

    with (
        patch("export_toolkit.core.metadata.file_timestamp", side_effect=lambda p: timestamps[p]),
        patch("export_toolkit.core.metadata.get_thermal_safe_worker_count", return_value=2),
    ):
        results = get_metadata_batch([newer, broken, older], workers=2, probe=probe, config=config)

    assert [m.path for m in results] == [older, newer]


@pytest.mark.parametrize(
    "probe_data",
    [
        {"streams": None, "format": {"duration": "3"}},
        {"streams": ["video"], "format": {}},
        {"streams": [], "format": ["duration", "3"]},
    ],
)
def test_misshapen_metadata_json_is_a_parse_error(
    tmp_path: Path, config: ExportToolkitConfig, probe_data: dict
) -> None:
    """Valid JSON of the wrong shape is reported as a parse failure."""
    path = touch(tmp_path / "clip.mp4")
    probe = Mock(spec=FFmpegProbe)
    probe.probe_media.return_value = probe_data

    with pytest.raises(ProbeParseError, match="Malformed"):
        get_metadata(path, probe=probe, config=config)


def test_batch_survives_malformed_and_unexpected_failures(tmp_path: Path, config: ExportToolkitConfig) -> None:
    """One odd file never takes the rest of the batch down with it."""
    good = touch(tmp_path / "good.mp4")
    malformed = touch(tmp_path / "malformed.mp4")
    crashing = touch(tmp_path / "crashing.mp4")

    def probe_media(path: Path) -> dict:
        if path == malformed:
            return {"streams": None, "format": {}}
        if path == crashing:
            msg = "unexpected"
            raise RuntimeError(msg)
        return VIDEO_PROBE

    probe = Mock(spec=FFmpegProbe)
    probe.probe_media.side_effect = probe_media

    with patch("export_toolkit.core.metadata.get_thermal_safe_worker_count", return_value=2):
        results = get_metadata_batch([good, malformed, crashing], workers=2, probe=probe, config=config)

    assert [m.path for m in results] == [good]


def test_batch_of_nothing() -> None:
    """An empty batch returns an empty list without starting workers."""
    with patch("export_toolkit.core.metadata.get_thermal_safe_worker_count", return_value=1):
        assert get_metadata_batch([], probe=Mock(spec=FFmpegProbe), config=ExportToolkitConfig()) == []


def frame_writer(data: bytes = b"\xff\xd8jpeg"):
    """A processor double that writes a fake frame to the requested output."""
    processor = Mock(spec=FFmpegProcessor)
    written: list[Path] = []

    def run_command(args, file_path=None, **kwargs):
        out = Path(args[-1])
        out.write_bytes(data)
        written.append(out)
        return Mock(returncode=0)

    processor.run_command.side_effect = run_command
    return processor, written


def test_video_thumbnail_is_data_url() -> None:
    """A video frame is grabbed one second in and returned base64-encoded."""
    processor, written = frame_writer()

    thumbnail = generate_thumbnail(Path("/m/clip.mp4"), MediaKind.VIDEO, processor=processor)

    assert thumbnail == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8jpeg").decode()
    args = processor.run_command.call_args[0][0]
    assert args[args.index("-ss") + 1] == "00:00:01"
    assert args[args.index("-vf") + 1] == "scale=200:200:force_original_aspect_ratio=decrease"
    assert not written[0].exists()


def test_image_thumbnail_has_no_seek() -> None:
    """Stills are scaled from their only frame."""
    processor, _ = frame_writer()
    assert generate_thumbnail(Path("/m/p.png"), "image", processor=processor, size=64) is not None
    args = processor.run_command.call_args[0][0]
    assert "-ss" not in args
    assert "scale=64:64:force_original_aspect_ratio=decrease" in args


def test_thumbnail_failure_returns_none() -> None:
    """Engine failures and unknown kinds yield no thumbnail, and no temp file is left behind."""
    processor = Mock(spec=FFmpegProcessor)
    outputs: list[Path] = []

    def run_command(args, file_path=None, **kwargs):
        outputs.append(Path(args[-1]))
        msg = "Invalid data found when processing input"
        raise EncodeError(msg)

    processor.run_command.side_effect = run_command

    assert generate_thumbnail(Path("/m/clip.mp4"), MediaKind.VIDEO, processor=processor) is None
    assert not outputs[0].exists()
    assert generate_thumbnail(Path("/m/a.doc"), "document", processor=processor) is None


def test_thumbnail_batch_pairs_paths() -> None:
    """Every item comes back paired with its thumbnail or None."""
    processor = Mock(spec=FFmpegProcessor)

    def run_command(args, file_path=None, **kwargs):
        if "bad" in args[args.index("-i") + 1]:
            msg = "Conversion failed!"
            raise EncodeError(msg)
        Path(args[-1]).write_bytes(b"jpg")
        return Mock(returncode=0)

    processor.run_command.side_effect = run_command

    with patch("export_toolkit.core.metadata.get_thermal_safe_worker_count", return_value=2):
        results = dict(
            generate_thumbnails_batch(
                [(Path("/m/good.mp4"), MediaKind.VIDEO), (Path("/m/bad.mp4"), "video")], processor=processor
            )
        )

    assert results[Path("/m/good.mp4")].startswith("data:image/jpeg;base64,")
    assert results[Path("/m/bad.mp4")] is None


def test_thumbnail_failure_logged_as_warning(caplog: pytest.LogCaptureFixture) -> None:
    """A frame that cannot be grabbed is a warning, not an error."""
    caplog.set_level(logging.DEBUG)
    with patch("export_toolkit.core.ffmpeg.shutil.which", side_effect=lambda name: f"/usr/bin/{name}"):
        processor = FFmpegProcessor(BinaryLocator())
        with patch(
            "export_toolkit.core.ffmpeg.subprocess.run",
            return_value=Mock(returncode=1, stdout="", stderr="Invalid data found when processing input\n"),
        ):
            assert generate_thumbnail(Path("/m/clip.mp4"), MediaKind.VIDEO, processor=processor) is None

    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert any(
        r.levelno == logging.WARNING and "Thumbnail generation failed" in r.getMessage() for r in caplog.records
    )
