"""Media metadata extraction and thumbnail generation."""

from __future__ import annotations

import base64
import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tqdm import tqdm

from .base import ConfigurationError, ProcessingError
from .ffmpeg import BinaryLocator, FFmpegProbe, FFmpegProcessor, ProbeParseError, parse_frame_rate
from .models import MediaKind, Segment
from .thermal import Workload, get_thermal_safe_worker_count

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from ..config.settings import ExportToolkitConfig

LOG = logging.getLogger(__name__)


@dataclass
class MediaMetadata:
    """Probed description of one media file."""

    path: Path
    name: str
    media_type: MediaKind
    duration: float
    width: int
    height: int
    timestamp: int
    thumbnail: str | None = None
    framerate: float | None = None
    bitrate: int | None = None

    def to_segment(self) -> Segment:
        """Convert into an export segment; unknown dimensions stay unset."""
        return Segment(
            path=self.path,
            kind=self.media_type,
            duration=self.duration,
            width=self.width or None,
            height=self.height or None,
            framerate=self.framerate,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["path"] = str(self.path)
        data["media_type"] = self.media_type.value
        return data


def _get_config(config: ExportToolkitConfig | None) -> ExportToolkitConfig:
    if config is not None:
        return config
    from ..config import get_config

    return get_config()


def media_kind_for(file_path: Path, config: ExportToolkitConfig | None = None) -> MediaKind | None:
    """Classify a file by extension."""
    media = _get_config(config).media
    suffix = Path(file_path).suffix.lower()
    if suffix in media.video_extensions:
        return MediaKind.VIDEO
    if suffix in media.image_extensions:
        return MediaKind.IMAGE
    return None


def file_timestamp(file_path: Path) -> int:
    """Creation time in ms where the platform records it, else modification time."""
    stat = Path(file_path).stat()
    seconds = getattr(stat, "st_birthtime", None) or stat.st_mtime
    return int(seconds * 1000)


def _parse_int(value: object) -> int | None:
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None


def get_metadata(
    file_path: Path,
    probe: FFmpegProbe | None = None,
    config: ExportToolkitConfig | None = None,
) -> MediaMetadata:
    """
    Probe a single file.

    Args:
        file_path: Media file to describe
        probe: Probe to use (a default one is built from the configuration)
        config: Configuration for extension lists and the still-image duration

    Returns:
        Metadata without a thumbnail

    Raises:
        ConfigurationError: The extension is not a supported video or image type
        FFmpegError: ffprobe failed or returned malformed output

    """
    file_path = Path(file_path)
    config = _get_config(config)
    kind = media_kind_for(file_path, config)
    if kind is None:
        msg = f"Unsupported media type: {file_path.name}"
        raise ConfigurationError(msg, file_path=file_path)

    probe = probe or FFmpegProbe(BinaryLocator(config.ffmpeg))
    probe_data = probe.probe_media(file_path)

    streams = probe_data.get("streams", [])
    format_info = probe_data.get("format", {})
    if not isinstance(streams, list) or not all(isinstance(s, dict) for s in streams):
        msg = f"Malformed stream list in ffprobe output for {file_path}"
        raise ProbeParseError(msg, file_path=file_path)
    if not isinstance(format_info, dict):
        msg = f"Malformed format section in ffprobe output for {file_path}"
        raise ProbeParseError(msg, file_path=file_path)

    video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)

    width = height = 0
    framerate = bitrate = None
    if video_stream is not None:
        width = _parse_int(video_stream.get("width")) or 0
        height = _parse_int(video_stream.get("height")) or 0
        framerate = parse_frame_rate(video_stream.get("r_frame_rate"))
        bitrate = _parse_int(video_stream.get("bit_rate"))
    if bitrate is None:
        bitrate = _parse_int(format_info.get("bit_rate"))

    if kind is MediaKind.IMAGE:
        duration = config.media.image_duration
    else:
        try:
            duration = float(format_info.get("duration", 0.0))
        except (TypeError, ValueError):
            duration = 0.0

    return MediaMetadata(
        path=file_path,
        name=file_path.name,
        media_type=kind,
        duration=duration,
        width=width,
        height=height,
        timestamp=file_timestamp(file_path),
        framerate=framerate,
        bitrate=bitrate,
    )


def generate_thumbnail(
    file_path: Path,
    media_type: MediaKind | str,
    processor: FFmpegProcessor | None = None,
    size: int | None = None,
) -> str | None:
    """Grab one frame as a JPEG data URL; None when anything goes wrong."""
    config = _get_config(None)
    processor = processor or FFmpegProcessor(BinaryLocator(config.ffmpeg))
    size = size or config.media.thumbnail_size
    try:
        kind = MediaKind(media_type)
    except ValueError:
        LOG.debug("No thumbnail for unknown media type %r", media_type)
        return None

    fd, name = tempfile.mkstemp(prefix="thumb_", suffix=".jpg")
    os.close(fd)
    thumb_path = Path(name)
    try:
        args = ["-hide_banner", "-v", "error"]
        if kind is MediaKind.VIDEO:
            args.extend(["-ss", "00:00:01"])
        args.extend(
            [
                "-i",
                str(file_path),
                "-frames:v",
                "1",
                "-vf",
                f"scale={size}:{size}:force_original_aspect_ratio=decrease",
                "-y",
                str(thumb_path),
            ]
        )
        processor.run_command(args, file_path=Path(file_path), failure_log_level=logging.DEBUG)
        data = thumb_path.read_bytes()
        if not data:
            return None
        return "data:image/jpeg;base64," + base64.b64encode(data).decode("ascii")
    except (ProcessingError, OSError) as e:
        LOG.warning("Thumbnail generation failed for %s: %s", file_path, e)
        return None
    finally:
        thumb_path.unlink(missing_ok=True)


def _resolve_workers(workers: int | None, workload: Workload) -> int:
    if workers is None:
        workers = _get_config(None).global_.default_workers
    return get_thermal_safe_worker_count(workers, workload)


def _fan_out(
    func: Callable[[Any], Any],
    items: Sequence[Any],
    workers: int,
    desc: str,
    *,
    show_progress: bool,
) -> list[tuple[Any, Any]]:
    """Run func over items in a bounded pool, yielding (item, result) in completion order."""
    results: list[tuple[Any, Any]] = []
    if not items:
        return results

    with (
        tqdm(total=len(items), desc=desc, unit="file", disable=not show_progress) as progress_bar,
        ThreadPoolExecutor(max_workers=workers) as executor,
    ):
        future_to_item = {executor.submit(func, item): item for item in items}
        for future in as_completed(future_to_item):
            item = future_to_item[future]
            try:
                results.append((item, future.result()))
            except Exception as e:
                LOG.warning("Skipping %s: %s", item, e)
            finally:
                progress_bar.update(1)
    return results


def get_metadata_batch(
    paths: Iterable[Path],
    workers: int | None = None,
    *,
    probe: FFmpegProbe | None = None,
    config: ExportToolkitConfig | None = None,
    show_progress: bool = False,
) -> list[MediaMetadata]:
    """Probe many files concurrently. Failed files are dropped; results are sorted by timestamp."""
    config = _get_config(config)
    probe = probe or FFmpegProbe(BinaryLocator(config.ffmpeg))
    path_list = [Path(p) for p in paths]
    max_workers = _resolve_workers(workers, "probe")

    LOG.info("Probing %d files with %d workers", len(path_list), max_workers)
    pairs = _fan_out(
        lambda p: get_metadata(p, probe=probe, config=config),
        path_list,
        max_workers,
        "Probing media",
        show_progress=show_progress,
    )

    results = [metadata for _, metadata in pairs]
    results.sort(key=lambda m: m.timestamp)
    if len(results) < len(path_list):
        LOG.info("Probed %d of %d files", len(results), len(path_list))
    return results


def generate_thumbnails_batch(
    items: Iterable[tuple[Path, MediaKind | str]],
    workers: int | None = None,
    *,
    processor: FFmpegProcessor | None = None,
    show_progress: bool = False,
) -> list[tuple[Path, str | None]]:
    """Thumbnail many files concurrently; pairs come back in completion order."""
    item_list = [(Path(path), kind) for path, kind in items]
    max_workers = _resolve_workers(workers, "thumbnail")

    pairs = _fan_out(
        lambda item: generate_thumbnail(item[0], item[1], processor=processor),
        item_list,
        max_workers,
        "Generating thumbnails",
        show_progress=show_progress,
    )
    return [(item[0], thumbnail) for item, thumbnail in pairs]
