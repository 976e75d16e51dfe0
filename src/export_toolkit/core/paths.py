"""Output naming and preset suggestion helpers."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from ..config.constants import LANDSCAPE_MIN_RATIO, PORTRAIT_MAX_RATIO
from .base import ConfigurationError
from .models import MediaKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..config.settings import ExportPreset, ExportToolkitConfig
    from .metadata import MediaMetadata

LOG = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def safe_preset_name(preset_name: str) -> str:
    """Lower-case, spaces to dashes, filesystem-hostile characters removed."""
    return _UNSAFE_FILENAME_CHARS.sub("", preset_name.lower().replace(" ", "-"))


def generate_output_filename(preset_name: str, directory: Path, now: datetime | None = None) -> Path:
    """Timestamped export path, e.g. ``export-portrait-20250101_120000.mp4``."""
    now = now or datetime.now()  # noqa: DTZ005
    return Path(directory) / f"export-{safe_preset_name(preset_name)}-{now:%Y%m%d_%H%M%S}.mp4"


def default_output_stem(metadata: Sequence[MediaMetadata]) -> str:
    """``video_<YYYYMMDD>`` from the first video's timestamp, or today."""
    first_video = next((m for m in metadata if m.media_type is MediaKind.VIDEO), None)
    if first_video is not None:
        date = datetime.fromtimestamp(first_video.timestamp / 1000, tz=timezone.utc)
    else:
        date = datetime.now(tz=timezone.utc)
    return f"video_{date:%Y%m%d}"


def get_preset_by_aspect_ratio(width: int, height: int, config: ExportToolkitConfig | None = None) -> ExportPreset:
    """
    Suggest a social preset for source dimensions.

    Ratios below 0.8 are portrait, above 1.2 landscape, anything between square.
    """
    if width <= 0 or height <= 0:
        msg = f"Invalid dimensions: {width}x{height}"
        raise ConfigurationError(msg)

    if config is None:
        from ..config import get_config

        config = get_config()

    ratio = width / height
    if ratio < PORTRAIT_MAX_RATIO:
        preset_id = "portrait"
    elif ratio > LANDSCAPE_MIN_RATIO:
        preset_id = "landscape"
    else:
        preset_id = "square"

    LOG.debug("Aspect ratio %.3f suggests %s preset", ratio, preset_id)
    return config.get_preset(preset_id)
