"""Export Toolkit - turn an ordered timeline of clips and stills into one video file."""

from __future__ import annotations

__version__ = "0.1.0"
__description__ = "FFmpeg export orchestration for social and mastering presets"

# Public API exports
from .config import ExportPreset, ExportToolkitConfig, get_config
from .core import (
    Codec,
    ColorScheme,
    ConfigManager,
    ExportRequest,
    ExportResult,
    ExportTarget,
    Exporter,
    FFmpegError,
    FFmpegProbe,
    FFmpegProcessor,
    MediaKind,
    MediaMetadata,
    ProcessingError,
    ProcessingStatus,
    ProgressEvent,
    ProgressStage,
    Segment,
    Strategy,
    TitleCard,
    export_media,
    get_metadata,
    get_metadata_batch,
    select_strategy,
    with_config_overrides,
)

__all__ = [
    # Configuration
    "ExportPreset",
    "ExportToolkitConfig",
    "get_config",
    "ConfigManager",
    "with_config_overrides",
    # Export
    "Exporter",
    "export_media",
    "select_strategy",
    "FFmpegProcessor",
    "FFmpegProbe",
    "get_metadata",
    "get_metadata_batch",
    # Descriptors
    "Codec",
    "ColorScheme",
    "ExportRequest",
    "ExportTarget",
    "MediaKind",
    "MediaMetadata",
    "Segment",
    "Strategy",
    "TitleCard",
    # Results and progress
    "ExportResult",
    "ProcessingStatus",
    "ProgressEvent",
    "ProgressStage",
    # Exceptions
    "ProcessingError",
    "FFmpegError",
]
