"""Core export engine: descriptors, strategy selection, filter graphs and the process orchestrator."""

from .base import (
    ConfigurationError,
    ExportResult,
    OutputMissingError,
    ProcessingError,
    ProcessingStatus,
    ToolNotFoundError,
)
from .config import ConfigManager, ProcessingOptions, with_config_overrides
from .encoders import EncoderProfile, resolve_encoder_args
from .exporter import Exporter, export_media
from .ffmpeg import (
    BinaryLocator,
    EncodeError,
    FFmpegError,
    FFmpegProbe,
    FFmpegProcessor,
    ProbeParseError,
    ProcessLaunchError,
)
from .filter_graph import FilterGraph, build_filter_graph
from .metadata import MediaMetadata, generate_thumbnail, generate_thumbnails_batch, get_metadata, get_metadata_batch
from .models import (
    Codec,
    ColorScheme,
    ExportPlan,
    ExportRequest,
    ExportTarget,
    MediaKind,
    Segment,
    Strategy,
    TitleCard,
)
from .progress import ProgressEvent, ProgressReporter, ProgressStage
from .strategy import can_fast_concat, select_strategy

__all__ = [
    "BinaryLocator",
    "Codec",
    "ColorScheme",
    "ConfigManager",
    "ConfigurationError",
    "EncodeError",
    "EncoderProfile",
    "ExportPlan",
    "ExportRequest",
    "ExportResult",
    "ExportTarget",
    "Exporter",
    "FFmpegError",
    "FFmpegProbe",
    "FFmpegProcessor",
    "FilterGraph",
    "MediaKind",
    "MediaMetadata",
    "OutputMissingError",
    "ProbeParseError",
    "ProcessLaunchError",
    "ProcessingError",
    "ProcessingOptions",
    "ProcessingStatus",
    "ProgressEvent",
    "ProgressReporter",
    "ProgressStage",
    "Segment",
    "Strategy",
    "TitleCard",
    "ToolNotFoundError",
    "build_filter_graph",
    "can_fast_concat",
    "export_media",
    "generate_thumbnail",
    "generate_thumbnails_batch",
    "get_metadata",
    "get_metadata_batch",
    "resolve_encoder_args",
    "select_strategy",
    "with_config_overrides",
]
