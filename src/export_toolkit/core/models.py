"""Value types describing segments, the title card and the output target."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from .base import ConfigurationError

if TYPE_CHECKING:
    from ..config import ExportPreset

DEFAULT_FRAMERATE = 30.0
DEFAULT_BITRATE = 10_000_000


class MediaKind(Enum):
    """Kind of input media unit."""

    VIDEO = "video"
    IMAGE = "image"


class Codec(Enum):
    """Requested output codec family."""

    SOFTWARE_H264 = "software_h264"
    HARDWARE_H264 = "hardware_h264"
    MASTERING = "mastering"

    @classmethod
    def parse(cls, value: str | Codec) -> Codec:
        """Parse a codec name, accepting the short aliases used by presets."""
        if isinstance(value, Codec):
            return value
        aliases = {"h264": cls.HARDWARE_H264, "prores": cls.MASTERING}
        name = value.strip().lower()
        if name in aliases:
            return aliases[name]
        try:
            return cls(name)
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            msg = f"Unknown codec '{value}'. Valid: {valid}"
            raise ConfigurationError(msg) from None


class ColorScheme(Enum):
    """Title card colour scheme."""

    DARK_ON_LIGHT = "dark_on_light"
    LIGHT_ON_DARK = "light_on_dark"

    @property
    def background(self) -> str:
        return "white" if self is ColorScheme.DARK_ON_LIGHT else "black"

    @property
    def font_color(self) -> str:
        return "black" if self is ColorScheme.DARK_ON_LIGHT else "white"


class Strategy(Enum):
    """Mutually exclusive export strategies, cheapest first."""

    FAST_CONCAT = "fast_concat"
    STREAM_COPY = "stream_copy"
    SINGLE_REENCODE = "single_reencode"
    FILTER_GRAPH = "filter_graph"


@dataclass(frozen=True)
class Segment:
    """One input media unit (video clip or still image)."""

    path: Path
    kind: MediaKind
    duration: float
    width: int | None = None
    height: int | None = None
    framerate: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        if not isinstance(self.kind, MediaKind):
            object.__setattr__(self, "kind", MediaKind(self.kind))
        if self.duration is None or self.duration <= 0:
            msg = f"Segment duration must be positive, got {self.duration!r} for {self.path}"
            raise ConfigurationError(msg, file_path=self.path)

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @property
    def is_image(self) -> bool:
        return self.kind is MediaKind.IMAGE


@dataclass(frozen=True)
class TitleCard:
    """Optional generated lead-in clip: solid colour, centred text, silence."""

    enabled: bool = False
    text: str = ""
    duration: float = 4.0
    color_scheme: ColorScheme = ColorScheme.DARK_ON_LIGHT

    @property
    def is_present(self) -> bool:
        """Absent whenever disabled or the text is empty."""
        return self.enabled and bool(self.text)


NO_TITLE = TitleCard()


@dataclass(frozen=True)
class ExportTarget:
    """Output parameters."""

    preset_id: str
    width: int
    height: int
    codec: Codec = Codec.HARDWARE_H264
    framerate: float | None = None
    bitrate: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "codec", Codec.parse(self.codec))
        if self.width <= 0 or self.height <= 0:
            msg = f"Target dimensions must be positive, got {self.width}x{self.height}"
            raise ConfigurationError(msg)

    @property
    def effective_framerate(self) -> float:
        return self.framerate if self.framerate else DEFAULT_FRAMERATE

    @classmethod
    def from_preset(
        cls, preset: ExportPreset, *, framerate: float | None = None, bitrate: int | None = None
    ) -> ExportTarget:
        """Build a target from a configured preset."""
        return cls(
            preset_id=preset.name,
            width=preset.width,
            height=preset.height,
            codec=Codec.parse(preset.codec),
            framerate=framerate,
            bitrate=bitrate,
        )


@dataclass(frozen=True)
class ExportRequest:
    """Everything one export needs; owned by the caller for its lifetime."""

    segments: tuple[Segment, ...]
    target: ExportTarget
    output_path: Path
    title_card: TitleCard = NO_TITLE

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", tuple(self.segments))
        object.__setattr__(self, "output_path", Path(self.output_path))


@dataclass(frozen=True)
class ExportPlan:
    """Strategy tag plus the concrete engine arguments it requires."""

    strategy: Strategy
    args: tuple[str, ...]
    output_path: Path
    label: str
    scratch_files: tuple[Path, ...] = field(default_factory=tuple)


def total_duration(segments: tuple[Segment, ...] | list[Segment], title_card: TitleCard = NO_TITLE) -> float:
    """Length of the finished export in seconds."""
    title = title_card.duration if title_card.is_present else 0.0
    return title + sum(s.duration for s in segments)
