"""Configuration management for the export toolkit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

LOG = logging.getLogger(__name__)


# Configuration singleton
class _ConfigSingleton:
    """Configuration singleton holder."""

    _instance: ExportToolkitConfig | None = None

    @classmethod
    def get_instance(cls) -> ExportToolkitConfig:
        """Get the configuration instance."""
        if cls._instance is None:
            # Try to load from default config file (look in working directory)
            config_path = Path.cwd() / "config.yaml"
            if config_path.exists():
                cls._instance = ExportToolkitConfig.load_from_file(config_path)
            else:
                cls._instance = ExportToolkitConfig()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


_config_singleton = _ConfigSingleton()


@dataclass
class ExportPreset:
    """Output format preset (resolution plus codec)."""

    name: str
    width: int
    height: int
    codec: str
    category: str = "social"
    aspect_ratio: str = ""
    description: str = ""

    def model_dump(self) -> dict[str, Any]:
        """Return dictionary representation of the preset."""
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "codec": self.codec,
            "category": self.category,
            "aspect_ratio": self.aspect_ratio,
            "description": self.description,
        }


def _default_presets() -> dict[str, ExportPreset]:
    return {
        "portrait": ExportPreset(
            name="portrait",
            width=1080,
            height=1920,
            codec="hardware_h264",
            aspect_ratio="9:16",
            description="Reels, Shorts, TikTok",
        ),
        "square": ExportPreset(
            name="square",
            width=1080,
            height=1080,
            codec="hardware_h264",
            aspect_ratio="1:1",
            description="Feed posts",
        ),
        "landscape": ExportPreset(
            name="landscape",
            width=1920,
            height=1080,
            codec="hardware_h264",
            aspect_ratio="16:9",
            description="YouTube, standard video",
        ),
        "master": ExportPreset(
            name="master",
            width=1920,
            height=1080,
            codec="mastering",
            category="professional",
            aspect_ratio="16:9",
            description="High quality intermediate for further editing",
        ),
    }


@dataclass
class FFmpegConfig:
    """External engine settings."""

    binary_dir: Path | None = None  # Bundled executables; falls back to PATH
    ffmpeg_name: str = "ffmpeg"
    ffprobe_name: str = "ffprobe"
    encode_timeout: int | None = None
    probe_timeout: int = 30
    hardware_encoder: str = "h264_videotoolbox"
    hardware_decoder: str = "videotoolbox"


@dataclass
class EncodingConfig:
    """Encoder profile settings."""

    default_framerate: float = 30.0
    default_bitrate: int = 10_000_000
    audio_bitrate: str = "192k"
    audio_sample_rate: int = 48000
    pixel_format: str = "yuv420p"
    software_encoder: str = "libx264"
    software_preset: str = "ultrafast"
    software_tune: str = "fastdecode"
    software_crf: int = 23
    mastering_encoder: str = "prores_ks"
    mastering_profile: int = 3
    mastering_audio_codec: str = "pcm_s16le"


@dataclass
class MediaConfig:
    """Input media settings."""

    image_duration: float = 4.0
    title_duration: float = 4.0
    video_extensions: list[str] = field(default_factory=lambda: [".mp4", ".mov", ".avi", ".mkv", ".webm"])
    image_extensions: list[str] = field(default_factory=lambda: [".jpg", ".jpeg", ".png", ".webp", ".gif"])
    thumbnail_size: int = 200
    title_font: str = "OpenSans-Bold"
    title_line_spacing: int = 8


@dataclass
class GlobalConfig:
    """Global settings."""

    default_workers: int | None = None
    log_level: str = "INFO"


@dataclass
class ExportToolkitConfig:
    """Main configuration class."""

    ffmpeg: FFmpegConfig = field(default_factory=FFmpegConfig)
    encoding: EncodingConfig = field(default_factory=EncodingConfig)
    media: MediaConfig = field(default_factory=MediaConfig)
    presets: dict[str, ExportPreset] = field(default_factory=_default_presets)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> ExportToolkitConfig:
        """Load configuration from YAML file."""
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            return cls._from_dict(data)
        except (OSError, yaml.YAMLError) as e:
            LOG.warning("Failed to load config from %s: %s", config_path, e)
            return cls()

    def list_presets(self) -> list[str]:
        """Get list of available preset names."""
        return list(self.presets.keys())

    def get_preset(self, preset_name: str) -> ExportPreset:
        """Get an export preset by name."""
        if preset_name not in self.presets:
            from ..core.base import ConfigurationError

            available = ", ".join(self.list_presets())
            msg = f"Unknown export preset '{preset_name}'. Available: {available}"
            raise ConfigurationError(msg)
        return self.presets[preset_name]

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ExportToolkitConfig:
        """Create config from dictionary."""
        return cls(
            ffmpeg=cls._parse_ffmpeg_config(data.get("ffmpeg") or {}),
            encoding=cls._parse_section(EncodingConfig, data.get("encoding") or {}),
            media=cls._parse_section(MediaConfig, data.get("media") or {}),
            presets=cls._parse_presets(data.get("presets") or {}),
            global_=cls._parse_section(GlobalConfig, data.get("global") or {}),
        )

    @classmethod
    def _parse_ffmpeg_config(cls, ffmpeg_data: dict[str, Any]) -> FFmpegConfig:
        """Parse engine configuration."""
        config = cls._parse_section(FFmpegConfig, ffmpeg_data)
        if config.binary_dir is not None:
            config.binary_dir = Path(config.binary_dir).expanduser()
        return config

    @staticmethod
    def _parse_section(section_cls: type, section_data: dict[str, Any]) -> Any:
        """Build a flat section dataclass, ignoring unknown keys."""
        known = set(section_cls.__dataclass_fields__)
        unknown = set(section_data) - known
        if unknown:
            LOG.warning("Ignoring unknown %s keys: %s", section_cls.__name__, ", ".join(sorted(unknown)))
        return section_cls(**{k: v for k, v in section_data.items() if k in known})

    @classmethod
    def _parse_presets(cls, presets_data: dict[str, Any]) -> dict[str, ExportPreset]:
        """Parse presets; YAML entries extend or replace the built-in ones."""
        presets = _default_presets()
        for name, preset_data in presets_data.items():
            try:
                if (
                    isinstance(preset_data, dict)
                    and "width" in preset_data
                    and "height" in preset_data
                    and "codec" in preset_data
                ):
                    presets[name] = ExportPreset(
                        name=name,
                        width=int(preset_data["width"]),
                        height=int(preset_data["height"]),
                        codec=str(preset_data["codec"]),
                        category=preset_data.get("category", "social"),
                        aspect_ratio=preset_data.get("aspect_ratio", ""),
                        description=preset_data.get("description", ""),
                    )
                else:
                    LOG.warning("Incomplete preset data for '%s': missing required fields", name)
            except (TypeError, ValueError) as e:
                LOG.warning("Failed to load preset '%s': %s", name, e)
        return presets


def get_config() -> ExportToolkitConfig:
    """Get the global configuration instance."""
    return _config_singleton.get_instance()


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    _config_singleton.reset()
