"""Configuration management for the export toolkit."""

from __future__ import annotations

from .constants import *  # noqa: F403, F401
from .settings import ExportPreset, ExportToolkitConfig, get_config, reset_config

__all__ = [
    "ExportPreset",
    "ExportToolkitConfig",
    "get_config",
    "reset_config",
]
