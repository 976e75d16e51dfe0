"""Utility CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ...core.base import ProcessingError
from ...core.ffmpeg import BinaryLocator, FFmpegProcessor

if TYPE_CHECKING:
    import argparse

    from ...core import ConfigManager

LOG = logging.getLogger(__name__)


class UtilityCommands:
    """Utility command handlers."""

    def __init__(self, config_manager: ConfigManager) -> None:
        """Initialize utility commands handler."""
        self.config_manager = config_manager

    def add_subcommands(self, subparsers: argparse._SubParsersAction) -> None:
        """Add utility commands to the top-level subparsers."""
        subparsers.add_parser("presets", help="List export presets")
        subparsers.add_parser("info", help="Show engine and configuration info")

    def handle_command(self, args: argparse.Namespace) -> int:
        """Handle utility command execution."""
        if args.command == "presets":
            return self._handle_presets(args)
        if args.command == "info":
            return self._handle_info(args)
        LOG.error("Unknown utility command: %s", args.command)
        return 1

    def _handle_presets(self, _args: argparse.Namespace) -> int:
        """List presets grouped by category."""
        presets = self.config_manager.config.presets
        for category in sorted({p.category for p in presets.values()}):
            print(f"{category.title()}:")
            for name, preset in presets.items():
                if preset.category != category:
                    continue
                size = f"{preset.width}x{preset.height}"
                print(f"  {name:<12} {size:<10} {preset.aspect_ratio:<6} {preset.codec:<14} {preset.description}")
        return 0

    def _handle_info(self, _args: argparse.Namespace) -> int:
        """Show engine paths, version and hardware encoder availability."""
        config = self.config_manager.config
        locator = BinaryLocator(config.ffmpeg)

        status = 0
        for tool in ("ffmpeg", "ffprobe"):
            try:
                print(f"{tool + ':':<10} ✓ {locator.resolve(tool)}")
            except ProcessingError:
                print(f"{tool + ':':<10} ✗ Missing")
                status = 1

        if status == 0:
            processor = FFmpegProcessor(locator)
            try:
                print(f"{'version:':<10} {processor.get_version()}")
            except ProcessingError as e:
                print(f"{'version:':<10} ✗ {e}")
                status = 1

            hardware = config.ffmpeg.hardware_encoder
            mark = "✓ available" if processor.is_hardware_encoder_available() else "✗ unavailable (software fallback)"
            print(f"{'hardware:':<10} {hardware} {mark}")

        config_path = Path("config.yaml")
        print(f"{'config:':<10} {'✓ ' + str(config_path.resolve()) if config_path.exists() else 'built-in defaults'}")
        print(f"{'presets:':<10} {', '.join(config.list_presets())}")
        return status
