"""Main CLI interface for the export toolkit."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..config.constants import ERROR_MESSAGE_TRUNCATE_LENGTH, VERBOSE_LOGGING_THRESHOLD
from ..core import ConfigManager, ProcessingError, ProcessingOptions, with_config_overrides
from .commands import ExportCommands, MediaCommands, UtilityCommands

LOG = logging.getLogger(__name__)


class ExportToolkitCLI:
    """Main CLI interface."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_manager = ConfigManager(config_path)
        self.export_commands = ExportCommands(self.config_manager)
        self.media_commands = MediaCommands(self.config_manager)
        self.utility_commands = UtilityCommands(self.config_manager)

    @staticmethod
    def setup_logging(verbosity: int) -> None:
        """Setup logging based on verbosity level."""
        level_map = {
            0: logging.WARNING,
            1: logging.INFO,
            2: logging.DEBUG,
        }

        level = level_map.get(verbosity, logging.DEBUG)

        log_format = (
            "%(levelname)s: %(name)s: %(message)s"
            if verbosity >= VERBOSE_LOGGING_THRESHOLD
            else "%(levelname)s: %(message)s"
        )

        logging.basicConfig(level=level, format=log_format, handlers=[logging.StreamHandler(sys.stderr)])

        # Engine command lines are long; only show them at debug verbosity
        if verbosity < VERBOSE_LOGGING_THRESHOLD:
            logging.getLogger("export_toolkit.core.ffmpeg").setLevel(logging.WARNING)

    def build_parser(self) -> argparse.ArgumentParser:
        """Build the argument parser."""
        parser = argparse.ArgumentParser(
            prog="export-toolkit",
            description="Export clips and stills as one video through FFmpeg",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Portrait reel with a title card
  export-toolkit export a.mp4 b.jpg c.mov -o reel.mp4 --preset portrait --title "Summer\\n2025"

  # Show the FFmpeg command without running it
  export-toolkit --dry-run export a.mp4 b.mp4 -o joined.mp4

  # Inspect inputs
  export-toolkit probe clips/*.mp4 --json

  # Check the FFmpeg installation and hardware encoder
  export-toolkit info
            """,
        )

        # Global options
        parser.add_argument(
            "-v",
            "--verbose",
            action="count",
            default=0,
            help="Increase verbosity (-v for info, -vv for debug)",
        )

        parser.add_argument("--config", type=Path, help="Path to configuration file")

        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without actually doing it",
        )

        subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")
        self.export_commands.add_subcommands(subparsers)
        self.media_commands.add_subcommands(subparsers)
        self.utility_commands.add_subcommands(subparsers)

        return parser

    @staticmethod
    def create_processing_options(args: argparse.Namespace) -> ProcessingOptions:
        """Create processing options from CLI arguments."""
        return ProcessingOptions(
            workers=getattr(args, "workers", None),
            timeout=getattr(args, "timeout", None),
            dry_run=getattr(args, "dry_run", False),
            verbose=getattr(args, "verbose", 0) > 0,
        )

    def _use_config(self, config_path: Path) -> None:
        self.config_manager = ConfigManager(config_path)
        self.export_commands.config_manager = self.config_manager
        self.media_commands.config_manager = self.config_manager
        self.utility_commands.config_manager = self.config_manager

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        # Preset choices depend on the config file, so load it before building the parser
        argv = sys.argv[1:] if args is None else args
        pre_parser = argparse.ArgumentParser(add_help=False)
        pre_parser.add_argument("--config", type=Path)
        known, _ = pre_parser.parse_known_args(argv)
        if known.config:
            self._use_config(known.config)

        parser = self.build_parser()
        parsed_args = parser.parse_args(argv)

        self.setup_logging(parsed_args.verbose)

        processing_options = self.create_processing_options(parsed_args)

        try:
            with with_config_overrides(self.config_manager) as config_mgr:
                config_mgr.apply_processing_options(processing_options)

                if parsed_args.command == "export":
                    return self.export_commands.handle_command(parsed_args)
                if parsed_args.command in ("probe", "thumbnails"):
                    return self.media_commands.handle_command(parsed_args)
                if parsed_args.command in ("presets", "info"):
                    return self.utility_commands.handle_command(parsed_args)
                parser.error(f"Unknown command: {parsed_args.command}")

        except KeyboardInterrupt:
            LOG.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except ProcessingError as e:
            LOG.error("%s", str(e)[:ERROR_MESSAGE_TRUNCATE_LENGTH])
            return 1
        except Exception:
            LOG.exception("Unexpected error")
            return 1

        return 0


def main() -> int:
    """Entry point for the CLI."""
    cli = ExportToolkitCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
