"""Media inspection CLI commands."""

from __future__ import annotations

import base64
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ...core.metadata import generate_thumbnails_batch, get_metadata_batch, media_kind_for
from ..failure_table import print_failure_table

if TYPE_CHECKING:
    import argparse

    from ...core import ConfigManager

LOG = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/jpeg;base64,"


class MediaCommands:
    """Probe and thumbnail command handlers."""

    def __init__(self, config_manager: ConfigManager) -> None:
        """Initialize media commands handler."""
        self.config_manager = config_manager

    def add_subcommands(self, subparsers: argparse._SubParsersAction) -> None:
        """Add probe and thumbnails commands to the top-level subparsers."""
        probe_parser = subparsers.add_parser("probe", help="Show media metadata")
        probe_parser.add_argument("files", nargs="+", type=Path, help="Files to probe")
        probe_parser.add_argument("--json", action="store_true", help="Print metadata as JSON")
        probe_parser.add_argument("--workers", "-w", type=int, help="Parallel probe workers")

        thumbs_parser = subparsers.add_parser("thumbnails", help="Write JPEG thumbnails")
        thumbs_parser.add_argument("files", nargs="+", type=Path, help="Files to thumbnail")
        thumbs_parser.add_argument("--output-dir", "-d", type=Path, required=True, help="Directory for thumbnails")
        thumbs_parser.add_argument("--workers", "-w", type=int, help="Parallel workers")

    def handle_command(self, args: argparse.Namespace) -> int:
        """Handle media command execution."""
        if args.command == "probe":
            return self._handle_probe(args)
        if args.command == "thumbnails":
            return self._handle_thumbnails(args)
        LOG.error("Unknown media command: %s", args.command)
        return 1

    def _handle_probe(self, args: argparse.Namespace) -> int:
        """Handle metadata display."""
        files = [Path(f) for f in args.files]
        results = get_metadata_batch(
            files,
            self.config_manager.get_value("global_.default_workers"),
            config=self.config_manager.config,
            show_progress=not args.json,
        )

        if args.json:
            print(json.dumps([m.to_dict() for m in results], indent=2))
        else:
            for m in results:
                fps = f"{m.framerate:.2f}fps" if m.framerate else "-"
                print(f"{m.name:<40} {m.media_type.value:<6} {m.width}x{m.height:<6} {fps:<10} {m.duration:.2f}s")

        probed = {m.path for m in results}
        failed = [f for f in files if f not in probed]
        print_failure_table([(f, self._failure_reason(f)) for f in failed], "probe")
        return 0 if not failed else 1

    def _failure_reason(self, file_path: Path) -> str:
        if media_kind_for(file_path, self.config_manager.config) is None:
            return "Unsupported media type"
        return "Could not read media metadata"

    def _handle_thumbnails(self, args: argparse.Namespace) -> int:
        """Handle thumbnail extraction."""
        output_dir: Path = args.output_dir
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            LOG.exception("Cannot create output directory %s", output_dir)
            return 1

        config = self.config_manager.config
        items = []
        unsupported = []
        for file_path in args.files:
            kind = media_kind_for(file_path, config)
            if kind is None:
                unsupported.append((file_path, "Unsupported media type"))
            else:
                items.append((file_path, kind))

        results = generate_thumbnails_batch(
            items, self.config_manager.get_value("global_.default_workers"), show_progress=True
        )

        failed = list(unsupported)
        for file_path, thumbnail in results:
            if thumbnail is None:
                failed.append((file_path, "Thumbnail extraction failed"))
                continue
            target = output_dir / f"{file_path.stem}.jpg"
            target.write_bytes(base64.b64decode(thumbnail.removeprefix(DATA_URL_PREFIX)))
            LOG.info("Wrote %s", target)

        print_failure_table(failed, "thumbnail")
        return 0 if not failed else 1
