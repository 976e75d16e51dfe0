"""Export CLI command."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import TYPE_CHECKING

from tqdm import tqdm

from ...core.base import ConfigurationError, ProcessingError
from ...core.exporter import Exporter
from ...core.metadata import get_metadata_batch
from ...core.models import Codec, ColorScheme, ExportRequest, ExportTarget, MediaKind, TitleCard
from ...core.paths import default_output_stem, generate_output_filename, get_preset_by_aspect_ratio
from ...core.progress import ProgressStage
from ..failure_table import print_failure_table

if TYPE_CHECKING:
    import argparse
    from collections.abc import Callable, Sequence

    from ...config.settings import ExportPreset
    from ...core import ConfigManager
    from ...core.metadata import MediaMetadata
    from ...core.progress import ProgressEvent

LOG = logging.getLogger(__name__)

FALLBACK_PRESET = "landscape"


class ExportCommands:
    """Export command handler."""

    def __init__(self, config_manager: ConfigManager) -> None:
        """Initialize export command handler."""
        self.config_manager = config_manager

    def add_subcommands(self, subparsers: argparse._SubParsersAction) -> None:
        """Add the export command to the top-level subparsers."""
        export_parser = subparsers.add_parser("export", help="Export files as one video")
        export_parser.add_argument("files", nargs="+", type=Path, help="Clips and stills, in timeline order")
        export_parser.add_argument(
            "--output",
            "-o",
            type=Path,
            help="Output file, or a directory for a timestamped name (default: ./video_<date>.mp4)",
        )
        export_parser.add_argument(
            "--preset",
            "-p",
            choices=self.config_manager.config.list_presets(),
            help="Output preset (default: suggested from the first video's aspect ratio)",
        )
        export_parser.add_argument(
            "--codec",
            "-c",
            choices=[c.value for c in Codec],
            help="Override the preset codec",
        )
        export_parser.add_argument("--framerate", "-r", type=float, help="Target framerate (default: 30)")
        export_parser.add_argument("--bitrate", "-b", type=int, help="Target video bitrate in bits per second")
        export_parser.add_argument("--title", help="Title card text (\\n for line breaks)")
        export_parser.add_argument("--title-duration", type=float, help="Title card length in seconds")
        export_parser.add_argument(
            "--title-scheme",
            choices=["dark-on-light", "light-on-dark"],
            default="dark-on-light",
            help="Title card colours",
        )
        export_parser.add_argument("--workers", "-w", type=int, help="Parallel probe workers")
        export_parser.add_argument("--timeout", "-t", type=int, help="Engine timeout in seconds")

    def handle_command(self, args: argparse.Namespace) -> int:
        """Handle export command execution."""
        try:
            request = self._build_request(args)
        except ProcessingError as e:
            LOG.error("Cannot export: %s", e)
            return 1

        exporter = Exporter(self.config_manager)

        if getattr(args, "dry_run", False):
            plan = exporter.plan(request)
            print(f"Strategy: {plan.strategy.value} ({plan.label})")
            print(f"Output:   {plan.output_path}")
            print("ffmpeg " + shlex.join(plan.args))
            return 0

        with tqdm(total=100, desc="Exporting", unit="%", bar_format="{l_bar}{bar}| {n:.0f}/{total_fmt}") as bar:
            result = exporter.run(request, progress=self._progress_callback(bar))

        if not result.ok:
            print_failure_table([(request.output_path, result.message)], "export")
            return 1

        print(f"Exported {result.output_file} ({result.strategy.value}, {result.processing_time:.1f}s)")
        return 0

    def _build_request(self, args: argparse.Namespace) -> ExportRequest:
        config = self.config_manager.config
        files: list[Path] = list(args.files)

        metadata = self._probe_in_order(files)
        preset = self._select_preset(args.preset, metadata)

        target = ExportTarget(
            preset_id=preset.name,
            width=preset.width,
            height=preset.height,
            codec=args.codec or preset.codec,
            framerate=args.framerate,
            bitrate=args.bitrate,
        )

        title_card = TitleCard()
        if args.title:
            title_card = TitleCard(
                enabled=True,
                text=args.title.replace("\\n", "\n"),
                duration=args.title_duration or config.media.title_duration,
                color_scheme=ColorScheme(args.title_scheme.replace("-", "_")),
            )

        output = args.output
        if output is None:
            output = Path.cwd() / f"{default_output_stem(metadata)}.mp4"
        elif output.is_dir():
            output = generate_output_filename(preset.name, output)

        return ExportRequest(
            segments=tuple(m.to_segment() for m in metadata),
            target=target,
            output_path=output,
            title_card=title_card,
        )

    def _probe_in_order(self, files: Sequence[Path]) -> list[MediaMetadata]:
        """Probe every file; the timeline keeps the command line order."""
        workers = self.config_manager.get_value("global_.default_workers")
        probed = {m.path: m for m in get_metadata_batch(files, workers, config=self.config_manager.config)}

        missing = [f for f in files if Path(f) not in probed]
        if missing:
            print_failure_table([(f, "Could not read media metadata") for f in missing], "probe")
            msg = f"{len(missing)} of {len(files)} files could not be probed"
            raise ConfigurationError(msg)
        return [probed[Path(f)] for f in files]

    def _select_preset(self, preset_name: str | None, metadata: Sequence[MediaMetadata]) -> ExportPreset:
        config = self.config_manager.config
        if preset_name:
            return config.get_preset(preset_name)

        first_video = next((m for m in metadata if m.media_type is MediaKind.VIDEO and m.width and m.height), None)
        if first_video is None:
            return config.get_preset(FALLBACK_PRESET)

        preset = get_preset_by_aspect_ratio(first_video.width, first_video.height, config)
        LOG.info("No preset given, using '%s' for %dx%d source", preset.name, first_video.width, first_video.height)
        return preset

    @staticmethod
    def _progress_callback(bar: tqdm) -> Callable[[ProgressEvent], None]:
        def update(event: ProgressEvent) -> None:
            if event.stage is ProgressStage.ERROR:
                bar.set_description("✗ Failed")
                return
            bar.n = event.progress
            if event.current_file:
                bar.set_description(event.current_file.rstrip("."))
            elif event.stage is ProgressStage.COMPLETE:
                bar.set_description("✓ Done")
            bar.refresh()

        return update
