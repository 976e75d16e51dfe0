"""Export orchestration: pick a strategy, run the engine, report progress."""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING

from .base import ExportResult, OutputMissingError, ProcessingError, ProcessingStatus
from .config import ConfigManager
from .encoders import resolve_encoder_args
from .ffmpeg import BinaryLocator, FFmpegProcessor
from .models import Codec, ExportPlan, ExportRequest, Strategy, total_duration
from .planner import (
    format_concat_list,
    plan_fast_concat,
    plan_filter_graph,
    plan_single_reencode,
    plan_stream_copy,
)
from .progress import ProgressReporter
from .strategy import select_strategy

if TYPE_CHECKING:
    from collections.abc import Callable

    from .progress import ProgressEvent

LOG = logging.getLogger(__name__)


class Exporter:
    """
    Runs export requests against the external engine.

    An Exporter holds only read-only configuration and collaborators, so one
    instance may serve several exports running concurrently in different
    threads. The engine call blocks the calling thread until the process
    exits; there is no way to abort it midway.
    """

    def __init__(
        self,
        config_manager: ConfigManager | None = None,
        processor: FFmpegProcessor | None = None,
        progress: Callable[[ProgressEvent], None] | None = None,
    ) -> None:
        self.config_manager = config_manager or ConfigManager()
        config = self.config_manager.config
        self.processor = processor or FFmpegProcessor(
            BinaryLocator(config.ffmpeg),
            timeout=self.config_manager.get_value("ffmpeg.encode_timeout"),
        )
        self.progress = progress

    def run(
        self, request: ExportRequest, progress: Callable[[ProgressEvent], None] | None = None
    ) -> ExportResult:
        """Export and report the outcome as a result instead of raising."""
        reporter = ProgressReporter(progress or self.progress)
        start_time = time.time()

        try:
            plan = self._export(request, reporter)
        except ProcessingError as e:
            LOG.error("Export to %s failed: %s", request.output_path, e)
            reporter.failed(str(e))
            return ExportResult(
                status=ProcessingStatus.ERROR,
                message=str(e),
                error_kind=e.kind,
                processing_time=time.time() - start_time,
            )

        return ExportResult(
            status=ProcessingStatus.SUCCESS,
            message=f"Exported with {plan.strategy.value} strategy",
            output_file=plan.output_path,
            strategy=plan.strategy,
            processing_time=time.time() - start_time,
            metadata={"label": plan.label, "segments": len(request.segments)},
        )

    def export(self, request: ExportRequest, progress: Callable[[ProgressEvent], None] | None = None) -> Path:
        """Export and return the final output path (its suffix may have been corrected)."""
        return self._export(request, ProgressReporter(progress or self.progress)).output_path

    def plan(
        self,
        request: ExportRequest,
        *,
        hardware_available: bool | None = None,
        list_path: Path | None = None,
    ) -> ExportPlan:
        """Build the plan an export would run, without touching the filesystem."""
        if hardware_available is None:
            hardware_available = self._probe_hardware(request.target.codec)
        strategy = select_strategy(request.segments, request.title_card, request.target)
        if list_path is None:
            list_path = Path(tempfile.gettempdir()) / "concat_list.txt"
        return self._build_plan(request, strategy, hardware_available, list_path)

    def _export(self, request: ExportRequest, reporter: ProgressReporter) -> ExportPlan:
        reporter.preparing("Checking hardware acceleration...")

        target = request.target
        hardware_available = self._probe_hardware(target.codec)
        strategy = select_strategy(request.segments, request.title_card, target)
        LOG.info(
            "Using %s encoding, total duration: %.1fs",
            "HW accelerated" if hardware_available else "software",
            total_duration(request.segments, request.title_card),
        )

        if strategy is Strategy.FAST_CONCAT:
            return self._run_fast_concat(request, reporter)

        if strategy is Strategy.FILTER_GRAPH:
            reporter.processing(10.0, "Building filter graph...")
            plan = self._build_plan(request, strategy, hardware_available)
            reporter.processing(15.0, f"Starting {plan.label.removesuffix(' encoding')} encode...")
            self._execute(plan, reporter)
            reporter.finalizing("Verifying output...")
        else:
            plan = self._build_plan(request, strategy, hardware_available)
            self._execute(plan, reporter)

        self._verify_output(plan.output_path)
        reporter.complete()
        return plan

    def _run_fast_concat(self, request: ExportRequest, reporter: ProgressReporter) -> ExportPlan:
        """Stream-copy concat through a scratch list file that never outlives the export."""
        reporter.processing(10.0, "Fast concat (no re-encoding)...")

        fd, name = tempfile.mkstemp(prefix="concat_", suffix=".txt")
        os.close(fd)
        plan = self._build_plan(request, Strategy.FAST_CONCAT, hardware_available=False, list_path=Path(name))
        try:
            Path(name).write_text(format_concat_list(request.segments), encoding="utf-8")
            LOG.debug("Concat list: %s", name)
            self._execute(plan, reporter)
        finally:
            for scratch in plan.scratch_files:
                scratch.unlink(missing_ok=True)

        self._verify_output(plan.output_path)
        reporter.complete()
        return plan

    def _build_plan(
        self,
        request: ExportRequest,
        strategy: Strategy,
        hardware_available: bool,
        list_path: Path | None = None,
    ) -> ExportPlan:
        target = request.target
        segments = request.segments

        if strategy is Strategy.FAST_CONCAT:
            if list_path is None:
                msg = "Fast concat needs a concat list path"
                raise ValueError(msg)
            return plan_fast_concat(segments, request.output_path, list_path)
        if strategy is Strategy.STREAM_COPY:
            return plan_stream_copy(segments[0], request.output_path)

        config = self.config_manager.config
        profile = resolve_encoder_args(
            target.codec,
            hardware_available,
            target.bitrate,
            single_input=strategy is Strategy.SINGLE_REENCODE,
            settings=config.encoding,
            engine=config.ffmpeg,
        )
        if strategy is Strategy.SINGLE_REENCODE:
            return plan_single_reencode(segments[0], target, request.output_path, profile)
        return plan_filter_graph(
            segments,
            request.title_card,
            target,
            request.output_path,
            profile,
            font=config.media.title_font,
            line_spacing=config.media.title_line_spacing,
        )

    def _probe_hardware(self, codec: Codec) -> bool:
        """Every h264 export probes again; mastering never uses the hardware encoder."""
        if codec is Codec.MASTERING:
            return False
        return self.processor.is_hardware_encoder_available()

    def _execute(self, plan: ExportPlan, reporter: ProgressReporter) -> None:
        reporter.processing(50.0, f"{plan.label}...")
        self.processor.run_command(list(plan.args), file_path=plan.output_path)

    @staticmethod
    def _verify_output(output_path: Path) -> None:
        if not output_path.exists():
            msg = "Output file was not created"
            raise OutputMissingError(msg, file_path=output_path)


def export_media(
    request: ExportRequest,
    progress: Callable[[ProgressEvent], None] | None = None,
    config_manager: ConfigManager | None = None,
) -> ExportResult:
    """Convenience wrapper: run one export with a fresh Exporter."""
    return Exporter(config_manager, progress=progress).run(request)
