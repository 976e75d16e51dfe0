"""Turn a selected strategy into the concrete engine argument vector."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ..config.constants import AUDIO_SAMPLE_RATE
from .filter_graph import (
    DEFAULT_LINE_SPACING,
    DEFAULT_TITLE_FONT,
    build_graph,
    format_number,
    normalize_filters,
    silence_source,
)
from .models import ExportPlan, Strategy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .encoders import EncoderProfile
    from .models import ExportTarget, Segment, TitleCard

LOG = logging.getLogger(__name__)

FAST_CONCAT_LABEL = "Fast concat"
STREAM_COPY_LABEL = "Stream copy (fast)"


def escape_concat_path(path: Path | str) -> str:
    """Quote a path for the concat demuxer list (single quotes, ``'`` → ``'\\''``)."""
    return str(path).replace("'", "'\\''")


def format_concat_list(segments: Sequence[Segment]) -> str:
    """One ``file '<absolute path>'`` line per segment."""
    return "".join(f"file '{escape_concat_path(Path(s.path).absolute())}'\n" for s in segments)


def concat_output_path(output_path: Path, first_input: Path) -> Path:
    """Keep the first input's container when stream-copying into a different one."""
    input_suffix = first_input.suffix.lower() or ".mp4"
    if output_path.suffix.lower() != input_suffix:
        adjusted = output_path.with_suffix(input_suffix)
        LOG.info("Using %s container to match stream-copied input: %s", input_suffix, adjusted)
        return adjusted
    return output_path


def force_container(output_path: Path, container: str | None) -> Path:
    """Apply a codec-mandated container suffix."""
    if container and output_path.suffix.lower() != container:
        return output_path.with_suffix(container)
    return output_path


def plan_fast_concat(segments: Sequence[Segment], output_path: Path, list_path: Path) -> ExportPlan:
    final_output = concat_output_path(output_path, Path(segments[0].path))
    args = (
        "-hide_banner",
        "-v",
        "error",
        "-stats",
        "-f",
        "concat",
        "-safe",
        "0",
        "-i",
        str(list_path),
        "-c",
        "copy",
        "-y",
        str(final_output),
    )
    return ExportPlan(Strategy.FAST_CONCAT, args, final_output, FAST_CONCAT_LABEL, (list_path,))


def plan_stream_copy(segment: Segment, output_path: Path) -> ExportPlan:
    args = ("-hide_banner", "-i", str(segment.path), "-c", "copy", "-y", str(output_path))
    return ExportPlan(Strategy.STREAM_COPY, args, output_path, STREAM_COPY_LABEL)


def plan_single_reencode(
    segment: Segment, target: ExportTarget, output_path: Path, profile: EncoderProfile
) -> ExportPlan:
    """Normalize one file without a filter graph."""
    final_output = force_container(output_path, profile.container)
    width, height, framerate = target.width, target.height, target.effective_framerate
    video_filter = ",".join(f.render() for f in normalize_filters(width, height, framerate))

    args = ["-hide_banner", "-threads", "0"]
    if segment.is_image:
        # A still has no timing or sound of its own: loop it and pair it with silence
        args.extend(["-loop", "1", "-t", format_number(segment.duration), "-i", str(segment.path)])
        args.extend(silence_source(segment.duration).to_args())
        args.extend(["-map", "0:v", "-map", "1:a"])
    else:
        args.extend(profile.decode_args)
        args.extend(["-i", str(segment.path)])

    args.extend(["-vf", video_filter])
    args.extend(profile.video_args)
    args.extend(profile.audio_args)
    args.extend(["-ar", str(AUDIO_SAMPLE_RATE), "-ac", "2"])
    args.extend(["-y", str(final_output)])
    return ExportPlan(Strategy.SINGLE_REENCODE, tuple(args), final_output, f"{profile.label} encoding")


def plan_filter_graph(
    segments: Sequence[Segment],
    title_card: TitleCard,
    target: ExportTarget,
    output_path: Path,
    profile: EncoderProfile,
    *,
    font: str = DEFAULT_TITLE_FONT,
    line_spacing: int = DEFAULT_LINE_SPACING,
) -> ExportPlan:
    """Single-pass encode of every segment (and the title card) through one filter graph."""
    final_output = force_container(output_path, profile.container)
    inputs, filter_complex = build_graph(
        segments,
        title_card,
        target.width,
        target.height,
        target.effective_framerate,
        font=font,
        line_spacing=line_spacing,
    )

    # No -hwaccel here: it only applies to file inputs, not the generated sources
    args = ["-hide_banner", "-threads", "0", *inputs]
    args.extend(["-filter_complex", filter_complex, "-map", "[outv]", "-map", "[outa]"])
    args.extend(profile.args)
    args.extend(["-y", str(final_output)])
    return ExportPlan(Strategy.FILTER_GRAPH, tuple(args), final_output, f"{profile.label} encoding")
