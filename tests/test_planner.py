"""Tests for engine argument planning."""

from pathlib import Path

from conftest import make_image, make_video

from export_toolkit.core.encoders import resolve_encoder_args
from export_toolkit.core.models import Codec, ExportTarget, Strategy, TitleCard
from export_toolkit.core.planner import (
    concat_output_path,
    format_concat_list,
    plan_fast_concat,
    plan_filter_graph,
    plan_single_reencode,
    plan_stream_copy,
)


def test_concat_list_quotes_paths() -> None:
    """One absolute, quoted line per segment; embedded quotes are escaped."""
    listing = format_concat_list([make_video("a.mp4"), make_video("it's.mp4")])
    assert listing == "file '/media/a.mp4'\nfile '/media/it'\\''s.mp4'\n"


def test_concat_output_keeps_input_container() -> None:
    """Stream-copied output adopts the first input's container."""
    assert concat_output_path(Path("out.mp4"), Path("a.MOV")) == Path("out.mov")
    assert concat_output_path(Path("out.mp4"), Path("a.mp4")) == Path("out.mp4")


def test_fast_concat_plan(tmp_path: Path) -> None:
    """Fast concat reads the list file with the concat demuxer and copies streams."""
    list_path = tmp_path / "list.txt"
    plan = plan_fast_concat([make_video("a.mov"), make_video("b.mov")], tmp_path / "out.mp4", list_path)

    assert plan.strategy is Strategy.FAST_CONCAT
    assert plan.output_path == tmp_path / "out.mov"
    assert plan.args == (
        "-hide_banner", "-v", "error", "-stats", "-f", "concat", "-safe", "0",
        "-i", str(list_path), "-c", "copy", "-y", str(tmp_path / "out.mov"),
    )  # fmt: skip
    assert plan.scratch_files == (list_path,)


def test_stream_copy_plan() -> None:
    """A single matching clip is copied to the output."""
    plan = plan_stream_copy(make_video(), Path("out.mp4"))
    assert plan.args == ("-hide_banner", "-i", "/media/clip.mp4", "-c", "copy", "-y", "out.mp4")
    assert plan.label == "Stream copy (fast)"


def test_single_reencode_video_plan() -> None:
    """A clip is decoded on the hardware and normalized with a simple filter."""
    target = ExportTarget(preset_id="portrait", width=1080, height=1920)
    profile = resolve_encoder_args(Codec.HARDWARE_H264, True, single_input=True)
    plan = plan_single_reencode(make_video(), target, Path("out.mp4"), profile)

    args = list(plan.args)
    assert args[:7] == ["-hide_banner", "-threads", "0", "-hwaccel", "videotoolbox", "-i", "/media/clip.mp4"]
    assert args[args.index("-vf") + 1] == (
        "scale=1080:1920:force_original_aspect_ratio=decrease,"
        "pad=1080:1920:(ow-iw)/2:(oh-ih)/2:black,setsar=1,fps=30,format=yuv420p"
    )
    assert args[-6:] == ["-ar", "48000", "-ac", "2", "-y", "out.mp4"]
    assert plan.label == "HW accelerated encoding"


def test_single_reencode_image_plan() -> None:
    """A lone still is looped for its duration and paired with silence."""
    target = ExportTarget(preset_id="square", width=1080, height=1080)
    profile = resolve_encoder_args(Codec.SOFTWARE_H264, False, single_input=True)
    plan = plan_single_reencode(make_image(duration=2.5), target, Path("out.mp4"), profile)

    args = list(plan.args)
    assert args[3:13] == [
        "-loop", "1", "-t", "2.5", "-i", "/media/still.jpg",
        "-f", "lavfi", "-i", "anullsrc=r=48000:cl=stereo:d=2.5",
    ]  # fmt: skip
    assert args[13:17] == ["-map", "0:v", "-map", "1:a"]
    assert "-hwaccel" not in args


def test_mastering_forces_mov_container() -> None:
    """The mastering codec rewrites the output suffix."""
    target = ExportTarget(preset_id="master", width=1920, height=1080, codec=Codec.MASTERING)
    profile = resolve_encoder_args(Codec.MASTERING, False)
    plan = plan_filter_graph([make_video(), make_image()], TitleCard(), target, Path("out.mp4"), profile)

    assert plan.output_path == Path("out.mov")
    assert plan.args[-1] == "out.mov"
    assert "prores_ks" in plan.args


def test_filter_graph_plan_maps_graph_outputs() -> None:
    """The full path maps the graph's labelled outputs and never requests hardware decoding."""
    target = ExportTarget(preset_id="landscape", width=1920, height=1080)
    profile = resolve_encoder_args(Codec.HARDWARE_H264, True)
    plan = plan_filter_graph(
        [make_video(), make_image()], TitleCard(enabled=True, text="Hi"), target, Path("out.mp4"), profile
    )

    args = list(plan.args)
    assert args[:3] == ["-hide_banner", "-threads", "0"]
    i = args.index("-filter_complex")
    assert args[i + 2 : i + 6] == ["-map", "[outv]", "-map", "[outa]"]
    assert "-hwaccel" not in args
    assert "-realtime" in args
    assert plan.label == "HW accelerated encoding"
