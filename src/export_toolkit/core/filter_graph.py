"""
Filter graph synthesis for the full re-encode path.

The graph is held as typed nodes (input sources, filter chains with labelled
pads) and only compiled to FFmpeg's textual ``-filter_complex`` syntax at the
boundary. Chains are validated as they are added: every pad a chain reads
must be a stream of an already declared input or a label produced by an
earlier chain, and every label is produced exactly once.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..config.constants import (
    AUDIO_CHANNEL_LAYOUT,
    AUDIO_SAMPLE_RATE,
    PAD_COLOR,
    PIXEL_FORMAT,
    TITLE_FONT_DIVISOR,
    TITLE_LONG_TEXT_CHARS,
    TITLE_LONG_TEXT_FACTOR,
    TITLE_MANY_LINES,
    TITLE_MANY_LINES_FACTOR,
    TITLE_MEDIUM_TEXT_CHARS,
    TITLE_MEDIUM_TEXT_FACTOR,
    TITLE_MULTI_LINE_FACTOR,
)
from .base import ConfigurationError
from .strategy import framerates_match

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Segment, TitleCard

LOG = logging.getLogger(__name__)

_STREAM_REF = re.compile(r"^(\d+):([va])$")

DEFAULT_TITLE_FONT = "OpenSans-Bold"
DEFAULT_LINE_SPACING = 8


def format_number(value: float) -> str:
    """Render a number for filter arguments: ``4`` rather than ``4.0``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class InputSource:
    """One ``-i`` declaration, with any options that must precede it."""

    target: str
    options: tuple[str, ...] = ()

    @classmethod
    def file(cls, path: object, *options: str) -> InputSource:
        return cls(str(path), tuple(options))

    @classmethod
    def lavfi(cls, expression: str) -> InputSource:
        return cls(expression, ("-f", "lavfi"))

    def to_args(self) -> list[str]:
        return [*self.options, "-i", self.target]


@dataclass(frozen=True)
class Filter:
    """A single filter with its ``:``-separated arguments."""

    name: str
    args: tuple[str, ...] = ()

    def render(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}={':'.join(self.args)}"


@dataclass(frozen=True)
class FilterChain:
    """Linear chain of filters reading ``inputs`` pads and writing ``outputs`` labels."""

    inputs: tuple[str, ...]
    filters: tuple[Filter, ...]
    outputs: tuple[str, ...]

    def render(self) -> str:
        head = "".join(f"[{pad}]" for pad in self.inputs)
        tail = "".join(f"[{label}]" for label in self.outputs)
        return head + ",".join(f.render() for f in self.filters) + tail


@dataclass
class FilterGraph:
    """Ordered input declarations plus filter chains in dependency order."""

    sources: list[InputSource] = field(default_factory=list)
    chains: list[FilterChain] = field(default_factory=list)
    _labels: set[str] = field(default_factory=set)

    def add_input(self, source: InputSource) -> int:
        """Declare an input and return its engine input index."""
        self.sources.append(source)
        return len(self.sources) - 1

    def add_chain(self, chain: FilterChain) -> FilterChain:
        for pad in chain.inputs:
            self._check_pad(pad)
        for label in chain.outputs:
            if label in self._labels or _STREAM_REF.match(label):
                msg = f"Filter graph label '{label}' is already defined"
                raise ConfigurationError(msg)
        self._labels.update(chain.outputs)
        self.chains.append(chain)
        return chain

    def concat(self, pairs: Sequence[tuple[str, str]], video_out: str, audio_out: str) -> FilterChain:
        """Join video+audio label pairs with a concat filter of matching arity."""
        if not pairs:
            msg = "Cannot concatenate an empty list of segments"
            raise ConfigurationError(msg)
        pads = tuple(label for pair in pairs for label in pair)
        concat = Filter("concat", (f"n={len(pairs)}", "v=1", "a=1"))
        return self.add_chain(FilterChain(pads, (concat,), (video_out, audio_out)))

    def _check_pad(self, pad: str) -> None:
        match = _STREAM_REF.match(pad)
        if match:
            if int(match.group(1)) >= len(self.sources):
                msg = f"Filter graph references undeclared input '{pad}'"
                raise ConfigurationError(msg)
        elif pad not in self._labels:
            msg = f"Filter graph references label '{pad}' before it is defined"
            raise ConfigurationError(msg)

    def input_args(self) -> list[str]:
        return [arg for source in self.sources for arg in source.to_args()]

    def expression(self) -> str:
        return ";".join(chain.render() for chain in self.chains)

    def compile(self) -> tuple[list[str], str]:
        return self.input_args(), self.expression()


def compute_font_size(text: str, height: int) -> int:
    """Title font size: height/12, shrunk for long and for multi-line text."""
    base_size = height / TITLE_FONT_DIVISOR
    text_len = len(text)
    line_count = max(1, len(text.splitlines()))

    if text_len > TITLE_LONG_TEXT_CHARS:
        size_factor = TITLE_LONG_TEXT_FACTOR
    elif text_len > TITLE_MEDIUM_TEXT_CHARS:
        size_factor = TITLE_MEDIUM_TEXT_FACTOR
    else:
        size_factor = 1.0

    if line_count > TITLE_MANY_LINES:
        line_factor = TITLE_MANY_LINES_FACTOR
    elif line_count > 1:
        line_factor = TITLE_MULTI_LINE_FACTOR
    else:
        line_factor = 1.0

    # Round half away from zero
    return int(math.floor(base_size * size_factor * line_factor + 0.5))


def escape_drawtext_text(text: str) -> str:
    """Escape text for embedding in a quoted drawtext ``text=`` argument."""
    return (
        text.replace("\\", "\\\\")
        .replace("'", "'\\''")
        .replace(":", "\\:")
        .replace("[", "\\[")
        .replace("]", "\\]")
        .replace("\n", "\\n")
        .replace("\r", "")
    )


def normalize_filters(width: int, height: int, framerate: float) -> tuple[Filter, ...]:
    """Fit inside the box keeping aspect ratio, pad to fill, force rate and pixel format."""
    return (
        Filter("scale", (str(width), str(height), "force_original_aspect_ratio=decrease")),
        Filter("pad", (str(width), str(height), "(ow-iw)/2", "(oh-ih)/2", PAD_COLOR)),
        Filter("setsar", ("1",)),
        Filter("fps", (format_number(framerate),)),
        Filter("format", (PIXEL_FORMAT,)),
    )


def audio_format_filter() -> Filter:
    return Filter("aformat", (f"sample_rates={AUDIO_SAMPLE_RATE}", f"channel_layouts={AUDIO_CHANNEL_LAYOUT}"))


def silence_source(duration: float) -> InputSource:
    return InputSource.lavfi(f"anullsrc=r={AUDIO_SAMPLE_RATE}:cl={AUDIO_CHANNEL_LAYOUT}:d={format_number(duration)}")


def needs_normalization(segment: Segment, width: int, height: int, framerate: float) -> bool:
    """True when a video's stored geometry or rate differs from the target."""
    return (
        segment.width != width
        or segment.height != height
        or not framerates_match(segment.framerate, framerate)
    )


def _add_title_card(
    graph: FilterGraph,
    title_card: TitleCard,
    width: int,
    height: int,
    framerate: float,
    *,
    font: str,
    line_spacing: int,
) -> tuple[str, str]:
    scheme = title_card.color_scheme
    video_idx = graph.add_input(
        InputSource.lavfi(
            f"color={scheme.background}:s={width}x{height}"
            f":d={format_number(title_card.duration)}:r={format_number(framerate)}"
        )
    )
    audio_idx = graph.add_input(silence_source(title_card.duration))

    drawtext = Filter(
        "drawtext",
        (
            f"text='{escape_drawtext_text(title_card.text)}'",
            f"fontsize={compute_font_size(title_card.text, height)}",
            f"fontcolor={scheme.font_color}",
            "x=(w-text_w)/2",
            "y=(h-text_h)/2",
            f"font={font}",
            f"line_spacing={line_spacing}",
        ),
    )
    v_label, a_label = f"cv{video_idx}", f"ca{video_idx}"
    graph.add_chain(
        FilterChain(
            (f"{video_idx}:v",),
            (drawtext, Filter("format", (PIXEL_FORMAT,)), Filter("setsar", ("1",))),
            (v_label,),
        )
    )
    graph.add_chain(FilterChain((f"{audio_idx}:a",), (audio_format_filter(),), (a_label,)))
    return v_label, a_label


def build_filter_graph(
    segments: Sequence[Segment],
    title_card: TitleCard,
    width: int,
    height: int,
    framerate: float,
    *,
    font: str = DEFAULT_TITLE_FONT,
    line_spacing: int = DEFAULT_LINE_SPACING,
) -> FilterGraph:
    """Build the typed graph: title card first, then every segment in order, then concat."""
    graph = FilterGraph()
    pairs: list[tuple[str, str]] = []

    if title_card.is_present:
        pairs.append(
            _add_title_card(graph, title_card, width, height, framerate, font=font, line_spacing=line_spacing)
        )

    for i, segment in enumerate(segments):
        v_label, a_label = f"v{i}", f"a{i}"
        if segment.is_image:
            video_idx = graph.add_input(
                InputSource.file(segment.path, "-loop", "1", "-t", format_number(segment.duration))
            )
            audio_idx = graph.add_input(silence_source(segment.duration))
            video_filters = normalize_filters(width, height, framerate)
        else:
            video_idx = graph.add_input(InputSource.file(segment.path))
            audio_idx = video_idx
            if needs_normalization(segment, width, height, framerate):
                video_filters = normalize_filters(width, height, framerate)
            else:
                # Geometry already matches; keep concat inputs uniform without rescaling
                video_filters = (Filter("format", (PIXEL_FORMAT,)), Filter("setsar", ("1",)))

        graph.add_chain(FilterChain((f"{video_idx}:v",), video_filters, (v_label,)))
        graph.add_chain(FilterChain((f"{audio_idx}:a",), (audio_format_filter(),), (a_label,)))
        pairs.append((v_label, a_label))

    graph.concat(pairs, "outv", "outa")
    LOG.debug("Built filter graph with %d inputs and %d segments", len(graph.sources), len(pairs))
    return graph


def build_graph(
    segments: Sequence[Segment],
    title_card: TitleCard,
    width: int,
    height: int,
    framerate: float,
    **kwargs: object,
) -> tuple[list[str], str]:
    """Return the ordered input arguments and the ``-filter_complex`` expression."""
    return build_filter_graph(segments, title_card, width, height, framerate, **kwargs).compile()  # type: ignore[arg-type]
