"""Strategy selection: decide from metadata alone how much work an export needs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..config.constants import FRAMERATE_TOLERANCE, MIN_SEGMENTS_FOR_CONCAT
from .base import ConfigurationError
from .models import NO_TITLE, ExportTarget, Segment, Strategy, TitleCard

if TYPE_CHECKING:
    from collections.abc import Sequence

LOG = logging.getLogger(__name__)


def framerates_match(a: float | None, b: float | None) -> bool:
    """Rates within the tolerance band compare equal; an unknown rate never matches."""
    if a is None or b is None:
        return False
    return abs(a - b) < FRAMERATE_TOLERANCE


def can_stream_copy(segment: Segment, width: int, height: int, framerate: float) -> bool:
    """Check if a single video already matches the target and can be copied as-is."""
    if not segment.is_video:
        return False
    return segment.width == width and segment.height == height and framerates_match(segment.framerate, framerate)


def can_fast_concat(segments: Sequence[Segment], title_card: TitleCard = NO_TITLE) -> bool:
    """
    Check if the segments can be joined by stream copy.

    Requires no title card, at least two segments, only videos, and identical
    dimensions plus a matching framerate across all of them. The requested
    target resolution is deliberately not consulted.
    """
    if title_card.is_present:
        return False
    if len(segments) < MIN_SEGMENTS_FOR_CONCAT:
        return False
    if any(not s.is_video for s in segments):
        return False

    first = segments[0]
    return all(
        s.width == first.width and s.height == first.height and framerates_match(s.framerate, first.framerate)
        for s in segments
    )


def select_strategy(
    segments: Sequence[Segment], title_card: TitleCard, target: ExportTarget
) -> Strategy:
    """Pick exactly one strategy; first matching rule wins."""
    if not segments:
        msg = "Nothing to export: the segment list is empty"
        raise ConfigurationError(msg)

    if can_fast_concat(segments, title_card):
        strategy = Strategy.FAST_CONCAT
    elif len(segments) == 1 and not title_card.is_present:
        if can_stream_copy(segments[0], target.width, target.height, target.effective_framerate):
            strategy = Strategy.STREAM_COPY
        else:
            strategy = Strategy.SINGLE_REENCODE
    else:
        strategy = Strategy.FILTER_GRAPH

    LOG.info("Selected %s strategy for %d segment(s)", strategy.value, len(segments))
    return strategy
