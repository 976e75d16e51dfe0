"""Outward progress notifications for running exports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

LOG = logging.getLogger(__name__)


class ProgressStage(Enum):
    """Export stages, in the order they are reported."""

    PREPARING = "preparing"
    PROCESSING = "processing"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification."""

    stage: ProgressStage
    progress: float
    current_file: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "progress": self.progress,
            "current_file": self.current_file,
            "error": self.error,
        }


class ProgressReporter:
    """
    Fire-and-forget delivery of progress events to an optional listener.

    Without a listener events are dropped. A listener that raises is logged
    and otherwise ignored so it cannot fail the export it observes.
    """

    def __init__(self, callback: Callable[[ProgressEvent], None] | None = None) -> None:
        self.callback = callback

    def emit(
        self,
        stage: ProgressStage,
        progress: float,
        current_file: str | None = None,
        error: str | None = None,
    ) -> ProgressEvent:
        event = ProgressEvent(stage=stage, progress=progress, current_file=current_file, error=error)
        LOG.debug("Progress: %s %.0f%% %s", stage.value, progress, current_file or "")

        if self.callback is not None:
            try:
                self.callback(event)
            except Exception:
                LOG.exception("Progress listener failed on %s event", stage.value)
        return event

    def preparing(self, message: str) -> ProgressEvent:
        return self.emit(ProgressStage.PREPARING, 0.0, message)

    def processing(self, progress: float, message: str) -> ProgressEvent:
        return self.emit(ProgressStage.PROCESSING, progress, message)

    def finalizing(self, message: str) -> ProgressEvent:
        return self.emit(ProgressStage.FINALIZING, 95.0, message)

    def complete(self) -> ProgressEvent:
        return self.emit(ProgressStage.COMPLETE, 100.0)

    def failed(self, message: str) -> ProgressEvent:
        return self.emit(ProgressStage.ERROR, 0.0, error=message)
