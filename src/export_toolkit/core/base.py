"""Result type and error hierarchy for export operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from pathlib import Path

    from .models import Strategy

LOG = logging.getLogger(__name__)


class ProcessingStatus(Enum):
    """Status of an export operation."""

    SUCCESS = "success"
    ERROR = "error"


class ProcessingError(Exception):
    """Base exception for export errors."""

    kind: ClassVar[str] = "processing"

    def __init__(
        self,
        message: str,
        file_path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.file_path = file_path
        self.cause = cause


class ConfigurationError(ProcessingError):
    """Malformed descriptor or unknown setting (empty segment list, bad preset, ...)."""

    kind = "configuration"


class ToolNotFoundError(ProcessingError):
    """The binary locator could not resolve an engine executable."""

    kind = "tool_not_found"


class OutputMissingError(ProcessingError):
    """The engine exited successfully but the declared output file is absent."""

    kind = "output_missing"


@dataclass
class ExportResult:
    """Result of an export request."""

    status: ProcessingStatus
    message: str = ""
    output_file: Path | None = None
    strategy: Strategy | None = None
    error_kind: str | None = None
    processing_time: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is ProcessingStatus.SUCCESS
