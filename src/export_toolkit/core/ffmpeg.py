"""FFmpeg integration and utilities."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any, ClassVar

from ..config.constants import ENCODERS_LIST_MINIMUM_PARTS, ERROR_LINE_MARKERS, UNKNOWN_ENGINE_ERROR
from ..config.settings import FFmpegConfig
from .base import ProcessingError, ToolNotFoundError

LOG = logging.getLogger(__name__)

_TOOL_LABELS = {"ffmpeg": "FFmpeg", "ffprobe": "FFprobe"}


def parse_frame_rate(frame_rate_str: str | None) -> float | None:
    """Parse a frame rate from a fraction string like '30000/1001' or a decimal like '29.97'."""
    if not frame_rate_str:
        return None
    try:
        if "/" in frame_rate_str:
            numerator, denominator = frame_rate_str.split("/", 1)
            den = float(denominator)
            if den <= 0:
                return None
            return float(numerator) / den
        return float(frame_rate_str)
    except ValueError:
        return None


def extract_error_line(output: str | None) -> str:
    """
    Pick the most useful line from engine diagnostics.

    The last non-empty line carrying an error marker wins; without one, the
    last non-empty line; without any output, a generic message.
    """
    lines = [line.strip() for line in (output or "").splitlines() if line.strip()]
    for line in reversed(lines):
        lowered = line.lower()
        if any(marker in lowered for marker in ERROR_LINE_MARKERS):
            return line
    return lines[-1] if lines else UNKNOWN_ENGINE_ERROR


class FFmpegError(ProcessingError):
    """FFmpeg-specific error."""

    kind: ClassVar[str] = "ffmpeg"

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        return_code: int | None = None,
        stderr: str | None = None,
        file_path: Path | None = None,
    ) -> None:
        """Initialize FFmpeg error with detailed context."""
        super().__init__(message, file_path=file_path)
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class ProcessLaunchError(FFmpegError):
    """The engine executable could not be spawned."""

    kind = "process_launch"


class EncodeError(FFmpegError):
    """The engine exited non-zero (or ran past its timeout)."""

    kind = "encode"


class ProbeParseError(FFmpegError):
    """Structured probe output was malformed."""

    kind = "probe_parse"


class BinaryLocator:
    """Resolve engine executables: bundled directory first, then PATH."""

    def __init__(self, config: FFmpegConfig | None = None) -> None:
        self.config = config or FFmpegConfig()

    def _name_for(self, tool: str) -> str:
        if tool == "ffmpeg":
            return self.config.ffmpeg_name
        if tool == "ffprobe":
            return self.config.ffprobe_name
        return tool

    def resolve(self, tool: str) -> str:
        """Return an executable path for a logical tool name."""
        name = self._name_for(tool)

        if self.config.binary_dir is not None:
            bundled = Path(self.config.binary_dir) / name
            if bundled.is_file():
                return str(bundled)

        found = shutil.which(name)
        if found:
            return found

        label = _TOOL_LABELS.get(tool, tool)
        msg = f"{label} not found. Please install FFmpeg."
        LOG.error(msg)
        raise ToolNotFoundError(msg)

    def is_available(self, tool: str) -> bool:
        try:
            self.resolve(tool)
        except ToolNotFoundError:
            return False
        return True


class FFmpegProbe:
    """ffprobe wrapper returning parsed JSON descriptions of media files."""

    def __init__(self, locator: BinaryLocator | None = None, timeout: int | None = None) -> None:
        self.locator = locator or BinaryLocator()
        self.timeout = timeout if timeout is not None else self.locator.config.probe_timeout

    def probe_media(self, file_path: Path) -> dict[str, Any]:
        """Probe a media file for container and stream metadata."""
        cmd = [
            self.locator.resolve("ffprobe"),
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(file_path),
        ]
        result = self._run(cmd, file_path)

        try:
            probe_data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            msg = f"Failed to parse ffprobe output for {file_path}: {e}"
            raise ProbeParseError(msg, command=cmd, file_path=file_path) from e

        if not isinstance(probe_data, dict):
            msg = f"Unexpected ffprobe output for {file_path}"
            raise ProbeParseError(msg, command=cmd, file_path=file_path)
        return probe_data

    def get_duration(self, file_path: Path) -> float:
        """Get container duration in seconds."""
        cmd = [
            self.locator.resolve("ffprobe"),
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(file_path),
        ]
        result = self._run(cmd, file_path)
        try:
            return float(result.stdout.strip())
        except ValueError as e:
            msg = f"Failed to parse duration for {file_path}: {result.stdout.strip()!r}"
            raise ProbeParseError(msg, command=cmd, file_path=file_path) from e

    def _run(self, cmd: list[str], file_path: Path) -> subprocess.CompletedProcess:
        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.TimeoutExpired as e:
            msg = f"ffprobe timed out for {file_path}"
            raise FFmpegError(msg, command=cmd, file_path=file_path) from e
        except OSError as e:
            msg = f"Failed to run ffprobe: {e}"
            raise ProcessLaunchError(msg, command=cmd, file_path=file_path) from e

        if result.returncode != 0:
            msg = f"ffprobe failed for {file_path}: {extract_error_line(result.stderr or result.stdout)}"
            raise FFmpegError(
                msg,
                command=cmd,
                return_code=result.returncode,
                stderr=result.stderr,
                file_path=file_path,
            )
        return result


class FFmpegProcessor:
    """FFmpeg command executor with error classification."""

    def __init__(self, locator: BinaryLocator | None = None, timeout: int | None = None) -> None:
        """Initialize FFmpeg processor; ``timeout=None`` waits for the engine indefinitely."""
        self.locator = locator or BinaryLocator()
        self.timeout = timeout if timeout is not None else self.locator.config.encode_timeout

    def get_available_encoders(self) -> set[str]:
        """Get encoder names advertised by FFmpeg; empty when the listing fails."""
        try:
            result = subprocess.run(  # noqa: S603
                [self.locator.resolve("ffmpeg"), "-hide_banner", "-encoders"],
                capture_output=True,
                text=True,
                check=True,
                timeout=10,
                encoding="utf-8",
                errors="replace",
            )
        except (ToolNotFoundError, subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            LOG.warning("Failed to get encoder list: %s", e)
            return set()

        encoders = set()
        for line in result.stdout.splitlines():
            # Encoder lines start with " V" for video or " A" for audio
            if line.startswith((" V", " A")):
                parts = line.split()
                # Skip the legend (" V..... = Video")
                if len(parts) >= ENCODERS_LIST_MINIMUM_PARTS and parts[1] != "=":
                    encoders.add(parts[1])

        LOG.debug("Found %d available encoders", len(encoders))
        return encoders

    def is_encoder_available(self, encoder: str) -> bool:
        """Check if a specific encoder is available."""
        return encoder in self.get_available_encoders()

    def is_hardware_encoder_available(self) -> bool:
        """Probe for the configured hardware encoder. Not cached: every call re-probes."""
        available = self.is_encoder_available(self.locator.config.hardware_encoder)
        LOG.debug("Hardware encoder %s available: %s", self.locator.config.hardware_encoder, available)
        return available

    def is_available(self) -> bool:
        return self.locator.is_available("ffmpeg")

    def get_version(self) -> str:
        """First line of ``ffmpeg -version``."""
        result = self.run_command(["-version"])
        lines = result.stdout.splitlines()
        return lines[0] if lines else "Unknown version"

    def run_command(
        self, args: list[str], file_path: Path | None = None, *, failure_log_level: int = logging.ERROR
    ) -> subprocess.CompletedProcess:
        """
        Run FFmpeg with the given arguments and classify the outcome.

        Output is captured in full and inspected after exit. A non-zero exit
        raises EncodeError carrying the single most relevant diagnostic line;
        the complete stderr is only logged. Callers that treat a failure as
        routine (batch items) pass a lower ``failure_log_level``.
        """
        command = [self.locator.resolve("ffmpeg"), *args]

        LOG.info("Running FFmpeg command: %s", " ".join(command))
        start_time = time.time()

        try:
            result = subprocess.run(  # noqa: S603
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,  # We'll handle return code ourselves
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.TimeoutExpired as e:
            msg = f"FFmpeg command timed out after {self.timeout}s"
            raise EncodeError(msg, command=command, file_path=file_path) from e
        except OSError as e:
            msg = f"Failed to start ffmpeg: {e}"
            raise ProcessLaunchError(msg, command=command, file_path=file_path) from e

        LOG.debug("FFmpeg command completed in %.2fs", time.time() - start_time)

        if result.returncode != 0:
            self._handle_ffmpeg_error(result, command, file_path, failure_log_level)
        return result

    def _handle_ffmpeg_error(
        self,
        result: subprocess.CompletedProcess,
        command: list[str],
        file_path: Path | None,
        log_level: int = logging.ERROR,
    ) -> None:
        """Raise EncodeError with the extracted diagnostic line."""
        diagnostics = result.stderr or result.stdout or ""
        error_line = extract_error_line(diagnostics)

        LOG.debug("FFmpeg stderr:\n%s", diagnostics)
        LOG.log(log_level, "FFmpeg failed with return code %d: %s", result.returncode, error_line)

        raise EncodeError(
            error_line,
            command=command,
            return_code=result.returncode,
            stderr=result.stderr,
            file_path=file_path,
        )
