"""Shared failure table display utility for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

# Constants for table formatting
MAX_FILENAME_LENGTH = 37
FILENAME_TRUNCATE_LENGTH = 34
MAX_ERROR_MSG_LENGTH = 32
ERROR_MSG_TRUNCATE_LENGTH = 29

TIPS = {
    "probe": "💡 TIP: Check the file extensions, file permissions, or that ffprobe can read the files",
    "export": "💡 TIP: Check the FFmpeg installation, disk space, or try the software_h264 codec",
    "thumbnail": "💡 TIP: Check that ffmpeg can decode the files and the output directory is writable",
    "media": "💡 TIP: Check the FFmpeg installation or file permissions",
}


def _truncate(text: str, limit: int, keep: int) -> str:
    return text[:keep] + "..." if len(text) > limit else text


def format_failure_table(failures: Iterable[tuple[Path, str]], operation: str = "media") -> str:
    """
    Render a simple table of failed files.

    Args:
        failures: (file, error message) pairs
        operation: Which command failed ("probe", "export", "thumbnail" or "media"); picks the tip line

    Returns:
        The table text, or an empty string when nothing failed

    """
    rows = list(failures)
    if not rows:
        return ""

    lines = [
        "",
        "=" * 80,
        f"{operation.upper() + ' FAILURES':^80}",
        "=" * 80,
        f"Total failed: {len(rows)} files",
        "",
        f"{'FILE':<40} | {'ERROR':<35}",
        "-" * 80,
    ]
    for file_path, message in rows:
        filename = _truncate(file_path.name, MAX_FILENAME_LENGTH, FILENAME_TRUNCATE_LENGTH)
        error_msg = _truncate(message or "Unknown error", MAX_ERROR_MSG_LENGTH, ERROR_MSG_TRUNCATE_LENGTH)
        lines.append(f"{filename:<40} | {error_msg:<35}")

    lines.extend(["", TIPS.get(operation, TIPS["media"]), ""])
    return "\n".join(lines)


def print_failure_table(failures: Iterable[tuple[Path, str]], operation: str = "media") -> None:
    """Print the failure table (nothing when there are no failures)."""
    table = format_failure_table(failures, operation)
    if table:
        print(table)
