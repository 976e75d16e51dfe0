"""CLI module for the export toolkit."""

from .commands import ExportCommands, MediaCommands, UtilityCommands
from .main import ExportToolkitCLI

__all__ = [
    "ExportCommands",
    "ExportToolkitCLI",
    "MediaCommands",
    "UtilityCommands",
]
