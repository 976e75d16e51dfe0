"""CLI command modules."""

from .export import ExportCommands
from .media import MediaCommands
from .utils import UtilityCommands

__all__ = ["ExportCommands", "MediaCommands", "UtilityCommands"]
