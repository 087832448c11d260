"""Utility modules for backup mirroring."""

from .formatters import format_file_size, format_date, format_duration
from .log_sink import ArchivingFileHandler

__all__ = ["format_file_size", "format_date", "format_duration", "ArchivingFileHandler"]
