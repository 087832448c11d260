"""
Backup Mirror - A scheduled backup file mirroring service.

This package periodically copies new backup files from a source directory tree
into a mirror location, never overwriting files that are already present, and
keeps a size-rotated activity log.
"""

__version__ = "1.0.0"
__author__ = "Your Name"
__email__ = "your.email@example.com"

from .core.mirror import MirrorEngine
from .core.scheduler import Scheduler
from .core.service import MirrorService

__all__ = ["MirrorEngine", "Scheduler", "MirrorService"]
