"""Core mirroring functionality."""

from .mirror import MirrorEngine
from .scheduler import Scheduler
from .service import MirrorService
from .models import MirrorOutcome, MirrorResult, MirrorTask, OutcomeStatus

__all__ = ["MirrorEngine", "Scheduler", "MirrorService",
           "MirrorOutcome", "MirrorResult", "MirrorTask", "OutcomeStatus"]
