"""Data models for backup mirroring."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class OutcomeStatus(str, Enum):
    """Result of handling a single item during a mirror walk."""
    COPIED = "copied"
    SKIPPED = "skipped"
    ERROR = "error"
    MISSING_SOURCE = "missing_source"


@dataclass(frozen=True)
class DirectoryNode:
    """A source directory and the destination directory it maps to."""
    source_dir: str
    dest_dir: str


@dataclass
class MirrorOutcome:
    """Outcome of a single file or directory operation."""
    status: OutcomeStatus
    source: str
    destination: Optional[str] = None
    size: int = 0
    error_message: Optional[str] = None


@dataclass
class MirrorResult:
    """Aggregated outcomes of one mirror pass."""
    source_root: str
    dest_root: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[MirrorOutcome] = field(default_factory=list)

    def _with_status(self, status: OutcomeStatus) -> List[MirrorOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def copied(self) -> List[MirrorOutcome]:
        return self._with_status(OutcomeStatus.COPIED)

    @property
    def skipped(self) -> List[MirrorOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    @property
    def errors(self) -> List[MirrorOutcome]:
        return self._with_status(OutcomeStatus.ERROR)

    @property
    def source_missing(self) -> bool:
        return any(o.status == OutcomeStatus.MISSING_SOURCE for o in self.outcomes)

    @property
    def bytes_copied(self) -> int:
        return sum(o.size for o in self.copied)

    @property
    def succeeded(self) -> bool:
        """True when the pass finished without any error outcome."""
        return not self.errors and not self.source_missing


@dataclass
class MirrorTask:
    """One scheduled run: what is mirrored and when it started."""
    source_root: Optional[str]
    dest_root: Optional[str]
    started_at: datetime = field(default_factory=datetime.now)
    result: Optional[MirrorResult] = None
