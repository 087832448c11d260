"""Activity log file with size-triggered rotation and bounded archive retention."""

import logging
import logging.handlers
import os
import re
import sys
from datetime import datetime
from typing import List, Tuple

LOG_FILE_NAME = "service.dba"
LOG_LINE_FORMAT = "%(asctime)s : %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ARCHIVE_STAMP_FORMAT = "%Y%m%d%H%M%S"
DEFAULT_MAX_BYTES = 256 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 4


class ArchivingFileHandler(logging.handlers.BaseRotatingHandler):
    """Appends records to a log file, archiving it once it grows too large.

    The active file is renamed to ``<name>.<YYYYMMDDHHmmss>`` when it exceeds
    ``max_bytes``; only the newest ``backup_count`` archives are kept.
    Failures are reported on stderr and never raised to the caller.
    """

    def __init__(self, log_dir: str, filename: str = LOG_FILE_NAME,
                 max_bytes: int = DEFAULT_MAX_BYTES,
                 backup_count: int = DEFAULT_BACKUP_COUNT,
                 encoding: str = "utf-8"):
        """Initialize the handler.

        Args:
            log_dir: Directory holding the active log and its archives.
            filename: Name of the active log file.
            max_bytes: Size above which the active log is archived.
            backup_count: Maximum number of archives kept.
            encoding: Text encoding of the log file.
        """
        if backup_count < 1:
            raise ValueError(f"backup_count must be at least 1, got {backup_count}")
        os.makedirs(log_dir, exist_ok=True)
        super().__init__(os.path.join(log_dir, filename), mode="a",
                         encoding=encoding, delay=True)
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._archive_re = re.compile(
            re.escape(os.path.basename(self.baseFilename)) + r"\.(\d{14})(?:\.(\d+))?$"
        )
        self.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        """Write one record, opening and closing the file around it."""
        try:
            super().emit(record)
        finally:
            self._close_stream()

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        if self.max_bytes <= 0:
            return False
        try:
            return os.path.getsize(self.baseFilename) > self.max_bytes
        except OSError:
            return False

    def doRollover(self) -> None:
        """Archive the active log, then prune the oldest archives."""
        self._close_stream()
        if not os.path.exists(self.baseFilename):
            return

        archive = self._next_archive_name()
        try:
            self.rotate(self.baseFilename, archive)
        except OSError as e:
            # Existing archives are kept until a rotation succeeds
            self._report_failure(f"could not archive {self.baseFilename}: {e}")
            return

        self._prune(keep=self.backup_count)

    def handleError(self, record: logging.LogRecord) -> None:
        _, error, _ = sys.exc_info()
        self._report_failure(f"could not write log record: {error}")

    def archives(self) -> List[str]:
        """Return paths of archived log files, oldest first."""
        log_dir = os.path.dirname(self.baseFilename)
        found: List[Tuple[str, int, str]] = []
        try:
            names = os.listdir(log_dir)
        except OSError as e:
            self._report_failure(f"could not list archives in {log_dir}: {e}")
            return []

        for name in names:
            match = self._archive_re.match(name)
            if match:
                found.append((match.group(1), int(match.group(2) or 0), name))

        found.sort()
        return [os.path.join(log_dir, name) for _, _, name in found]

    def _prune(self, keep: int) -> None:
        archives = self.archives()
        for path in archives[:max(0, len(archives) - keep)]:
            try:
                os.remove(path)
            except OSError as e:
                self._report_failure(f"could not delete archive {path}: {e}")

    def _next_archive_name(self) -> str:
        stamp = datetime.now().strftime(ARCHIVE_STAMP_FORMAT)
        counters = []
        for path in self.archives():
            match = self._archive_re.match(os.path.basename(path))
            if match and match.group(1) == stamp:
                counters.append(int(match.group(2) or 0))

        archive = f"{self.baseFilename}.{stamp}"
        if counters:
            archive = f"{archive}.{max(counters) + 1}"
        return archive

    def _close_stream(self) -> None:
        stream, self.stream = self.stream, None
        if stream is None:
            return
        try:
            stream.close()
        except (OSError, ValueError) as e:
            self._report_failure(f"could not close {self.baseFilename}: {e}")

    def _report_failure(self, message: str) -> None:
        """Report a logging failure on stderr, outside the file log."""
        try:
            sys.stderr.write(f"backup-mirror log error: {message}\n")
            sys.stderr.flush()
        except (AttributeError, OSError, ValueError):
            # No usable stderr (e.g. running detached); nothing left to report to
            pass
