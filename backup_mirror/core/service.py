"""Service lifecycle wiring the scheduler to the mirror engine."""

import logging
import threading
from datetime import datetime
from typing import Optional

from .mirror import MirrorEngine
from .models import MirrorResult, MirrorTask
from .scheduler import Scheduler
from ..config.config_manager import ServiceConfig
from ..utils.formatters import format_date, format_duration, format_file_size

SERVICE_NAME = "DBAFileService"
SERVICE_DISPLAY_NAME = "DBAFileServer"
SERVICE_DESCRIPTION = "Server to copy backups files into external location."


class MirrorService:
    """Main backup mirroring coordinator."""

    def __init__(self, config: ServiceConfig, engine: Optional[MirrorEngine] = None,
                 scheduler: Optional[Scheduler] = None):
        """Initialize mirror service.

        Args:
            config: Service settings.
            engine: Mirror engine to use, a default one if not given.
            scheduler: Scheduler driving the runs, built from the
                       configured interval if not given.
        """
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.engine = engine or MirrorEngine()
        self.scheduler = scheduler or Scheduler(config.interval_seconds, self.run_once,
                                                name=SERVICE_NAME)
        self.last_task: Optional[MirrorTask] = None
        self._started = False
        self._stopped = threading.Event()

    def start(self) -> None:
        """Log startup and begin scheduled runs."""
        self.logger.info(
            f"{SERVICE_DISPLAY_NAME} starting: mirroring '{self.config.source_folder}' "
            f"into '{self.config.destination_folder}' every "
            f"{format_duration(self.config.interval_seconds)}"
        )
        for error in self.config.config_errors:
            self.logger.error(error)

        self._stopped.clear()
        self._started = True
        self.scheduler.start()

    def stop(self) -> None:
        """Stop scheduled runs and log shutdown. Safe to call more than once."""
        if not self._started:
            self._stopped.set()
            return

        self._started = False
        # The run gate stays with the in-flight run, which releases it when done;
        # opening it here would let a later tick overlap a copy still in progress
        self.scheduler.stop()
        self.logger.info(f"{SERVICE_DISPLAY_NAME} stopped")
        self._stopped.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the service is stopped.

        Returns:
            True if the service stopped, False if the timeout expired.
        """
        return self._stopped.wait(timeout)

    def run_once(self) -> Optional[MirrorResult]:
        """Run one mirror pass over the configured folders.

        Returns:
            The pass result, or None if the run was skipped.
        """
        task = MirrorTask(self.config.source_folder, self.config.destination_folder)
        self.last_task = task
        self.logger.info(f"Starting {SERVICE_NAME} service at {format_date(task.started_at)}")

        missing = [key for key, value in (('sourceFolder', task.source_root),
                                          ('destinationFolder', task.dest_root)) if not value]
        if missing:
            self.logger.error(f"Skipping run: {', '.join(missing)} not configured")
            return None

        task.result = self.engine.mirror(task.source_root, task.dest_root)
        self._log_summary(task.result)
        self.logger.info("Concluded the process of copying backup files to the server.")
        return task.result

    def _log_summary(self, result: MirrorResult) -> None:
        """Log counts for a finished pass."""
        if result.source_missing:
            return

        elapsed = ((result.finished_at or datetime.now()) - result.started_at).total_seconds()
        self.logger.info(
            f"Mirror pass finished in {format_duration(elapsed)}: "
            f"{len(result.copied)} copied ({format_file_size(result.bytes_copied)}), "
            f"{len(result.skipped)} already present, {len(result.errors)} failed"
        )
        if result.errors:
            self.logger.error(f"Mirror pass encountered {len(result.errors)} error(s)")
