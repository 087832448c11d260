"""Fixed-interval scheduling of mirror runs."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

STOP_JOIN_TIMEOUT = 10.0


class Scheduler:
    """Fires a job at a fixed interval, never running two jobs at once.

    Ticks that arrive while the previous run is still in progress are
    dropped, not queued.
    """

    def __init__(self, interval_seconds: float, job: Callable[[], object], name: str = "mirror"):
        """Initialize scheduler.

        Args:
            interval_seconds: Time between ticks.
            job: Callable run on each tick.
            name: Name used for the timer thread and log messages.
        """
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")
        if interval_seconds > threading.TIMEOUT_MAX:
            raise ValueError(f"Interval {interval_seconds}s exceeds the platform maximum "
                             f"of {threading.TIMEOUT_MAX:.0f}s")
        self.interval_seconds = float(interval_seconds)
        self.job = job
        self.name = name
        self._run_gate = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        """Whether a run is currently in progress."""
        return self._run_gate.locked()

    @property
    def is_started(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start firing ticks. Calling start on a started scheduler is a no-op."""
        with self._state_lock:
            if self.is_started:
                logger.debug(f"Scheduler '{self.name}' already started")
                return
            # Each timer thread owns its stop event, so a thread still finishing
            # a run after stop() never resumes on a later start()
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,),
                name=f"{self.name}-scheduler", daemon=True
            )
            self._thread.start()
        logger.info(f"Scheduler '{self.name}' started (interval {self.interval_seconds:.0f}s)")

    def stop(self, timeout: float = STOP_JOIN_TIMEOUT) -> None:
        """Stop firing ticks.

        Safe to call when never started or already stopped. A run already
        in progress is not interrupted.
        """
        with self._state_lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None
            if stop_event is not None:
                stop_event.set()

        if thread is None:
            return

        if thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Scheduler '{self.name}' stopped while a run is still in progress")
        logger.info(f"Scheduler '{self.name}' stopped")

    def on_tick(self) -> bool:
        """Run the job once unless a run is already in progress.

        Returns:
            True if the job ran, False if the tick was skipped.
        """
        if not self._run_gate.acquire(blocking=False):
            logger.debug(f"Previous '{self.name}' run still in progress, skipping tick")
            return False

        try:
            self.job()
        except Exception:
            logger.exception(f"Scheduled '{self.name}' run failed")
        finally:
            self._run_gate.release()
        return True

    def _run(self, stop_event: threading.Event) -> None:
        """Timer loop: tick at every interval boundary until stop_event is set."""
        try:
            next_fire = time.monotonic() + self.interval_seconds

            while not stop_event.wait(max(0.0, next_fire - time.monotonic())):
                self.on_tick()

                next_fire += self.interval_seconds
                now = time.monotonic()
                if next_fire <= now:
                    missed = int((now - next_fire) // self.interval_seconds) + 1
                    logger.debug(f"Dropped {missed} tick(s) that fell due during a long run")
                    next_fire += missed * self.interval_seconds
        except Exception:
            logger.exception(f"Scheduler '{self.name}' timer stopped unexpectedly")
