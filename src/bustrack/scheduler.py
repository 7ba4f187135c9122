"""Background refresh loop for a single feed."""

import logging
import threading
from typing import Callable, Optional

from .errors import LoadError

logger = logging.getLogger(__name__)


class PeriodicRefresher:
    """
    Runs a feed refresh on a fixed interval in a daemon thread.

    Ticks for the same refresher never overlap: if a tick is still running when
    the next one is due (or when ``run_once`` is called from elsewhere), the new
    tick is skipped. Failures are logged and the loop carries on with the
    previously published data.
    """

    def __init__(self, name: str, refresh: Callable[[], object], interval: float):
        """
        Args:
            name: Label used in logs and as the thread name.
            refresh: Callable that fetches and publishes the feed.
            interval: Seconds to wait after a tick finishes before the next one starts.
        """
        self.name = name
        self.refresh = refresh
        self.interval = interval
        self._running = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> bool:
        """
        Run one refresh unless another is in flight.

        Returns:
            True if the refresh ran and succeeded.
        """
        if not self._running.acquire(blocking=False):
            logger.warning(f"Skipping {self.name} refresh: previous run still in progress")
            return False

        try:
            self.refresh()
            return True
        except LoadError as e:
            logger.error(f"{self.name} refresh failed, keeping previous data: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error in {self.name} refresh: {e}", exc_info=True)
            return False
        finally:
            self._running.release()

    def start(self, run_immediately: bool = True) -> None:
        """Start the background thread."""
        if self._thread and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, args=(run_immediately,), name=self.name, daemon=True
        )
        self._thread.start()
        logger.info(f"Started {self.name} refresher (every {self.interval:g}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the thread to exit and wait for it."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout)
            if self._thread.is_alive():
                # Still inside a tick; it exits once the tick returns
                logger.warning(f"{self.name} refresher did not stop within {timeout}s")
                return
            self._thread = None
        logger.info(f"Stopped {self.name} refresher")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self, run_immediately: bool) -> None:
        if run_immediately:
            self.run_once()
        while not self._stop_event.wait(self.interval):
            self.run_once()
