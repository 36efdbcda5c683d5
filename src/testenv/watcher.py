from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from .errors import WatcherError

logger = logging.getLogger(__name__)


class ClusterWatcher:
    """Background probe of the API server backing a sandbox.

    The probe runs on a daemon thread for the lifetime of the sandbox. When it
    fails ``failure_threshold`` times in a row the watcher records a
    ``WatcherError`` and exits; callers pick the error up through ``check()``.
    """

    def __init__(self, kube_client: Any, *, interval: float = 5.0, failure_threshold: int = 3, name: str = "testenv") -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.kube_client = kube_client
        self.interval = interval
        self.failure_threshold = failure_threshold
        self.name = name
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._error: Optional[WatcherError] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=f"{self.name}-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def failure(self) -> Optional[WatcherError]:
        with self._lock:
            return self._error

    def check(self) -> None:
        error = self.failure()
        if error is not None:
            raise error

    def _run(self) -> None:
        failures = 0
        while not self._stop.is_set():
            try:
                self.kube_client.healthz()
            except Exception as exc:
                failures += 1
                logger.warning(
                    "%s: API server probe failed (%d/%d): %s",
                    self.name,
                    failures,
                    self.failure_threshold,
                    exc,
                )
                if failures >= self.failure_threshold:
                    error = WatcherError(
                        f"API server unreachable after {failures} consecutive probe(s): {exc}"
                    )
                    error.__cause__ = exc
                    with self._lock:
                        self._error = error
                    logger.error("%s: cluster watcher stopped: %s", self.name, error)
                    return
            else:
                failures = 0
            self._stop.wait(self.interval)


__all__ = ["ClusterWatcher"]
