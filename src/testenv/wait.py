from __future__ import annotations

import time
from typing import Callable

from .errors import WaitTimeoutError

# PollInterval specifies the polling interval in seconds
POLL_INTERVAL = 1.0
# DefaultTimeout is the max time in seconds before a poll fails
DEFAULT_TIMEOUT = 5 * 60.0


def poll_immediate(interval: float, timeout: float, condition: Callable[[], bool]) -> None:
    """Call ``condition`` until it returns True, checking once before the first sleep.

    ``condition`` returning False means "not yet, retry". Anything it raises is
    a hard error and propagates without further attempts. When ``timeout``
    seconds pass without success a ``WaitTimeoutError`` is raised.
    """

    if interval <= 0:
        raise ValueError("interval must be positive")
    start = time.monotonic()
    attempts = 0
    while True:
        attempts += 1
        if condition():
            return
        elapsed = time.monotonic() - start
        if elapsed >= timeout:
            raise WaitTimeoutError(
                f"timed out waiting for the condition after {elapsed:.1f}s ({attempts} attempt(s))"
            )
        time.sleep(interval)


__all__ = ["DEFAULT_TIMEOUT", "POLL_INTERVAL", "poll_immediate"]
