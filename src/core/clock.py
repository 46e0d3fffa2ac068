"""Injectable time source and cancellation token.

Why explicit:
- Credential builders need "now" for JWT claims and the poll driver needs a
  monotonic clock plus a sleep; passing them in keeps both deterministic in tests.
- Cancellation is observed only at well-defined points (around each fetch and
  during the sleep), never mid-request.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable


class CancellationToken:
    """Thread-safe, one-shot cancellation flag."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Block up to `seconds`; return True if cancelled meanwhile."""

        return self._event.wait(seconds)


@runtime_checkable
class Clock(Protocol):
    def now(self) -> float:
        """Monotonic seconds, used to measure elapsed time."""

        ...

    def time(self) -> float:
        """Wall-clock epoch seconds, used for token claims."""

        ...

    def sleep(self, seconds: float, cancel: CancellationToken | None = None) -> None:
        ...


class SystemClock:
    """Real clock backed by the `time` module."""

    def now(self) -> float:
        return time.monotonic()

    def time(self) -> float:
        return time.time()

    def sleep(self, seconds: float, cancel: CancellationToken | None = None) -> None:
        if cancel is None:
            time.sleep(seconds)
            return
        cancel.wait(seconds)
