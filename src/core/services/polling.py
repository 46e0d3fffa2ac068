"""Generic poll loop over a normalized tri-state status.

The loop is split in two:
- `PollMachine`: a tiny state machine (pending -> succeeded | failed | timed out)
  that is stepped with already-normalized `OperationStatus` values. It never
  sleeps and never does I/O.
- `poll`: the blocking driver. It owns the clock, the sleep and the
  cancellation checkpoints.

Policy is a fixed interval with no backoff. The overall budget is measured
from the first entry and checked only between ticks, so a slow fetch is never
interrupted and never extends the budget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from core.clock import CancellationToken, Clock, SystemClock
from core.domain.errors import OperationCancelled, PollTimeout
from core.domain.models import OperationStatus, StatusState

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


_TERMINAL_BY_STATUS = {
    StatusState.PENDING: PollState.PENDING,
    StatusState.SUCCEEDED: PollState.SUCCEEDED,
    StatusState.FAILED: PollState.FAILED,
}


@dataclass
class PollMachine:
    timeout: float
    started_at: float
    state: PollState = PollState.PENDING
    attempts: int = 0
    last_status: OperationStatus | None = None

    @property
    def done(self) -> bool:
        return self.state is not PollState.PENDING

    def expired(self, now: float) -> bool:
        return now - self.started_at > self.timeout

    def time_out(self) -> PollState:
        self._ensure_pending()
        self.state = PollState.TIMED_OUT
        return self.state

    def advance(self, status: OperationStatus) -> PollState:
        """Feed one fetched status; return the resulting state."""

        self._ensure_pending()
        self.attempts += 1
        self.last_status = status
        self.state = _TERMINAL_BY_STATUS[status.state]
        return self.state

    def _ensure_pending(self) -> None:
        if self.done:
            raise RuntimeError(f"poll already finished in state {self.state.value}")


def _checkpoint(cancel: CancellationToken | None, label: str) -> None:
    if cancel is not None and cancel.cancelled:
        raise OperationCancelled(f"{label} cancelled")


def poll(
    fetch_status: Callable[[], OperationStatus],
    *,
    interval: float,
    timeout: float,
    clock: Clock | None = None,
    cancel: CancellationToken | None = None,
    label: str = "operation",
) -> OperationStatus:
    """Call `fetch_status` until it is no longer pending.

    Returns the terminal status (succeeded *or* failed, the caller decides what
    a failure means). Raises `PollTimeout` once the budget is exhausted and
    `OperationCancelled` if `cancel` fires.
    """

    clock = clock or SystemClock()
    machine = PollMachine(timeout=timeout, started_at=clock.now())

    while True:
        _checkpoint(cancel, label)
        if machine.expired(clock.now()):
            machine.time_out()
            raise PollTimeout(f"{label} timed out after {timeout:g}s ({machine.attempts} checks)")

        status = fetch_status()
        _checkpoint(cancel, label)

        if machine.advance(status) is not PollState.PENDING:
            logger.debug("%s finished as %s after %d checks", label, machine.state.value, machine.attempts)
            return status

        logger.debug("%s still pending (check %d), retrying in %gs", label, machine.attempts, interval)
        clock.sleep(interval, cancel)
