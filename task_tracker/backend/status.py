"""Submitting/outcome flags for the surrounding UI.

States: IDLE -> SUBMITTING -> SETTLED(outcome) -> SUBMITTING -> ...
The submitting flag is cleared once every in-flight cycle has exited, including when
the submission raises.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SubmitStatus(str, Enum):
    NONE = "none"
    SUCCESS = "success"
    FAILURE = "failure"


class Phase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SETTLED = "settled"


BANNERS: dict[SubmitStatus, tuple[str, str]] = {
    SubmitStatus.SUCCESS: (
        "Tasks submitted successfully!",
        "Your tasks have been recorded.",
    ),
    SubmitStatus.FAILURE: (
        "Submission failed",
        "Please check the record sink configuration and try again.",
    ),
}


@dataclass
class StatusEvent:
    """A simple event structure suitable for streaming to a UI."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)


StatusListener = Callable[[StatusEvent], None]


class SubmitCycle:
    """One submit cycle's handle. Its outcome is recorded at most once."""

    def __init__(self, reporter: StatusReporter, number: int) -> None:
        self._reporter = reporter
        self.number = number
        self.outcome = SubmitStatus.NONE
        self.finished = False

    @property
    def settled(self) -> bool:
        return self.outcome is not SubmitStatus.NONE

    def settle(self, outcome: SubmitStatus | str) -> None:
        if self.finished:
            raise RuntimeError(f"Submit cycle {self.number} has already finished")
        if self.settled:
            raise RuntimeError(f"Submit cycle {self.number} already settled as {self.outcome.value}")
        status = SubmitStatus(getattr(outcome, "value", outcome))
        if status is SubmitStatus.NONE:
            raise ValueError("A submission cannot settle without an outcome")
        self.outcome = status
        self._reporter._record(self)


class StatusReporter:
    """Submitting stays true while any cycle is in flight; the status is the latest settled outcome."""

    def __init__(self) -> None:
        self._phase = Phase.IDLE
        self._status = SubmitStatus.NONE
        self._in_flight = 0
        self._cycles_started = 0
        self._listeners: list[StatusListener] = []

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_submitting(self) -> bool:
        return self._in_flight > 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def submit_status(self) -> SubmitStatus:
        return self._status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register `listener` for every transition; returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def begin(self) -> SubmitCycle:
        if self.is_submitting:
            logger.warning("Starting a submission while %d other(s) are still in flight", self._in_flight)
        self._cycles_started += 1
        self._in_flight += 1
        self._phase = Phase.SUBMITTING
        self._status = SubmitStatus.NONE
        self._emit("submitting")
        return SubmitCycle(self, self._cycles_started)

    def finish(self, cycle: SubmitCycle) -> None:
        """Close `cycle`; the phase leaves SUBMITTING once no cycle is in flight."""
        if cycle.finished:
            return
        cycle.finished = True
        self._in_flight -= 1
        if self._in_flight:
            return
        self._phase = Phase.SETTLED if self._status is not SubmitStatus.NONE else Phase.IDLE
        self._emit(self._phase.value)

    @contextmanager
    def cycle(self) -> Iterator[SubmitCycle]:
        """Run one submit cycle; submitting is always cleared on the way out."""
        cycle = self.begin()
        try:
            yield cycle
        except BaseException:
            if not cycle.settled:
                cycle.settle(SubmitStatus.FAILURE)
            raise
        finally:
            self.finish(cycle)

    def banner(self) -> tuple[str, str] | None:
        """Title and detail text for the current outcome, or None when there is nothing to show."""
        return BANNERS.get(self._status)

    def snapshot(self) -> dict[str, Any]:
        return {
            "phase": self._phase.value,
            "isSubmitting": self.is_submitting,
            "submitStatus": self._status.value,
        }

    def _record(self, cycle: SubmitCycle) -> None:
        self._status = cycle.outcome

    def _emit(self, event_type: str) -> None:
        event = StatusEvent(type=event_type, payload=self.snapshot())
        for listener in list(self._listeners):
            listener(event)
