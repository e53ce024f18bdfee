"""One tracking session: the form, its submit gate, and the submit cycle.

A front-end (the CLI agent, or any UI) edits `session.store`, reads
`can_submit` to enable its submit control, and awaits `submit()`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .config import TrackerConfig
from .forms import compute_total_hours, validate
from .sink import RecordSink
from .status import StatusReporter, SubmitStatus
from .store import FormStateStore
from .submission import SubmissionCoordinator
from .utils import classify_hours, format_hours

logger = logging.getLogger(__name__)


class TrackerSession:
    def __init__(
        self,
        sink: RecordSink,
        config: TrackerConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or TrackerConfig()
        self.store = FormStateStore()
        self.reporter = StatusReporter()
        self.coordinator = SubmissionCoordinator(sink, self.store, clock=clock)

    def problems(self) -> list[str]:
        return validate(self.store.state, self.config)

    @property
    def form_valid(self) -> bool:
        return not self.problems()

    @property
    def total_hours(self) -> float:
        return compute_total_hours(self.store.tasks)

    @property
    def can_submit(self) -> bool:
        return self.form_valid and not self.reporter.is_submitting

    async def submit(self) -> SubmitStatus:
        """Run one submit cycle and return that cycle's status.

        On success the form is reset; on failure it is left as-is for a retry.
        """
        if not self.can_submit:
            logger.warning("Submitting while the form is not ready: %s", self.problems() or "in flight")
        snapshot = self.store.snapshot()
        with self.reporter.cycle() as cycle:
            outcome = await self.coordinator.submit(snapshot.employee, snapshot.tasks)
            cycle.settle(outcome)
        return cycle.outcome

    def summary(self) -> dict[str, Any]:
        """Everything a front-end needs to render the form."""
        total = self.total_hours
        banner = self.reporter.banner()
        return {
            "employeeName": self.store.employee.employeeName,
            "date": self.store.employee.date,
            "tasks": [
                {
                    "ordinal": ordinal,
                    "id": task.id,
                    "description": task.description,
                    "hoursWorked": task.hoursWorked,
                }
                for ordinal, task in enumerate(self.store.tasks, start=1)
            ],
            # Only shown once there is something to total.
            "totalHours": format_hours(total) if total > 0 else None,
            "hoursNote": classify_hours(total, self.config.full_day_hours) if total > 0 else None,
            "canSubmit": self.can_submit,
            "problems": self.problems(),
            "submitStatus": self.reporter.submit_status.value,
            "banner": {"title": banner[0], "detail": banner[1]} if banner else None,
        }
