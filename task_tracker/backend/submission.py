"""Turn the task list into delivery records and push them to the record sink."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from enum import Enum

from .forms import EmployeeContext, SubmissionRecord, TaskEntry
from .sink import DispatchError, RecordSink
from .store import FormStateStore
from .utils import iso_timestamp, parse_number


class SubmissionOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SubmissionCoordinator:
    """Build a batch, fan it out to the sink, wait for every send, then decide.

    SUCCESS only means every send was attempted without a local or transport
    error. The sink never acknowledges storage, so nothing finer is knowable.
    """

    def __init__(
        self,
        sink: RecordSink,
        store: FormStateStore,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._sink = sink
        self._store = store
        self._clock = clock or _utc_now
        self._logger = logger or logging.getLogger(__name__)

    def build_batch(
        self, employee: EmployeeContext, tasks: Sequence[TaskEntry]
    ) -> list[SubmissionRecord]:
        """Snapshot `tasks` into records labelled Task-1, Task-2, ... in list order."""
        batch: list[SubmissionRecord] = []
        for ordinal, task in enumerate(tasks, start=1):
            hours = parse_number(task.hoursWorked)
            if hours is not None and not math.isfinite(hours):
                hours = None
            batch.append(
                SubmissionRecord(
                    employeeName=employee.employeeName,
                    taskDescription=f"Task-{ordinal}: {task.description}",
                    date=employee.date,
                    hoursWorked=hours,
                    # Captured per record; timestamps in one batch may differ.
                    timestamp=iso_timestamp(self._clock()),
                )
            )
        return batch

    async def submit(
        self, employee: EmployeeContext, tasks: Sequence[TaskEntry]
    ) -> SubmissionOutcome:
        batch = self.build_batch(employee, tasks)
        self._logger.info(
            "Dispatching %d record(s) for %s on %s",
            len(batch),
            employee.employeeName,
            employee.date,
        )
        # All-settled barrier: one failed send never cuts the others short.
        results = await asyncio.gather(
            *(self._dispatch(record) for record in batch), return_exceptions=True
        )

        failures = 0
        unexpected: BaseException | None = None
        for record, result in zip(batch, results):
            if isinstance(result, DispatchError):
                failures += 1
                self._logger.error("Dispatch failed for %s: %s", record.taskDescription, result)
            elif isinstance(result, BaseException) and unexpected is None:
                unexpected = result
        if unexpected is not None:
            raise unexpected

        if failures:
            self._logger.warning(
                "Submission failed: %d of %d record(s) could not be sent", failures, len(batch)
            )
            return SubmissionOutcome.FAILURE

        self._logger.info("Submission succeeded: %d record(s) sent", len(batch))
        self._store.reset()
        return SubmissionOutcome.SUCCESS

    async def _dispatch(self, record: SubmissionRecord) -> None:
        self._logger.debug("Sending %s", record.to_payload())
        # Sinks block on I/O; run them off the event loop.
        await asyncio.to_thread(self._sink.send, record)
