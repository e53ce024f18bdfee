"""In-memory form state for one tracking session.

Entries are addressed by id, never by position, so removing or reordering
one entry never changes which entry another edit targets.
"""

from __future__ import annotations

import copy
import logging

from .forms import (
    EMPLOYEE_FIELDS,
    TASK_FIELDS,
    EmployeeContext,
    FormState,
    TaskEntry,
    UnknownFieldError,
)

logger = logging.getLogger(__name__)


class FormStateStore:
    """Owns the employee context and task list; every operation is a pure state transition."""

    def __init__(self) -> None:
        self.state = FormState()

    @property
    def employee(self) -> EmployeeContext:
        return self.state.employee

    @property
    def tasks(self) -> list[TaskEntry]:
        return self.state.tasks

    def snapshot(self) -> FormState:
        """Return a deep copy that later edits cannot reach."""
        return copy.deepcopy(self.state)

    def set_employee_field(self, field: str, value: str) -> None:
        if field not in EMPLOYEE_FIELDS:
            raise UnknownFieldError(field)
        setattr(self.state.employee, field, value)

    def set_task_field(self, task_id: int, field: str, value: str) -> None:
        """Update one field of the task with `task_id`; unknown ids are ignored."""
        if field not in TASK_FIELDS:
            raise UnknownFieldError(field)
        task = self.find_task(task_id)
        if task is None:
            logger.debug("Ignoring edit for unknown task id %s", task_id)
            return
        setattr(task, field, value)

    def add_task(self) -> TaskEntry:
        ids = [t.id for t in self.state.tasks]
        task = TaskEntry(id=max(ids) + 1 if ids else 1)
        self.state.tasks.append(task)
        return task

    def remove_task(self, task_id: int) -> bool:
        """Remove the task with `task_id`. The last remaining task is never removed."""
        if len(self.state.tasks) <= 1:
            return False
        before = len(self.state.tasks)
        self.state.tasks = [t for t in self.state.tasks if t.id != task_id]
        return len(self.state.tasks) < before

    def find_task(self, task_id: int) -> TaskEntry | None:
        return next((t for t in self.state.tasks if t.id == task_id), None)

    def reset(self) -> None:
        self.state = FormState()
