"""Schemas and validation for daily task entries.

The form holds one employee/date context shared by every task on the page.
Validation here is read-only: it never mutates the state it inspects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .utils import parse_number

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import TrackerConfig


EMPLOYEE_FIELDS = ("employeeName", "date")
TASK_FIELDS = ("description", "hoursWorked")


class UnknownFieldError(KeyError):
    """Raised when an edit names a field the form does not have."""


@dataclass
class EmployeeContext:
    """Who worked and on which day; shared across all tasks."""

    employeeName: str = ""
    date: str = ""


@dataclass
class TaskEntry:
    """One (description, hours) pair. Identity is `id`, not list position."""

    id: int
    description: str = ""
    hoursWorked: str = ""


@dataclass
class FormState:
    employee: EmployeeContext = field(default_factory=EmployeeContext)
    tasks: list[TaskEntry] = field(default_factory=lambda: [TaskEntry(id=1)])


@dataclass(frozen=True)
class SubmissionRecord:
    """A single delivery record, as posted to the record sink."""

    employeeName: str
    taskDescription: str
    date: str
    hoursWorked: float | None
    timestamp: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "employeeName": self.employeeName,
            "taskDescription": self.taskDescription,
            "date": self.date,
            "hoursWorked": self.hoursWorked,
            "timestamp": self.timestamp,
        }


def validate(state: FormState, config: TrackerConfig | None = None) -> list[str]:
    """Return a list of human-readable issues if validation fails.

    Only presence is checked unless `config.strict_hours` is set, in which
    case hours must also parse and sit on the configured range and step.
    """
    issues: list[str] = []
    if not state.employee.employeeName:
        issues.append("Employee name is required.")
    if not state.employee.date:
        issues.append("Date is required.")
    strict = bool(config and config.strict_hours)
    for ordinal, task in enumerate(state.tasks, start=1):
        if not task.description:
            issues.append(f"Task-{ordinal}: description is required.")
        if not task.hoursWorked:
            issues.append(f"Task-{ordinal}: hours worked is required.")
        elif strict:
            problem = _check_hours(task.hoursWorked, config)
            if problem:
                issues.append(f"Task-{ordinal}: {problem}")
    return issues


def is_form_valid(state: FormState, config: TrackerConfig | None = None) -> bool:
    return not validate(state, config)


def compute_total_hours(tasks: Iterable[TaskEntry]) -> float:
    """Sum hours across tasks; anything that does not parse counts as 0."""
    total = 0.0
    for task in tasks:
        hours = parse_number(task.hoursWorked)
        if hours is not None and math.isfinite(hours):
            total += hours
    return total


def _check_hours(raw: str, config: TrackerConfig) -> str | None:
    try:
        hours = float(raw.strip())
    except ValueError:
        hours = math.nan
    if not math.isfinite(hours):
        return f"hours worked must be a number (got {raw!r})."
    if hours < config.min_hours or hours > config.max_hours:
        return f"hours worked must be between {config.min_hours:g} and {config.max_hours:g}."
    step = config.hours_step
    if step > 0:
        steps = (hours - config.min_hours) / step
        if abs(steps - round(steps)) > 1e-9:
            return f"hours worked must be in steps of {step:g}."
    return None
