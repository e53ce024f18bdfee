from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, TextIO

from dotenv import load_dotenv
from openai import OpenAI
from typing_extensions import NotRequired, TypedDict

from agents import Agent, ModelSettings, RunContextWrapper, function_tool, run_demo_loop

from .backend.config import TrackerConfig, load_from_env
from .backend.exporters.csv import render_batch_csv
from .backend.parsers import parse_task_line, resolve_date_phrase
from .backend.server import format_event
from .backend.session import TrackerSession
from .backend.sink import HttpRecordSink, LoggingRecordSink, RecordSink
from .backend.status import StatusEvent, StatusListener
from .backend.utils import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class TrackerContext:
    """Per-run context holding the one form being filled in."""

    session: TrackerSession


@function_tool
def set_employee(ctx: RunContextWrapper[TrackerContext], name: str) -> dict[str, Any]:
    """Set the employee name shared by every task on the form.

    Args:
        name: Full name of the employee, as they gave it.
    """
    session = ctx.context.session
    session.store.set_employee_field("employeeName", name.strip())
    return {"status": "ok", "form": session.summary()}


@function_tool
def set_date(
    ctx: RunContextWrapper[TrackerContext], date: str, timezone: str | None = None
) -> dict[str, Any]:
    """Set the work date for the form.

    Args:
        date: A date such as "today", "yesterday", "last friday", "September 9 2025" or 2025-09-09.
        timezone: Optional IANA timezone for relative phrases. Defaults to env TASK_TRACKER_TZ or system tz.
    """
    return _set_date(
        ctx.context.session,
        date,
        timezone=timezone or os.environ.get("TASK_TRACKER_TZ"),
        base_date=os.environ.get("TASK_TRACKER_BASE_DATE"),
    )


@function_tool
def add_task(
    ctx: RunContextWrapper[TrackerContext],
    text: str | None = None,
    description: str | None = None,
    hours: str | None = None,
) -> dict[str, Any]:
    """Add a task to the form.

    Args:
        text: Optional freeform line like "Wrote the report 2.5h"; split into description and hours.
        description: What was worked on. Overrides anything parsed from `text`.
        hours: Hours worked as typed, e.g. "2.5". Overrides anything parsed from `text`.
    """
    return _add_task(ctx.context.session, text=text, description=description, hours=hours)


class TaskInput(TypedDict):
    """One task to add in bulk.

    Fields:
        text: Optional freeform line, e.g. "Standup 0.25h".
        description: Optional description; wins over `text`.
        hours: Optional hours as typed; wins over `text`.
    """

    text: NotRequired[str]
    description: NotRequired[str]
    hours: NotRequired[str]


@function_tool
def add_tasks(ctx: RunContextWrapper[TrackerContext], tasks: list[TaskInput]) -> dict[str, Any]:
    """Add several tasks at once, in the order given.

    Args:
        tasks: Tasks to add. Each has `text` and/or `description` and `hours`.
    """
    session = ctx.context.session
    added = [
        _add_task(
            session,
            text=t.get("text"),
            description=t.get("description"),
            hours=t.get("hours"),
        )["task_id"]
        for t in tasks or []
    ]
    return {"status": "ok", "task_ids": added, "form": session.summary()}


@function_tool
def update_task(
    ctx: RunContextWrapper[TrackerContext],
    task_id: int,
    description: str | None = None,
    hours: str | None = None,
) -> dict[str, Any]:
    """Change the description and/or hours of an existing task, addressed by its id."""
    return _update_task(ctx.context.session, task_id, description=description, hours=hours)


@function_tool
def remove_task(ctx: RunContextWrapper[TrackerContext], task_id: int) -> dict[str, Any]:
    """Remove a task by id. The last remaining task cannot be removed."""
    session = ctx.context.session
    removed = session.store.remove_task(task_id)
    return {"status": "ok" if removed else "unchanged", "form": session.summary()}


@function_tool
def show_form(ctx: RunContextWrapper[TrackerContext]) -> dict[str, Any]:
    """Return the current form: employee, date, tasks, total hours, problems and last submit status."""
    return ctx.context.session.summary()


@function_tool
def preview_csv(ctx: RunContextWrapper[TrackerContext]) -> str:
    """Preview the records a submit would send, as CSV with the sheet headers."""
    session = ctx.context.session
    snapshot = session.store.snapshot()
    return render_batch_csv(session.coordinator.build_batch(snapshot.employee, snapshot.tasks))


@function_tool
async def submit_tasks(ctx: RunContextWrapper[TrackerContext]) -> dict[str, Any]:
    """Send every task on the form to the record sheet. Only call once the form has no problems."""
    return await _submit(ctx.context.session)


def _set_date(
    session: TrackerSession,
    phrase: str,
    *,
    timezone: str | None = None,
    base_date: str | None = None,
) -> dict[str, Any]:
    resolved = resolve_date_phrase(phrase, timezone=timezone, base_date=base_date)
    if not resolved:
        return {"status": "error", "problems": [f"Could not understand the date {phrase!r}."]}
    session.store.set_employee_field("date", resolved)
    return {"status": "ok", "date": resolved, "form": session.summary()}


def _add_task(
    session: TrackerSession,
    *,
    text: str | None = None,
    description: str | None = None,
    hours: str | None = None,
) -> dict[str, Any]:
    """Fill the blank starter task if there is one, otherwise append a new task."""
    fields = parse_task_line(text) if text else {"description": "", "hoursWorked": ""}
    if description is not None:
        fields["description"] = description.strip()
    if hours is not None:
        fields["hoursWorked"] = str(hours).strip()

    tasks = session.store.tasks
    blank = [t for t in tasks if not t.description and not t.hoursWorked]
    task = blank[0] if len(tasks) == 1 and blank else session.store.add_task()
    for name, value in fields.items():
        session.store.set_task_field(task.id, name, value)
    return {"status": "ok", "task_id": task.id, "form": session.summary()}


def _update_task(
    session: TrackerSession,
    task_id: int,
    *,
    description: str | None = None,
    hours: str | None = None,
) -> dict[str, Any]:
    if session.store.find_task(task_id) is None:
        return {"status": "error", "problems": [f"No task with id {task_id}."]}
    if description is not None:
        session.store.set_task_field(task_id, "description", description.strip())
    if hours is not None:
        session.store.set_task_field(task_id, "hoursWorked", str(hours).strip())
    return {"status": "ok", "form": session.summary()}


async def _submit(session: TrackerSession) -> dict[str, Any]:
    # Mirrors a disabled submit button: invalid or in-flight forms are not sent.
    if not session.can_submit:
        problems = session.problems() or ["A submission is already in progress."]
        return {"status": "error", "problems": problems}
    count = len(session.store.tasks)
    status = await session.submit()
    banner = session.reporter.banner()
    return {
        "status": status.value,
        "records": count,
        "message": " ".join(banner) if banner else "",
        "form": session.summary(),
    }


def build_sink(config: TrackerConfig, dry_run: bool = False) -> RecordSink:
    if dry_run:
        return LoggingRecordSink()
    if not config.sink_url:
        logger.warning("No record sink URL configured (TASK_TRACKER_SINK_URL); running dry.")
        return LoggingRecordSink()
    return HttpRecordSink(config.sink_url, timeout=config.request_timeout)


def status_stream(stream: TextIO) -> StatusListener:
    """Write each status transition to `stream` as a server-sent event frame."""

    def _write(event: StatusEvent) -> None:
        stream.write(format_event(event))
        stream.flush()

    return _write


def check_model(model: str, client: OpenAI | None = None) -> str:
    """Ping the configured model once and return its reply."""
    client = client or OpenAI()  # reads OPENAI_API_KEY from environment
    resp = client.responses.create(
        model=model,
        input="Reply with the single word: pong",
    )
    return resp.output_text


def build_agent(model_name: str) -> Agent[TrackerContext]:
    instructions = (
        "You help one employee log the tasks they worked on for a single day and send them to the record sheet. "
        "The form has an employee name, a date, and one or more tasks, each with a description and hours worked. "
        "Ask for the employee's name and the date first; use set_employee and set_date. "
        "Pass relative or natural-language dates (e.g. 'today', 'yesterday', 'last friday') straight to set_date; do not compute them yourself. "
        "For each task the user mentions, call add_task (or add_tasks for several at once). A freeform line like 'code review 2h' can go in `text`. "
        "Tasks are addressed by their id, never by position; use show_form to look ids up before update_task or remove_task. "
        "Do not invent descriptions or hours. Ask a short follow-up when something is missing. "
        "Hours must be between 0 and 24. "
        "When the user is done, show the tasks and total hours and ask for confirmation, then call submit_tasks. "
        "If submit_tasks reports failure, the form is kept; tell the user and offer to retry. "
        "If asked for a preview, call preview_csv and return only the CSV content. "
        "Be concise and ask one question at a time."
    )

    return Agent[TrackerContext](
        name="Task Tracker",
        instructions=instructions,
        tools=[
            set_employee,
            set_date,
            add_task,
            add_tasks,
            update_task,
            remove_task,
            show_form,
            preview_csv,
            submit_tasks,
        ],
        model=model_name,
        model_settings=ModelSettings(),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Log today's tasks and send them to the record sheet.")
    parser.add_argument("--config", help="Path to a JSON config file (overrides TASK_TRACKER_CONFIG_PATH)")
    parser.add_argument("--dry-run", action="store_true", help="Log records instead of sending them")
    parser.add_argument("--events", action="store_true", help="Stream submit status events to stderr")
    parser.add_argument(
        "--check-model", action="store_true", help="Ping the configured model once and exit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    if args.config:
        os.environ["TASK_TRACKER_CONFIG_PATH"] = args.config
    config = load_from_env(
        default_path=os.path.join(os.path.dirname(__file__), "tracker.example.json")
    )

    model = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
    if not os.environ.get("OPENAI_API_KEY"):
        print("Warning: OPENAI_API_KEY is not set. Set it in your shell or a .env file.")
    if args.check_model:
        print(check_model(model))
        return

    agent = build_agent(model)
    context = TrackerContext(session=TrackerSession(build_sink(config, args.dry_run), config))
    if args.events:
        context.session.reporter.subscribe(status_stream(sys.stderr))
    print("Task Tracker ready. Tell me who you are and what you worked on. Ctrl+C to exit.")
    await run_demo_loop(agent, stream=True, context=context)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
