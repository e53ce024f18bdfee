from __future__ import annotations

import logging
import re
import sys
from datetime import datetime, timezone

_NUMBER_PREFIX = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_number(text: str | None) -> float | None:
    """Parse the leading numeric part of `text`, the way a browser's parseFloat does.

    "2.5" -> 2.5, " 3h" -> 3.0, ".5" -> 0.5, "abc" -> None, "" -> None.
    """
    if text is None:
        return None
    match = _NUMBER_PREFIX.match(str(text).lstrip())
    if not match:
        return None
    return float(match.group(0).replace("Infinity", "inf"))


def iso_timestamp(moment: datetime | None = None) -> str:
    """Return a UTC ISO-8601 instant with millisecond precision, e.g. 2024-05-01T09:30:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def classify_hours(hours: float, full_day: float = 8.0) -> str | None:
    """Return a standardized note for a partial or overtime day.

    - If hours == full_day: returns None.
    - If hours < full_day: "Partial day — Xh short of {full_day}h".
    - If hours > full_day: "Overtime — +Xh over {full_day}h".
    """
    delta = round(hours - full_day, 2)
    if abs(delta) < 1e-9:
        return None
    if delta < 0:
        return f"Partial day — {format_hours(-delta)}h short of {full_day:g}h"
    return f"Overtime — +{format_hours(delta)}h over {full_day:g}h"


def setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """Configure root logging for the command-line front-end."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    # The HTTP stack is chatty at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def format_hours(x: float) -> str:
    s = f"{x:.2f}"
    if s.endswith(".00"):
        return s[:-3]
    if s.endswith("0"):
        return s[:-1]
    return s
