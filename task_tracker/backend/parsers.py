"""Freeform input helpers for the form fields.

`resolve_date_phrase` fills the date field from phrases such as "yesterday";
`parse_task_line` splits "Wrote the report 2.5h" into a task's description
and hours.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date as _date, datetime, timedelta, tzinfo as _tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

_HOURS_MARKED = re.compile(
    r"(?<![\w.])(\d+(?:\.\d+)?|\.\d+)\s*(?:hours|hour|hrs|hr|h)\b", flags=re.IGNORECASE
)
_HOURS_TRAILING = re.compile(r"(?<![\w.#/-])(\d+(?:\.\d+)?)\s*$")
_CONNECTORS = r"(?:on|for|of|doing|-|:|,)"


def parse_task_line(text: str) -> dict[str, str]:
    """Split a freeform task line into `description` and `hoursWorked`.

    Hours are the last number followed by an hour marker (h/hr/hrs/hour/hours),
    or failing that a bare number ending the line. The hours value is kept
    as typed; an absent value is "".
    """
    s = " ".join((text or "").split())
    if not s:
        return {"description": "", "hoursWorked": ""}

    marked = list(_HOURS_MARKED.finditer(s))
    match = marked[-1] if marked else _HOURS_TRAILING.search(s)
    if match is None:
        return {"description": s, "hoursWorked": ""}

    rest = f"{s[: match.start()]} {s[match.end() :]}"
    rest = " ".join(rest.split())
    rest = re.sub(rf"^{_CONNECTORS}\s+", "", rest, flags=re.IGNORECASE)
    rest = re.sub(rf"\s+{_CONNECTORS}$", "", rest, flags=re.IGNORECASE)
    return {"description": rest.strip(" ,;:-"), "hoursWorked": match.group(1)}


_MONTHS = {
    name: number
    for number, names in enumerate(
        [
            ("jan", "january"),
            ("feb", "february"),
            ("mar", "march"),
            ("apr", "april"),
            ("may",),
            ("jun", "june"),
            ("jul", "july"),
            ("aug", "august"),
            ("sep", "sept", "september"),
            ("oct", "october"),
            ("nov", "november"),
            ("dec", "december"),
        ],
        start=1,
    )
    for name in names
}

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_RELATIVE_DAYS = {
    "today": 0,
    "todays date": 0,
    "today's date": 0,
    "yesterday": -1,
    "tomorrow": 1,
}


def resolve_date_phrase(
    phrase: str,
    *,
    timezone: str | None = None,
    base_date: str | None = None,
) -> str:
    """Resolve relative or natural-language dates to ISO YYYY-MM-DD.

    Supported:
    - ISO: YYYY-MM-DD (returned as-is).
    - Relative: today, yesterday, tomorrow.
    - Month names: "September 9 2025", "9 Sept 2025" (commas/ordinals tolerated).
    - Numeric: MM/DD/YYYY.
    - Weekdays: "this monday", "next tuesday", "last friday".

    Returns "" when the phrase is not understood or names an impossible date.
    """
    s = (phrase or "").strip().lower()
    if not s:
        return ""
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", s):
        return s if _safe_date(*map(int, s.split("-"))) else ""

    today = _parse_iso_date(base_date) or datetime.now(_resolve_tz(timezone)).date()
    for matcher in _MATCHERS:
        resolved = matcher(s, today)
        if resolved is not None:
            return resolved.isoformat()
    return ""


def _match_relative(s: str, today: _date) -> _date | None:
    offset = _RELATIVE_DAYS.get(s)
    return None if offset is None else today + timedelta(days=offset)


def _match_month_first(s: str, today: _date) -> _date | None:
    m = re.search(r"\b([a-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?\s*,?\s*(\d{4})\b", s)
    if not m or m.group(1) not in _MONTHS:
        return None
    return _safe_date(int(m.group(3)), _MONTHS[m.group(1)], int(m.group(2)))


def _match_day_first(s: str, today: _date) -> _date | None:
    m = re.search(r"\b(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)\.?,?\s*(\d{4})\b", s)
    if not m or m.group(2) not in _MONTHS:
        return None
    return _safe_date(int(m.group(3)), _MONTHS[m.group(2)], int(m.group(1)))


def _match_numeric(s: str, today: _date) -> _date | None:
    m = re.search(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b", s)
    if not m:
        return None
    return _safe_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))


def _match_weekday(s: str, today: _date) -> _date | None:
    m = re.search(rf"\b(this|next|last)\s+({'|'.join(_WEEKDAYS)})\b", s)
    if not m:
        return None
    offset = (_WEEKDAYS.index(m.group(2)) - today.weekday()) % 7
    shift = {"this": 0, "next": 7, "last": -7}[m.group(1)]
    return today + timedelta(days=offset + shift)


_MATCHERS: tuple[Callable[[str, _date], _date | None], ...] = (
    _match_relative,
    _match_month_first,
    _match_day_first,
    _match_numeric,
    _match_weekday,
)


def _resolve_tz(name: str | None) -> _tzinfo:
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r; falling back to local time", name)
    return datetime.now().astimezone().tzinfo or ZoneInfo("UTC")


def _safe_date(year: int, month: int, day: int) -> _date | None:
    try:
        return _date(year, month, day)
    except ValueError:
        return None


def _parse_iso_date(s: str | None) -> _date | None:
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None
