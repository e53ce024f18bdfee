"""Server-sent event framing for status transitions.

A UI subscribes to a StatusReporter and relays each StatusEvent through
`iter_events`, so the submit control and outcome banner can follow along.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

from .status import StatusEvent


def format_event(event: StatusEvent) -> str:
    """Frame a single event; the payload is JSON on one `data:` line."""
    return f"event: {event.type}\ndata: {json.dumps(event.payload, sort_keys=True)}\n\n"


def iter_events(events: Iterable[StatusEvent]) -> Iterable[str]:
    """Yield server-sent event frames from StatusEvent objects."""
    for e in events:
        yield format_event(e)
