"""Record sinks: where submission records are delivered.

The record-keeping endpoint does not acknowledge anything the caller can
trust, so a sink only ever reports one kind of failure: the send could not
be attempted or broke mid-flight. A send that returns normally says nothing
about whether the record was stored.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from typing import Protocol

import requests

from .forms import SubmissionRecord

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """A send failed locally or in transport, before any acknowledgement could exist."""

    def __init__(self, message: str, record: SubmissionRecord | None = None) -> None:
        super().__init__(message)
        self.record = record


class RecordSink(Protocol):
    """Port for delivering one record. Raises DispatchError on local/transport failure."""

    def send(self, record: SubmissionRecord) -> None: ...


class HttpRecordSink:
    """POST each record as JSON to a fixed endpoint, ignoring whatever comes back."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        if not url:
            raise ValueError("HttpRecordSink requires an endpoint URL")
        self.url = url
        self.timeout = timeout

    def send(self, record: SubmissionRecord) -> None:
        try:
            body = json.dumps(record.to_payload(), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise DispatchError(f"Could not encode record: {e}", record) from e
        try:
            response = requests.post(
                self.url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DispatchError(f"Could not send record to {self.url}: {e}", record) from e
        # Acknowledgement-blind: status and body are never inspected.
        response.close()


class LoggingRecordSink:
    """Dry-run sink that only logs what would have been sent.

    Only the most recent `keep` records are held in `sent`.
    """

    def __init__(self, keep: int = 100) -> None:
        self.sent: deque[SubmissionRecord] = deque(maxlen=keep)

    def send(self, record: SubmissionRecord) -> None:
        self.sent.append(record)
        logger.info("Dry run, not sending: %s", json.dumps(record.to_payload()))
