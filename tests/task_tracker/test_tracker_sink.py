import json

import pytest
import requests

from task_tracker.backend.forms import SubmissionRecord
from task_tracker.backend.sink import DispatchError, HttpRecordSink, LoggingRecordSink

RECORD = SubmissionRecord(
    employeeName="Jane",
    taskDescription="Task-1: A",
    date="2024-05-01",
    hoursWorked=2.0,
    timestamp="2024-05-01T09:00:00.000Z",
)


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code
        self.closed = False

    def close(self):
        self.closed = True

    def json(self):
        raise AssertionError("response body must not be read")


def test_http_sink_posts_json_and_ignores_response(monkeypatch):
    calls = []
    response = FakeResponse(500)

    def fake_post(url, data=None, headers=None, timeout=None):
        calls.append((url, json.loads(data), headers, timeout))
        return response

    monkeypatch.setattr(requests, "post", fake_post)
    HttpRecordSink("https://sheet.example/exec", timeout=3).send(RECORD)

    ((url, body, headers, timeout),) = calls
    assert url == "https://sheet.example/exec"
    assert body == RECORD.to_payload()
    assert headers == {"Content-Type": "application/json"}
    assert timeout == 3
    # A 500 is not a failure: the sink cannot trust responses.
    assert response.closed


def test_http_sink_wraps_transport_errors(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("no route to host")

    monkeypatch.setattr(requests, "post", fake_post)
    with pytest.raises(DispatchError) as info:
        HttpRecordSink("https://sheet.example/exec").send(RECORD)
    assert info.value.record is RECORD
    assert isinstance(info.value.__cause__, requests.ConnectionError)


def test_http_sink_rejects_unencodable_records(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *a, **k: pytest.fail("should not send"))
    record = SubmissionRecord("Jane", "Task-1: A", "2024-05-01", float("nan"), "t")
    with pytest.raises(DispatchError):
        HttpRecordSink("https://sheet.example/exec").send(record)


def test_http_sink_requires_url():
    with pytest.raises(ValueError):
        HttpRecordSink("")


def test_logging_sink_keeps_what_it_would_send():
    sink = LoggingRecordSink()
    sink.send(RECORD)
    assert list(sink.sent) == [RECORD]


def test_logging_sink_holds_only_the_latest_records():
    sink = LoggingRecordSink(keep=2)
    records = [
        SubmissionRecord(
            employeeName="Jane",
            taskDescription=f"Task-{n}: A",
            date="2024-05-01",
            hoursWorked=1.0,
            timestamp="2024-05-01T09:00:00.000Z",
        )
        for n in range(1, 6)
    ]
    for record in records:
        sink.send(record)
    assert [r.taskDescription for r in sink.sent] == ["Task-4: A", "Task-5: A"]
