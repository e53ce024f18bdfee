import pytest

from task_tracker.backend.server import iter_events
from task_tracker.backend.status import Phase, StatusEvent, StatusReporter, SubmitStatus
from task_tracker.backend.submission import SubmissionOutcome


def test_reporter_starts_idle_with_no_status():
    reporter = StatusReporter()
    assert reporter.phase is Phase.IDLE
    assert not reporter.is_submitting
    assert reporter.submit_status is SubmitStatus.NONE
    assert reporter.banner() is None


def test_cycle_sets_submitting_then_settles():
    reporter = StatusReporter()
    with reporter.cycle() as cycle:
        assert reporter.is_submitting
        assert reporter.submit_status is SubmitStatus.NONE
        cycle.settle(SubmissionOutcome.SUCCESS)
    assert not reporter.is_submitting
    assert reporter.phase is Phase.SETTLED
    assert reporter.submit_status is SubmitStatus.SUCCESS
    assert reporter.banner() == ("Tasks submitted successfully!", "Your tasks have been recorded.")


def test_new_cycle_clears_previous_failure():
    reporter = StatusReporter()
    with reporter.cycle() as cycle:
        cycle.settle("failure")
    assert reporter.submit_status is SubmitStatus.FAILURE
    reporter.begin()
    assert reporter.submit_status is SubmitStatus.NONE
    assert reporter.is_submitting


def test_cycle_clears_submitting_when_body_raises():
    reporter = StatusReporter()
    with pytest.raises(ValueError):
        with reporter.cycle():
            raise ValueError("sink exploded")
    assert not reporter.is_submitting
    assert reporter.submit_status is SubmitStatus.FAILURE


def test_settle_only_once_per_cycle():
    reporter = StatusReporter()
    cycle = reporter.begin()
    cycle.settle(SubmitStatus.SUCCESS)
    with pytest.raises(RuntimeError):
        cycle.settle(SubmitStatus.FAILURE)
    reporter.finish(cycle)
    with pytest.raises(RuntimeError):
        cycle.settle(SubmitStatus.SUCCESS)
    assert reporter.submit_status is SubmitStatus.SUCCESS


def test_submitting_holds_until_every_overlapping_cycle_finishes():
    reporter = StatusReporter()
    events = []
    reporter.subscribe(events.append)
    first = reporter.begin()
    second = reporter.begin()
    assert reporter.in_flight == 2

    first.settle(SubmitStatus.FAILURE)
    reporter.finish(first)
    assert reporter.is_submitting
    assert reporter.phase is Phase.SUBMITTING

    second.settle(SubmitStatus.SUCCESS)
    reporter.finish(second)
    assert not reporter.is_submitting
    assert reporter.phase is Phase.SETTLED
    assert reporter.submit_status is SubmitStatus.SUCCESS
    assert [e.type for e in events] == ["submitting", "submitting", "settled"]


def test_subscribers_see_each_transition():
    reporter = StatusReporter()
    events = []
    unsubscribe = reporter.subscribe(events.append)
    with reporter.cycle() as cycle:
        cycle.settle(SubmitStatus.FAILURE)
    assert [e.type for e in events] == ["submitting", "settled"]
    assert events[0].payload == {"phase": "submitting", "isSubmitting": True, "submitStatus": "none"}
    assert events[1].payload["submitStatus"] == "failure"

    unsubscribe()
    reporter.begin()
    assert len(events) == 2


def test_iter_events_frames_json_payloads():
    frames = list(
        iter_events([StatusEvent(type="settled", payload={"submitStatus": "success", "isSubmitting": False})])
    )
    assert frames == ['event: settled\ndata: {"isSubmitting": false, "submitStatus": "success"}\n\n']
