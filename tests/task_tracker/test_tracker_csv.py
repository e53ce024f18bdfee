from task_tracker.backend.exporters.csv import render_batch_csv
from task_tracker.backend.forms import SubmissionRecord


def _record(description="Task-1: A", hours=2.0):
    return SubmissionRecord(
        employeeName="Jane",
        taskDescription=description,
        date="2024-05-01",
        hoursWorked=hours,
        timestamp="2024-05-01T09:00:00.000Z",
    )


def test_render_batch_csv_uses_sheet_headers():
    out = render_batch_csv([_record(), _record("Task-2: B", 3.5)])
    lines = out.splitlines()
    assert lines[0] == "Employee Name,Task Description,Date,Hours Worked,Timestamp"
    assert lines[1] == "Jane,Task-1: A,2024-05-01,2,2024-05-01T09:00:00.000Z"
    assert lines[2] == "Jane,Task-2: B,2024-05-01,3.5,2024-05-01T09:00:00.000Z"


def test_render_batch_csv_escaping_commas_and_quotes():
    out = render_batch_csv([_record('Task-1: Fix "login", again')])
    assert '"Task-1: Fix ""login"", again"' in out


def test_render_batch_csv_blank_cell_for_unparsed_hours():
    out = render_batch_csv([_record(hours=None)])
    assert "Jane,Task-1: A,2024-05-01,,2024-05-01T09:00:00.000Z" in out
