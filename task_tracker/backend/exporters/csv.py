"""CSV preview of a submission batch, laid out like the record sheet."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable

from ..forms import SubmissionRecord

# Sheet column heading -> record payload key.
SHEET_COLUMNS = {
    "Employee Name": "employeeName",
    "Task Description": "taskDescription",
    "Date": "date",
    "Hours Worked": "hoursWorked",
    "Timestamp": "timestamp",
}


def render_batch_csv(records: Iterable[SubmissionRecord]) -> str:
    """Render records as CSV under the sheet's column headings.

    Hours that did not parse are written as an empty cell.
    """
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(SHEET_COLUMNS)
    for record in records:
        payload = record.to_payload()
        writer.writerow(_cell(key, payload[key]) for key in SHEET_COLUMNS.values())
    return buf.getvalue()


def _cell(key: str, value: object) -> object:
    if value is None:
        return ""
    if key == "hoursWorked":
        return f"{value:g}"
    return value
