"""CSV and plain-text export formatting."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

Column = Tuple[str, str]

REGISTRATION_COLUMNS: Tuple[Column, ...] = (
    ("student_name", "Student Name"),
    ("matric_number", "Matric Number"),
    ("course_code", "Course Code"),
    ("course_title", "Course Title"),
    ("department", "Department"),
    ("level", "Level"),
    ("units", "Units"),
    ("registration_date", "Registration Date"),
)


def _new_writer():
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    return output, writer


def date_part(value: Any) -> str:
    """Return ``YYYY-MM-DD`` for a datetime, date or ISO string."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
        except ValueError:
            return value
    return ""


def _cell(value: Any) -> Any:
    return "" if value is None else value


def to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[Column]) -> str:
    """Serialise ``rows`` under a header built from the column labels.

    Fields containing a comma, quote or line break are double-quoted.
    """

    output, writer = _new_writer()
    writer.writerow([label for _, label in columns])
    for row in rows:
        writer.writerow([_cell(row.get(key)) for key, _ in columns])
    return output.getvalue()


def registrations_csv(details: Iterable[Mapping[str, Any]]) -> str:
    rows: List[Dict[str, Any]] = []
    for detail in details:
        row = dict(detail)
        row["registration_date"] = date_part(detail.get("registration_date"))
        rows.append(row)
    return to_csv(rows, REGISTRATION_COLUMNS)


def overview_csv(report: Mapping[str, Any], generated_at: datetime) -> str:
    students = report["students"]
    output, writer = _new_writer()

    writer.writerow(["Report Type", "Overview"])
    writer.writerow(["Generated", generated_at.strftime("%Y-%m-%d %H:%M:%S")])
    writer.writerow([])
    writer.writerow(["Summary"])
    writer.writerow(["Total Students", students["total"]])
    writer.writerow(["Total Courses", report["courses"]["total"]])
    writer.writerow(["Total Registrations", report["registrations"]["total"]])
    writer.writerow(["Fees Paid", students["fees_paid"]])
    writer.writerow(["Fees Unpaid", students["fees_unpaid"]])
    writer.writerow([])
    writer.writerow(["Students by Department"])
    for department, count in students["by_department"].items():
        writer.writerow([department, count])

    return output.getvalue()


def registration_slip(profile: Mapping[str, Any], term: Mapping[str, Any]) -> str:
    """Render the printable slip for one registered term."""

    course_lines = [
        f"- {course.get('course_code')}: {course.get('course_title')} ({course.get('units')} units)"
        for course in term.get("courses", [])
    ]

    lines = [
        "COURSE REGISTRATION SLIP",
        "========================",
        "",
        "Student Information:",
        f"- Name: {profile.get('full_name')}",
        f"- Matric Number: {profile.get('matric_number')}",
        f"- Department: {profile.get('department')}",
        f"- Level: {profile.get('level')}",
        "",
        "Academic Details:",
        f"- Session: {term.get('academic_session')}",
        f"- Semester: {term.get('semester')}",
        "",
        "Registered Courses:",
        *course_lines,
        "",
        f"Total Units: {term.get('total_units', 0)}",
        "",
        f"Registration Date: {date_part(term.get('registration_date'))}",
    ]
    return "\n".join(lines)


def _file_safe(value: Any) -> str:
    return str(value or "").replace("/", "-").replace(" ", "_")


def report_filename(kind: str, generated_at: datetime) -> str:
    return f"{kind}_report_{generated_at.date().isoformat()}.csv"


def slip_filename(matric_number: str, session: str, semester: str) -> str:
    return "registration-{}-{}-{}.txt".format(
        _file_safe(matric_number), _file_safe(session), _file_safe(semester)
    )


__all__ = [
    "REGISTRATION_COLUMNS",
    "date_part",
    "to_csv",
    "registrations_csv",
    "overview_csv",
    "registration_slip",
    "report_filename",
    "slip_filename",
]
