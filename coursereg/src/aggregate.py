"""Read-only summaries over flat student, course and registration lists."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Tuple

Record = Mapping[str, Any]

ACTIVE_STATUS = "active"
UNKNOWN = "Unknown"


def group_count(
    records: Iterable[Record], key_fn: Callable[[Record], Hashable]
) -> Dict[Hashable, int]:
    """Count records per key; keys keep the order they were first seen in."""

    counts: Dict[Hashable, int] = {}
    for record in records:
        key = key_fn(record)
        counts[key] = counts.get(key, 0) + 1
    return counts


def fees_split(students: Iterable[Record]) -> Tuple[int, int]:
    paid = 0
    unpaid = 0
    for student in students:
        if student.get("fees_paid"):
            paid += 1
        else:
            unpaid += 1
    return paid, unpaid


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage rounded half up; 0 when ``whole`` is 0."""

    if whole <= 0:
        return 0
    return int(math.floor(100 * part / whole + 0.5))


def registration_rate(active_registrations: int, total_students: int) -> int:
    return percentage(active_registrations, total_students)


def matches_search(record: Record, term: str | None, fields: Iterable[str]) -> bool:
    """Case-insensitive substring match of ``term`` against any of ``fields``.

    An empty term matches every record.
    """

    needle = (term or "").strip().lower()
    if not needle:
        return True
    return any(needle in str(record.get(field) or "").lower() for field in fields)


def _index(records: Iterable[Record], key: str) -> Dict[Any, Record]:
    index: Dict[Any, Record] = {}
    for record in records:
        value = record.get(key)
        if value is not None and value not in index:
            index[value] = record
    return index


def _joined(
    registrations: Iterable[Record],
    students: Iterable[Record],
    courses: Iterable[Record],
) -> List[Tuple[Record, Record, Record]]:
    students_by_user = _index(students, "user_id")
    courses_by_id = _index(courses, "id")

    joined = []
    for registration in registrations:
        student = students_by_user.get(registration.get("user_id"))
        course = courses_by_id.get(registration.get("course_id"))
        if student is None or course is None:
            continue
        joined.append((registration, student, course))
    return joined


def join_registration_details(
    registrations: Iterable[Record],
    students: Iterable[Record],
    courses: Iterable[Record],
) -> List[Dict[str, Any]]:
    """Flatten registrations with their student and course.

    Registrations that point at a student or course no longer present are
    left out of the result.
    """

    return [
        {
            "student_name": student.get("full_name"),
            "matric_number": student.get("matric_number"),
            "course_code": course.get("course_code"),
            "course_title": course.get("course_title"),
            "department": course.get("department"),
            "level": course.get("level"),
            "units": course.get("units"),
            "registration_date": registration.get("registration_date"),
        }
        for registration, student, course in _joined(registrations, students, courses)
    ]


def dashboard_summary(
    students: List[Record],
    courses: List[Record],
    registrations: List[Record],
    now: datetime | None = None,
) -> Dict[str, Any]:
    total_students = len(students)
    active = sum(1 for reg in registrations if reg.get("status") == ACTIVE_STATUS)
    paid = sum(1 for student in students if student.get("fees_paid"))

    departments = group_count(
        students, lambda student: student.get("department") or UNKNOWN
    )
    distribution = sorted(
        ({"name": name, "students": count} for name, count in departments.items()),
        key=lambda entry: entry["students"],
        reverse=True,
    )

    return {
        "total_students": total_students,
        "total_courses": len(courses),
        "registration_rate": registration_rate(active, total_students),
        "active_registrations": active,
        "fees_paid": paid,
        "fees_unpaid": total_students - paid,
        "department_distribution": distribution,
        "last_updated": (now or datetime.now(timezone.utc)).isoformat(),
    }


def build_report(
    students: List[Record],
    courses: List[Record],
    registrations: List[Record],
) -> Dict[str, Any]:
    paid, unpaid = fees_split(students)
    joined = _joined(registrations, students, courses)

    return {
        "students": {
            "total": len(students),
            "by_department": group_count(students, lambda s: s.get("department") or UNKNOWN),
            "by_level": group_count(students, lambda s: s.get("level") or UNKNOWN),
            "fees_paid": paid,
            "fees_unpaid": unpaid,
            "fees_paid_percentage": percentage(paid, len(students)),
        },
        "courses": {
            "total": len(courses),
            "by_department": group_count(courses, lambda c: c.get("department") or UNKNOWN),
            "by_level": group_count(courses, lambda c: c.get("level") or UNKNOWN),
        },
        "registrations": {
            "total": len(registrations),
            "by_level": group_count(joined, lambda row: row[2].get("level") or UNKNOWN),
            "by_semester": group_count(joined, lambda row: row[0].get("semester") or UNKNOWN),
        },
        "details": join_registration_details(registrations, students, courses),
    }


def group_registrations_by_term(rows: Iterable[Record]) -> List[Dict[str, Any]]:
    """Group a student's registrations by (session, semester).

    Each row must carry its course under ``course``; rows whose course is
    missing are skipped.
    """

    terms: Dict[Tuple[Any, Any], Dict[str, Any]] = {}
    for row in rows:
        course = row.get("course")
        if not course:
            continue
        key = (row.get("academic_session"), row.get("semester"))
        term = terms.get(key)
        if term is None:
            term = terms[key] = {
                "academic_session": key[0],
                "semester": key[1],
                "registration_date": row.get("registration_date"),
                "courses": [],
                "total_units": 0,
            }
        term["courses"].append(
            {
                "course_code": course.get("course_code"),
                "course_title": course.get("course_title"),
                "units": course.get("units") or 0,
            }
        )
        term["total_units"] += course.get("units") or 0
    return list(terms.values())


__all__ = [
    "ACTIVE_STATUS",
    "group_count",
    "fees_split",
    "percentage",
    "registration_rate",
    "matches_search",
    "join_registration_details",
    "dashboard_summary",
    "build_report",
    "group_registrations_by_term",
]
