"""Course selection rules applied before a registration is submitted.

Courses are plain mappings carrying at least ``id`` and ``units`` (the shape
produced by :func:`coursereg.src.db.serialize_course`). Every function here
is pure: selections are returned as new lists and inputs are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Sequence

MIN_UNITS = 12
MAX_UNITS = 24

LEVELS = ("ND1", "ND2", "HND1", "HND2")
SEMESTERS = ("First", "Second")

Course = Mapping[str, Any]


class RegistrationRuleError(ValueError):
    """Raised when a course selection cannot be submitted."""


def _units(course: Course) -> int:
    try:
        return int(course.get("units") or 0)
    except (TypeError, ValueError):
        return 0


def total_units(selection: Iterable[Course]) -> int:
    return sum(_units(course) for course in selection)


def _contains(selection: Iterable[Course], course_id: Any) -> bool:
    return any(course.get("id") == course_id for course in selection)


def add_course(
    selection: Sequence[Course], candidate: Course, max_units: int = MAX_UNITS
) -> List[Course]:
    """Return ``selection`` with ``candidate`` appended when the rules allow it.

    The candidate is rejected, and the selection returned unchanged, when a
    course with the same id is already selected or when its units would push
    the total over ``max_units``. Courses are never split.
    """

    if _contains(selection, candidate.get("id")):
        return list(selection)
    if total_units(selection) + _units(candidate) > max_units:
        return list(selection)
    return [*selection, candidate]


def remove_course(selection: Sequence[Course], course_id: Any) -> List[Course]:
    return [course for course in selection if course.get("id") != course_id]


def can_submit(
    selection: Iterable[Course],
    fees_paid: bool,
    min_units: int = MIN_UNITS,
    max_units: int = MAX_UNITS,
) -> bool:
    total = total_units(selection)
    return bool(fees_paid) and min_units <= total <= max_units


def submission_problems(
    selection: Iterable[Course],
    fees_paid: bool,
    min_units: int = MIN_UNITS,
    max_units: int = MAX_UNITS,
) -> List[str]:
    """List the reasons a selection cannot be submitted, empty when it can."""

    problems: List[str] = []
    total = total_units(selection)
    if not fees_paid:
        problems.append("School fees must be paid before registering for courses.")
    if total < min_units:
        problems.append(f"Minimum {min_units} units required.")
    if total > max_units:
        problems.append(f"Maximum {max_units} units allowed.")
    return problems


def validate_submission(
    selection: Iterable[Course],
    fees_paid: bool,
    min_units: int = MIN_UNITS,
    max_units: int = MAX_UNITS,
) -> None:
    problems = submission_problems(selection, fees_paid, min_units, max_units)
    if problems:
        raise RegistrationRuleError(problems[0])


def filter_catalog(
    catalog: Iterable[Course],
    department: str,
    level: str,
    semester: str,
    session: str | None,
) -> List[Course]:
    """Return the catalog entries offered to a department/level/term.

    Courses saved without an academic session predate session tagging and
    are offered in every session.
    """

    matches: List[Course] = []
    for course in catalog:
        if course.get("department") != department:
            continue
        if course.get("level") != level:
            continue
        if course.get("semester") != semester:
            continue
        course_session = course.get("academic_session")
        if course_session and course_session != session:
            continue
        matches.append(course)
    return matches


@dataclass
class RegistrationDraft:
    """A student's in-progress selection for one session and semester."""

    academic_session: str
    semester: str
    fees_paid: bool
    courses: List[Course] = field(default_factory=list)
    min_units: int = MIN_UNITS
    max_units: int = MAX_UNITS

    @property
    def total_units(self) -> int:
        return total_units(self.courses)

    @property
    def course_ids(self) -> List[Any]:
        return [course.get("id") for course in self.courses]

    def add(self, candidate: Course) -> bool:
        """Add ``candidate``; return False when the rules reject it."""

        updated = add_course(self.courses, candidate, self.max_units)
        accepted = len(updated) != len(self.courses)
        self.courses = updated
        return accepted

    def remove(self, course_id: Any) -> None:
        self.courses = remove_course(self.courses, course_id)

    def clear(self) -> None:
        self.courses = []

    def available(self, catalog: Iterable[Course]) -> List[Course]:
        return [course for course in catalog if not _contains(self.courses, course.get("id"))]

    def can_submit(self) -> bool:
        return can_submit(self.courses, self.fees_paid, self.min_units, self.max_units)

    def problems(self) -> List[str]:
        return submission_problems(
            self.courses, self.fees_paid, self.min_units, self.max_units
        )


__all__ = [
    "MIN_UNITS",
    "MAX_UNITS",
    "LEVELS",
    "SEMESTERS",
    "RegistrationRuleError",
    "RegistrationDraft",
    "add_course",
    "remove_course",
    "total_units",
    "can_submit",
    "submission_problems",
    "validate_submission",
    "filter_catalog",
]
