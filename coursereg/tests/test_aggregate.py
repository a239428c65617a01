"""Dashboard and report aggregation over in-memory records."""

from __future__ import annotations

import copy
import sys
import unittest
from datetime import datetime, timezone
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from coursereg.src.aggregate import (
    build_report,
    dashboard_summary,
    fees_split,
    group_count,
    group_registrations_by_term,
    join_registration_details,
    matches_search,
    registration_rate,
)

STUDENTS = [
    {"user_id": "u1", "full_name": "Ada Obi", "matric_number": "2023/ND/CS/001",
     "department": "Computer Science", "level": "ND1", "fees_paid": True},
    {"user_id": "u2", "full_name": "Bola Ade", "matric_number": "2023/ND/CS/002",
     "department": "Computer Science", "level": "ND2", "fees_paid": False},
    {"user_id": "u3", "full_name": "Chi Eze", "matric_number": "2023/ND/BA/001",
     "department": "Business Administration", "level": "ND1", "fees_paid": True},
]

COURSES = [
    {"id": "c1", "course_code": "CSC101", "course_title": "Intro to Computing", "units": 3,
     "department": "Computer Science", "level": "ND1"},
    {"id": "c2", "course_code": "BAM101", "course_title": "Management", "units": 2,
     "department": "Business Administration", "level": "ND1"},
]

REGISTRATIONS = [
    {"user_id": "u1", "course_id": "c1", "semester": "First", "status": "active",
     "academic_session": "2024/2025", "registration_date": "2024-10-01T09:00:00"},
    {"user_id": "u3", "course_id": "c2", "semester": "Second", "status": "active",
     "academic_session": "2024/2025", "registration_date": "2025-02-01T09:00:00"},
    {"user_id": "u1", "course_id": "deleted", "semester": "First", "status": "active",
     "academic_session": "2024/2025", "registration_date": "2024-10-01T09:00:00"},
    {"user_id": "gone", "course_id": "c1", "semester": "First", "status": "dropped",
     "academic_session": "2024/2025", "registration_date": "2024-10-01T09:00:00"},
]


class GroupCountTestCase(unittest.TestCase):
    def test_empty_collection(self) -> None:
        self.assertEqual({}, group_count([], lambda record: record["department"]))

    def test_keys_keep_first_seen_order(self) -> None:
        counts = group_count(STUDENTS, lambda record: record["level"])

        self.assertEqual({"ND1": 2, "ND2": 1}, counts)
        self.assertEqual(["ND1", "ND2"], list(counts))

    def test_fees_split(self) -> None:
        self.assertEqual((2, 1), fees_split(STUDENTS))
        self.assertEqual((0, 0), fees_split([]))


class RegistrationRateTestCase(unittest.TestCase):
    def test_zero_students(self) -> None:
        self.assertEqual(0, registration_rate(0, 0))
        self.assertEqual(0, registration_rate(5, 0))

    def test_rounds_half_up(self) -> None:
        self.assertEqual(50, registration_rate(1, 2))
        self.assertEqual(33, registration_rate(1, 3))
        self.assertEqual(67, registration_rate(2, 3))
        self.assertEqual(13, registration_rate(1, 8))


class JoinTestCase(unittest.TestCase):
    def test_drops_rows_with_missing_student_or_course(self) -> None:
        details = join_registration_details(REGISTRATIONS, STUDENTS, COURSES)

        self.assertEqual(2, len(details))
        self.assertEqual(
            {
                "student_name": "Ada Obi",
                "matric_number": "2023/ND/CS/001",
                "course_code": "CSC101",
                "course_title": "Intro to Computing",
                "department": "Computer Science",
                "level": "ND1",
                "units": 3,
                "registration_date": "2024-10-01T09:00:00",
            },
            details[0],
        )

    def test_inputs_are_not_mutated(self) -> None:
        before = copy.deepcopy((REGISTRATIONS, STUDENTS, COURSES))
        build_report(STUDENTS, COURSES, REGISTRATIONS)

        self.assertEqual(before, (REGISTRATIONS, STUDENTS, COURSES))


class DashboardTestCase(unittest.TestCase):
    def test_summary(self) -> None:
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        students = STUDENTS + [{"user_id": "u4", "department": None, "fees_paid": False}]
        summary = dashboard_summary(students, COURSES, REGISTRATIONS, now=now)

        self.assertEqual(4, summary["total_students"])
        self.assertEqual(2, summary["total_courses"])
        self.assertEqual(3, summary["active_registrations"])
        self.assertEqual(75, summary["registration_rate"])
        self.assertEqual(2, summary["fees_paid"])
        self.assertEqual(2, summary["fees_unpaid"])
        self.assertEqual(
            [
                {"name": "Computer Science", "students": 2},
                {"name": "Business Administration", "students": 1},
                {"name": "Unknown", "students": 1},
            ],
            summary["department_distribution"],
        )
        self.assertEqual(now.isoformat(), summary["last_updated"])

    def test_empty_store(self) -> None:
        summary = dashboard_summary([], [], [])

        self.assertEqual(0, summary["registration_rate"])
        self.assertEqual([], summary["department_distribution"])


class ReportTestCase(unittest.TestCase):
    def test_report_sections(self) -> None:
        report = build_report(STUDENTS, COURSES, REGISTRATIONS)

        self.assertEqual(
            {
                "total": 3,
                "by_department": {"Computer Science": 2, "Business Administration": 1},
                "by_level": {"ND1": 2, "ND2": 1},
                "fees_paid": 2,
                "fees_unpaid": 1,
                "fees_paid_percentage": 67,
            },
            report["students"],
        )
        self.assertEqual(2, report["courses"]["total"])
        self.assertEqual(4, report["registrations"]["total"])
        self.assertEqual({"ND1": 2}, report["registrations"]["by_level"])
        self.assertEqual({"First": 1, "Second": 1}, report["registrations"]["by_semester"])
        self.assertEqual(2, len(report["details"]))


class HistoryTestCase(unittest.TestCase):
    def test_groups_by_session_and_semester(self) -> None:
        rows = [
            {"academic_session": "2024/2025", "semester": "Second",
             "registration_date": "2025-02-01", "course": COURSES[0]},
            {"academic_session": "2024/2025", "semester": "First",
             "registration_date": "2024-10-01", "course": COURSES[0]},
            {"academic_session": "2024/2025", "semester": "Second",
             "registration_date": "2025-02-01", "course": COURSES[1]},
            {"academic_session": "2024/2025", "semester": "Second",
             "registration_date": "2025-02-01", "course": None},
        ]
        terms = group_registrations_by_term(rows)

        self.assertEqual(["Second", "First"], [term["semester"] for term in terms])
        self.assertEqual(5, terms[0]["total_units"])
        self.assertEqual(["CSC101", "BAM101"], [c["course_code"] for c in terms[0]["courses"]])
        self.assertEqual(3, terms[1]["total_units"])


class SearchTestCase(unittest.TestCase):
    FIELDS = ("full_name", "matric_number", "department")

    def test_case_insensitive_substring(self) -> None:
        student = STUDENTS[0]
        for term in ("ada", "OBI", "nd/cs", "computer"):
            with self.subTest(term=term):
                self.assertTrue(matches_search(student, term, self.FIELDS))
        self.assertFalse(matches_search(student, "ND1", self.FIELDS))

    def test_blank_term_matches_everything(self) -> None:
        for term in (None, "", "   "):
            with self.subTest(term=term):
                self.assertTrue(matches_search({}, term, self.FIELDS))

    def test_missing_fields_do_not_match(self) -> None:
        self.assertFalse(matches_search({"full_name": None}, "none", self.FIELDS))


if __name__ == "__main__":
    unittest.main()
