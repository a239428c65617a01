"""Validation of JSON request payloads.

Validators return a ``(cleaned, errors)`` pair. ``errors`` maps field names
to user-facing messages; ``_global`` holds a message about the payload as a
whole.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

from ..rules import LEVELS, SEMESTERS

MIN_PASSWORD_LENGTH = 6
MIN_COURSE_UNITS = 1
MAX_COURSE_UNITS = 6

_SESSION_PATTERN = re.compile(r"^(\d{4})/(\d{4})$")

Cleaned = Dict[str, Any]
Errors = Dict[str, str]


def clean_string(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def clean_string_or_none(value: Any) -> str | None:
    cleaned = clean_string(value)
    return cleaned if cleaned else None


def _whole_number(value: Any) -> int | None:
    """Return ``value`` as an int only when it is integral; never truncate."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = clean_string(value)
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return None


def normalize_semester(value: Any) -> str | None:
    cleaned = clean_string(value).lower()
    for semester in SEMESTERS:
        if cleaned == semester.lower():
            return semester
    return None


def normalize_level(value: Any) -> str | None:
    cleaned = clean_string(value).upper()
    return cleaned if cleaned in LEVELS else None


def normalize_session(value: Any) -> str | None:
    """Return ``YYYY/YYYY`` when the years are consecutive, else None."""

    match = _SESSION_PATTERN.match(clean_string(value))
    if not match:
        return None
    start, end = (int(part) for part in match.groups())
    if end != start + 1:
        return None
    return match.group(0)


def _require(payload: Dict[str, Any], field: str, message: str, errors: Errors) -> str | None:
    value = clean_string(payload.get(field))
    if not value:
        errors[field] = message
        return None
    return value


def validate_course_payload(
    payload: Dict[str, Any] | None, *, require_all: bool
) -> Tuple[Cleaned, Errors]:
    if not isinstance(payload, dict):
        return {}, {"_global": "Missing required fields"}

    errors: Errors = {}
    cleaned: Cleaned = {}

    def wanted(field: str) -> bool:
        return require_all or field in payload

    if wanted("course_code"):
        code = _require(payload, "course_code", "Course code is required.", errors)
        if code:
            cleaned["course_code"] = code.upper()

    if wanted("course_title"):
        title = _require(payload, "course_title", "Course title is required.", errors)
        if title:
            cleaned["course_title"] = title

    if wanted("department"):
        department = _require(payload, "department", "Department is required.", errors)
        if department:
            cleaned["department"] = department

    if wanted("units"):
        raw_units = payload.get("units")
        if raw_units in (None, ""):
            errors["units"] = "Units are required."
        else:
            units = _whole_number(raw_units)
            if units is None or not MIN_COURSE_UNITS <= units <= MAX_COURSE_UNITS:
                errors["units"] = (
                    f"Units must be a whole number between {MIN_COURSE_UNITS} and {MAX_COURSE_UNITS}."
                )
            else:
                cleaned["units"] = units

    if wanted("semester"):
        semester = normalize_semester(payload.get("semester"))
        if semester is None:
            errors["semester"] = "Semester must be First or Second."
        else:
            cleaned["semester"] = semester

    if wanted("level"):
        level = normalize_level(payload.get("level"))
        if level is None:
            errors["level"] = "Level must be one of " + ", ".join(LEVELS) + "."
        else:
            cleaned["level"] = level

    if "academic_session" in payload:
        raw_session = clean_string(payload.get("academic_session"))
        if not raw_session:
            cleaned["academic_session"] = None
        else:
            session = normalize_session(raw_session)
            if session is None:
                errors["academic_session"] = "Academic session must look like 2024/2025."
            else:
                cleaned["academic_session"] = session
    elif require_all:
        cleaned["academic_session"] = None

    if "description" in payload or require_all:
        cleaned["description"] = clean_string_or_none(payload.get("description"))

    if require_all and any(message.endswith("required.") for message in errors.values()):
        errors["_global"] = "Missing required fields"
    return cleaned, errors


def _validate_password_pair(
    password: str, confirmation: str, errors: Errors, *, field: str
) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        errors[field] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
    elif password != confirmation:
        errors["confirm_password"] = "Passwords do not match."


def _validate_profile_fields(payload: Dict[str, Any], cleaned: Cleaned, errors: Errors) -> None:
    full_name = _require(payload, "full_name", "Full name is required.", errors)
    if full_name:
        cleaned["full_name"] = full_name

    matric = _require(payload, "matric_number", "Matric number is required.", errors)
    if matric:
        cleaned["matric_number"] = matric.upper()

    department = _require(payload, "department", "Department is required.", errors)
    if department:
        cleaned["department"] = department

    level = normalize_level(payload.get("level"))
    if level is None:
        errors["level"] = "Level must be one of " + ", ".join(LEVELS) + "."
    else:
        cleaned["level"] = level


def validate_signup_payload(payload: Dict[str, Any] | None) -> Tuple[Cleaned, Errors]:
    if not isinstance(payload, dict):
        return {}, {"_global": "Request body must be JSON."}

    errors: Errors = {}
    cleaned: Cleaned = {}

    email = _require(payload, "email", "Email is required.", errors)
    if email:
        if "@" not in email or "." not in email.split("@")[-1]:
            errors["email"] = "Enter a valid email address."
        else:
            cleaned["email"] = email.lower()

    password = str(payload.get("password") or "")
    _validate_password_pair(
        password, str(payload.get("confirm_password") or ""), errors, field="password"
    )
    if "password" not in errors and "confirm_password" not in errors:
        cleaned["password"] = password

    _validate_profile_fields(payload, cleaned, errors)
    return cleaned, errors


def validate_profile_payload(payload: Dict[str, Any] | None) -> Tuple[Cleaned, Errors]:
    if not isinstance(payload, dict):
        return {}, {"_global": "Request body must be JSON."}

    errors: Errors = {}
    cleaned: Cleaned = {}
    _validate_profile_fields(payload, cleaned, errors)

    new_password = str(payload.get("new_password") or "")
    confirmation = str(payload.get("confirm_password") or "")
    if new_password or confirmation:
        _validate_password_pair(new_password, confirmation, errors, field="new_password")
        if "new_password" not in errors and "confirm_password" not in errors:
            cleaned["new_password"] = new_password

    return cleaned, errors


def validate_term_selection(payload: Dict[str, Any] | None) -> Tuple[Cleaned, Errors]:
    """Validate ``{academic_session, semester, course_ids}`` bodies."""

    if not isinstance(payload, dict):
        return {}, {"_global": "Request body must be JSON."}

    errors: Errors = {}
    cleaned: Cleaned = {}

    session = normalize_session(payload.get("academic_session"))
    if session is None:
        errors["academic_session"] = "Academic session must look like 2024/2025."
    else:
        cleaned["academic_session"] = session

    semester = normalize_semester(payload.get("semester"))
    if semester is None:
        errors["semester"] = "Semester must be First or Second."
    else:
        cleaned["semester"] = semester

    course_ids = payload.get("course_ids")
    if not isinstance(course_ids, list):
        errors["course_ids"] = "course_ids must be an array of course IDs."
    else:
        ids: List[str] = []
        for value in course_ids:
            course_id = clean_string(value)
            if course_id and course_id not in ids:
                ids.append(course_id)
        cleaned["course_ids"] = ids

    return cleaned, errors


__all__ = [
    "MIN_PASSWORD_LENGTH",
    "clean_string",
    "clean_string_or_none",
    "normalize_semester",
    "normalize_level",
    "normalize_session",
    "validate_course_payload",
    "validate_signup_payload",
    "validate_profile_payload",
    "validate_term_selection",
]
