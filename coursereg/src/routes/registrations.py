"""Catalog browsing and course registration endpoints for students."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from bson import ObjectId
from bson.errors import InvalidId
from flask import Blueprint, Response, jsonify, request
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from ..aggregate import ACTIVE_STATUS, group_registrations_by_term
from ..config import ConfigError
from ..db import (
    get_courses_collection,
    get_registrations_collection,
    serialize_course,
    serialize_registration,
)
from ..exports import registration_slip, slip_filename
from ..rules import RegistrationDraft, RegistrationRuleError, filter_catalog, validate_submission
from ..students import get_profile
from ..utils.payloads import (
    clean_string,
    normalize_level,
    normalize_semester,
    normalize_session,
    validate_term_selection,
)
from ..utils.responses import config_error, json_error, store_error, validation_error
from .accounts import current_user_id, require_student

registrations_bp = Blueprint("registrations", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)

DUPLICATE_REGISTRATION = "One or more courses are already registered for this term."


def _load_courses(course_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    candidates: List[Any] = []
    for course_id in course_ids:
        candidates.append(course_id)
        try:
            candidates.append(ObjectId(course_id))
        except (InvalidId, TypeError):
            pass
    if not candidates:
        return {}

    cursor = get_courses_collection().find({"_id": {"$in": candidates}})
    courses = (serialize_course(doc) for doc in cursor)
    return {course["id"]: course for course in courses}


def _offered_in(course: Dict[str, Any], session: str, semester: str) -> bool:
    return bool(
        filter_catalog(
            [course], course.get("department"), course.get("level"), semester, session
        )
    )


def _build_draft(profile: Dict[str, Any], selection: Dict[str, Any]):
    """Replay the requested course ids through the selection rules."""

    draft = RegistrationDraft(
        academic_session=selection["academic_session"],
        semester=selection["semester"],
        fees_paid=bool(profile.get("fees_paid")),
    )
    courses = _load_courses(selection["course_ids"])

    rejected: List[Dict[str, str]] = []
    for course_id in selection["course_ids"]:
        course = courses.get(course_id)
        if course is None:
            rejected.append({"id": course_id, "reason": "Course not found."})
        elif not _offered_in(course, draft.academic_session, draft.semester):
            rejected.append({"id": course_id, "reason": "Course is not offered this term."})
        elif not draft.add(course):
            rejected.append(
                {"id": course_id, "reason": f"Adding this course exceeds {draft.max_units} units."}
            )
    return draft, rejected


def _draft_payload(draft: RegistrationDraft, rejected: List[Dict[str, str]]) -> Dict[str, Any]:
    return {
        "academic_session": draft.academic_session,
        "semester": draft.semester,
        "courses": draft.courses,
        "rejected": rejected,
        "total_units": draft.total_units,
        "min_units": draft.min_units,
        "max_units": draft.max_units,
        "can_submit": draft.can_submit() and not rejected,
        "problems": draft.problems(),
    }


@registrations_bp.get("/catalog")
@require_student
def catalog():
    try:
        profile = get_profile(current_user_id())
        if profile is None:
            return json_error("Profile not found.", 404)

        department = clean_string(request.args.get("department")) or profile.get("department")
        level = normalize_level(request.args.get("level") or profile.get("level"))
        semester = normalize_semester(request.args.get("semester"))
        session_value = normalize_session(request.args.get("session"))

        errors: Dict[str, str] = {}
        if level is None:
            errors["level"] = "Level is required."
        if semester is None:
            errors["semester"] = "Semester must be First or Second."
        if session_value is None:
            errors["session"] = "Academic session must look like 2024/2025."
        if errors:
            return validation_error(errors)

        cursor = get_courses_collection().find(
            {"department": department, "level": level, "semester": semester},
            sort=[("course_code", ASCENDING)],
        )
        offered = filter_catalog(
            (serialize_course(doc) for doc in cursor), department, level, semester, session_value
        )
        return jsonify({"courses": offered, "total": len(offered)})
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to load catalog", exc)


@registrations_bp.post("/registrations/preview")
@require_student
def preview_registration():
    selection, errors = validate_term_selection(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    try:
        profile = get_profile(current_user_id())
        if profile is None:
            return json_error("Profile not found.", 404)
        draft, rejected = _build_draft(profile, selection)
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to preview registration", exc)

    return jsonify(_draft_payload(draft, rejected))


@registrations_bp.post("/registrations")
@require_student
def submit_registration():
    selection, errors = validate_term_selection(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    user_id = current_user_id()
    try:
        profile = get_profile(user_id)
        if profile is None:
            return json_error("Profile not found.", 404)

        draft, rejected = _build_draft(profile, selection)
        if rejected:
            return json_error(
                "Some courses could not be added.",
                400,
                {item["id"]: item["reason"] for item in rejected},
            )
        try:
            validate_submission(draft.courses, draft.fees_paid)
        except RegistrationRuleError as exc:
            return json_error(str(exc), 400)

        collection = get_registrations_collection()
        existing = collection.find_one(
            {
                "user_id": user_id,
                "academic_session": draft.academic_session,
                "semester": draft.semester,
            },
            projection={"_id": 1},
        )
        if existing:
            return json_error("Registration already submitted for this term.", 409)

        registered_at = datetime.now(timezone.utc)
        documents = [
            {
                "user_id": user_id,
                "course_id": course_id,
                "academic_session": draft.academic_session,
                "semester": draft.semester,
                "status": ACTIVE_STATUS,
                "registration_date": registered_at,
            }
            for course_id in draft.course_ids
        ]
        collection.insert_many(documents)
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to submit registration", exc, DUPLICATE_REGISTRATION)

    logger.info(
        "Registration submitted for %s: %s %s, %d units",
        user_id,
        draft.academic_session,
        draft.semester,
        draft.total_units,
    )
    return (
        jsonify(
            {
                "success": True,
                "registered": len(documents),
                "total_units": draft.total_units,
                "registration_date": registered_at.isoformat(),
            }
        ),
        201,
    )


def _history(user_id: str) -> List[Dict[str, Any]]:
    cursor = get_registrations_collection().find(
        {"user_id": user_id}, sort=[("registration_date", DESCENDING)]
    )
    rows = [serialize_registration(doc) for doc in cursor]
    courses = _load_courses({row["course_id"] for row in rows if row.get("course_id")})
    for row in rows:
        row["course"] = courses.get(row.get("course_id"))
    return group_registrations_by_term(rows)


@registrations_bp.get("/registrations")
@require_student
def registration_history():
    try:
        terms = _history(current_user_id())
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to load registration history", exc)

    return jsonify({"terms": terms})


@registrations_bp.get("/registrations/slip")
@require_student
def download_slip():
    session_value = normalize_session(request.args.get("session"))
    semester = normalize_semester(request.args.get("semester"))
    if session_value is None or semester is None:
        return json_error("session and semester are required.", 400)

    user_id = current_user_id()
    try:
        profile = get_profile(user_id)
        terms = _history(user_id)
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to build registration slip", exc)

    term = next(
        (
            item
            for item in terms
            if item["academic_session"] == session_value and item["semester"] == semester
        ),
        None,
    )
    if profile is None or term is None:
        return json_error("No registration found for this term.", 404)

    response = Response(registration_slip(profile, term), mimetype="text/plain")
    filename = slip_filename(profile.get("matric_number"), session_value, semester)
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


__all__ = ["registrations_bp"]
