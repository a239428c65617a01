"""Admin gateway for student records and fee status."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from flask import Blueprint, jsonify, request
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from ..aggregate import matches_search
from ..config import ConfigError
from ..db import get_profiles_collection, id_filter, serialize_profile
from ..students import StudentExistsError, create_student
from ..utils.payloads import clean_string, normalize_level
from ..utils.responses import config_error, json_error, store_error
from .admin_auth import require_admin

admin_students_bp = Blueprint("admin_students", __name__, url_prefix="/api/admin")

logger = logging.getLogger(__name__)

_NEW_STUDENT_FIELDS = ("email", "password", "fullName", "matricNumber", "department", "level")
STUDENT_SEARCH_FIELDS = ("full_name", "matric_number", "department")


def _list(payload: Dict[str, Any]):
    cursor = get_profiles_collection().find({}, sort=[("created_at", DESCENDING)])
    profiles = [serialize_profile(doc) for doc in cursor]

    fees_paid = sum(1 for profile in profiles if profile["fees_paid"])
    stats = {
        "total": len(profiles),
        "fees_paid": fees_paid,
        "fees_unpaid": len(profiles) - fees_paid,
        "admin_created": sum(1 for profile in profiles if profile["admin_created"]),
    }
    search = clean_string(payload.get("search"))
    matching = [
        profile for profile in profiles if matches_search(profile, search, STUDENT_SEARCH_FIELDS)
    ]
    return jsonify({"success": True, "profiles": matching, "stats": stats})


def _toggle_fees(payload: Dict[str, Any]):
    profile_id = clean_string(payload.get("id"))
    fees_paid = payload.get("fees_paid")
    if not profile_id or not isinstance(fees_paid, bool):
        return json_error("Invalid payload", 400)

    result = get_profiles_collection().update_one(
        id_filter(profile_id), {"$set": {"fees_paid": fees_paid}}
    )
    if result.matched_count == 0:
        return json_error("Student not found.", 404)
    logger.info("Fees status for profile %s set to %s", profile_id, fees_paid)
    return jsonify({"success": True})


def _create_student(payload: Dict[str, Any]):
    values = {field: clean_string(payload.get(field)) for field in _NEW_STUDENT_FIELDS}
    if not all(values.values()):
        return json_error("Missing required fields", 400)

    level = normalize_level(values["level"])
    if level is None:
        return json_error("Invalid level", 400)

    try:
        user_id = create_student(
            email=values["email"],
            password=str(payload.get("password")),
            full_name=values["fullName"],
            matric_number=values["matricNumber"].upper(),
            department=values["department"],
            level=level,
            admin_created=True,
        )
    except StudentExistsError as exc:
        return json_error(str(exc), 409)

    return jsonify({"success": True, "user_id": user_id})


_ACTIONS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    "list": _list,
    "toggleFees": _toggle_fees,
    "createStudent": _create_student,
}


@admin_students_bp.post("/students")
@require_admin
def students_gateway():
    body = request.get_json(silent=True) or {}
    action = body.get("action") if isinstance(body, dict) else None
    handler = _ACTIONS.get(action) if isinstance(action, str) else None
    if handler is None:
        return json_error("Unknown action", 400)

    payload = body.get("payload")
    if not isinstance(payload, dict):
        payload = {}

    try:
        return handler(payload)
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error(f"Failed to run student action {action}", exc)


__all__ = ["admin_students_bp"]
