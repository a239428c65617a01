"""Admin gateway for course catalog changes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from flask import Blueprint, jsonify, request
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from ..aggregate import UNKNOWN, group_count, matches_search
from ..config import ConfigError
from ..db import get_courses_collection, id_filter, serialize_course
from ..utils.payloads import clean_string, validate_course_payload
from ..utils.responses import config_error, json_error, store_error, validation_error
from .admin_auth import require_admin

admin_courses_bp = Blueprint("admin_courses", __name__, url_prefix="/api/admin")

logger = logging.getLogger(__name__)

DUPLICATE_COURSE = "A course with this code already exists"

COURSE_SEARCH_FIELDS = ("course_code", "course_title", "department")


def _list(payload: Dict[str, Any]):
    cursor = get_courses_collection().find({}, sort=[("course_code", ASCENDING)])
    courses = [serialize_course(doc) for doc in cursor]

    search = clean_string(payload.get("search"))
    matching = [
        course for course in courses if matches_search(course, search, COURSE_SEARCH_FIELDS)
    ]
    stats = {
        "total": len(courses),
        "by_level": group_count(courses, lambda course: course.get("level") or UNKNOWN),
    }
    return jsonify({"success": True, "courses": matching, "stats": stats})


def _insert(payload: Dict[str, Any]):
    cleaned, errors = validate_course_payload(payload, require_all=True)
    if errors:
        return validation_error(errors)

    cleaned["created_at"] = datetime.now(timezone.utc)
    collection = get_courses_collection()
    result = collection.insert_one(cleaned)
    created = collection.find_one({"_id": result.inserted_id}) or {
        **cleaned,
        "_id": result.inserted_id,
    }
    logger.info("Course %s created", cleaned["course_code"])
    return jsonify({"success": True, "course": serialize_course(created)})


def _update(payload: Dict[str, Any]):
    course_id = clean_string(payload.get("id"))
    if not course_id:
        return json_error("Missing course id", 400)

    updates = {key: value for key, value in payload.items() if key != "id"}
    cleaned, errors = validate_course_payload(updates, require_all=False)
    if errors:
        return validation_error(errors)
    if not cleaned:
        return json_error("No changes supplied.", 400)

    result = get_courses_collection().update_one(id_filter(course_id), {"$set": cleaned})
    if result.matched_count == 0:
        return json_error("Course not found.", 404)
    return jsonify({"success": True})


def _delete(payload: Dict[str, Any]):
    course_id = clean_string(payload.get("id"))
    if not course_id:
        return json_error("Missing course id", 400)

    result = get_courses_collection().delete_one(id_filter(course_id))
    if result.deleted_count == 0:
        return json_error("Course not found.", 404)
    logger.info("Course %s deleted", course_id)
    return jsonify({"success": True})


_ACTIONS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    "list": _list,
    "insert": _insert,
    "update": _update,
    "delete": _delete,
}


@admin_courses_bp.post("/courses")
@require_admin
def courses_gateway():
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
        return store_error(f"Failed to {action} course", exc, DUPLICATE_COURSE)


__all__ = ["admin_courses_bp"]
