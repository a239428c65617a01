"""Admin dashboard, reports and CSV export endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from flask import Blueprint, Response, jsonify
from pymongo.errors import PyMongoError

from ..aggregate import build_report, dashboard_summary
from ..config import ConfigError
from ..db import (
    get_courses_collection,
    get_profiles_collection,
    get_registrations_collection,
    serialize_course,
    serialize_profile,
    serialize_registration,
)
from ..exports import overview_csv, registrations_csv, report_filename
from ..utils.responses import config_error, json_error, store_error
from .admin_auth import require_admin

reports_bp = Blueprint("reports", __name__, url_prefix="/api/admin")

logger = logging.getLogger(__name__)

Records = List[Dict[str, Any]]


def _load_records() -> Tuple[Records, Records, Records]:
    profiles = [serialize_profile(doc) for doc in get_profiles_collection().find({})]
    courses = [serialize_course(doc) for doc in get_courses_collection().find({})]
    registrations = [
        serialize_registration(doc) for doc in get_registrations_collection().find({})
    ]
    return profiles, courses, registrations


@reports_bp.get("/dashboard")
@require_admin
def dashboard():
    try:
        profiles, courses, registrations = _load_records()
        return jsonify(dashboard_summary(profiles, courses, registrations))
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to load dashboard", exc)


@reports_bp.get("/reports")
@require_admin
def report():
    try:
        profiles, courses, registrations = _load_records()
        return jsonify(build_report(profiles, courses, registrations))
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to generate report", exc)


_EXPORTS = {
    "overview": lambda data, now: overview_csv(data, now),
    "registrations": lambda data, now: registrations_csv(data["details"]),
}


@reports_bp.get("/reports/<kind>.csv")
@require_admin
def export_report(kind: str):
    render = _EXPORTS.get(kind)
    if render is None:
        return json_error("Unknown report type.", 404)

    try:
        profiles, courses, registrations = _load_records()
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error(f"Failed to export {kind} report", exc)

    generated_at = datetime.now(timezone.utc)
    csv_content = render(build_report(profiles, courses, registrations), generated_at)

    response = Response(csv_content, mimetype="text/csv")
    response.headers["Content-Disposition"] = (
        f'attachment; filename="{report_filename(kind, generated_at)}"'
    )
    return response


__all__ = ["reports_bp"]
