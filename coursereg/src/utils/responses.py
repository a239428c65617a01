"""JSON error responses shared by the route blueprints."""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import jsonify
from pymongo.errors import PyMongoError

from ..db import is_duplicate_error

logger = logging.getLogger(__name__)

SERVER_NOT_CONFIGURED = "Server not configured"
DATABASE_UNAVAILABLE = "Database unavailable. Please try again later."


def json_error(message: str, status: int, details: Dict[str, Any] | None = None):
    payload: Dict[str, Any] = {"error": message}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def validation_error(errors: Dict[str, str]):
    details = {k: v for k, v in errors.items() if k != "_global"}
    message = errors.get("_global", "Validation failed.")
    return json_error(message, 400, details if details else None)


def config_error(exc: Exception):
    logger.error("Configuration missing: %s", exc)
    return json_error(SERVER_NOT_CONFIGURED, 500)


def store_error(action: str, exc: PyMongoError, conflict_message: str | None = None):
    """Map a store failure to 409 for unique-key clashes, 503 otherwise."""

    if conflict_message and is_duplicate_error(exc):
        logger.warning("%s: duplicate key (%s)", action, exc)
        return json_error(conflict_message, 409)
    logger.exception("%s due to MongoDB error", action)
    return json_error(DATABASE_UNAVAILABLE, 503)


__all__ = [
    "SERVER_NOT_CONFIGURED",
    "DATABASE_UNAVAILABLE",
    "json_error",
    "validation_error",
    "config_error",
    "store_error",
]
