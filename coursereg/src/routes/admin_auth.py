"""Admin authentication endpoints and the admin gateway guard."""

from __future__ import annotations

import hmac
import logging
from functools import wraps
from typing import Any, Callable, TypeVar, cast

from flask import Blueprint, jsonify, request, session

from .. import config
from ..config import ConfigError
from ..utils.responses import SERVER_NOT_CONFIGURED, json_error

admin_auth_bp = Blueprint("admin_auth", __name__, url_prefix="/api/admin")

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "x-admin-key"

_F = TypeVar("_F", bound=Callable[..., Any])


def _matches(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def require_admin(func: _F) -> _F:
    """Admit requests carrying the shared admin key or an admin session.

    The secret and the record store location are read on every request;
    either one missing answers ``500 Server not configured``.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            admin_password = config.get_admin_password()
        except ConfigError as exc:
            logger.error("Admin gateway unavailable: %s", exc)
            return json_error(SERVER_NOT_CONFIGURED, 500)

        header_key = request.headers.get(ADMIN_KEY_HEADER, "")
        via_header = bool(header_key) and _matches(header_key, admin_password)
        if not via_header and not session.get("is_admin"):
            return json_error("Unauthorized", 401)

        try:
            config.ensure_store_configured()
        except ConfigError as exc:
            logger.error("Admin gateway unavailable: %s", exc)
            return json_error(SERVER_NOT_CONFIGURED, 500)

        return func(*args, **kwargs)

    return cast(_F, wrapper)


@admin_auth_bp.post("/login")
def login():
    payload = request.get_json(silent=True) or {}
    username = str(payload.get("username", "")).strip()
    password = str(payload.get("password", ""))

    if not username or not password:
        return json_error("Username and password are required", 400)

    try:
        admin_username, admin_password = config.get_admin_credentials()
    except ConfigError:
        logger.error("Admin credentials not configured")
        return json_error("Admin credentials not configured", 500)

    logger.info("Admin auth attempt for username: %s", username)

    if _matches(username, admin_username) and _matches(password, admin_password):
        session.clear()
        session["is_admin"] = True
        session.permanent = False
        logger.info("Admin authentication successful")
        return (
            jsonify({"success": True, "message": "Authentication successful"}),
            200,
        )

    session.pop("is_admin", None)
    logger.info("Admin authentication failed - invalid credentials")
    return json_error("Invalid credentials", 401)


@admin_auth_bp.post("/logout")
def logout():
    session.pop("is_admin", None)
    return jsonify({"success": True})


@admin_auth_bp.get("/me")
def me():
    return jsonify({"is_admin": bool(session.get("is_admin", False))})


__all__ = ["admin_auth_bp", "require_admin", "ADMIN_KEY_HEADER"]
