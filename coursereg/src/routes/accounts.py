"""Student signup, login and profile endpoints."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, TypeVar, cast

from flask import Blueprint, jsonify, request, session
from pymongo.errors import PyMongoError

from ..config import ConfigError
from ..db import get_profiles_collection, serialize_profile
from ..students import (
    StudentExistsError,
    authenticate,
    create_student,
    get_profile,
    matric_number_taken,
    set_password,
)
from ..utils.payloads import clean_string, validate_profile_payload, validate_signup_payload
from ..utils.responses import config_error, json_error, store_error, validation_error

accounts_bp = Blueprint("accounts", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

DUPLICATE_MATRIC = "Matric number already exists"


def current_user_id() -> str | None:
    return session.get("user_id")


def require_student(func: _F) -> _F:
    """Ensure the request belongs to a signed-in student."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        if not current_user_id():
            return json_error("Not authenticated", 401)
        return func(*args, **kwargs)

    return cast(_F, wrapper)


def _start_session(user_id: str) -> None:
    is_admin = session.get("is_admin")
    session.clear()
    if is_admin:
        session["is_admin"] = True
    session["user_id"] = user_id
    session.permanent = False


@accounts_bp.post("/auth/signup")
def signup():
    cleaned, errors = validate_signup_payload(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    try:
        user_id = create_student(
            email=cleaned["email"],
            password=cleaned["password"],
            full_name=cleaned["full_name"],
            matric_number=cleaned["matric_number"],
            department=cleaned["department"],
            level=cleaned["level"],
        )
        profile = get_profile(user_id)
    except StudentExistsError as exc:
        return json_error(str(exc), 409)
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to sign up student", exc)

    _start_session(user_id)
    return jsonify({"success": True, "profile": serialize_profile(profile or {})}), 201


@accounts_bp.post("/auth/login")
def login():
    payload = request.get_json(silent=True) or {}
    email = clean_string(payload.get("email"))
    password = str(payload.get("password") or "")
    if not email or not password:
        return json_error("Email and password are required", 400)

    try:
        user_id = authenticate(email, password)
        profile = get_profile(user_id) if user_id else None
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to sign in student", exc)

    if not user_id or profile is None:
        session.pop("user_id", None)
        return json_error("Invalid credentials", 401)

    _start_session(user_id)
    return jsonify({"success": True, "profile": serialize_profile(profile)})


@accounts_bp.post("/auth/logout")
def logout():
    session.pop("user_id", None)
    return jsonify({"success": True})


@accounts_bp.get("/me")
def me():
    return jsonify(
        {
            "user_id": current_user_id(),
            "is_student": bool(current_user_id()),
            "is_admin": bool(session.get("is_admin", False)),
        }
    )


@accounts_bp.get("/profile")
@require_student
def read_profile():
    try:
        profile = get_profile(current_user_id())
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to load profile", exc)

    if profile is None:
        return json_error("Profile not found.", 404)
    return jsonify(serialize_profile(profile))


@accounts_bp.put("/profile")
@require_student
def update_profile():
    cleaned, errors = validate_profile_payload(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    user_id = current_user_id()
    new_password = cleaned.pop("new_password", None)

    try:
        if matric_number_taken(cleaned["matric_number"], exclude_user_id=user_id):
            return json_error(DUPLICATE_MATRIC, 409)

        result = get_profiles_collection().update_one({"user_id": user_id}, {"$set": cleaned})
        if result.matched_count == 0:
            return json_error("Profile not found.", 404)
        if new_password:
            set_password(user_id, new_password)
        profile = get_profile(user_id)
    except ConfigError as exc:
        return config_error(exc)
    except PyMongoError as exc:
        return store_error("Failed to update profile", exc, DUPLICATE_MATRIC)

    return jsonify({"success": True, "profile": serialize_profile(profile or {})})


__all__ = ["accounts_bp", "require_student", "current_user_id"]
