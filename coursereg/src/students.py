"""Student identities: login accounts and the profiles attached to them."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pymongo.errors import PyMongoError
from werkzeug.security import check_password_hash, generate_password_hash

from .db import get_accounts_collection, get_profiles_collection, is_duplicate_error

logger = logging.getLogger(__name__)


class StudentExistsError(ValueError):
    """Raised when an email or matric number is already registered."""


def matric_number_taken(matric_number: str, *, exclude_user_id: str | None = None) -> bool:
    query: Dict[str, Any] = {"matric_number": matric_number}
    if exclude_user_id:
        query["user_id"] = {"$ne": exclude_user_id}
    return get_profiles_collection().find_one(query, projection={"_id": 1}) is not None


def create_student(
    *,
    email: str,
    password: str,
    full_name: str,
    matric_number: str,
    department: str,
    level: str,
    admin_created: bool = False,
) -> str:
    """Create an account and its profile, returning the new ``user_id``.

    Fees start unpaid. When the profile cannot be written the account is
    removed again so the email can be reused.
    """

    if matric_number_taken(matric_number):
        raise StudentExistsError("Matric number already exists")

    accounts = get_accounts_collection()
    user_id = uuid.uuid4().hex
    try:
        accounts.insert_one(
            {
                "_id": user_id,
                "email": email.lower(),
                "password_hash": generate_password_hash(password),
            }
        )
    except PyMongoError as exc:
        if is_duplicate_error(exc):
            raise StudentExistsError("An account with this email already exists") from None
        raise

    try:
        get_profiles_collection().insert_one(
            {
                "user_id": user_id,
                "full_name": full_name,
                "matric_number": matric_number,
                "department": department,
                "level": level,
                "fees_paid": False,
                "admin_created": admin_created,
                "created_at": datetime.now(timezone.utc),
            }
        )
    except PyMongoError as exc:
        accounts.delete_one({"_id": user_id})
        if is_duplicate_error(exc):
            raise StudentExistsError("Matric number already exists") from None
        raise

    logger.info("Student account %s created (admin_created=%s)", user_id, admin_created)
    return user_id


def authenticate(email: str, password: str) -> str | None:
    """Return the ``user_id`` for valid credentials, otherwise None."""

    account = get_accounts_collection().find_one({"email": email.strip().lower()})
    if not account or not check_password_hash(account.get("password_hash", ""), password):
        return None
    return account["_id"]


def set_password(user_id: str, password: str) -> None:
    get_accounts_collection().update_one(
        {"_id": user_id}, {"$set": {"password_hash": generate_password_hash(password)}}
    )


def get_profile(user_id: str):
    return get_profiles_collection().find_one({"user_id": user_id})


__all__ = [
    "StudentExistsError",
    "matric_number_taken",
    "create_student",
    "authenticate",
    "set_password",
    "get_profile",
]
