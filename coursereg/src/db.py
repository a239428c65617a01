"""MongoDB helpers for the application."""

from datetime import datetime
from typing import Any, Dict, List

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.collection import Collection
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

from .config import get_db_name, get_mongo_uri

_MONGO_CLIENT = None
_MONGO_DB = None

_DUPLICATE_MARKERS = ("e11000", "duplicate key")


def _get_client():
    """Create (or reuse) a MongoDB client using the configured URI."""

    global _MONGO_CLIENT

    if _MONGO_CLIENT is None:
        _MONGO_CLIENT = MongoClient(get_mongo_uri(), serverSelectionTimeoutMS=5000)
    return _MONGO_CLIENT


def get_db():
    """Return the application's MongoDB database instance."""

    global _MONGO_DB

    if _MONGO_DB is None:
        _MONGO_DB = _get_client()[get_db_name()]
    return _MONGO_DB


def is_duplicate_error(exc: PyMongoError) -> bool:
    """Return True when a store error reports a unique-key violation."""

    if isinstance(exc, DuplicateKeyError):
        return True
    if isinstance(exc, BulkWriteError):
        write_errors = (exc.details or {}).get("writeErrors", [])
        if any(error.get("code") == 11000 for error in write_errors):
            return True
    return any(marker in str(exc).lower() for marker in _DUPLICATE_MARKERS)


def id_filter(record_id: str) -> Dict[str, Any]:
    """Build a filter matching ``record_id`` stored either as text or ObjectId."""

    candidates: List[Any] = [record_id]
    try:
        candidates.append(ObjectId(record_id))
    except (InvalidId, TypeError):
        pass
    if len(candidates) == 1:
        return {"_id": record_id}
    return {"_id": {"$in": candidates}}


_accounts_indexes_created = False
_profiles_indexes_created = False
_courses_indexes_created = False
_registrations_indexes_created = False


def _ensure_accounts_indexes(collection: Collection) -> None:
    global _accounts_indexes_created
    if _accounts_indexes_created:
        return

    collection.create_index("email", unique=True, name="unique_email")
    _accounts_indexes_created = True


def get_accounts_collection() -> Collection:
    """Return the collection holding login identities."""

    collection = get_db()["accounts"]
    _ensure_accounts_indexes(collection)
    return collection


def _ensure_profiles_indexes(collection: Collection) -> None:
    global _profiles_indexes_created
    if _profiles_indexes_created:
        return

    collection.create_indexes(
        [
            IndexModel([("user_id", ASCENDING)], name="unique_user_id", unique=True),
            IndexModel(
                [("matric_number", ASCENDING)],
                name="unique_matric_number",
                unique=True,
            ),
            IndexModel(
                [("department", ASCENDING), ("level", ASCENDING)],
                name="department_level",
                background=True,
            ),
            IndexModel(
                [("created_at", DESCENDING)],
                name="created_at_desc",
                background=True,
            ),
        ]
    )
    _profiles_indexes_created = True


def get_profiles_collection() -> Collection:
    """Return the collection that stores student profiles."""

    collection = get_db()["profiles"]
    _ensure_profiles_indexes(collection)
    return collection


def _iso(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def serialize_profile(document):
    """Convert a MongoDB profile document into a JSON-serialisable dict."""

    return {
        "id": str(document.get("_id", "")),
        "user_id": document.get("user_id"),
        "full_name": document.get("full_name"),
        "matric_number": document.get("matric_number"),
        "department": document.get("department"),
        "level": document.get("level"),
        "fees_paid": bool(document.get("fees_paid", False)),
        "admin_created": bool(document.get("admin_created", False)),
        "created_at": _iso(document.get("created_at")),
    }


def _ensure_courses_indexes(collection: Collection) -> None:
    global _courses_indexes_created
    if _courses_indexes_created:
        return

    collection.create_indexes(
        [
            IndexModel(
                [("course_code", ASCENDING)],
                name="unique_course_code",
                unique=True,
            ),
            IndexModel(
                [
                    ("department", ASCENDING),
                    ("level", ASCENDING),
                    ("semester", ASCENDING),
                ],
                name="department_level_semester",
                background=True,
            ),
        ]
    )
    _courses_indexes_created = True


def get_courses_collection() -> Collection:
    """Return the courses collection and ensure supporting indexes."""

    collection = get_db()["courses"]
    _ensure_courses_indexes(collection)
    return collection


def serialize_course(document):
    """Serialize a raw Mongo course document to JSON-friendly dict."""

    units = document.get("units")
    try:
        units_value = int(units) if units is not None else 0
    except (TypeError, ValueError):
        units_value = 0

    return {
        "id": str(document.get("_id", "")),
        "course_code": document.get("course_code"),
        "course_title": document.get("course_title"),
        "units": units_value,
        "department": document.get("department"),
        "level": document.get("level"),
        "semester": document.get("semester"),
        "academic_session": document.get("academic_session"),
        "description": document.get("description"),
        "created_at": _iso(document.get("created_at")),
    }


def _ensure_registrations_indexes(collection: Collection) -> None:
    global _registrations_indexes_created
    if _registrations_indexes_created:
        return

    collection.create_indexes(
        [
            IndexModel(
                [
                    ("user_id", ASCENDING),
                    ("course_id", ASCENDING),
                    ("academic_session", ASCENDING),
                    ("semester", ASCENDING),
                ],
                name="unique_user_course_term",
                unique=True,
            ),
            IndexModel(
                [("registration_date", DESCENDING)],
                name="registration_date_desc",
                background=True,
            ),
        ]
    )
    _registrations_indexes_created = True


def get_registrations_collection() -> Collection:
    """Return the course registrations collection ensuring indexes exist."""

    collection = get_db()["course_registrations"]
    _ensure_registrations_indexes(collection)
    return collection


def serialize_registration(document):
    """Serialize a registration document for JSON responses."""

    return {
        "id": str(document.get("_id", "")),
        "user_id": document.get("user_id"),
        "course_id": document.get("course_id"),
        "academic_session": document.get("academic_session"),
        "semester": document.get("semester"),
        "status": document.get("status"),
        "registration_date": _iso(document.get("registration_date")),
    }


__all__ = [
    "get_db",
    "is_duplicate_error",
    "id_filter",
    "get_accounts_collection",
    "get_profiles_collection",
    "serialize_profile",
    "get_courses_collection",
    "serialize_course",
    "get_registrations_collection",
    "serialize_registration",
]
