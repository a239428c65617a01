"""Application configuration helpers."""

import os

from dotenv import load_dotenv

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DOTENV_PATH = os.path.join(_BASE_DIR, ".env")

if os.path.exists(_DOTENV_PATH):
    load_dotenv(_DOTENV_PATH)


class ConfigError(RuntimeError):
    """Raised when configuration values are missing or invalid."""


SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "coursereg_session")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_MONGO_URI_CACHE = None
_DB_NAME_CACHE = None


def _read_mongo_uri():
    uri = os.getenv("MONGODB_URI")
    if not uri:
        raise ConfigError("MONGODB_URI is not set. Define it in coursereg/.env.")
    return uri


def _read_db_name(uri):
    db_name = os.getenv("MONGODB_DB")
    if db_name:
        return db_name

    main = uri.split("?", 1)[0].rstrip("/")
    after_scheme = main.split("://", 1)[1] if "://" in main else main

    candidate = after_scheme.split("/", 1)[1] if "/" in after_scheme else ""
    if not candidate:
        raise ConfigError(
            "Database name not found. Provide it via MONGODB_URI or MONGODB_DB."
        )
    return candidate


def get_mongo_uri():
    """Return the MongoDB connection string from the environment."""

    global _MONGO_URI_CACHE

    if _MONGO_URI_CACHE:
        return _MONGO_URI_CACHE

    _MONGO_URI_CACHE = _read_mongo_uri()
    return _MONGO_URI_CACHE


def get_db_name():
    """Return the database name derived from the MongoDB URI or env var."""

    global _DB_NAME_CACHE

    if _DB_NAME_CACHE:
        return _DB_NAME_CACHE

    _DB_NAME_CACHE = _read_db_name(get_mongo_uri())
    return _DB_NAME_CACHE


def get_admin_password():
    """Return the shared admin secret, read fresh on every request."""

    password = os.getenv("ADMIN_PASSWORD")
    if not password:
        raise ConfigError("ADMIN_PASSWORD is not set.")
    return password


def get_admin_credentials():
    """Return the configured ``(username, password)`` pair for admin login."""

    username = os.getenv("ADMIN_USERNAME")
    password = os.getenv("ADMIN_PASSWORD")
    if not username or not password:
        raise ConfigError("Admin credentials not configured.")
    return username, password


def ensure_store_configured() -> None:
    """Raise ConfigError unless the environment still locates the record store.

    Reads the environment on every call; the cached getters only serve the
    client connection.
    """

    _read_db_name(_read_mongo_uri())


__all__ = [
    "ConfigError",
    "SECRET_KEY",
    "SESSION_COOKIE_NAME",
    "LOG_LEVEL",
    "get_mongo_uri",
    "get_db_name",
    "get_admin_password",
    "get_admin_credentials",
    "ensure_store_configured",
]
