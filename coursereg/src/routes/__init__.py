"""Application route blueprints and helpers."""

from .accounts import accounts_bp, require_student
from .admin_auth import admin_auth_bp, require_admin
from .admin_courses import admin_courses_bp
from .admin_students import admin_students_bp
from .registrations import registrations_bp
from .reports import reports_bp

BLUEPRINTS = (
    admin_auth_bp,
    admin_courses_bp,
    admin_students_bp,
    reports_bp,
    accounts_bp,
    registrations_bp,
)

__all__ = [
    "BLUEPRINTS",
    "accounts_bp",
    "admin_auth_bp",
    "admin_courses_bp",
    "admin_students_bp",
    "registrations_bp",
    "reports_bp",
    "require_admin",
    "require_student",
]
