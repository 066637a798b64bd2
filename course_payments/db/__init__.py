"""Database package: declarative base and app-owned engine handle."""

from course_payments.db.base import Base, Database, close_db, init_db

__all__ = [
    "Base",
    "Database",
    "close_db",
    "init_db",
]
