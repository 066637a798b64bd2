"""Enrollment model: one row per fulfilled (user, course) purchase."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, UniqueConstraint

from course_payments.core.config import get_settings
from course_payments.db.base import Base


class Enrollment(Base):
    """Grants a user access to a course.

    The (user_id, course_id) unique constraint is the idempotency key for
    fulfillment: concurrent inserts for the same pair resolve to one row.
    """

    __tablename__ = get_settings().enrollments_table
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    course_id = Column(String(36), nullable=False)
    enrolled_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
