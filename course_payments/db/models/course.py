"""Course model: read-only catalog rows used for pricing."""

from sqlalchemy import Boolean, Column, Numeric, String, Text

from course_payments.core.config import get_settings
from course_payments.db.base import Base


class Course(Base):
    """A purchasable course. Owned by the catalog; never written by payments."""

    __tablename__ = get_settings().courses_table

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    thumbnail_url = Column(String(500), nullable=True)
    price = Column(Numeric(14, 2), nullable=False, default=0)
    instructor_id = Column(String(36), nullable=True)
    category = Column(String(100), nullable=True)
    is_published = Column(Boolean, nullable=False, default=True)
