"""PricingSource: read-only course lookup for checkout."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from course_payments.core.exceptions import NotFound, StoreError
from course_payments.db.models.course import Course

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CourseQuote:
    """Immutable snapshot of the catalog fields checkout needs."""

    id: str
    title: str
    description: str
    thumbnail_url: str | None
    price: Decimal


def unit_amount(price: Decimal | int | float | str, minor_units: int = 100) -> int:
    """Convert a major-unit price into the processor's integer amount.

    Rounds half-up, so 1000.005 with 100 minor units becomes 100001.
    """
    amount = Decimal(str(price)) * minor_units
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CourseCatalog:
    """Looks up courses in the catalog table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_course(self, course_id: str) -> CourseQuote:
        """Return the course quote, or raise NotFound if absent or unpublished."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Course).where(Course.id == course_id))
                course = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error("course_lookup_failed", course_id=course_id, error=str(exc))
            raise StoreError("Course lookup failed") from exc

        if course is None or not course.is_published:
            logger.info("course_not_found", course_id=course_id)
            raise NotFound("Course not found")

        return CourseQuote(
            id=course.id,
            title=course.title,
            description=course.description or "",
            thumbnail_url=course.thumbnail_url,
            price=Decimal(str(course.price)),
        )
