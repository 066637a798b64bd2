"""EnrollmentStore: the single writer for enrollment rows.

Fulfillment is idempotent on (user_id, course_id). The read below is only a
fast path for duplicate deliveries; correctness comes from the unique
constraint, and a constraint violation on insert counts as success.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from course_payments.core.exceptions import StoreError
from course_payments.db.models.enrollment import Enrollment
from course_payments.metrics.cloudwatch import emit_business_event

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EnrollmentResult:
    """Outcome of ensure_enrolled. ``created`` is True only for the committing call."""

    created: bool
    enrollment_id: str | None = None


class EnrollmentStore:
    """Durable idempotent writer/reader for enrollments."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _find(self, session: AsyncSession, user_id: str, course_id: str) -> Enrollment | None:
        result = await session.execute(
            select(Enrollment).where(
                Enrollment.user_id == user_id,
                Enrollment.course_id == course_id,
            )
        )
        return result.scalars().first()

    async def ensure_enrolled(self, user_id: str, course_id: str) -> EnrollmentResult:
        """Make sure (user_id, course_id) is enrolled.

        Returns created=False if the row already existed, including when a
        concurrent request committed it first. Raises StoreError when the
        store is unreachable or rejects the write for any other reason.
        """
        log = logger.bind(user_id=user_id, course_id=course_id)
        log.info("enrollment_requested")

        try:
            async with self._session_factory() as session:
                existing = await self._find(session, user_id, course_id)
                if existing is not None:
                    log.info("enrollment_already_exists", enrollment_id=existing.id)
                    return EnrollmentResult(created=False, enrollment_id=existing.id)

                enrollment = Enrollment(user_id=user_id, course_id=course_id)
                session.add(enrollment)
                try:
                    await session.commit()
                except IntegrityError:
                    # Lost the race: another request inserted the same pair
                    await session.rollback()
                    existing = await self._find(session, user_id, course_id)
                    log.info("enrollment_already_exists", reason="unique_constraint")
                    return EnrollmentResult(
                        created=False,
                        enrollment_id=existing.id if existing is not None else None,
                    )
        except SQLAlchemyError as exc:
            log.error("enrollment_write_failed", error=str(exc), error_type=type(exc).__name__)
            raise StoreError("Enrollment could not be saved") from exc

        log.info("enrollment_created", enrollment_id=enrollment.id)
        await emit_business_event("enrollment_created", user_id=user_id)
        return EnrollmentResult(created=True, enrollment_id=enrollment.id)

    async def list_enrollments(self, user_id: str) -> list[Enrollment]:
        """Return a user's enrollments, oldest first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Enrollment)
                    .where(Enrollment.user_id == user_id)
                    .order_by(Enrollment.enrolled_at, Enrollment.id)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error("enrollment_list_failed", user_id=user_id, error=str(exc))
            raise StoreError("Enrollments could not be loaded") from exc

    async def is_enrolled(self, user_id: str, course_id: str) -> bool:
        try:
            async with self._session_factory() as session:
                return await self._find(session, user_id, course_id) is not None
        except SQLAlchemyError as exc:
            logger.error("enrollment_lookup_failed", user_id=user_id, course_id=course_id, error=str(exc))
            raise StoreError("Enrollment lookup failed") from exc
