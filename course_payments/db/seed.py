"""Idempotent seed data for local development courses."""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from course_payments.db.models.course import Course

DEMO_COURSES = [
    {
        "id": "c1",
        "title": "Python for Data Analysis",
        "description": "Hands-on pandas, notebooks and plotting from first principles.",
        "thumbnail_url": None,
        "price": Decimal("100000"),
        "category": "data",
    },
    {
        "id": "c2",
        "title": "Building Web APIs",
        "description": "Design, test and ship HTTP services with FastAPI.",
        "thumbnail_url": None,
        "price": Decimal("249000"),
        "category": "web",
    },
    {
        "id": "c3",
        "title": "Intro to Machine Learning",
        "description": "Regression, classification and evaluation with scikit-learn.",
        "thumbnail_url": None,
        "price": Decimal("349000.50"),
        "category": "ml",
    },
]


async def seed_demo_courses(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Insert demo courses if they don't already exist."""
    async with session_factory() as session:
        for course_data in DEMO_COURSES:
            result = await session.execute(
                select(Course).where(Course.id == course_data["id"])
            )
            existing = result.scalar_one_or_none()

            if existing is None:
                session.add(Course(**course_data))

        await session.commit()
