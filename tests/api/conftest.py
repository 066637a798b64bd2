"""API-specific test fixtures."""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"


@pytest.fixture
def api_client(db_url, fake_gateway, signed_settings):
    """FastAPI test client backed by SQLite and the in-memory Stripe fake.

    The database is opened inside the TestClient's own event loop and kept
    on app.state, where the dependency providers look for it.
    """
    from course_payments.api.deps import get_stripe_gateway
    from course_payments.api.routes import api_router
    from course_payments.db import close_db, init_db
    from course_payments.db.seed import seed_demo_courses
    from course_payments.main import install_exception_handlers
    from course_payments.middleware.correlation import setup_correlation_middleware

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        app.state.db = await init_db(signed_settings, db_url)
        await seed_demo_courses(app.state.db.session_factory)
        yield
        await close_db(app.state.db)

    app = FastAPI(title="Course Payments - Test Client", lifespan=test_lifespan)
    setup_correlation_middleware(app)
    install_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    app.dependency_overrides[get_stripe_gateway] = lambda: fake_gateway

    with TestClient(app) as client:
        yield client
