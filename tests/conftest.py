"""Shared test fixtures for all test groups."""

import hashlib
import hmac
import json
import os
import time
from types import SimpleNamespace

# Must be set before course_payments modules read settings
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("METRICS_ENABLED", "false")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from course_payments.core.config import Settings
from course_payments.core.exceptions import UpstreamError
from course_payments.db.base import Base
from course_payments.db.models.course import Course
from course_payments.services.enrollment_store import EnrollmentStore
from course_payments.services.pricing import CourseCatalog
from course_payments.services.stripe_gateway import StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"


class FakeStripeGateway(StripeGateway):
    """StripeGateway with an in-memory processor instead of the network.

    Signature verification is inherited unchanged, so webhook tests exercise
    the real Stripe signing scheme.
    """

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.sessions: dict[str, SimpleNamespace] = {}
        self.created_params: list[dict] = []
        self.fail_with: Exception | None = None

    async def create_checkout_session(self, **params):
        if self.fail_with is not None:
            raise self.fail_with
        self.created_params.append(params)
        session_id = f"cs_test_{len(self.created_params):04d}"
        session = SimpleNamespace(
            id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            payment_status="unpaid",
            metadata=dict(params.get("metadata") or {}),
            client_reference_id=params.get("client_reference_id"),
        )
        self.sessions[session_id] = session
        return session

    def add_session(self, session_id: str, payment_status: str, metadata: dict | None) -> SimpleNamespace:
        session = SimpleNamespace(
            id=session_id,
            url=f"https://checkout.stripe.com/c/pay/{session_id}",
            payment_status=payment_status,
            metadata=metadata,
        )
        self.sessions[session_id] = session
        return session

    def mark_paid(self, session_id: str) -> None:
        self.sessions[session_id].payment_status = "paid"

    async def retrieve_checkout_session(self, session_id: str):
        if self.fail_with is not None:
            raise self.fail_with
        if session_id not in self.sessions:
            raise UpstreamError(f"Stripe Error: No such checkout.session: '{session_id}'")
        return self.sessions[session_id]


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a ``stripe-signature`` header value the way Stripe does."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def completed_event(
    session_id: str,
    metadata: dict | None,
    event_id: str = "evt_test_001",
    event_type: str = "checkout.session.completed",
    payment_status: str = "paid",
) -> bytes:
    """Serialize a minimal checkout-completed event body."""
    session: dict = {"id": session_id, "object": "checkout.session", "payment_status": payment_status}
    if metadata is not None:
        session["metadata"] = metadata
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": session},
    }).encode("utf-8")


@pytest.fixture
def signed_settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret=WEBHOOK_SECRET,
        environment="test",
        frontend_url="http://localhost:5173",
    )


@pytest.fixture
def unsigned_settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret="",
        environment="test",
        frontend_url="http://localhost:5173",
    )


@pytest.fixture
def fake_gateway(signed_settings) -> FakeStripeGateway:
    return FakeStripeGateway(signed_settings)


@pytest.fixture
async def session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    """File-backed SQLite so concurrent sessions get separate connections."""
    import course_payments.db.models  # noqa: F401

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'payments.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add(Course(id="c1", title="Course One", description="First course", price=100000))
        session.add(Course(id="c-draft", title="Draft", description="", price=5000, is_published=False))
        await session.commit()

    yield factory

    await engine.dispose()


@pytest.fixture
def store(session_factory) -> EnrollmentStore:
    return EnrollmentStore(session_factory)


@pytest.fixture
def catalog(session_factory) -> CourseCatalog:
    return CourseCatalog(session_factory)


@pytest.fixture
def sign():
    return sign_payload


@pytest.fixture
def event_body():
    return completed_event
