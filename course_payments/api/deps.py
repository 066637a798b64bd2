"""Dependency providers that assemble services from explicit configuration.

Override any of these via ``app.dependency_overrides`` to swap in fakes.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from course_payments.core.config import Settings, get_settings
from course_payments.services.checkout_service import CheckoutService
from course_payments.services.enrollment_store import EnrollmentStore
from course_payments.services.pricing import CourseCatalog
from course_payments.services.stripe_gateway import StripeGateway
from course_payments.services.verify_service import VerifyService
from course_payments.services.webhook_service import WebhookService


def get_stripe_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(settings)


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Session factory of the Database the lifespan put on app.state."""
    return request.app.state.db.session_factory


def get_enrollment_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> EnrollmentStore:
    return EnrollmentStore(session_factory)


def get_course_catalog(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> CourseCatalog:
    return CourseCatalog(session_factory)


def get_checkout_service(
    settings: Settings = Depends(get_settings),
    catalog: CourseCatalog = Depends(get_course_catalog),
    gateway: StripeGateway = Depends(get_stripe_gateway),
) -> CheckoutService:
    return CheckoutService(settings, catalog, gateway)


def get_webhook_service(
    gateway: StripeGateway = Depends(get_stripe_gateway),
    store: EnrollmentStore = Depends(get_enrollment_store),
) -> WebhookService:
    return WebhookService(gateway, store)


def get_verify_service(
    gateway: StripeGateway = Depends(get_stripe_gateway),
    store: EnrollmentStore = Depends(get_enrollment_store),
) -> VerifyService:
    return VerifyService(gateway, store)
