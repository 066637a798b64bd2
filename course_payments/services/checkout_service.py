"""CheckoutSessionCreator: turns (course, user) into a hosted Stripe checkout URL."""

from dataclasses import dataclass
from urllib.parse import urlsplit

import structlog

from course_payments.core.config import Settings
from course_payments.core.exceptions import InvalidArgument, Unauthorized
from course_payments.domain.events import EnrollmentMetadata
from course_payments.metrics.cloudwatch import emit_business_event
from course_payments.services.pricing import CourseCatalog, CourseQuote, unit_amount
from course_payments.services.stripe_gateway import CHECKOUT_SESSION_ID_TOKEN, StripeGateway

logger = structlog.get_logger(__name__)

DESCRIPTION_LIMIT = 100


@dataclass(frozen=True)
class CheckoutResult:
    url: str
    session_id: str


def with_session_placeholder(url: str) -> str:
    """Append ``session_id={CHECKOUT_SESSION_ID}`` so the return page can verify."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}session_id={CHECKOUT_SESSION_ID_TOKEN}"


def _validate_redirect(url: str | None, field: str) -> None:
    if not url:
        return
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidArgument(f"{field} must be an absolute http(s) URL")


class CheckoutService:
    """Builds Stripe Checkout Sessions for course purchases."""

    def __init__(self, settings: Settings, catalog: CourseCatalog, gateway: StripeGateway):
        self._settings = settings
        self._catalog = catalog
        self._gateway = gateway

    def build_session_params(
        self,
        course: CourseQuote,
        user_id: str,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> dict:
        """Assemble the Checkout Session request for one course, quantity 1."""
        settings = self._settings
        product_data: dict = {
            "name": course.title,
            "images": [course.thumbnail_url] if course.thumbnail_url else [],
            "metadata": {"courseId": course.id},
        }
        if course.description:
            # Stripe rejects an empty description
            product_data["description"] = course.description[:DESCRIPTION_LIMIT]

        metadata = EnrollmentMetadata(user_id=user_id, course_id=course.id)
        return {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": [{
                "price_data": {
                    "currency": settings.checkout_currency,
                    "product_data": product_data,
                    "unit_amount": unit_amount(course.price, settings.currency_minor_units),
                },
                "quantity": 1,
            }],
            "success_url": with_session_placeholder(success_url or f"{settings.frontend_url}/dashboard"),
            "cancel_url": cancel_url or f"{settings.frontend_url}/courses",
            "metadata": metadata.to_stripe(),
            "client_reference_id": user_id,
        }

    async def create_checkout(
        self,
        course_id: str | None,
        user_id: str | None,
        success_url: str | None = None,
        cancel_url: str | None = None,
    ) -> CheckoutResult:
        """Create a Checkout Session and return its hosted URL.

        Raises:
            Unauthorized: no caller identity
            InvalidArgument: missing course id or unusable redirect URL
            NotFound: course does not exist
            UpstreamTimeout / UpstreamError: Stripe call failed
        """
        if not user_id:
            raise Unauthorized()
        if not course_id:
            raise InvalidArgument("Missing courseId")
        _validate_redirect(success_url, "successUrl")
        _validate_redirect(cancel_url, "cancelUrl")

        course = await self._catalog.get_course(course_id)
        params = self.build_session_params(course, user_id, success_url, cancel_url)

        session = await self._gateway.create_checkout_session(**params)

        logger.info(
            "checkout_session_created",
            session_id=session.id,
            user_id=user_id,
            course_id=course_id,
            unit_amount=params["line_items"][0]["price_data"]["unit_amount"],
        )
        await emit_business_event("checkout_session_created", user_id=user_id)
        return CheckoutResult(url=session.url, session_id=session.id)
