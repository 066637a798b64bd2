"""WebhookEventProcessor: authenticates Stripe notifications and fulfills them.

Only authentication and body-decoding failures reach the HTTP response.
Anything that goes wrong after that is logged for reconciliation and
acknowledged, so Stripe's retry loop never amplifies a local failure. A
failed enrollment is retried by the next duplicate delivery instead.
"""

from dataclasses import dataclass
from enum import StrEnum

import structlog

from course_payments.core.exceptions import PaymentsError
from course_payments.domain.events import CheckoutSessionCompleted, WebhookEvent, parse_event
from course_payments.services.enrollment_store import EnrollmentStore
from course_payments.services.stripe_gateway import StripeGateway, decode_unsigned_event

logger = structlog.get_logger(__name__)

# Session payment states that grant access. Delayed methods complete as
# "unpaid" and are fulfilled later by async_payment_succeeded.
SETTLED_PAYMENT_STATUSES = frozenset({"paid", "no_payment_required"})


class WebhookAction(StrEnum):
    ENROLLED = "enrolled"
    ALREADY_ENROLLED = "already_enrolled"
    IGNORED = "ignored"
    MISSING_METADATA = "missing_metadata"
    PAYMENT_PENDING = "payment_pending"
    FAILED = "failed"


@dataclass(frozen=True)
class WebhookOutcome:
    event_id: str | None
    event_type: str
    action: WebhookAction


class WebhookService:
    """Processes one inbound webhook delivery."""

    def __init__(self, gateway: StripeGateway, store: EnrollmentStore):
        self._gateway = gateway
        self._store = store

    def authenticate(self, body: bytes, signature: str | None) -> WebhookEvent:
        """Verify (or, without a secret, merely parse) the body into an event.

        Raises SignatureInvalid or InvalidArgument; both map to HTTP 400.
        """
        if self._gateway.verifies_signatures:
            payload = self._gateway.construct_event(body, signature)
        else:
            logger.warning(
                "stripe_webhook_signature_unverified",
                reason="STRIPE_WEBHOOK_SECRET not configured",
            )
            payload = decode_unsigned_event(body)
        return parse_event(payload)

    async def dispatch(self, event: WebhookEvent) -> WebhookOutcome:
        """Act on an authenticated event. Never raises."""
        log = logger.bind(event_id=event.event_id, event_type=event.event_type)
        log.info("stripe_webhook_received")

        if not isinstance(event, CheckoutSessionCompleted):
            log.info("stripe_webhook_ignored")
            return WebhookOutcome(event.event_id, event.event_type, WebhookAction.IGNORED)

        if event.metadata is None:
            log.warning("checkout_completed_missing_metadata", session_id=event.session_id)
            return WebhookOutcome(event.event_id, event.event_type, WebhookAction.MISSING_METADATA)

        if event.payment_status not in SETTLED_PAYMENT_STATUSES:
            log.info(
                "checkout_completed_unpaid",
                session_id=event.session_id,
                payment_status=event.payment_status,
            )
            return WebhookOutcome(event.event_id, event.event_type, WebhookAction.PAYMENT_PENDING)

        user_id = event.metadata.user_id
        course_id = event.metadata.course_id
        try:
            result = await self._store.ensure_enrolled(user_id, course_id)
        except PaymentsError as exc:
            log.error(
                "webhook_enrollment_failed",
                session_id=event.session_id,
                user_id=user_id,
                course_id=course_id,
                error=exc.message,
                error_code=exc.code,
            )
            return WebhookOutcome(event.event_id, event.event_type, WebhookAction.FAILED)
        except Exception as exc:
            log.error(
                "webhook_enrollment_failed",
                session_id=event.session_id,
                user_id=user_id,
                course_id=course_id,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return WebhookOutcome(event.event_id, event.event_type, WebhookAction.FAILED)

        action = WebhookAction.ENROLLED if result.created else WebhookAction.ALREADY_ENROLLED
        return WebhookOutcome(event.event_id, event.event_type, action)

    async def process(self, body: bytes, signature: str | None) -> WebhookOutcome:
        event = self.authenticate(body, signature)
        return await self.dispatch(event)
