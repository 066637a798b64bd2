"""SyncVerifier: confirm a checkout synchronously when the buyer returns.

Races the webhook for the same session; both converge on
EnrollmentStore.ensure_enrolled, so whichever lands second is a no-op.
"""

from dataclasses import dataclass

import structlog

from course_payments.core.exceptions import InvalidArgument
from course_payments.domain.events import parse_metadata
from course_payments.services.enrollment_store import EnrollmentStore
from course_payments.services.stripe_gateway import StripeGateway

logger = structlog.get_logger(__name__)

PAID = "paid"


@dataclass(frozen=True)
class VerifyResult:
    enrolled: bool
    payment_status: str | None
    course_id: str | None = None
    created: bool = False


class VerifyService:
    def __init__(self, gateway: StripeGateway, store: EnrollmentStore):
        self._gateway = gateway
        self._store = store

    async def verify(self, session_id: str | None) -> VerifyResult:
        """Enroll the buyer if the session is paid.

        An unpaid session is a normal result, not an error. Store and Stripe
        failures propagate: the buyer is waiting for a definitive answer.
        """
        if not session_id:
            raise InvalidArgument("Missing session_id")

        log = logger.bind(session_id=session_id)
        log.info("checkout_verify_requested")

        session = await self._gateway.retrieve_checkout_session(session_id)
        payment_status = getattr(session, "payment_status", None)

        if payment_status != PAID:
            log.info("checkout_not_paid", payment_status=payment_status)
            return VerifyResult(enrolled=False, payment_status=payment_status)

        metadata = parse_metadata(_plain(getattr(session, "metadata", None)))
        if metadata is None:
            log.warning("checkout_verify_missing_metadata")
            raise InvalidArgument("Checkout session has no enrollment metadata")

        result = await self._store.ensure_enrolled(metadata.user_id, metadata.course_id)
        log.info(
            "checkout_verified",
            user_id=metadata.user_id,
            course_id=metadata.course_id,
            created=result.created,
        )
        return VerifyResult(
            enrolled=True,
            payment_status=payment_status,
            course_id=metadata.course_id,
            created=result.created,
        )


def _plain(value):
    """StripeObject -> dict; plain values pass through."""
    to_dict = getattr(value, "to_dict", None)
    return to_dict() if callable(to_dict) else value
