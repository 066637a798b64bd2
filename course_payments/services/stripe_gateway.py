"""Stripe gateway: every call this service makes to the payment processor.

Network calls are bounded by ``stripe_timeout_seconds`` and translated into
the service's error taxonomy. Each gateway owns a ``stripe.StripeClient``
carrying its API key and endpoint, so nothing is set on the ``stripe`` module.
"""

import asyncio
import json
from typing import Any

import stripe
import structlog

from course_payments.core.config import Settings
from course_payments.core.exceptions import (
    InvalidArgument,
    SignatureInvalid,
    UpstreamError,
    UpstreamTimeout,
)

logger = structlog.get_logger(__name__)

CHECKOUT_SESSION_ID_TOKEN = "{CHECKOUT_SESSION_ID}"


def build_stripe_client(settings: Settings) -> stripe.StripeClient:
    """Client bound to the configured key, and to STRIPE_API_BASE when set."""
    if settings.stripe_api_base:
        return stripe.StripeClient(
            settings.stripe_secret_key,
            base_addresses={"api": settings.stripe_api_base},
        )
    return stripe.StripeClient(settings.stripe_secret_key)


class StripeGateway:
    """Thin async wrapper over the Stripe SDK."""

    def __init__(self, settings: Settings):
        self._timeout = settings.stripe_timeout_seconds
        self._webhook_secret = settings.stripe_webhook_secret
        self._tolerance = settings.stripe_webhook_tolerance_seconds
        self._client = build_stripe_client(settings)
        self._sessions = self._client.v1.checkout.sessions

    @property
    def verifies_signatures(self) -> bool:
        return bool(self._webhook_secret)

    async def _call(self, operation: str, coro) -> Any:
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("stripe_call_timeout", operation=operation, timeout_seconds=self._timeout)
            raise UpstreamTimeout(f"Stripe {operation} timed out") from exc
        except stripe.StripeError as exc:
            logger.error(
                "stripe_call_failed",
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise UpstreamError(f"Stripe Error: {exc.user_message or exc}") from exc

    async def create_checkout_session(self, **params: Any) -> stripe.checkout.Session:
        """Create a hosted Checkout Session."""
        return await self._call(
            "checkout_session_create",
            self._sessions.create_async(params=params),
        )

    async def retrieve_checkout_session(self, session_id: str) -> stripe.checkout.Session:
        """Fetch the current state of a Checkout Session."""
        return await self._call(
            "checkout_session_retrieve",
            self._sessions.retrieve_async(session_id),
        )

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify a webhook signature and decode the signed payload.

        Raises SignatureInvalid on a missing/invalid signature or a payload
        that is not a JSON object.
        """
        if not signature:
            raise SignatureInvalid("Missing stripe-signature header")
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self._webhook_secret,
                self._tolerance,
            )
        except stripe.SignatureVerificationError as exc:
            logger.warning("stripe_webhook_signature_invalid", error=str(exc))
            raise SignatureInvalid() from exc
        except UnicodeDecodeError as exc:
            raise SignatureInvalid("Invalid payload") from exc

        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise SignatureInvalid("Invalid payload") from exc
        if not isinstance(event, dict):
            raise SignatureInvalid("Invalid payload")
        return event


def decode_unsigned_event(payload: bytes) -> dict[str, Any]:
    """Parse a webhook body without authentication (dev/test only)."""
    try:
        event = json.loads(payload or b"")
    except ValueError as exc:
        raise InvalidArgument("Webhook Error") from exc
    if not isinstance(event, dict):
        raise InvalidArgument("Webhook Error")
    return event
