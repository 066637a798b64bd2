"""Payment routes: checkout creation, sync verification and Stripe webhooks."""

import structlog
from fastapi import APIRouter, Depends, Request

from course_payments.api.deps import get_checkout_service, get_verify_service, get_webhook_service
from course_payments.core.auth import CallerIdentity, optional_user
from course_payments.schemas.payments import (
    CheckoutRequest,
    CheckoutResponse,
    VerifyResponse,
    WebhookAck,
)
from course_payments.services.checkout_service import CheckoutService
from course_payments.services.verify_service import VerifyService
from course_payments.services.webhook_service import WebhookService

logger = structlog.get_logger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "stripe-signature"


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    body: CheckoutRequest,
    caller: CallerIdentity | None = Depends(optional_user),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Create a Stripe Checkout session for a course and return its URL."""
    result = await service.create_checkout(
        course_id=body.course_id,
        user_id=caller.user_id if caller else None,
        success_url=body.success_url,
        cancel_url=body.cancel_url,
    )
    return CheckoutResponse(url=result.url)


@router.get(
    "/verify",
    response_model=VerifyResponse,
    response_model_exclude_none=True,
)
async def verify_checkout(
    session_id: str | None = None,
    service: VerifyService = Depends(get_verify_service),
):
    """Synchronously confirm a checkout and enroll if it has been paid."""
    result = await service.verify(session_id)
    if not result.enrolled:
        return VerifyResponse(
            ok=False,
            status="pending",
            payment_status=result.payment_status,
            error="Payment not completed",
        )
    return VerifyResponse(
        ok=True,
        status="enrolled",
        course_id=result.course_id,
    )


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    service: WebhookService = Depends(get_webhook_service),
):
    """Handle Stripe webhook deliveries.

    Responds 400 only when the delivery cannot be authenticated or decoded;
    every authenticated delivery is acknowledged.
    """
    body = await request.body()
    outcome = await service.process(body, request.headers.get(SIGNATURE_HEADER))
    logger.info(
        "stripe_webhook_acknowledged",
        event_id=outcome.event_id,
        event_type=outcome.event_type,
        action=outcome.action.value,
    )
    return WebhookAck()
