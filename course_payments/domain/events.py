"""Webhook event decoding.

Pure domain functions that turn an authenticated Stripe event payload into a
closed set of variants. No DB access, no network, fully deterministic.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class StripeEventType(StrEnum):
    """Event types that trigger fulfillment."""

    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    CHECKOUT_SESSION_ASYNC_PAYMENT_SUCCEEDED = "checkout.session.async_payment_succeeded"


FULFILLMENT_EVENT_TYPES = frozenset(StripeEventType)


class EnrollmentMetadata(BaseModel):
    """The (userId, courseId) pair attached to a checkout session at creation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., alias="userId", min_length=1)
    course_id: str = Field(..., alias="courseId", min_length=1)

    def to_stripe(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class _SessionObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    payment_status: str | None = None
    metadata: dict[str, Any] | None = None


class _EventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: _SessionObject


@dataclass(frozen=True)
class CheckoutSessionCompleted:
    """A checkout session finished and its payment should be fulfilled.

    ``metadata`` is None when the session carries no usable (userId, courseId).
    """

    event_id: str | None
    event_type: str
    session_id: str | None
    payment_status: str | None
    metadata: EnrollmentMetadata | None


@dataclass(frozen=True)
class IgnoredEvent:
    """Any authenticated event this service does not act on."""

    event_id: str | None
    event_type: str


WebhookEvent = CheckoutSessionCompleted | IgnoredEvent


def parse_metadata(raw: Any) -> EnrollmentMetadata | None:
    """Decode session metadata, returning None if either id is absent."""
    if not isinstance(raw, dict):
        return None
    try:
        return EnrollmentMetadata.model_validate(raw)
    except ValidationError:
        return None


def parse_event(payload: Any) -> WebhookEvent:
    """Decode an event payload into a known variant.

    Unknown types become IgnoredEvent; a fulfillment event whose
    session object is malformed keeps its type but has no metadata.
    """
    event_id = payload.get("id") if isinstance(payload, dict) else None
    event_type = payload.get("type") if isinstance(payload, dict) else None
    if not isinstance(event_type, str):
        event_type = ""

    if event_type not in FULFILLMENT_EVENT_TYPES:
        return IgnoredEvent(event_id=event_id, event_type=event_type)

    try:
        data = _EventData.model_validate(payload.get("data"))
    except ValidationError:
        return CheckoutSessionCompleted(
            event_id=event_id,
            event_type=event_type,
            session_id=None,
            payment_status=None,
            metadata=None,
        )

    session = data.object
    return CheckoutSessionCompleted(
        event_id=event_id,
        event_type=event_type,
        session_id=session.id,
        payment_status=session.payment_status,
        metadata=parse_metadata(session.metadata),
    )
