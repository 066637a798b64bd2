"""Tests for webhook event decoding into tagged variants."""

import pytest

from course_payments.domain.events import (
    CheckoutSessionCompleted,
    EnrollmentMetadata,
    IgnoredEvent,
    parse_event,
    parse_metadata,
)

pytestmark = pytest.mark.unit


def _event(event_type: str, session: dict | None = None, event_id: str = "evt_1") -> dict:
    payload = {"id": event_id, "type": event_type}
    if session is not None:
        payload["data"] = {"object": session}
    return payload


def test_completed_event_carries_metadata():
    event = parse_event(_event(
        "checkout.session.completed",
        {"id": "cs_1", "payment_status": "paid", "metadata": {"userId": "u1", "courseId": "c1"}},
    ))

    assert isinstance(event, CheckoutSessionCompleted)
    assert event.event_id == "evt_1"
    assert event.session_id == "cs_1"
    assert event.payment_status == "paid"
    assert event.metadata == EnrollmentMetadata(user_id="u1", course_id="c1")


def test_async_payment_succeeded_is_a_fulfillment_event():
    event = parse_event(_event(
        "checkout.session.async_payment_succeeded",
        {"id": "cs_2", "metadata": {"userId": "u2", "courseId": "c2"}},
    ))

    assert isinstance(event, CheckoutSessionCompleted)
    assert event.metadata.user_id == "u2"


def test_unknown_event_type_is_ignored():
    event = parse_event(_event("invoice.paid", {"id": "in_1"}))

    assert isinstance(event, IgnoredEvent)
    assert event.event_type == "invoice.paid"


def test_payload_without_type_is_ignored():
    event = parse_event({"id": "evt_x"})

    assert isinstance(event, IgnoredEvent)
    assert event.event_type == ""


def test_completed_event_without_data_has_no_metadata():
    event = parse_event(_event("checkout.session.completed"))

    assert isinstance(event, CheckoutSessionCompleted)
    assert event.metadata is None
    assert event.session_id is None


def test_completed_event_missing_course_id_has_no_metadata():
    event = parse_event(_event(
        "checkout.session.completed",
        {"id": "cs_3", "metadata": {"userId": "u1"}},
    ))

    assert event.metadata is None
    assert event.session_id == "cs_3"


def test_empty_ids_are_rejected():
    assert parse_metadata({"userId": "", "courseId": "c1"}) is None


def test_non_dict_metadata_is_rejected():
    assert parse_metadata(["u1", "c1"]) is None
    assert parse_metadata(None) is None


def test_metadata_round_trips_through_stripe_shape():
    metadata = EnrollmentMetadata(user_id="u1", course_id="c1")

    assert metadata.to_stripe() == {"userId": "u1", "courseId": "c1"}
    assert parse_metadata(metadata.to_stripe()) == metadata
