"""Pydantic schemas for the payments API.

Field names are camelCase on the wire to match the web client.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CheckoutRequest(_WireModel):
    # Optional here so a missing courseId yields the 400 envelope, not a 422
    course_id: str | None = Field(None, alias="courseId")
    success_url: str | None = Field(None, alias="successUrl")
    cancel_url: str | None = Field(None, alias="cancelUrl")


class CheckoutResponse(_WireModel):
    ok: bool = True
    url: str


class VerifyResponse(_WireModel):
    ok: bool
    status: str = Field(..., description="enrolled | pending")
    course_id: str | None = Field(None, alias="courseId")
    payment_status: str | None = Field(None, alias="paymentStatus")
    error: str | None = None


class WebhookAck(_WireModel):
    received: bool = True


class EnrollmentItem(_WireModel):
    id: str
    user_id: str = Field(..., alias="userId")
    course_id: str = Field(..., alias="courseId")
    enrolled_at: datetime = Field(..., alias="enrolledAt")


class EnrollmentListResponse(_WireModel):
    ok: bool = True
    enrollments: list[EnrollmentItem]


class EnrollmentStatusResponse(_WireModel):
    ok: bool = True
    course_id: str = Field(..., alias="courseId")
    enrolled: bool
