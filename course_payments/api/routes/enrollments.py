"""Read-only enrollment queries for access checks elsewhere on the platform."""

from fastapi import APIRouter, Depends

from course_payments.api.deps import get_enrollment_store
from course_payments.core.auth import CallerIdentity, require_user
from course_payments.schemas.payments import (
    EnrollmentItem,
    EnrollmentListResponse,
    EnrollmentStatusResponse,
)
from course_payments.services.enrollment_store import EnrollmentStore

router = APIRouter()


@router.get("", response_model=EnrollmentListResponse)
async def list_enrollments(
    caller: CallerIdentity = Depends(require_user),
    store: EnrollmentStore = Depends(get_enrollment_store),
):
    """List the caller's enrollments, oldest first."""
    rows = await store.list_enrollments(caller.user_id)
    return EnrollmentListResponse(
        enrollments=[
            EnrollmentItem(
                id=row.id,
                user_id=row.user_id,
                course_id=row.course_id,
                enrolled_at=row.enrolled_at,
            )
            for row in rows
        ]
    )


@router.get("/{course_id}", response_model=EnrollmentStatusResponse)
async def get_enrollment_status(
    course_id: str,
    caller: CallerIdentity = Depends(require_user),
    store: EnrollmentStore = Depends(get_enrollment_store),
):
    """Return whether the caller is enrolled in a course."""
    enrolled = await store.is_enrolled(caller.user_id, course_id)
    return EnrollmentStatusResponse(course_id=course_id, enrolled=enrolled)
