"""Caller identity for FastAPI.

The platform gateway authenticates users upstream and forwards the user id in
the ``x-user-id`` header; this service trusts that header and nothing else.
"""

from dataclasses import dataclass

from fastapi import Header, Request

from course_payments.core.exceptions import Unauthorized

USER_ID_HEADER = "x-user-id"


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str


async def optional_user(request: Request, x_user_id: str | None = Header(default=None)) -> CallerIdentity | None:
    """Return the caller, or None when the header is absent or blank."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        return None
    request.state.user_id = user_id
    return CallerIdentity(user_id=user_id)


async def require_user(request: Request, x_user_id: str | None = Header(default=None)) -> CallerIdentity:
    """Dependency that rejects requests without a caller identity."""
    caller = await optional_user(request, x_user_id)
    if caller is None:
        raise Unauthorized()
    return caller
