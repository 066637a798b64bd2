class PaymentsError(Exception):
    """Base exception for the payments service.

    Carries the HTTP status and a stable error code so route handlers can
    render the ``{ok: false, error}`` envelope without inspecting types.
    """

    status_code: int = 500
    code: str = "payments_error"
    retryable: bool = False

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__.strip().splitlines()[0]
        super().__init__(self.message)


class Unauthorized(PaymentsError):
    """Unauthorized"""

    status_code = 401
    code = "unauthorized"


class InvalidArgument(PaymentsError):
    """Invalid request"""

    status_code = 400
    code = "invalid_argument"


class NotFound(PaymentsError):
    """Not found"""

    status_code = 404
    code = "not_found"


class SignatureInvalid(PaymentsError):
    """Webhook Signature Verification Failed"""

    status_code = 400
    code = "signature_invalid"


class UpstreamTimeout(PaymentsError):
    """Payment processor timed out"""

    status_code = 500
    retryable = True
    code = "upstream_timeout"


class UpstreamError(PaymentsError):
    """Payment processor error"""

    status_code = 500
    retryable = True
    code = "upstream_error"


class StoreError(PaymentsError):
    """Enrollment store unavailable"""

    status_code = 500
    code = "store_error"
    retryable = True
