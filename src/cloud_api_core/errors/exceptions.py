"""Structured exceptions for the request/response core.

Every failure the core can report belongs to one ``ErrorKind``. The
exceptions are raised by the layer that detects the problem (descriptor
builder, credential, transport, resolver) and are carried inside a
``Failure`` outcome when they cross the ``Client.execute`` seam.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class ErrorKind(str, Enum):
    """Discriminator for the failure taxonomy."""

    MALFORMED_TEMPLATE = "malformed_template"
    AUTH_FAILURE = "auth_failure"
    TRANSPORT = "transport"
    HTTP_RESPONSE = "http_response"
    DECODE = "decode"


class APIError(Exception):
    """Base exception for every error produced by the core."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code


class MalformedTemplateError(APIError):
    """A path template placeholder had no value.

    This is a programming error in the calling code and is never retried.
    """

    kind = ErrorKind.MALFORMED_TEMPLATE

    def __init__(self, message: str, placeholder: str | None = None):
        super().__init__(message)
        self.placeholder = placeholder


class AuthFailureError(APIError):
    """The credential could not produce a token for the requested scopes."""

    kind = ErrorKind.AUTH_FAILURE

    def __init__(self, message: str, scopes: tuple[str, ...] = ()):
        super().__init__(message)
        self.scopes = scopes


class TransportError(APIError):
    """Connection refused, timeout, DNS failure or a broken connection.

    Safe to retry: request descriptors are immutable and can be sent again.
    """

    kind = ErrorKind.TRANSPORT


class HttpResponseError(APIError):
    """The service answered with a status the operation does not expect."""

    kind = ErrorKind.HTTP_RESPONSE

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_code: str | None = None,
        headers: "httpx.Headers | None" = None,
        body: bytes = b"",
    ):
        super().__init__(message, status_code=status_code, error_code=error_code)
        self.headers = headers
        self.body = body


class ClientError(HttpResponseError):
    """4xx client errors."""

    pass


class BadRequestError(ClientError):
    """400 Bad Request."""

    pass


class UnauthorizedError(ClientError):
    """401 Unauthorized."""

    pass


class ForbiddenError(ClientError):
    """403 Forbidden."""

    pass


class NotFoundError(ClientError):
    """404 Not Found."""

    pass


class ConflictError(ClientError):
    """409 Conflict."""

    pass


class PreconditionFailedError(ClientError):
    """412 Precondition Failed (etag mismatch)."""

    pass


class RateLimitError(ClientError):
    """429 Too Many Requests."""

    def __init__(self, message: str, retry_after: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ServerError(HttpResponseError):
    """5xx server errors."""

    pass


class DecodeError(APIError):
    """The response body did not parse as the shape the operation declared.

    Not retryable: an identical request yields the same malformed body.
    """

    kind = ErrorKind.DECODE

    def __init__(
        self,
        message: str,
        *,
        body_length: int | None,
        cause: Exception | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.body_length = body_length
        self.cause = cause
