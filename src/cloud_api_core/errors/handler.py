"""Build structured errors for unexpected HTTP responses."""

import httpx

from cloud_api_core.errors.exceptions import (
    BadRequestError,
    ClientError,
    ConflictError,
    ForbiddenError,
    HttpResponseError,
    NotFoundError,
    PreconditionFailedError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
)
from cloud_api_core.errors.models import ErrorBody

ERROR_CODE_HEADER = "x-ms-error-code"

_EXCEPTION_MAP: dict[int, type[HttpResponseError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    412: PreconditionFailedError,
    429: RateLimitError,
}


def extract_error_code(headers: httpx.Headers, error_body: ErrorBody | None) -> str | None:
    """Return the provider error code from the response, if any.

    The ``x-ms-error-code`` header wins over the body because storage
    services send it on responses without a JSON payload (HEAD, XML bodies).
    """
    header_code = headers.get(ERROR_CODE_HEADER)
    if header_code:
        return header_code
    if error_body is not None:
        return error_body.code
    return None


def error_for_status(status_code: int, headers: httpx.Headers, body: bytes) -> HttpResponseError:
    """Create the exception describing an unexpected HTTP response.

    Parses the service error payload if present, otherwise falls back to a
    message built from the status code and the start of the body text.

    Args:
        status_code: Literal status returned by the service
        headers: Response headers
        body: Fully drained response body

    Returns:
        HttpResponseError subclass based on status code
    """
    error_body = ErrorBody.parse(body)
    error_code = extract_error_code(headers, error_body)

    if status_code in _EXCEPTION_MAP:
        exc_class = _EXCEPTION_MAP[status_code]
    elif 400 <= status_code < 500:
        exc_class = ClientError
    elif 500 <= status_code < 600:
        exc_class = ServerError
    else:
        exc_class = HttpResponseError

    if error_body:
        message = error_body.to_exception_message(status_code)
    else:
        body_text = body[:200].decode("utf-8", errors="replace")
        message = f"HTTP {status_code}: {body_text}" if body_text else f"HTTP {status_code}"
        if error_code:
            message = f"{message} ({error_code})"

    if exc_class is RateLimitError:
        retry_after = None
        if "retry-after" in headers:
            try:
                retry_after = int(headers["retry-after"])
            except (ValueError, TypeError):
                retry_after = None
        return RateLimitError(
            message,
            retry_after=retry_after,
            status_code=status_code,
            error_code=error_code,
            headers=headers,
            body=body,
        )

    return exc_class(
        message,
        status_code=status_code,
        error_code=error_code,
        headers=headers,
        body=body,
    )
