"""Tests for building errors from unexpected HTTP responses."""

import httpx
import pytest

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
from cloud_api_core.errors.handler import error_for_status, extract_error_code
from cloud_api_core.errors.models import ErrorBody


@pytest.mark.unit
@pytest.mark.parametrize(
    "status_code,exc_class",
    [
        (400, BadRequestError),
        (401, UnauthorizedError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (409, ConflictError),
        (412, PreconditionFailedError),
        (429, RateLimitError),
        (418, ClientError),
        (500, ServerError),
        (503, ServerError),
        (302, HttpResponseError),
        (200, HttpResponseError),
    ],
)
def test_error_for_status_picks_class(status_code, exc_class):
    error = error_for_status(status_code, httpx.Headers(), b"")

    assert type(error) is exc_class
    assert error.status_code == status_code


@pytest.mark.unit
def test_error_for_status_returns_instead_of_raising():
    error = error_for_status(404, httpx.Headers(), b"")

    assert isinstance(error, NotFoundError)
    assert str(error) == "HTTP 404"


@pytest.mark.unit
def test_error_for_status_uses_error_body():
    body = b'{"error": {"code": "ResourceNotFound", "message": "Rule r1 not found"}}'

    error = error_for_status(404, httpx.Headers(), body)

    assert error.error_code == "ResourceNotFound"
    assert "HTTP 404 (ResourceNotFound): Rule r1 not found" in str(error)
    assert error.body == body


@pytest.mark.unit
def test_error_for_status_plain_text_body():
    error = error_for_status(502, httpx.Headers({"content-type": "text/plain"}), b"Bad Gateway")

    assert str(error) == "HTTP 502: Bad Gateway"
    assert error.error_code is None


@pytest.mark.unit
def test_error_for_status_truncates_long_body():
    error = error_for_status(500, httpx.Headers(), b"x" * 1000)

    assert str(error) == "HTTP 500: " + "x" * 200


@pytest.mark.unit
def test_error_code_header_wins_over_body():
    headers = httpx.Headers({"x-ms-error-code": "LeaseIdMissing"})
    body = b'{"code": "SomethingElse", "message": "ignored code"}'

    error = error_for_status(412, headers, body)

    assert error.error_code == "LeaseIdMissing"


@pytest.mark.unit
def test_error_code_header_without_body():
    """HEAD responses and XML bodies report the code only in the header."""
    headers = httpx.Headers({"x-ms-error-code": "BlobNotFound"})

    error = error_for_status(404, headers, b"")

    assert error.error_code == "BlobNotFound"
    assert str(error) == "HTTP 404 (BlobNotFound)"


@pytest.mark.unit
def test_rate_limit_error_reads_retry_after():
    error = error_for_status(429, httpx.Headers({"retry-after": "17"}), b"")

    assert isinstance(error, RateLimitError)
    assert error.retry_after == 17


@pytest.mark.unit
def test_rate_limit_error_ignores_http_date_retry_after():
    error = error_for_status(429, httpx.Headers({"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"}), b"")

    assert error.retry_after is None


@pytest.mark.unit
def test_extract_error_code():
    assert extract_error_code(httpx.Headers(), None) is None
    assert extract_error_code(httpx.Headers(), ErrorBody(code="Throttled")) == "Throttled"
    assert extract_error_code(httpx.Headers({"x-ms-error-code": "A"}), ErrorBody(code="B")) == "A"
    # An empty header value does not hide the body code
    assert extract_error_code(httpx.Headers({"x-ms-error-code": ""}), ErrorBody(code="B")) == "B"
