"""Error taxonomy and service error parsing."""

from cloud_api_core.errors.exceptions import (
    APIError,
    AuthFailureError,
    BadRequestError,
    ClientError,
    ConflictError,
    DecodeError,
    ErrorKind,
    ForbiddenError,
    HttpResponseError,
    MalformedTemplateError,
    NotFoundError,
    PreconditionFailedError,
    RateLimitError,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from cloud_api_core.errors.handler import error_for_status, extract_error_code
from cloud_api_core.errors.models import ErrorBody

__all__ = [
    "APIError",
    "AuthFailureError",
    "BadRequestError",
    "ClientError",
    "ConflictError",
    "DecodeError",
    "ErrorBody",
    "ErrorKind",
    "ForbiddenError",
    "HttpResponseError",
    "MalformedTemplateError",
    "NotFoundError",
    "PreconditionFailedError",
    "RateLimitError",
    "ServerError",
    "TransportError",
    "UnauthorizedError",
    "error_for_status",
    "extract_error_code",
]
