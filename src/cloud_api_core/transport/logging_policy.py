"""Request/response logging with secret redaction."""

import logging
import time

import httpx

from cloud_api_core.errors.exceptions import APIError
from cloud_api_core.request import RequestDescriptor
from cloud_api_core.response import RawResponse
from cloud_api_core.transport.pipeline import NextSend, Policy

logger = logging.getLogger(__name__)

# Query parameters that carry SAS signatures or function keys
REDACTED_QUERY_PARAMS: frozenset[str] = frozenset(["sig", "code", "skoid", "sktid", "skt", "ske", "sks", "skv"])

REDACTED = "REDACTED"


def redact_url(url: httpx.URL) -> str:
    """Render a URL with secret query values replaced by ``REDACTED``."""
    if not url.query:
        return str(url)
    pairs = [
        (name, REDACTED if name.lower() in REDACTED_QUERY_PARAMS else value) for name, value in url.params.multi_items()
    ]
    return str(url.copy_with(params=pairs))


class LoggingPolicy(Policy):
    """Log each request, its status and its duration.

    Successful responses are logged at DEBUG, error statuses and transport
    failures at WARNING. Headers are not logged, so the bearer token never
    reaches the log.

    Args:
        log: Logger to write to (defaults to this module's logger)
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    async def send(self, request: RequestDescriptor, next_send: NextSend) -> RawResponse:
        url = redact_url(request.url)
        method = request.method.value
        self._log.debug(f"Request {method} {url}")

        start = time.monotonic()
        try:
            response = await next_send(request)
        except APIError as e:
            elapsed_ms = (time.monotonic() - start) * 1000
            self._log.warning(f"Request {method} {url} failed after {elapsed_ms:.0f}ms: {e.kind.value}: {e}")
            raise

        elapsed_ms = (time.monotonic() - start) * 1000
        if response.status_code >= 400:
            self._log.warning(f"Response {response.status_code} for {method} {url} in {elapsed_ms:.0f}ms")
        else:
            self._log.debug(f"Response {response.status_code} for {method} {url} in {elapsed_ms:.0f}ms")
        return response
