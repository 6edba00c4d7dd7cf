"""Retry policies for the request pipeline.

No retry is installed by default; add one of these to ``ClientOptions.retry``
or to a ``Pipeline`` policy list. Both reuse the same immutable
``RequestDescriptor`` on every attempt.

## When to Use Each Strategy

| Strategy | 429 (Rate Limit) | 502/503/504 | Transport errors | Best For |
|----------|------------------|-------------|------------------|----------|
| `IdempotentOnlyRetry` | ❌ No retry | GET, HEAD | GET, HEAD | Maximum safety |
| `RateLimitAwareRetry` | ✅ All methods | GET, HEAD, PUT, DELETE | GET, HEAD, PUT, DELETE | Throttled management APIs |

## Example

```python
from cloud_api_core import Client, ClientOptions
from cloud_api_core.transport.retry import RateLimitAwareRetry

client = Client.builder(credential).retry(RateLimitAwareRetry(max_retries=5, max_backoff=60)).build()
```
"""

import asyncio
import logging
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from cloud_api_core.errors.exceptions import TransportError
from cloud_api_core.request import RequestDescriptor
from cloud_api_core.response import RawResponse
from cloud_api_core.transport.pipeline import NextSend, Policy

logger = logging.getLogger(__name__)


class RetryPolicy(Policy):
    """Shared retry loop with exponential backoff.

    Subclasses decide which responses are retried and how long to wait.

    Args:
        max_retries: Maximum number of retry attempts (default: 5)
        backoff_factor: Multiplier for exponential backoff (default: 1.0)
        max_backoff: Maximum backoff time in seconds (default: 60)
    """

    # Methods safe to send again after a transport failure or a 5xx
    IDEMPOTENT_METHODS: frozenset[str] = frozenset(["HEAD", "GET"])

    # Server errors that warrant retry
    DEFAULT_RETRY_STATUS_CODES: frozenset[int] = frozenset([502, 503, 504])

    def __init__(
        self,
        *,
        max_retries: int = 5,
        backoff_factor: float = 1.0,
        max_backoff: float = 60.0,
        retry_status_codes: frozenset[int] | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.max_backoff = max_backoff
        self.retry_status_codes = retry_status_codes or self.DEFAULT_RETRY_STATUS_CODES

    async def send(self, request: RequestDescriptor, next_send: NextSend) -> RawResponse:
        """Send the request, retrying per the policy's rules.

        Returns:
            The first non-retryable response, or the last response once
            ``max_retries`` is exhausted

        Raises:
            TransportError: When the last attempt fails at the transport level
                or the method is not safe to resend
        """
        retries = 0
        description = f"{request.method.value} {request.url.host}{request.url.path}"

        while True:
            try:
                response = await next_send(request)
            except TransportError as e:
                if retries >= self.max_retries or request.method.value not in self.IDEMPOTENT_METHODS:
                    raise

                retries += 1
                delay = self._calculate_backoff_delay(retries)
                logger.warning(
                    f"Request {description} failed with {e}, "
                    f"retrying in {delay}s (attempt {retries}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            should_retry, delay = self._should_retry_with_delay(request, response, retries)
            if not should_retry:
                return response

            # Release the connection held by the discarded response
            await response.aclose()
            retries += 1
            logger.warning(
                f"Request {description} failed with {response.status_code}, "
                f"retrying in {delay}s (attempt {retries}/{self.max_retries})"
            )
            await asyncio.sleep(delay)

    def _should_retry_with_delay(
        self, request: RequestDescriptor, response: RawResponse, current_retries: int
    ) -> tuple[bool, float]:
        if current_retries >= self.max_retries:
            return False, 0.0

        if response.status_code in self.retry_status_codes and request.method.value in self.IDEMPOTENT_METHODS:
            return True, self._calculate_backoff_delay(current_retries + 1)

        return False, 0.0

    def _calculate_backoff_delay(self, retry_number: int) -> float:
        """Exponential backoff capped at ``max_backoff``.

        Uses formula: min(backoff_factor * (2 ** (retry_number - 1)), max_backoff)
        Default backoff sequence: 1, 2, 4, 8, 16 seconds

        Args:
            retry_number: Current retry attempt (1-indexed)
        """
        delay = self.backoff_factor * (2 ** (retry_number - 1))
        return min(delay, self.max_backoff)


class IdempotentOnlyRetry(RetryPolicy):
    """Retry only GET and HEAD, only on 502/503/504 and transport errors.

    Never resends an operation that could create or modify a resource twice,
    and does not treat 429 as retryable.

    Example:
        ```python
        policy = IdempotentOnlyRetry(max_retries=3)
        ```
    """

    pass


class RateLimitAwareRetry(RetryPolicy):
    """Retry throttled requests (429) for every method, 5xx for idempotent ones.

    Honors ``Retry-After`` (seconds or HTTP-date) and the millisecond
    variants ``retry-after-ms`` / ``x-ms-retry-after-ms``; falls back to
    exponential backoff when none is present. Server-provided delays are
    capped at ``max_backoff``.

    Example:
        ```python
        policy = RateLimitAwareRetry(max_retries=5, max_backoff=60)
        ```
    """

    # PUT and DELETE are idempotent by definition (RFC 7231)
    IDEMPOTENT_METHODS: frozenset[str] = frozenset(["HEAD", "GET", "PUT", "DELETE"])

    RETRY_AFTER_MS_HEADERS: tuple[str, ...] = ("retry-after-ms", "x-ms-retry-after-ms")

    def _should_retry_with_delay(
        self, request: RequestDescriptor, response: RawResponse, current_retries: int
    ) -> tuple[bool, float]:
        if current_retries >= self.max_retries:
            return False, 0.0

        if response.status_code == 429:
            delay = self._parse_retry_after(response)
            if delay is None:
                delay = self._calculate_backoff_delay(current_retries + 1)
            return True, delay

        return super()._should_retry_with_delay(request, response, current_retries)

    def _parse_retry_after(self, response: RawResponse) -> float | None:
        """Parse the server-requested delay.

        Returns:
            Delay in seconds capped at ``max_backoff``, or None if no header
            is present or every header is invalid
        """
        for header in self.RETRY_AFTER_MS_HEADERS:
            value = response.headers.get(header)
            if value:
                try:
                    delay_ms = float(value)
                except ValueError:
                    continue
                if delay_ms >= 0:
                    return min(delay_ms / 1000.0, self.max_backoff)

        retry_after = response.headers.get("retry-after")
        if not retry_after:
            return None

        try:
            delay = int(retry_after)
            if delay < 0:
                return None
            return float(min(delay, self.max_backoff))
        except ValueError:
            pass

        try:
            retry_date = parsedate_to_datetime(retry_after)
            delay = (retry_date - datetime.now(UTC)).total_seconds()
            # Clock skew can put the date in the past
            if delay < 0:
                return None
            return float(min(delay, self.max_backoff))
        except (ValueError, TypeError):
            return None
