"""Raw responses, status tables and the typed outcome of a call.

``resolve`` maps the status of a ``RawResponse`` through an operation's
``StatusTable``: a recognized status becomes ``Success`` tagged with the
table's variant, anything else becomes ``Failure``. Errors are returned as
values; nothing here raises on a malformed body.

Example:
    ```python
    from cloud_api_core.response import Decode, NoBody, StatusTable, resolve

    statuses = StatusTable(
        {
            200: Decode(Widget.from_dict, "ok"),
            201: Decode(Widget.from_dict, "created"),
            204: NoBody("no_content"),
        }
    )
    outcome = await resolve(raw_response, statuses)
    if outcome.is_success and outcome.variant == "created":
        ...
    ```
"""

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Generic, TypeVar, Union

import httpx

from cloud_api_core.errors.exceptions import APIError, DecodeError, ErrorKind
from cloud_api_core.errors.handler import error_for_status

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StreamConsumedError(RuntimeError):
    """Raised when a response body stream is read a second time."""


async def _single_chunk(content: bytes) -> AsyncIterator[bytes]:
    yield content


class RawResponse:
    """Status, headers and a body stream that can be consumed exactly once.

    Args:
        status_code: HTTP status code
        headers: Response headers
        stream: Async iterable of body chunks
        on_close: Optional coroutine function releasing the connection
    """

    def __init__(
        self,
        status_code: int,
        headers: httpx.Headers | Mapping[str, str] | None = None,
        stream: AsyncIterable[bytes] | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ):
        self.status_code = status_code
        self.headers = httpx.Headers(headers or {})
        self._stream = stream if stream is not None else _single_chunk(b"")
        self._on_close = on_close
        self._consumed = False

    @classmethod
    def from_bytes(
        cls,
        status_code: int,
        content: bytes = b"",
        headers: httpx.Headers | Mapping[str, str] | None = None,
    ) -> "RawResponse":
        """Build a response around an in-memory body."""
        return cls(status_code, headers, _single_chunk(content))

    @property
    def is_consumed(self) -> bool:
        return self._consumed

    async def read(self) -> bytes:
        """Drain the body stream into a byte buffer and release the connection.

        Raises:
            StreamConsumedError: If the body was already read.
        """
        if self._consumed:
            raise StreamConsumedError(f"Response body for status {self.status_code} was already consumed")
        self._consumed = True
        try:
            chunks = [chunk async for chunk in self._stream]
        finally:
            await self.aclose()
        return b"".join(chunks)

    async def aclose(self) -> None:
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            await on_close()

    def __repr__(self) -> str:
        return f"<RawResponse [{self.status_code}]>"


def default_variant(status_code: int) -> str:
    """Snake-case status name used when a table entry has no explicit tag, e.g. ``no_content``."""
    try:
        return HTTPStatus(status_code).name.lower()
    except ValueError:
        return f"status_{status_code}"


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class Decode:
    """Decode the body as JSON, then apply ``model`` to the parsed value."""

    model: Callable[[Any], Any] = _identity
    variant: str | None = None


@dataclass(frozen=True)
class NoBody:
    """The status carries no payload worth decoding."""

    variant: str | None = None


StatusEntry = Union[Decode, NoBody]


class StatusTable:
    """Per-operation mapping of expected status codes to outcome handling.

    The table is the single source of truth for what counts as success.
    Services that answer ``200`` where their documentation promises ``201``
    are described by listing the status they actually send.
    """

    def __init__(self, entries: Mapping[int, StatusEntry]):
        self._entries: dict[int, StatusEntry] = dict(entries)

    @classmethod
    def ok(cls, model: Callable[[Any], Any] = _identity) -> "StatusTable":
        """Table for the common single ``200`` with a JSON body."""
        return cls({200: Decode(model)})

    def __contains__(self, status_code: int) -> bool:
        return status_code in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, status_code: int) -> StatusEntry | None:
        return self._entries.get(status_code)

    def variant_for(self, status_code: int) -> str:
        entry = self._entries[status_code]
        return entry.variant or default_variant(status_code)

    @property
    def status_codes(self) -> frozenset[int]:
        return frozenset(self._entries)

    def __repr__(self) -> str:
        return f"StatusTable({sorted(self._entries)})"


@dataclass(frozen=True)
class Success(Generic[T]):
    """A response whose status appears in the operation's table."""

    variant: str
    value: T
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers, compare=False)
    body_length: int | None = field(default=None, compare=False)

    is_success = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """A call that did not produce a success variant.

    Attributes:
        kind: Which part of the taxonomy failed
        error: The exception describing the failure
        status_code: Literal HTTP status, when a response was received
        error_code: Provider error code, when the service reported one
    """

    kind: ErrorKind
    error: APIError
    status_code: int | None = None
    error_code: str | None = None

    is_success = False
    variant = None

    @classmethod
    def from_error(cls, error: APIError) -> "Failure":
        return cls(
            kind=error.kind,
            error=error,
            status_code=error.status_code,
            error_code=error.error_code,
        )

    def unwrap(self):
        """Raise the underlying error."""
        raise self.error


Outcome = Union[Success[T], Failure]


def _decode(entry: Decode, body: bytes) -> Any:
    if not body.strip():
        parsed = None
    else:
        parsed = json.loads(body)
    return entry.model(parsed)


async def resolve(raw_response: RawResponse, statuses: StatusTable) -> Outcome:
    """Map a raw response to a typed outcome using the operation's status table.

    The body is always drained, also for unexpected statuses, so the
    connection is returned to the pool.

    Args:
        raw_response: Unconsumed response from the pipeline
        statuses: The operation's status table

    Returns:
        ``Success`` with the table's variant, or ``Failure`` of kind
        ``HTTP_RESPONSE`` (status not in the table) or ``DECODE``
        (body did not match the declared shape)
    """
    status_code = raw_response.status_code
    headers = raw_response.headers
    entry = statuses.get(status_code)

    if entry is None:
        body = await raw_response.read()
        error = error_for_status(status_code, headers, body)
        logger.debug(f"Unexpected status {status_code} (error code: {error.error_code})")
        return Failure.from_error(error)

    variant = entry.variant or default_variant(status_code)

    if isinstance(entry, NoBody):
        body = await raw_response.read()
        return Success(variant=variant, value=None, status_code=status_code, headers=headers, body_length=len(body))

    body = await raw_response.read()
    try:
        value = _decode(entry, body)
    except Exception as e:
        # Parser errors and anything the model raises on an unexpected shape
        logger.warning(f"Failed to decode {len(body)} byte body for status {status_code}: {e}")
        error = DecodeError(
            f"Could not decode {len(body)} byte response body for status {status_code}: {e}",
            body_length=len(body),
            cause=e,
            status_code=status_code,
        )
        return Failure.from_error(error)

    return Success(variant=variant, value=value, status_code=status_code, headers=headers, body_length=len(body))
