"""Lazy, page-at-a-time iteration over collection operations.

A ``Pager`` is an async iterator of ``Page`` objects. Each step performs one
network round-trip; nothing is prefetched. The pager moves through three
states:

- ``START``: send the caller's first request.
- ``HAS_TOKEN``: the previous page carried a continuation token; build the
  follow-up request from it.
- ``DONE``: the last page had no token, or a fetch failed. Iteration ends.

A missing token is the only termination signal. The pager does not detect a
service that hands back the same token forever; bound the iteration yourself
if you do not trust the service.

Example:
    ```python
    pager = client.pages(LIST_WIDGETS, path_params={"subscriptionId": sub_id}, item_model=Widget.from_dict)

    async for page in pager:
        for widget in page:
            print(widget.name)

    # or, item by item
    async for widget in client.pages(LIST_WIDGETS, path_params=...).items():
        ...
    ```
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

from cloud_api_core.errors.exceptions import DecodeError
from cloud_api_core.operation import Operation
from cloud_api_core.request import Method, RequestDescriptor
from cloud_api_core.response import Failure, Outcome, Success

logger = logging.getLogger(__name__)

T = TypeVar("T")

SendOperation = Callable[[RequestDescriptor, Operation], Awaitable[Outcome]]


def _read_field(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


class ContinuationStrategy(ABC):
    """Where a page's continuation token lives and how to follow it."""

    @abstractmethod
    def extract(self, value: Any, headers: httpx.Headers) -> str | None:
        """Return the continuation token of a decoded page, or None when it is the last."""

    @abstractmethod
    def next_request(self, first_request: RequestDescriptor, token: str) -> RequestDescriptor:
        """Build the request for the page a token points to."""


@dataclass(frozen=True)
class NextLink(ContinuationStrategy):
    """The page body carries a link (absolute or root-relative) to the next page.

    Used by management-plane list operations (``nextLink``). The follow-up
    request replaces the URL wholesale: the first request's path is cleared
    and the token is joined as the new path and query. Only authorization
    and, if the link lacks one, the API version are added back by the
    pipeline.
    """

    field: str = "nextLink"

    def extract(self, value: Any, headers: httpx.Headers) -> str | None:
        token = _read_field(value, self.field)
        # An empty link means the same as no link
        if not token:
            return None
        if not isinstance(token, str):
            raise TypeError(f"'{self.field}' is {type(token).__name__}, expected a string")
        return token

    def next_request(self, first_request: RequestDescriptor, token: str) -> RequestDescriptor:
        url = first_request.url
        origin = httpx.URL(f"{url.scheme}://{url.netloc.decode('ascii')}/")
        return RequestDescriptor(method=Method.GET, url=origin.join(token))


@dataclass(frozen=True)
class ContinuationParameter(ContinuationStrategy):
    """The token is sent back as a query parameter of the first request.

    Used by storage data-plane listings: ``NextMarker`` in the body is sent
    as ``marker``, or an ``x-ms-continuation`` header is sent as
    ``continuation``. The header wins when both are configured.
    """

    param: str
    field: str | None = None
    header: str | None = None

    def extract(self, value: Any, headers: httpx.Headers) -> str | None:
        if self.header is not None:
            token = headers.get(self.header)
            if token:
                return token
        if self.field is not None:
            token = _read_field(value, self.field)
            if token:
                return str(token)
        return None

    def next_request(self, first_request: RequestDescriptor, token: str) -> RequestDescriptor:
        return first_request.with_query_param(self.param, token)


class PagerStateKind(str, Enum):
    START = "start"
    HAS_TOKEN = "has_token"
    DONE = "done"


@dataclass(frozen=True)
class PagerState:
    kind: PagerStateKind
    token: str | None = None

    @classmethod
    def start(cls) -> "PagerState":
        return cls(PagerStateKind.START)

    @classmethod
    def has_token(cls, token: str) -> "PagerState":
        return cls(PagerStateKind.HAS_TOKEN, token)

    @classmethod
    def done(cls) -> "PagerState":
        return cls(PagerStateKind.DONE)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of items plus the token for the next page, if any."""

    items: list[T]
    continuation_token: str | None = None
    status_code: int = 200
    headers: httpx.Headers = field(default_factory=httpx.Headers, compare=False)

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def _identity(value: Any) -> Any:
    return value


class Pager(Generic[T]):
    """Async iterator over the pages of a collection operation.

    Not restartable: after the last page, or after a failed fetch, the pager
    stays ``DONE``. Build a new one to start over.

    Args:
        send: Coroutine function sending a request for an operation and
            returning its outcome (``Client.send``)
        operation: The list operation; its status table decides success
        first_request: Factory for the first request, called once
        continuation: Where the continuation token lives
        items_field: Body member holding the page's items
        item_model: Applied to each raw item
    """

    def __init__(
        self,
        send: SendOperation,
        operation: Operation,
        first_request: Callable[[], RequestDescriptor],
        *,
        continuation: ContinuationStrategy | None = None,
        items_field: str = "value",
        item_model: Callable[[Any], T] = _identity,
    ) -> None:
        self._send = send
        self._operation = operation
        self._first_request_factory = first_request
        self._first_request: RequestDescriptor | None = None
        self._continuation = continuation or NextLink()
        self._items_field = items_field
        self._item_model = item_model
        self._state = PagerState.start()
        self._pages_fetched = 0

    @property
    def state(self) -> PagerState:
        return self._state

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    def __aiter__(self) -> "Pager[T]":
        return self

    async def __anext__(self) -> Page[T]:
        if self._state.kind is PagerStateKind.DONE:
            raise StopAsyncIteration

        try:
            request = self._next_request()
            outcome = await self._send(request, self._operation)
            if isinstance(outcome, Failure):
                raise outcome.error
            page = self._to_page(outcome)
        except Exception:
            self._state = PagerState.done()
            raise

        self._pages_fetched += 1
        if page.continuation_token is not None:
            self._state = PagerState.has_token(page.continuation_token)
        else:
            self._state = PagerState.done()
        logger.debug(
            f"{self._operation.display_name}: page {self._pages_fetched} with {len(page)} items, "
            f"next state {self._state.kind.value}"
        )
        return page

    def _next_request(self) -> RequestDescriptor:
        if self._state.kind is PagerStateKind.START:
            self._first_request = self._first_request_factory()
            return self._first_request
        return self._continuation.next_request(self._first_request, self._state.token)

    def _to_page(self, outcome: Success) -> Page[T]:
        raw_items = _read_field(outcome.value, self._items_field) if outcome.value is not None else None
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list):
            raise DecodeError(
                f"Page member '{self._items_field}' is {type(raw_items).__name__}, expected a list",
                body_length=outcome.body_length,
                status_code=outcome.status_code,
            )

        try:
            items = [self._item_model(item) for item in raw_items]
            token = self._continuation.extract(outcome.value, outcome.headers)
        except Exception as e:
            raise DecodeError(
                f"Could not decode page of {self._operation.display_name}: {e}",
                body_length=outcome.body_length,
                cause=e,
                status_code=outcome.status_code,
            ) from e

        return Page(
            items=items,
            continuation_token=token,
            status_code=outcome.status_code,
            headers=outcome.headers,
        )

    async def items(self) -> AsyncIterator[T]:
        """Iterate over the items of every page in order."""
        async for page in self:
            for item in page.items:
                yield item
