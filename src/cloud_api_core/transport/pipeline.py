"""Pipeline executor: policies around a bare transport send.

``Pipeline.execute`` takes an immutable ``RequestDescriptor`` and returns an
unconsumed ``RawResponse``. Before the transport sees the request:

1. the operation's API version is added, unless the URL (or header, for
   storage-style services) already carries one;
2. the request passes through the configured policies, outermost first;
3. a bearer token is acquired and the ``Authorization`` header set.

Authorization sits innermost, so a retry policy reuses the same descriptor
and a token is acquired again for each attempt.

Example:
    ```python
    pipeline = Pipeline(
        HttpxTransport(),
        credential=credential,
        scopes=("https://management.azure.com/.default",),
        policies=[RateLimitAwareRetry(max_retries=3), LoggingPolicy()],
    )
    raw = await pipeline.execute(request, api_version=ApiVersion("2021-08-08"))
    ```
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from cloud_api_core.auth.tokens import TokenCredential, acquire_token
from cloud_api_core.request import RequestDescriptor
from cloud_api_core.response import RawResponse

logger = logging.getLogger(__name__)

API_VERSION_QUERY_PARAM = "api-version"
API_VERSION_HEADER = "x-ms-version"
AUTHORIZATION_HEADER = "authorization"

NextSend = Callable[[RequestDescriptor], Awaitable[RawResponse]]


class Transport(Protocol):
    """Sends a descriptor over the network.

    Implementations raise ``cloud_api_core.errors.TransportError`` on
    connection-level failures.
    """

    async def send(self, request: RequestDescriptor) -> RawResponse: ...

    async def aclose(self) -> None: ...


class Policy(ABC):
    """One link of the pipeline.

    A policy receives the request and the rest of the chain, and may
    inspect, replace, repeat or short-circuit the call.
    """

    @abstractmethod
    async def send(self, request: RequestDescriptor, next_send: NextSend) -> RawResponse:
        """Send ``request`` through the remainder of the pipeline."""


class ApiVersionLocation(str, Enum):
    QUERY = "query"
    HEADER = "header"


@dataclass(frozen=True)
class ApiVersion:
    """The fixed API version an operation is generated against.

    Management-plane services take it as the ``api-version`` query
    parameter; storage data-plane services take it as the ``x-ms-version``
    header.
    """

    value: str
    location: ApiVersionLocation = ApiVersionLocation.QUERY

    @classmethod
    def header(cls, value: str) -> "ApiVersion":
        return cls(value, ApiVersionLocation.HEADER)

    def apply(self, request: RequestDescriptor) -> RequestDescriptor:
        """Add the API version unless the request already carries one.

        Only the presence of the parameter is checked. A continuation URL
        handed out by the service may pin a different version, and that
        version is kept.
        """
        if self.location is ApiVersionLocation.HEADER:
            if request.has_header(API_VERSION_HEADER):
                return request
            return request.with_header(API_VERSION_HEADER, self.value)

        if request.has_query_param(API_VERSION_QUERY_PARAM):
            return request
        return request.with_added_query_param(API_VERSION_QUERY_PARAM, self.value)


def _bind(policy: Policy, next_send: NextSend) -> NextSend:
    async def send(request: RequestDescriptor) -> RawResponse:
        return await policy.send(request, next_send)

    return send


class Pipeline:
    """Ordered chain of policies ending in authorization and the transport.

    Args:
        transport: Performs the network send
        credential: Token source; None sends requests without authorization
            (e.g. pre-signed storage URLs)
        scopes: Scopes requested from the credential
        policies: Policies applied outermost first

    The pipeline holds no per-call state and may be shared by any number of
    concurrent calls.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        credential: TokenCredential | None,
        scopes: Sequence[str] = (),
        policies: Sequence[Policy] = (),
    ) -> None:
        self._transport = transport
        self._credential = credential
        self._scopes = tuple(scopes)
        self._policies = tuple(policies)

        send: NextSend = self._authorize_and_send
        for policy in reversed(self._policies):
            send = _bind(policy, send)
        self._send = send

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def policies(self) -> tuple[Policy, ...]:
        return self._policies

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._scopes

    async def _authorize_and_send(self, request: RequestDescriptor) -> RawResponse:
        if self._credential is not None:
            token = await acquire_token(self._credential, self._scopes)
            request = request.with_header(AUTHORIZATION_HEADER, f"Bearer {token}")
        return await self._transport.send(request)

    async def execute(self, request: RequestDescriptor, api_version: ApiVersion | None = None) -> RawResponse:
        """Send a request and return the raw, unconsumed response.

        Args:
            request: Immutable request descriptor
            api_version: Version to add when the request does not carry one

        Returns:
            RawResponse whose body has not been read

        Raises:
            AuthFailureError: If no token could be acquired
            TransportError: If the request could not be sent
        """
        if api_version is not None:
            request = api_version.apply(request)
        return await self._send(request)

    async def aclose(self) -> None:
        await self._transport.aclose()
