"""httpx-backed transport."""

from collections.abc import AsyncIterator, Mapping

import httpx

from cloud_api_core.errors.exceptions import TransportError
from cloud_api_core.request import RequestDescriptor
from cloud_api_core.response import RawResponse

DEFAULT_TIMEOUT = 30.0


def _describe(request: RequestDescriptor) -> str:
    return f"{request.method.value} {request.url.scheme}://{request.url.host}{request.url.path}"


async def _body_chunks(response: httpx.Response, description: str) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.TransportError as e:
        raise TransportError(f"Reading response body of {description} failed: {e}") from e


class HttpxTransport:
    """Send request descriptors with an ``httpx.AsyncClient``.

    Responses are streamed; the body is read only when the resolver drains
    the ``RawResponse``, which also closes the underlying httpx response.

    Args:
        client: Existing client to use. It is not closed by ``aclose``.
        transport: httpx transport for a client created here, e.g.
            ``httpx.MockTransport`` in tests
        timeout: Timeout in seconds for a client created here
        headers: Default headers for a client created here (user agent)
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            transport=transport,
            timeout=timeout,
            headers=headers,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def send(self, request: RequestDescriptor) -> RawResponse:
        """Send one request.

        Raises:
            TransportError: On connection, DNS, timeout or protocol failures
        """
        description = _describe(request)
        http_request = self._client.build_request(
            request.method.value,
            request.url,
            headers=request.httpx_headers(),
            content=request.content,
        )

        try:
            response = await self._client.send(http_request, stream=True)
        except httpx.TransportError as e:
            raise TransportError(f"{description} failed: {e}") from e

        return RawResponse(
            response.status_code,
            response.headers,
            _body_chunks(response, description),
            on_close=response.aclose,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
