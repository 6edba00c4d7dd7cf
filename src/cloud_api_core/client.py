"""Client handle shared by generated service clients.

A ``Client`` bundles the immutable per-client configuration (endpoint,
credential, scopes, pipeline) and exposes the two entry points generated
code calls into: ``execute`` for single-shot operations and ``pages`` for
collections.

Example:
    ```python
    from cloud_api_core import Client, Decode, Method, NoBody, Operation, StatusTable
    from cloud_api_core.transport import ApiVersion

    CREATE_OR_UPDATE = Operation(
        Method.PUT,
        "/subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}"
        "/providers/Microsoft.AlertsManagement/actionRules/{ruleName}",
        StatusTable({200: Decode(Rule.from_dict, "ok"), 201: Decode(Rule.from_dict, "created")}),
        api_version=ApiVersion("2021-08-08"),
    )

    async with Client.builder(credential).build() as client:
        outcome = await client.execute(
            CREATE_OR_UPDATE,
            path_params={"subscriptionId": sub_id, "resourceGroupName": "rg", "ruleName": "r1"},
            body=rule,
        )
        rule = outcome.unwrap()
    ```
"""

import dataclasses
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from cloud_api_core.auth.credentials import CredentialResolver
from cloud_api_core.auth.tokens import TokenCredential
from cloud_api_core.config import DEFAULT_ENDPOINT, ENDPOINT_ENV_VAR, ClientOptions
from cloud_api_core.errors.exceptions import APIError
from cloud_api_core.operation import Operation
from cloud_api_core.pager import ContinuationStrategy, Pager
from cloud_api_core.request import EMPTY_BODY, RequestBody, RequestDescriptor, build_request, json_body
from cloud_api_core.response import Failure, Outcome, resolve
from cloud_api_core.transport.http import HttpxTransport
from cloud_api_core.transport.logging_policy import LoggingPolicy
from cloud_api_core.transport.pipeline import Pipeline, Policy, Transport

logger = logging.getLogger(__name__)


def default_scopes(endpoint: str) -> list[str]:
    """Scope requested when none is configured: the endpoint with a trailing slash."""
    return [f"{endpoint.rstrip('/')}/"]


class Client:
    """Immutable handle over an endpoint, a credential and a pipeline.

    Safe to share between any number of concurrent calls: each call builds
    its own request descriptor and response, and nothing on the client is
    mutated after construction.

    Args:
        endpoint: Base URL of the service
        credential: Token source, or None for unauthenticated requests
        scopes: Scopes requested from the credential
        options: Pipeline configuration
        transport: Transport to send requests with; an ``HttpxTransport`` is
            created (and owned) when omitted
    """

    def __init__(
        self,
        endpoint: str,
        credential: TokenCredential | None,
        scopes: Sequence[str],
        options: ClientOptions | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._credential = credential
        self._scopes = tuple(scopes)
        self._options = options or ClientOptions()

        if transport is None:
            headers = {"user-agent": self._options.user_agent} if self._options.user_agent else None
            transport = HttpxTransport(timeout=self._options.timeout, headers=headers)

        policies: list[Policy] = []
        if self._options.retry is not None:
            policies.append(self._options.retry)
        policies.extend(self._options.per_call_policies)
        if self._options.logging_enabled:
            policies.append(LoggingPolicy())

        self._pipeline = Pipeline(transport, credential=credential, scopes=self._scopes, policies=policies)

    @classmethod
    def builder(cls, credential: TokenCredential | None) -> "ClientBuilder":
        return ClientBuilder(credential)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._scopes

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._pipeline.aclose()

    def request(
        self,
        operation: Operation,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, Any] | None = None,
        body: Any = EMPTY_BODY,
    ) -> RequestDescriptor:
        """Build the request descriptor for an operation.

        ``body`` may be a ``Body``, ``EMPTY_BODY`` or any JSON-serializable
        value (dicts, lists, dataclasses, objects with ``to_dict``).

        Raises:
            MalformedTemplateError: If a path placeholder has no value
        """
        if not isinstance(body, RequestBody):
            body = json_body(body)
        return build_request(
            self._endpoint,
            operation.method,
            operation.path,
            path_params=path_params,
            query=query,
            headers=headers,
            body=body,
        )

    async def send(self, request: RequestDescriptor, operation: Operation) -> Outcome:
        """Send a prepared request and resolve it with the operation's status table.

        Errors of every kind are returned as ``Failure``.
        """
        try:
            raw_response = await self._pipeline.execute(request, operation.api_version)
            outcome = await resolve(raw_response, operation.statuses)
        except APIError as e:
            logger.debug(f"{operation.display_name} failed: {e.kind.value}")
            return Failure.from_error(e)

        if isinstance(outcome, Failure):
            logger.debug(
                f"{operation.display_name} failed: {outcome.kind.value} "
                f"(status {outcome.status_code}, error code {outcome.error_code})"
            )
        return outcome

    async def execute(
        self,
        operation: Operation,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, Any] | None = None,
        body: Any = EMPTY_BODY,
    ) -> Outcome:
        """Run a single-shot operation.

        Args:
            operation: Method, path template, status table and API version
            path_params: Values for the path template placeholders
            query: Optional query parameters; ``None`` values are omitted
            headers: Extra request headers; ``None`` values are omitted
            body: Request body, see ``request``

        Returns:
            ``Success`` tagged with the status table's variant, or ``Failure``
            describing a malformed template, an authentication failure, a
            transport failure, an unexpected status or an undecodable body
        """
        try:
            request = self.request(operation, path_params=path_params, query=query, headers=headers, body=body)
        except APIError as e:
            logger.debug(f"{operation.display_name} failed: {e.kind.value}")
            return Failure.from_error(e)
        return await self.send(request, operation)

    def pages(
        self,
        operation: Operation,
        *,
        path_params: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, Any] | None = None,
        continuation: ContinuationStrategy | None = None,
        items_field: str = "value",
        item_model: Callable[[Any], Any] | None = None,
    ) -> Pager:
        """Page through a collection operation.

        Nothing is sent until the returned pager is iterated. A failure on any
        page is raised from the iteration and ends it.

        Args:
            operation: The list operation
            path_params: Values for the path template placeholders
            query: Optional query parameters for the first request
            headers: Extra headers for the first request
            continuation: ``NextLink()`` (default) or ``ContinuationParameter``
            items_field: Body member holding the items (default ``value``)
            item_model: Applied to each item

        Returns:
            Pager yielding ``Page`` objects
        """

        def first_request() -> RequestDescriptor:
            return self.request(operation, path_params=path_params, query=query, headers=headers)

        kwargs: dict[str, Any] = {"continuation": continuation, "items_field": items_field}
        if item_model is not None:
            kwargs["item_model"] = item_model
        return Pager(self.send, operation, first_request, **kwargs)


class ClientBuilder:
    """Fluent construction of a ``Client``.

    Example:
        ```python
        client = (
            Client.builder(credential)
            .endpoint("https://management.usgovcloudapi.net")
            .retry(RateLimitAwareRetry(max_retries=3))
            .build()
        )
        ```
    """

    def __init__(self, credential: TokenCredential | None) -> None:
        self._credential = credential
        self._endpoint: str | None = None
        self._scopes: list[str] | None = None
        self._options = ClientOptions()
        self._transport: Transport | None = None

    def endpoint(self, endpoint: str) -> "ClientBuilder":
        self._endpoint = endpoint
        return self

    def endpoint_from_env(
        self, env_var_name: str = ENDPOINT_ENV_VAR, resolver: CredentialResolver | None = None
    ) -> "ClientBuilder":
        """Take the endpoint from an environment variable (or .env file) when set."""
        resolver = resolver or CredentialResolver()
        endpoint = resolver.resolve(env_var_name=env_var_name, mask_in_logs=False)
        if endpoint:
            self._endpoint = endpoint
        return self

    def scopes(self, scopes: Sequence[str]) -> "ClientBuilder":
        self._scopes = list(scopes)
        return self

    def options(self, options: ClientOptions) -> "ClientBuilder":
        self._options = options
        return self

    def retry(self, retry: Policy | None) -> "ClientBuilder":
        self._options = dataclasses.replace(self._options, retry=retry)
        return self

    def transport(self, transport: Transport) -> "ClientBuilder":
        self._transport = transport
        return self

    def build(self) -> Client:
        endpoint = self._endpoint or DEFAULT_ENDPOINT
        scopes = self._scopes if self._scopes is not None else default_scopes(endpoint)
        return Client(endpoint, self._credential, scopes, self._options, self._transport)
