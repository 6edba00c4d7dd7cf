"""Pipeline executor, transport and composable policies.

Modules:
    pipeline: Policy chain, API version and bearer token injection
    http: httpx-backed transport
    retry: Retry policies with multiple strategies
    logging_policy: Request/response logging with secret redaction

Example:
    ```python
    from cloud_api_core.transport import HttpxTransport, LoggingPolicy, Pipeline, RateLimitAwareRetry

    pipeline = Pipeline(
        HttpxTransport(),
        credential=credential,
        scopes=("https://management.azure.com/.default",),
        policies=[RateLimitAwareRetry(), LoggingPolicy()],
    )
    ```
"""

from cloud_api_core.transport.http import HttpxTransport
from cloud_api_core.transport.logging_policy import LoggingPolicy
from cloud_api_core.transport.pipeline import (
    API_VERSION_HEADER,
    API_VERSION_QUERY_PARAM,
    ApiVersion,
    ApiVersionLocation,
    Pipeline,
    Policy,
    Transport,
)
from cloud_api_core.transport.retry import IdempotentOnlyRetry, RateLimitAwareRetry, RetryPolicy

__all__ = [
    "API_VERSION_HEADER",
    "API_VERSION_QUERY_PARAM",
    "ApiVersion",
    "ApiVersionLocation",
    "HttpxTransport",
    "IdempotentOnlyRetry",
    "LoggingPolicy",
    "Pipeline",
    "Policy",
    "RateLimitAwareRetry",
    "RetryPolicy",
    "Transport",
]
