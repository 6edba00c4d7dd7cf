"""Cloud API Core - shared runtime for generated cloud-service API clients.

Generated per-operation code supplies data (an ``Operation``: method, path
template, API version, status table); this library does the rest:

- Request descriptors built from path templates and optional query parameters
- A pipeline that adds the API version and a bearer token, with composable
  retry and logging policies
- Status-table driven response resolution into ``Success``/``Failure`` outcomes
- Lazy pagination over next-link or marker style continuation tokens

Example:
    ```python
    from cloud_api_core import Client, Decode, Method, Operation, StatusTable
    from cloud_api_core.auth import StaticTokenCredential
    from cloud_api_core.transport import ApiVersion

    LIST_RULES = Operation(
        Method.GET,
        "/subscriptions/{subscriptionId}/providers/Microsoft.AlertsManagement/actionRules",
        StatusTable({200: Decode()}),
        api_version=ApiVersion("2021-08-08"),
    )

    async with Client.builder(StaticTokenCredential.from_env()).build() as client:
        async for rule in client.pages(LIST_RULES, path_params={"subscriptionId": sub_id}).items():
            print(rule["name"])
    ```
"""

from cloud_api_core.client import Client, ClientBuilder
from cloud_api_core.config import DEFAULT_ENDPOINT, ClientOptions
from cloud_api_core.operation import Operation
from cloud_api_core.pager import ContinuationParameter, NextLink, Page, Pager, PagerState
from cloud_api_core.request import EMPTY_BODY, Body, Method, RequestDescriptor, build_request, json_body
from cloud_api_core.response import (
    Decode,
    Failure,
    NoBody,
    Outcome,
    RawResponse,
    StatusTable,
    Success,
    resolve,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_ENDPOINT",
    "EMPTY_BODY",
    "Body",
    "Client",
    "ClientBuilder",
    "ClientOptions",
    "ContinuationParameter",
    "Decode",
    "Failure",
    "Method",
    "NextLink",
    "NoBody",
    "Operation",
    "Outcome",
    "Page",
    "Pager",
    "PagerState",
    "RawResponse",
    "RequestDescriptor",
    "StatusTable",
    "Success",
    "__version__",
    "build_request",
    "json_body",
    "resolve",
]
