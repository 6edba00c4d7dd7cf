"""Provider-agnostic description of a single HTTP call.

A ``RequestDescriptor`` is built once per logical call from an operation's
path template and the caller's typed parameters. It is immutable, so a retry
policy can send the exact same descriptor again.

Example:
    ```python
    from cloud_api_core.request import Method, build_request, json_body

    request = build_request(
        "https://management.azure.com",
        Method.PUT,
        "/subscriptions/{subscriptionId}/resourceGroups/{resourceGroupName}",
        path_params={"subscriptionId": sub_id, "resourceGroupName": "rg1"},
        query={"$top": None},  # omitted
        body=json_body({"location": "westus"}),
    )
    ```
"""

import dataclasses
import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union
from urllib.parse import quote

import httpx

from cloud_api_core.errors.exceptions import MalformedTemplateError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


class Method(str, Enum):
    """HTTP methods used by generated operations."""

    GET = "GET"
    PUT = "PUT"
    PATCH = "PATCH"
    POST = "POST"
    DELETE = "DELETE"
    HEAD = "HEAD"


@dataclass(frozen=True)
class Body:
    """Serialized request body plus its declared content type."""

    content: bytes
    content_type: str = JSON_CONTENT_TYPE


class _EmptyBody:
    """Marker for "no body at all".

    Distinct from ``Body(b"")`` so GET/DELETE calls never send a zero-length
    JSON payload.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "EMPTY_BODY"

    def __bool__(self) -> bool:
        return False


EMPTY_BODY = _EmptyBody()

RequestBody = Union[Body, _EmptyBody]


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return value


def json_body(value: Any) -> Body:
    """Serialize a value to a UTF-8 JSON request body.

    Dataclass instances are converted with ``dataclasses.asdict`` and objects
    exposing ``to_dict()`` are converted through it.

    Raises:
        TypeError: If the value is not JSON serializable.
    """
    content = json.dumps(_to_jsonable(value), separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return Body(content=content, content_type=JSON_CONTENT_TYPE)


def _normalize_headers(headers: Mapping[str, Any] | Iterable[tuple[str, Any]] | None) -> tuple[tuple[str, str], ...]:
    """Lower-case header names, drop ``None`` values, last write wins."""
    if headers is None:
        return ()
    items = headers.items() if isinstance(headers, Mapping) else headers
    merged: dict[str, str] = {}
    for name, value in items:
        if value is None:
            continue
        merged[name.lower()] = str(value)
    return tuple(merged.items())


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def expand_path(template: str, path_params: Mapping[str, Any] | None) -> str:
    """Substitute ``{placeholder}`` tokens in a path template.

    Values are percent-encoded; ``/`` is left alone so scope-style
    parameters (``/subscriptions/...``) can be passed through.

    Raises:
        MalformedTemplateError: If a placeholder has no value, or the
            template contains an unbalanced brace.
    """
    params = path_params or {}

    literal = _PLACEHOLDER.sub("", template)
    if "{" in literal or "}" in literal:
        raise MalformedTemplateError(f"Unbalanced brace in path template '{template}'")

    def substitute(match: re.Match) -> str:
        name = match.group(1)
        value = params.get(name)
        if value is None or value == "":
            raise MalformedTemplateError(
                f"No value supplied for path parameter '{name}' in template '{template}'",
                placeholder=name,
            )
        return quote(str(value), safe="/")

    return _PLACEHOLDER.sub(substitute, template)


@dataclass(frozen=True)
class RequestDescriptor:
    """An immutable description of one HTTP call.

    Attributes:
        method: HTTP method
        url: Fully resolved URL, query parameters included
        headers: Header pairs with lower-case names, unique per name
        body: ``Body`` or ``EMPTY_BODY``
    """

    method: Method
    url: httpx.URL
    headers: tuple[tuple[str, str], ...] = ()
    body: RequestBody = EMPTY_BODY

    def header(self, name: str) -> str | None:
        """Look up a header case-insensitively."""
        name = name.lower()
        for key, value in self.headers:
            if key == name:
                return value
        return None

    def has_header(self, name: str) -> bool:
        return self.header(name) is not None

    def has_query_param(self, name: str) -> bool:
        return name in self.url.params

    def with_header(self, name: str, value: str) -> "RequestDescriptor":
        """Return a copy with ``name`` set to ``value`` (replacing any existing value)."""
        headers = _normalize_headers([*self.headers, (name, value)])
        return dataclasses.replace(self, headers=headers)

    def with_url(self, url: httpx.URL | str) -> "RequestDescriptor":
        return dataclasses.replace(self, url=httpx.URL(url))

    def with_query_param(self, name: str, value: Any) -> "RequestDescriptor":
        """Return a copy with the query parameter ``name`` replaced by ``value``."""
        return dataclasses.replace(self, url=self.url.copy_set_param(name, _query_value(value)))

    def with_added_query_param(self, name: str, value: Any) -> "RequestDescriptor":
        """Return a copy with ``name=value`` appended after the existing query."""
        return dataclasses.replace(self, url=self.url.copy_add_param(name, _query_value(value)))

    def httpx_headers(self) -> httpx.Headers:
        return httpx.Headers(list(self.headers))

    @property
    def content(self) -> bytes | None:
        """Bytes to put on the wire, or None when there is no body."""
        if isinstance(self.body, Body):
            return self.body.content
        return None


def build_request(
    endpoint: str,
    method: Method | str,
    path_template: str,
    path_params: Mapping[str, Any] | None = None,
    query: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
    headers: Mapping[str, Any] | None = None,
    body: RequestBody = EMPTY_BODY,
) -> RequestDescriptor:
    """Assemble a RequestDescriptor from an operation's template and parameters.

    Args:
        endpoint: Base URL of the service (tenant or region specific)
        method: HTTP method
        path_template: Path with ``{placeholder}`` tokens; may carry a fixed
            query string such as ``/?comp=list``
        path_params: Placeholder name to value
        query: Optional query parameters in the order they should appear.
            ``None`` values are omitted; sequences become repeated parameters.
        headers: Extra headers; ``None`` values are omitted
        body: ``Body`` produced by ``json_body`` or ``EMPTY_BODY``

    Returns:
        Immutable RequestDescriptor

    Raises:
        MalformedTemplateError: If a required placeholder has no value
    """
    path = expand_path(path_template, path_params)
    if not path.startswith("/"):
        path = f"/{path}"

    url = httpx.URL(f"{endpoint.rstrip('/')}{path}")

    pairs = list(url.params.multi_items())
    if query is not None:
        items = query.items() if isinstance(query, Mapping) else query
        for name, value in items:
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                pairs.extend((name, _query_value(item)) for item in value)
            else:
                pairs.append((name, _query_value(value)))
    if pairs:
        url = url.copy_with(params=pairs)

    header_pairs = list(_normalize_headers(headers))
    if isinstance(body, Body):
        header_pairs.append(("content-type", body.content_type))

    descriptor = RequestDescriptor(
        method=Method(method.upper()),
        url=url,
        headers=_normalize_headers(header_pairs),
        body=body,
    )
    logger.debug(f"Built request {descriptor.method.value} {descriptor.url.host}{descriptor.url.path}")
    return descriptor
