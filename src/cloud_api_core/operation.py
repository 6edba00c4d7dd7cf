"""Per-operation data supplied by generated call sites."""

from dataclasses import dataclass

from cloud_api_core.request import Method
from cloud_api_core.response import StatusTable
from cloud_api_core.transport.pipeline import ApiVersion


@dataclass(frozen=True)
class Operation:
    """Everything the core needs to know about one REST operation.

    Attributes:
        method: HTTP method
        path: Path template with ``{placeholder}`` tokens
        statuses: Expected statuses and how to decode each one
        api_version: Version the operation was generated against, if any
        name: Operation id, used in log messages

    Example:
        ```python
        GET_WIDGET = Operation(
            Method.GET,
            "/subscriptions/{subscriptionId}/providers/Contoso.Widgets/widgets/{widgetName}",
            StatusTable({200: Decode(Widget.from_dict, "ok")}),
            api_version=ApiVersion("2021-08-08"),
            name="Widgets_Get",
        )
        ```
    """

    method: Method
    path: str
    statuses: StatusTable
    api_version: ApiVersion | None = None
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or f"{self.method.value} {self.path}"
