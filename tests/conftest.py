"""Pytest configuration and shared fixtures for cloud-api-core tests."""

import pytest

from cloud_api_core import Decode, Method, NoBody, Operation, StatusTable
from cloud_api_core.transport import ApiVersion

ENDPOINT = "https://management.example.test"


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear test-related environment variables before each test.

    This prevents test pollution when testing setting resolution.
    """
    import os

    test_prefixes = ("TEST_", "CLOUD_API_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def get_rule_operation():
    """Single-shot GET with one success status and a query API version."""
    return Operation(
        Method.GET,
        "/subscriptions/{subscriptionId}/providers/Contoso.Rules/rules/{ruleName}",
        StatusTable({200: Decode()}),
        api_version=ApiVersion("2021-08-08"),
        name="Rules_Get",
    )


@pytest.fixture
def put_rule_operation():
    """PUT answering 200 (updated) or 201 (created)."""
    return Operation(
        Method.PUT,
        "/subscriptions/{subscriptionId}/providers/Contoso.Rules/rules/{ruleName}",
        StatusTable({200: Decode(variant="ok"), 201: Decode(variant="created")}),
        api_version=ApiVersion("2021-08-08"),
        name="Rules_CreateOrUpdate",
    )


@pytest.fixture
def delete_rule_operation():
    return Operation(
        Method.DELETE,
        "/subscriptions/{subscriptionId}/providers/Contoso.Rules/rules/{ruleName}",
        StatusTable({200: NoBody(), 204: NoBody()}),
        api_version=ApiVersion("2021-08-08"),
        name="Rules_Delete",
    )


@pytest.fixture
def list_rules_operation():
    return Operation(
        Method.GET,
        "/subscriptions/{subscriptionId}/providers/Contoso.Rules/rules",
        StatusTable({200: Decode()}),
        api_version=ApiVersion("2021-08-08"),
        name="Rules_List",
    )
