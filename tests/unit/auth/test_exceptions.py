"""Tests for setting resolution exceptions."""

import pytest

from cloud_api_core.auth.exceptions import (
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
)
from cloud_api_core.errors import APIError


class TestCredentialNotFoundError:
    def test_is_credential_error(self):
        with pytest.raises(CredentialError):
            raise CredentialNotFoundError("Token not found")

    def test_message_and_env_var_name(self):
        error = CredentialNotFoundError("Token not found", env_var_name="CLOUD_API_TOKEN")

        assert str(error) == "Token not found"
        assert error.env_var_name == "CLOUD_API_TOKEN"

    def test_env_var_name_optional(self):
        assert CredentialNotFoundError("Token not found").env_var_name is None


class TestCredentialFileError:
    def test_is_credential_error(self):
        with pytest.raises(CredentialError):
            raise CredentialFileError("File not found: /var/run/token")

    def test_message(self):
        assert str(CredentialFileError("File not found: /var/run/token")) == "File not found: /var/run/token"


def test_configuration_errors_are_not_api_errors():
    """Setting errors happen before any call and are never returned as a Failure."""
    assert not issubclass(CredentialError, APIError)
