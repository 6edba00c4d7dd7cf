"""Exceptions raised while resolving client settings and secrets.

These are configuration errors raised before any request is made. Failures
to obtain a token during a call are reported as
``cloud_api_core.errors.AuthFailureError`` instead.
"""


class CredentialError(Exception):
    """Base exception for credential and setting resolution errors."""

    pass


class CredentialNotFoundError(CredentialError):
    """A required setting was not found in any source.

    Attributes:
        env_var_name: The environment variable that was checked, if any.
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialFileError(CredentialError):
    """A token file could not be read."""

    pass
