"""Authentication components.

- Bearer token credentials (``TokenCredential`` protocol, ``StaticTokenCredential``)
- Multi-source setting resolution (value → env → .env → default)

Example:
    ```python
    from cloud_api_core.auth import CredentialResolver, StaticTokenCredential

    resolver = CredentialResolver()
    credential = StaticTokenCredential.from_env(resolver)
    ```
"""

from cloud_api_core.auth.credentials import CredentialResolver
from cloud_api_core.auth.exceptions import (
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
)
from cloud_api_core.auth.tokens import AccessToken, StaticTokenCredential, TokenCredential, acquire_token

__all__ = [
    "AccessToken",
    "CredentialError",
    "CredentialFileError",
    "CredentialNotFoundError",
    "CredentialResolver",
    "StaticTokenCredential",
    "TokenCredential",
    "acquire_token",
]
