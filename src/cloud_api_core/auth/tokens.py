"""Bearer token credentials.

The credential is an opaque collaborator: anything with an async
``get_token(*scopes)`` returning an object with a ``token`` attribute works,
which includes the async credentials from ``azure-identity``. Caching and
refresh are the credential's business; the pipeline asks for a token on
every send attempt.
"""

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cloud_api_core.auth.credentials import CredentialResolver
from cloud_api_core.auth.exceptions import CredentialNotFoundError
from cloud_api_core.errors.exceptions import AuthFailureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and its expiry as a Unix timestamp, if known."""

    token: str
    expires_on: int | None = None

    def __repr__(self) -> str:
        return f"AccessToken(token='***', expires_on={self.expires_on})"


@runtime_checkable
class TokenCredential(Protocol):
    """Supplies bearer tokens for a set of scopes."""

    async def get_token(self, *scopes: str) -> AccessToken: ...


class StaticTokenCredential:
    """Credential that always returns the same pre-acquired token.

    Useful for scripts and tests; production code should pass a refreshing
    credential.
    """

    def __init__(self, token: str, expires_on: int | None = None):
        if not token:
            raise ValueError("token must be a non-empty string")
        self._token = AccessToken(token=token, expires_on=expires_on)

    async def get_token(self, *scopes: str) -> AccessToken:
        return self._token

    @classmethod
    def from_env(
        cls,
        resolver: CredentialResolver | None = None,
        *,
        env_var_name: str = "CLOUD_API_TOKEN",
        file_env_var_name: str = "CLOUD_API_TOKEN_FILE",
    ) -> "StaticTokenCredential":
        """Build a credential from an environment variable or a token file.

        ``env_var_name`` wins; otherwise the file named by
        ``file_env_var_name`` is read.

        Raises:
            CredentialNotFoundError: If neither source provides a token.
        """
        resolver = resolver or CredentialResolver()
        token = resolver.resolve(env_var_name=env_var_name)
        if token is None:
            token = resolver.resolve_from_file(env_var_name=file_env_var_name)
        if not token:
            raise CredentialNotFoundError(
                f"No bearer token found (checked env vars: {env_var_name}, {file_env_var_name})",
                env_var_name=env_var_name,
            )
        return cls(token)


async def acquire_token(credential: TokenCredential, scopes: tuple[str, ...]) -> str:
    """Ask the credential for a token and return its secret.

    Raises:
        AuthFailureError: If the credential fails or returns an empty token.
    """
    try:
        access_token = await credential.get_token(*scopes)
    except AuthFailureError:
        raise
    except Exception as e:
        logger.warning(f"Token acquisition failed for scopes {list(scopes)}: {type(e).__name__}")
        raise AuthFailureError(f"Could not acquire token for scopes {list(scopes)}: {e}", scopes=scopes) from e

    secret = getattr(access_token, "token", None)
    if not secret:
        raise AuthFailureError(f"Credential returned an empty token for scopes {list(scopes)}", scopes=scopes)
    return secret
