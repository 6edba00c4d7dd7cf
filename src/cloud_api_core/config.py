"""Client configuration."""

import logging
from dataclasses import dataclass, field

from cloud_api_core.auth.credentials import CredentialResolver
from cloud_api_core.transport.http import DEFAULT_TIMEOUT
from cloud_api_core.transport.pipeline import Policy
from cloud_api_core.transport.retry import RateLimitAwareRetry

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://management.azure.com"

ENDPOINT_ENV_VAR = "CLOUD_API_ENDPOINT"
TIMEOUT_ENV_VAR = "CLOUD_API_TIMEOUT"
MAX_RETRIES_ENV_VAR = "CLOUD_API_MAX_RETRIES"
LOGGING_ENV_VAR = "CLOUD_API_LOGGING"


@dataclass(frozen=True)
class ClientOptions:
    """Pipeline settings shared by every call a client makes.

    Attributes:
        retry: Retry policy, outermost in the pipeline. None disables retries (default).
        timeout: Timeout in seconds for a transport the client creates.
        logging_enabled: Install ``LoggingPolicy`` (default True).
        user_agent: User-Agent header for a transport the client creates.
        per_call_policies: Extra policies placed between retry and logging.
    """

    retry: Policy | None = None
    timeout: float | None = DEFAULT_TIMEOUT
    logging_enabled: bool = True
    user_agent: str | None = None
    per_call_policies: tuple[Policy, ...] = field(default_factory=tuple)

    @classmethod
    def from_env(cls, resolver: CredentialResolver | None = None) -> "ClientOptions":
        """Create options from ``CLOUD_API_*`` environment variables (or a .env file).

        ``CLOUD_API_MAX_RETRIES`` > 0 installs a ``RateLimitAwareRetry``.
        """
        resolver = resolver or CredentialResolver()
        max_retries = resolver.resolve_int(env_var_name=MAX_RETRIES_ENV_VAR, default=0)
        retry = RateLimitAwareRetry(max_retries=max_retries) if max_retries else None
        options = cls(
            retry=retry,
            timeout=resolver.resolve_float(env_var_name=TIMEOUT_ENV_VAR, default=DEFAULT_TIMEOUT),
            logging_enabled=resolver.resolve_bool(env_var_name=LOGGING_ENV_VAR, default=True),
        )
        logger.debug(f"Client options from environment: {options}")
        return options
