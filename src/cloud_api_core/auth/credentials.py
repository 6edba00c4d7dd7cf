"""Resolve client settings and secrets from several sources.

Resolution order (highest to lowest priority):
1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv, loaded into the environment once)
4. Default value

Example:
    ```python
    from cloud_api_core.auth import CredentialResolver

    resolver = CredentialResolver()
    endpoint = resolver.resolve(
        env_var_name="CLOUD_API_ENDPOINT",
        default="https://management.azure.com",
        mask_in_logs=False,
    )
    token = resolver.resolve_from_file(env_var_name="CLOUD_API_TOKEN_FILE")
    ```

Secrets are never logged; only the source they came from is.
"""

import logging
import os
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv

from cloud_api_core.auth.exceptions import CredentialFileError, CredentialNotFoundError

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Look up settings by priority: explicit value, environment, .env file, default.

    Args:
        dotenv_path: Path to a .env file. If None, python-dotenv searches
            parent directories.
        load_dotenv: Set to False to skip .env loading entirely.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        self._dotenv_path = dotenv_path
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()

        if load_dotenv:
            self._load_dotenv_once()

    def _load_dotenv_once(self) -> None:
        with self._dotenv_lock:
            if self._dotenv_loaded:
                return
            # Existing environment variables are never overridden
            found = load_dotenv(dotenv_path=self._dotenv_path, override=False)
            self._dotenv_loaded = True
            logger.debug(f"Loaded .env file for client settings (found: {found})")

    @staticmethod
    def _describe(value: str | None, mask: bool) -> str:
        if value is None:
            return "None"
        return "***" if mask else value

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        required: bool = False,
        mask_in_logs: bool = True,
    ) -> str | None:
        """Resolve a setting, first match wins.

        Args:
            value: Explicit value; when given, every other source is ignored.
            env_var_name: Environment variable to check. Values from the .env
                file are visible here once loaded.
            default: Fallback when no other source has a value.
            required: Raise instead of returning None when nothing is found.
            mask_in_logs: Log ``***`` instead of the value. Disable only for
                non-secret settings such as endpoints.

        Returns:
            The resolved value, or None if not found and not required.

        Raises:
            CredentialNotFoundError: If ``required`` and no source has a value.
        """
        if value is not None:
            result, source = value, "explicit parameter"
        elif env_var_name and env_var_name in os.environ:
            result, source = os.environ[env_var_name], f"environment variable '{env_var_name}'"
        elif default is not None:
            result, source = default, "default value"
        else:
            result, source = None, None

        if result is not None:
            logger.debug(f"Resolved setting from {source}: {self._describe(result, mask_in_logs)}")
        elif required:
            error_msg = "Required credential not found"
            if env_var_name:
                error_msg += f" (checked env var: {env_var_name})"
            raise CredentialNotFoundError(error_msg, env_var_name=env_var_name)

        return result

    def resolve_int(self, *, env_var_name: str, default: int | None = None) -> int | None:
        """Resolve a non-secret integer setting; invalid values fall back to ``default``."""
        raw = self.resolve(env_var_name=env_var_name, mask_in_logs=False)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring non-integer value {raw!r} for {env_var_name}")
            return default

    def resolve_float(self, *, env_var_name: str, default: float | None = None) -> float | None:
        """Resolve a non-secret float setting; invalid values fall back to ``default``."""
        raw = self.resolve(env_var_name=env_var_name, mask_in_logs=False)
        if raw is None:
            return default
        try:
            return float(raw)
        except ValueError:
            logger.warning(f"Ignoring non-numeric value {raw!r} for {env_var_name}")
            return default

    def resolve_bool(self, *, env_var_name: str, default: bool = False) -> bool:
        """Resolve a non-secret flag (``1``, ``true``, ``yes``, ``on`` are true)."""
        raw = self.resolve(env_var_name=env_var_name, mask_in_logs=False)
        if raw is None:
            return default
        return raw.strip().lower() in ("1", "true", "yes", "on")

    def resolve_from_file(
        self,
        *,
        file_path: str | Path | None = None,
        env_var_name: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Read a secret (e.g. a federated token) from a file.

        The path may contain ``~`` and ``$VAR`` references. When
        ``file_path`` is None, the path is read from ``env_var_name``.
        Surrounding whitespace is stripped from the file contents.

        Raises:
            CredentialFileError: If ``required`` and the file cannot be read.
        """
        path_to_use: str | None = None
        if file_path is not None:
            path_to_use = str(file_path)
        elif env_var_name:
            path_to_use = self.resolve(env_var_name=env_var_name, mask_in_logs=False)

        if path_to_use is None:
            if required:
                error_msg = "No file path provided for credential resolution"
                if env_var_name:
                    error_msg += f" (env var '{env_var_name}' not set)"
                raise CredentialFileError(error_msg)
            return None

        path = Path(os.path.expanduser(os.path.expandvars(path_to_use)))

        try:
            content = path.read_text().strip()
        except FileNotFoundError:
            error_msg = f"Credential file not found: {path}"
            if required:
                raise CredentialFileError(error_msg) from None
            logger.debug(error_msg)
            return None
        except OSError as e:
            error_msg = f"Error reading credential file {path}: {e}"
            if required:
                raise CredentialFileError(error_msg) from e
            logger.warning(error_msg)
            return None

        logger.debug(f"Resolved credential from file: {path} (***)")
        return content
