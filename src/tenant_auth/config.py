"""Configuration for the tenant auth client.

Values come from a JSON file (:func:`load_config`) or from ``F8_``-prefixed
environment variables (:meth:`AuthConfig.from_env`). Clients only consume an
already-built :class:`AuthConfig`; nothing in the package reads the
environment on its own.
"""

import json
import os
import pathlib
from collections.abc import Mapping
from typing import Any

import pydantic

from .authapi.types import GrantRequest

ENV_PREFIX = "F8_"

DEFAULT_AUTH_URL = "https://auth.prod-preview.openshift.io"
DEFAULT_GRANT_TYPE = "client_credentials"
DEFAULT_TIMEOUT = 30.0

# Field name -> environment variable suffix.
_ENV_VARS = {
    "auth_url": "AUTH_URL",
    "auth_grant_type": "AUTH_GRANT_TYPE",
    "auth_client_id": "AUTH_CLIENT_ID",
    "auth_client_secret": "AUTH_CLIENT_SECRET",
    "timeout": "AUTH_TIMEOUT",
    "connection_retry_sleep": "CONNECTION_RETRYSLEEP",
    "retry_attempts": "CONNECTION_RETRYATTEMPTS",
    "log_level": "LOG_LEVEL",
    "log_json": "LOG_JSON",
}


class ConfigurationError(RuntimeError):
    """Raised when configuration values fail validation."""


class AuthConfig(pydantic.BaseModel):
    """Settings needed to talk to the auth service."""

    auth_url: str = pydantic.Field(
        DEFAULT_AUTH_URL,
        description="Base URL of the auth service",
        min_length=1,
    )
    auth_grant_type: str = pydantic.Field(
        DEFAULT_GRANT_TYPE,
        description="OAuth grant type for the service account login",
    )
    auth_client_id: str = pydantic.Field(description="Service account client id")
    auth_client_secret: pydantic.SecretStr = pydantic.Field(
        description="Service account client secret",
    )
    timeout: float = pydantic.Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    connection_retry_sleep: float = pydantic.Field(
        1.0,
        description="Seconds to wait before retrying a failed connection",
        ge=0,
    )
    retry_attempts: int = pydantic.Field(
        1,
        description="Total attempts per exchange step, including the first",
        ge=1,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")
    log_json: bool = pydantic.Field(False, description="Render logs as JSON")

    @pydantic.field_validator("auth_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def grant_request(self) -> GrantRequest:
        """Build the client-credentials grant from the configured values."""
        return GrantRequest(
            grant_type=self.auth_grant_type,
            client_id=self.auth_client_id,
            client_secret=self.auth_client_secret.get_secret_value(),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AuthConfig":
        """Build a configuration from ``F8_`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            ConfigurationError: If a value is missing or invalid.
        """
        environ = os.environ if environ is None else environ
        raw_config: dict[str, Any] = {}
        for field, suffix in _ENV_VARS.items():
            value = environ.get(ENV_PREFIX + suffix)
            if value is not None:
                raw_config[field] = value
        return _build(raw_config)


def _build(raw_config: Mapping[str, Any]) -> AuthConfig:
    try:
        return AuthConfig(**raw_config)
    except pydantic.ValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        msg = f"Invalid auth configuration: {messages}"
        raise ConfigurationError(msg) from exc


def load_config(config_path: str | pathlib.Path) -> AuthConfig:
    """Load configuration from a JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return _build(data)
