import enum
import platform
from collections.abc import Mapping
from typing import Any

import msgspec

from membros import _errors

__all__ = ("ClientConfig", "RequestOptions")

__version__ = "1.0.0"

SECRET_KEY_PREFIX = "sk_"
PUBLIC_KEY_PREFIX = "pk_"

DEFAULT_API_URL = "https://api.membros.app"
DEFAULT_VERSION = "v2"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_USER_AGENT = f"membros-python/{__version__} (Python {platform.python_version()})"


class ClientConfig(msgspec.Struct, frozen=True, kw_only=True):
    """
    Immutable snapshot of the client settings.

    A new snapshot replaces the old one when the secret key is rotated;
    snapshots themselves are never modified.
    """

    secret_key: str
    """Secret credential (``sk_...``)."""
    public_key: str
    """Public credential (``pk_...``)."""
    project_id: str = ""
    """Tenant identifier sent as ``X-Project-ID`` when not empty."""
    api_url: str = DEFAULT_API_URL
    """Base URL of the Membros API."""
    version: str = DEFAULT_VERSION
    """API version prefix placed before every resource path."""
    timeout: float = DEFAULT_TIMEOUT
    """Per-call timeout in seconds."""
    max_retries: int = DEFAULT_MAX_RETRIES
    """Maximum retries for network failures and 5xx responses."""
    user_agent: str = DEFAULT_USER_AGENT
    """Value of the ``User-Agent`` header."""
    proxy: str | None = None
    """HTTP proxy URL used for every request."""

    def __post_init__(self) -> None:
        check_secret_key(self.secret_key)
        check_public_key(self.public_key)
        if self.timeout <= 0:
            raise ValueError(f"{self.timeout=}")
        if self.max_retries < 0:
            raise ValueError(f"{self.max_retries=}")

    @property
    def authorization(self) -> str:
        return f"Bearer {self.public_key}:{self.secret_key}"

    @property
    def base_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.version.strip('/')}"

    def default_headers(self) -> dict[str, str]:
        headers = {
            "Authorization": self.authorization,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        if self.project_id:
            headers["X-Project-ID"] = self.project_id
        return headers

    def with_secret_key(self, secret_key: str) -> "ClientConfig":
        return msgspec.structs.replace(self, secret_key=secret_key)


class RequestOptions(msgspec.Struct, frozen=True, kw_only=True):
    """
    Per-call overrides.

    Every field left as ``None`` falls back to the matching
    :class:`ClientConfig` value.
    """

    params: Mapping[str, Any] | None = None
    """Query string parameters. ``None`` values are dropped."""
    headers: Mapping[str, str] | None = None
    """Headers merged over the default header set."""
    timeout: float | None = None
    """Timeout in seconds for this call."""
    max_retries: int | None = None
    """Retry ceiling for network failures and 5xx responses."""

    def __post_init__(self) -> None:
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"{self.timeout=}")
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError(f"{self.max_retries=}")

    def resolve_timeout(self, config: ClientConfig) -> float:
        return config.timeout if self.timeout is None else self.timeout

    def resolve_max_retries(self, config: ClientConfig) -> int:
        return config.max_retries if self.max_retries is None else self.max_retries

    def resolve_headers(self, config: ClientConfig) -> dict[str, str]:
        headers = config.default_headers()
        if self.headers:
            headers.update(self.headers)
        return headers

    def resolve_params(self) -> dict[str, str]:
        if not self.params:
            return {}
        return {
            key: _query_value(value)
            for key, value in self.params.items()
            if value is not None
        }


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        value = value.value
    return str(value)


def check_secret_key(secret_key: str | None) -> str:
    if not secret_key or not secret_key.startswith(SECRET_KEY_PREFIX):
        raise _errors.MembrosAuthenticationError(
            f"Invalid secret key (expected {SECRET_KEY_PREFIX}... format).",
            "INVALID_API_KEY",
        )
    return secret_key


def check_public_key(public_key: str | None) -> str:
    if not public_key or not public_key.startswith(PUBLIC_KEY_PREFIX):
        raise _errors.MembrosAuthenticationError(
            f"Invalid public key (expected {PUBLIC_KEY_PREFIX}... format).",
            "INVALID_PUBLIC_KEY",
        )
    return public_key
