import math
from collections.abc import Mapping
from typing import Any

import msgspec

__all__ = (
    "MembrosError",
    "MembrosAPIError",
    "MembrosAuthenticationError",
    "MembrosNetworkError",
    "MembrosNotFoundError",
    "MembrosPermissionError",
    "MembrosRateLimitError",
    "MembrosValidationError",
)

DEFAULT_RETRY_AFTER = 1.0


class MembrosError(Exception):
    """
    Base class for every error raised by the SDK.

    ``code`` is stable and meant for programmatic branching; ``message`` is
    human readable and may change between releases.
    """

    default_message = "Unknown error"
    default_code = "UNKNOWN_ERROR"
    default_status = 500

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.status_code = self.default_status if status_code is None else status_code
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code!r}, "
            f"status_code={self.status_code!r})"
        )


class MembrosAPIError(MembrosError):
    """Server-side failure (HTTP 5xx)."""
    default_message = "Membros API error"
    default_code = "API_ERROR"


class MembrosAuthenticationError(MembrosError):
    """Missing, malformed or rejected credentials (HTTP 401)."""
    default_message = "Authentication failed"
    default_code = "AUTHENTICATION_ERROR"
    default_status = 401


class MembrosValidationError(MembrosError):
    """Request rejected as invalid, locally or by the server (HTTP 400)."""
    default_message = "Validation failed"
    default_code = "VALIDATION_ERROR"
    default_status = 400


class MembrosNetworkError(MembrosError):
    """No HTTP response was received."""
    default_message = "Network request failed"
    default_code = "NETWORK_ERROR"
    default_status = 0


class MembrosRateLimitError(MembrosError):
    """Too many requests (HTTP 429)."""
    default_message = "Rate limit exceeded"
    default_code = "RATE_LIMIT_ERROR"
    default_status = 429

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
        details: Any = None,
        retry_after: float = DEFAULT_RETRY_AFTER,
    ) -> None:
        super().__init__(message, code, status_code, details)
        self.retry_after = retry_after


class MembrosNotFoundError(MembrosError):
    """Requested resource does not exist (HTTP 404)."""
    default_message = "Resource not found"
    default_code = "NOT_FOUND_ERROR"
    default_status = 404


class MembrosPermissionError(MembrosError):
    """Credentials are valid but lack access (HTTP 403)."""
    default_message = "Permission denied"
    default_code = "PERMISSION_ERROR"
    default_status = 403


_BY_STATUS: dict[int, type[MembrosError]] = {
    400: MembrosValidationError,
    401: MembrosAuthenticationError,
    403: MembrosPermissionError,
    404: MembrosNotFoundError,
    429: MembrosRateLimitError,
}


_error_decoder = msgspec.json.Decoder(dict[str, Any])


def create_error(
    status_code: int,
    message: str,
    code: str | None = None,
    details: Any = None,
) -> MembrosError:
    """Select the error kind matching an HTTP status code."""
    error_type = _BY_STATUS.get(status_code)
    if error_type is None:
        error_type = MembrosAPIError if status_code >= 500 else MembrosError
    return error_type(message, code, status_code, details)


def parse_retry_after(headers: Mapping[str, str]) -> float:
    """Read ``Retry-After`` as seconds, defaulting to one second."""
    value = headers.get("Retry-After")
    if value is None:
        return DEFAULT_RETRY_AFTER
    try:
        seconds = float(value)
    except ValueError:
        return DEFAULT_RETRY_AFTER
    if not math.isfinite(seconds) or seconds < 0:
        return DEFAULT_RETRY_AFTER
    return seconds


def _error_fields(body: bytes) -> dict[str, Any]:
    # Error objects come flat or nested under "error".
    try:
        decoded = _error_decoder.decode(body)
    except msgspec.DecodeError:
        return {}
    nested = decoded.get("error")
    return nested if isinstance(nested, dict) else decoded


def parse_error(
    status_code: int,
    reason: str,
    body: bytes,
    headers: Mapping[str, str],
) -> MembrosError:
    """
    Classify an HTTP error response.

    The server-reported message, code and details are read one by one, so a
    field of an unexpected type does not hide the others. Without a message
    the HTTP reason phrase is used.
    """
    fields = _error_fields(body) if body else {}
    message = fields.get("message")
    if not isinstance(message, str) or not message:
        message = reason or f"HTTP {status_code}"
    code = fields.get("code")
    if code is not None and not isinstance(code, str):
        code = str(code)

    error = create_error(status_code, message, code, fields.get("details"))
    if isinstance(error, MembrosRateLimitError):
        error.retry_after = parse_retry_after(headers)
    return error


def network_error(exc: BaseException, timeout: bool = False) -> MembrosNetworkError:
    """Wrap a connection-level failure."""
    if timeout:
        return MembrosNetworkError("Request timed out", "TIMEOUT", details=repr(exc))
    return MembrosNetworkError(str(exc) or type(exc).__name__, details=repr(exc))
