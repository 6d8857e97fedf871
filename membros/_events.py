import enum
import logging
from collections.abc import Mapping

import msgspec

from membros import _errors

__all__ = ("EventType", "RequestEvent", "RequestListener")

logger = logging.getLogger(__name__)


class EventType(enum.StrEnum):
    """Lifecycle stages of a single HTTP attempt."""
    REQUEST = "request"
    """The request is about to be sent."""
    RESPONSE = "response"
    """A successful response was received."""
    REQUEST_ERROR = "request_error"
    """No response was received."""
    RESPONSE_ERROR = "response_error"
    """An error response was received."""


class RequestEvent(msgspec.Struct, frozen=True, kw_only=True):
    """Snapshot of an attempt handed to listeners."""

    type: EventType
    method: str
    url: str
    attempt: int
    """Zero for the first attempt, incremented on every retry."""
    params: Mapping[str, str] = {}
    status: int | None = None
    headers: Mapping[str, str] | None = None
    """Case-insensitive response headers, when a response was received."""
    error: _errors.MembrosError | None = None
    elapsed: float | None = None
    """Seconds spent on the attempt."""


class RequestListener:
    """
    Observability hook for the transport.

    Subclass and override the callbacks of interest. Callbacks run inline and
    their exceptions are logged and discarded, so they cannot change how a
    request ends.
    """

    def on_request(self, event: RequestEvent) -> None:
        pass

    def on_response(self, event: RequestEvent) -> None:
        pass

    def on_request_error(self, event: RequestEvent) -> None:
        pass

    def on_response_error(self, event: RequestEvent) -> None:
        pass


_CALLBACKS = {
    EventType.REQUEST: "on_request",
    EventType.RESPONSE: "on_response",
    EventType.REQUEST_ERROR: "on_request_error",
    EventType.RESPONSE_ERROR: "on_response_error",
}


def emit(listeners: "tuple[RequestListener, ...]", event: RequestEvent) -> None:
    for listener in listeners:
        try:
            getattr(listener, _CALLBACKS[event.type])(event)
        except Exception:
            logger.exception(
                "Listener %r failed on %s event for %s %s",
                listener,
                event.type,
                event.method,
                event.url,
            )
