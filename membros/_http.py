import asyncio
import datetime
import decimal
import enum
import logging
import threading
import time
import urllib.parse
import uuid
from collections.abc import Collection, Mapping
from typing import Any, Generic, TypeVar

import aiohttp
import msgspec
import multidict

from membros import _config, _errors, _events

T = TypeVar("T")

__all__ = ("HttpClient", "Response")

logger = logging.getLogger(__name__)

BACKOFF_BASE = 1.0
BACKOFF_MAX = 10.0


JSONStrOrNum = (
    decimal.Decimal
    | uuid.UUID
    | datetime.datetime
    | datetime.date
    | datetime.time
    | datetime.timedelta
    | enum.Enum
    | float
    | str
    | bytes
)

JSON = (
    Collection["JSON"]
    | Mapping[JSONStrOrNum, "JSON"]
    | msgspec.Struct
    | msgspec.Raw
    | JSONStrOrNum
    | bytearray
    | None
)


class Response(msgspec.Struct, Generic[T], frozen=True):
    """Response envelope returned by every transport call."""
    data: T
    status: int
    status_text: str
    headers: Mapping[str, str]
    """Case-insensitive response headers."""


encoder = msgspec.json.Encoder()

_NO_OPTIONS = _config.RequestOptions()


def create_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(headers={aiohttp.hdrs.ACCEPT: "application/json"})


def build_path(*segments: object) -> str:
    """Join path segments, percent-encoding each one: ``("orders", "a/b")`` -> ``/orders/a%2Fb``."""
    return "/" + "/".join(urllib.parse.quote(str(segment), safe="") for segment in segments)


def compact(payload: dict[str, JSON]) -> dict[str, JSON]:
    """Drop keys whose value is ``None``."""
    return {key: value for key, value in payload.items() if value is not None}


def backoff_delay(attempt: int) -> float:
    """Delay before retry number ``attempt`` (1-based): 1s, 2s, 4s... capped at 10s."""
    return min(BACKOFF_BASE * 2 ** (attempt - 1), BACKOFF_MAX)


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def _decode(body: bytes, response_type: Any) -> Any:
    if not body:
        return None
    return msgspec.json.decode(body, type=response_type)


class HttpClient:
    """
    Authenticated HTTP boundary shared by every resource module.

    Errors are classified once here and reach callers unchanged. Rate-limited
    calls are retried once after ``Retry-After``; network failures and 5xx
    responses are retried with exponential backoff up to ``max_retries``.
    The two policies are counted independently.
    """

    __slots__ = ("_config", "_listeners", "_session", "_session_lock")

    def __init__(
        self,
        config: _config.ClientConfig,
        listeners: Collection[_events.RequestListener] = (),
    ) -> None:
        self._config = config
        self._listeners = tuple(listeners)
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = threading.Lock()

    @property
    def config(self) -> _config.ClientConfig:
        return self._config

    @property
    def session(self) -> aiohttp.ClientSession:
        with self._session_lock:
            if not self._session or self._session.closed:
                self._session = create_session()
            return self._session

    def set_secret_key(self, secret_key: str) -> None:
        """Rotate the secret key; calls already started keep the previous one."""
        _config.check_secret_key(secret_key)
        self._config = self._config.with_secret_key(secret_key)

    def add_listener(self, listener: _events.RequestListener) -> None:
        self._listeners = (*self._listeners, listener)

    def remove_listener(self, listener: _events.RequestListener) -> None:
        self._listeners = tuple(item for item in self._listeners if item is not listener)

    async def close(self) -> None:
        with self._session_lock:
            session, self._session = self._session, None
        if session and not session.closed:
            await session.close()

    async def get(
        self,
        path: str,
        options: _config.RequestOptions | None = None,
        response_type: type[T] = Any,
    ) -> Response[T]:
        return await self.request(aiohttp.hdrs.METH_GET, path, None, options, response_type)

    async def post(
        self,
        path: str,
        body: JSON = None,
        options: _config.RequestOptions | None = None,
        response_type: type[T] = Any,
    ) -> Response[T]:
        return await self.request(aiohttp.hdrs.METH_POST, path, body, options, response_type)

    async def put(
        self,
        path: str,
        body: JSON = None,
        options: _config.RequestOptions | None = None,
        response_type: type[T] = Any,
    ) -> Response[T]:
        return await self.request(aiohttp.hdrs.METH_PUT, path, body, options, response_type)

    async def patch(
        self,
        path: str,
        body: JSON = None,
        options: _config.RequestOptions | None = None,
        response_type: type[T] = Any,
    ) -> Response[T]:
        return await self.request(aiohttp.hdrs.METH_PATCH, path, body, options, response_type)

    async def delete(
        self,
        path: str,
        options: _config.RequestOptions | None = None,
        response_type: type[T] = Any,
    ) -> Response[T]:
        return await self.request(aiohttp.hdrs.METH_DELETE, path, None, options, response_type)

    async def request(
        self,
        method: str,
        path: str,
        body: JSON = None,
        options: _config.RequestOptions | None = None,
        response_type: type[T] = Any,
    ) -> Response[T]:
        """
        Send a request, applying the retry policy.

        Raises
        ------
        MembrosError
            The classified error of the last attempt.
        msgspec.DecodeError
            If a successful response does not match ``response_type``.
        """
        # One snapshot per call: a key rotated meanwhile applies to the next call.
        config = self._config
        options = options or _NO_OPTIONS
        url = f"{config.base_url}/{path.lstrip('/')}"
        headers = options.resolve_headers(config)
        params = options.resolve_params()
        timeout = aiohttp.ClientTimeout(total=options.resolve_timeout(config))
        max_retries = options.resolve_max_retries(config)
        data = None if body is None else encoder.encode(body)

        tries = 0
        retries = 0
        rate_limited = False
        while True:
            try:
                return await self._send(
                    method, url, params, headers, data, timeout, config.proxy, tries, response_type
                )
            except _errors.MembrosRateLimitError as exc:
                if rate_limited:
                    raise
                rate_limited = True
                logger.warning(
                    "Rate limited on %s %s, retrying in %.1fs", method, url, exc.retry_after
                )
                await _sleep(exc.retry_after)
            except (_errors.MembrosAPIError, _errors.MembrosNetworkError) as exc:
                retries += 1
                if retries > max_retries:
                    raise
                delay = backoff_delay(retries)
                logger.info(
                    "%s %s failed with %s, retry %d/%d in %.1fs",
                    method, url, exc.code, retries, max_retries, delay,
                )
                await _sleep(delay)
            tries += 1

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, str],
        headers: dict[str, str],
        data: bytes | None,
        timeout: aiohttp.ClientTimeout,
        proxy: str | None,
        attempt: int,
        response_type: Any,
    ) -> Response[Any]:
        def event(event_type: _events.EventType, **fields: Any) -> None:
            _events.emit(
                self._listeners,
                _events.RequestEvent(
                    type=event_type,
                    method=method,
                    url=url,
                    attempt=attempt,
                    params=params,
                    **fields,
                ),
            )

        event(_events.EventType.REQUEST)
        logger.debug("%s %s (attempt %d)", method, url, attempt)
        started = time.monotonic()
        try:
            async with self.session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=timeout,
                proxy=proxy,
            ) as response:
                body = await response.read()
        except asyncio.TimeoutError as exc:
            error = _errors.network_error(exc, timeout=True)
            event(_events.EventType.REQUEST_ERROR, error=error, elapsed=time.monotonic() - started)
            raise error from exc
        except aiohttp.ClientError as exc:
            error = _errors.network_error(exc)
            event(_events.EventType.REQUEST_ERROR, error=error, elapsed=time.monotonic() - started)
            raise error from exc

        elapsed = time.monotonic() - started
        response_headers = multidict.CIMultiDict(response.headers)
        status_text = response.reason or ""
        if response.status >= 400:
            error = _errors.parse_error(response.status, status_text, body, response.headers)
            event(
                _events.EventType.RESPONSE_ERROR,
                status=response.status,
                headers=response_headers,
                error=error,
                elapsed=elapsed,
            )
            raise error

        event(
            _events.EventType.RESPONSE,
            status=response.status,
            headers=response_headers,
            elapsed=elapsed,
        )
        return Response(
            data=_decode(body, response_type),
            status=response.status,
            status_text=status_text,
            headers=response_headers,
        )
