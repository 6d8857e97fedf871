import os
import threading
from collections.abc import Collection

import msgspec

from membros import _config, _errors, _events, _http

__all__ = ("Application", "Ping", "initialize_app", "get_app", "close_app")

_DEFAULT_APP_NAME = "<DEFAULT>"
_APP_LOCK = threading.Lock()

_apps: dict[str, "Application"] = {}


class Ping(msgspec.Struct):
    """Health check result."""
    status: str
    timestamp: str


class Application:
    """
    A configured Membros client.

    Holds the transport used by the resource modules. Create instances with
    :func:`initialize_app` so resource functions can find them by name.
    """

    __slots__ = ("_name", "_http")

    def __init__(
        self,
        name: str,
        config: _config.ClientConfig,
        listeners: Collection[_events.RequestListener] = (),
    ) -> None:
        self._name = name
        self._http = _http.HttpClient(config, listeners)

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> _config.ClientConfig:
        """Current configuration snapshot."""
        return self._http.config

    @property
    def http(self) -> _http.HttpClient:
        return self._http

    def set_secret_key(self, secret_key: str) -> None:
        """
        Rotate the secret key without recreating the application.

        Raises
        ------
        MembrosAuthenticationError
            If ``secret_key`` is malformed. The current key is kept.
        """
        self._http.set_secret_key(secret_key)

    def add_listener(self, listener: _events.RequestListener) -> None:
        self._http.add_listener(listener)

    def remove_listener(self, listener: _events.RequestListener) -> None:
        self._http.remove_listener(listener)

    async def ping(self) -> Ping:
        response = await self._http.get("/ping", response_type=Ping)
        return response.data

    async def close(self) -> None:
        await self._http.close()

    def __repr__(self) -> str:
        return f"<Application name={self._name!r} api_url={self.config.api_url!r}>"


def initialize_app(
    secret_key: str | None = None,
    public_key: str | None = None,
    *,
    project_id: str | None = None,
    api_url: str = _config.DEFAULT_API_URL,
    version: str = _config.DEFAULT_VERSION,
    timeout: float = _config.DEFAULT_TIMEOUT,
    max_retries: int = _config.DEFAULT_MAX_RETRIES,
    user_agent: str = _config.DEFAULT_USER_AGENT,
    proxy: str | None = None,
    listeners: Collection[_events.RequestListener] = (),
    name: str = _DEFAULT_APP_NAME,
) -> Application:
    """
    Create and register an application.

    Missing credentials are read from ``MEMBROS_SECRET_KEY``,
    ``MEMBROS_PUBLIC_KEY`` and ``MEMBROS_PROJECT_ID``.

    Raises
    ------
    MembrosAuthenticationError
        If a credential is missing or malformed.
    ValueError
        If an application with the same name is already registered.
    """
    if secret_key is None:
        secret_key = os.getenv("MEMBROS_SECRET_KEY")
    if public_key is None:
        public_key = os.getenv("MEMBROS_PUBLIC_KEY")
    if project_id is None:
        project_id = os.getenv("MEMBROS_PROJECT_ID", "")

    if not (secret_key and public_key):
        raise _errors.MembrosAuthenticationError(
            "Missing Membros credentials.",
            "MISSING_API_KEY",
        )

    config = _config.ClientConfig(
        secret_key=secret_key,
        public_key=public_key,
        project_id=project_id,
        api_url=api_url,
        version=version,
        timeout=timeout,
        max_retries=max_retries,
        user_agent=user_agent,
        proxy=proxy,
    )

    with _APP_LOCK:
        if name not in _apps:
            app = _apps[name] = Application(name, config, listeners)
            return app

    if name == _DEFAULT_APP_NAME:
        raise ValueError(
            "The default Membros app already initialized. If you want to initialize "
            "multiple applications, give a unique value to the `name` parameter."
        )
    raise ValueError(f"Membros app named {name!r} already initialized.")


def get_app(name: str = _DEFAULT_APP_NAME) -> Application:
    with _APP_LOCK:
        if name in _apps:
            return _apps[name]
    raise ValueError(f"Membros app named {name!r} not exists.")


async def close_app(name: str = _DEFAULT_APP_NAME) -> None:
    """Unregister an application and close its HTTP session."""
    with _APP_LOCK:
        app = _apps.pop(name, None)
    if app is None:
        raise ValueError(f"Membros app named {name!r} not exists.")
    await app.close()


def check_initialized_app(app: Application | None) -> Application:
    if app is None:
        return get_app()
    if app is not get_app(app.name):
        raise ValueError("Application instance not initialized via the membros module.")
    return app
