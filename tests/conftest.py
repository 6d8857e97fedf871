"""Shared pytest fixtures for the test suite."""

import asyncio
from collections.abc import AsyncIterator, Iterator, Mapping
from typing import Any

import msgspec
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

import membros
from membros import _app, _http

SECRET_KEY = "sk_test_123"
PUBLIC_KEY = "pk_test_456"
PROJECT_ID = "proj_test"


class RecordedRequest:
    """A request received by the fake API."""

    def __init__(
        self,
        method: str,
        path: str,
        query: dict[str, str],
        headers: Mapping[str, str],
        body: bytes,
    ) -> None:
        self.method = method
        self.path = path
        self.query = query
        self.headers = headers
        self.body = body

    def json(self) -> Any:
        return msgspec.json.decode(self.body)


class FakeAPI:
    """Replays queued responses in order and records every request."""

    def __init__(self) -> None:
        self.url = ""
        self.requests: list[RecordedRequest] = []
        self._responses: list[tuple[int, Any, dict[str, str], float]] = []

    def reply(
        self,
        status: int = 200,
        body: Any = None,
        headers: dict[str, str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self._responses.append((status, body, headers or {}, delay))

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=dict(request.query),
                headers=request.headers,
                body=await request.read(),
            )
        )
        if self._responses:
            status, body, headers, delay = self._responses.pop(0)
        else:
            status, body, headers, delay = 200, {}, {}, 0.0
        if delay:
            await asyncio.sleep(delay)
        if body is None:
            return web.Response(status=status, headers=headers)
        return web.Response(
            status=status,
            body=msgspec.json.encode(body),
            content_type="application/json",
            headers=headers,
        )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """No ambient credentials and an empty application registry."""
    for variable in ("MEMBROS_SECRET_KEY", "MEMBROS_PUBLIC_KEY", "MEMBROS_PROJECT_ID"):
        monkeypatch.delenv(variable, raising=False)
    yield
    _app._apps.clear()


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record transport backoff delays instead of waiting."""
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(_http, "_sleep", fake_sleep)
    return delays


@pytest_asyncio.fixture
async def api() -> AsyncIterator[FakeAPI]:
    fake = FakeAPI()
    application = web.Application()
    application.router.add_route("*", "/{tail:.*}", fake.handle)
    server = TestServer(application)
    await server.start_server()
    fake.url = str(server.make_url("/"))
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def app(api: FakeAPI) -> AsyncIterator[membros.Application]:
    application = membros.initialize_app(
        SECRET_KEY,
        PUBLIC_KEY,
        project_id=PROJECT_ID,
        api_url=api.url,
    )
    yield application
    await application.close()
