"""Shared fixtures and fakes for services.common test package."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import aiohttp
import pytest


class FakeWebSocket:
    """In-memory stand-in for ``aiohttp.ClientWebSocketResponse``."""

    def __init__(self, send_delay: float = 0.0) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.send_delay = send_delay
        self.send_error: BaseException | None = None
        self._error: BaseException | None = None
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()

    async def send_str(self, data: str) -> None:
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    async def close(self) -> bool:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(None)
        return True

    def exception(self) -> BaseException | None:
        return self._error

    def feed(self, text: str) -> None:
        """Deliver a text frame from the relay."""
        self._incoming.put_nowait(SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=text))

    def drop(self, error: BaseException | None = None) -> None:
        """Simulate the relay closing the connection."""
        self._error = error
        self.closed = True
        self._incoming.put_nowait(None)

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> Any:
        msg = await self._incoming.get()
        if msg is None:
            raise StopAsyncIteration
        return msg


class FakeSession:
    """In-memory stand-in for ``aiohttp.ClientSession``.

    Every successful ``ws_connect`` appends a new ``FakeWebSocket`` to
    ``sockets[url]``.
    """

    def __init__(self) -> None:
        self.sockets: dict[str, list[FakeWebSocket]] = {}
        self.connect_errors: dict[str, BaseException] = {}
        self.connect_delays: dict[str, float] = {}
        self.send_delays: dict[str, float] = {}
        self.closed = False

    async def ws_connect(self, url: str, **_kwargs: Any) -> FakeWebSocket:
        delay = self.connect_delays.get(url)
        if delay:
            await asyncio.sleep(delay)
        error = self.connect_errors.get(url)
        if error is not None:
            raise error
        ws = FakeWebSocket(send_delay=self.send_delays.get(url, 0.0))
        self.sockets.setdefault(url, []).append(ws)
        return ws

    async def close(self) -> None:
        self.closed = True


async def settle() -> None:
    """Let reader tasks observe queued frames."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture(name="settle")
def settle_fixture() -> Any:
    return settle
