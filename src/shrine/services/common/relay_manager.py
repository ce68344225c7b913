"""
Persistent WebSocket connections to downstream relays.

[RelayConnectionManager][shrine.services.common.relay_manager.RelayConnectionManager]
is the single owner of every outbound connection. It keeps at most one live
[RelayConnection][shrine.services.common.relay_manager.RelayConnection] per
URL, opens them lazily on first use, and reopens them on the next forward
after the remote side closes or the transport fails.

Each open connection runs a reader task. When the socket closes, the reader
moves the connection to ``CLOSED`` (or ``ERRORED`` on a transport error) and
asks the manager to drop it from the registry, but only if that exact
instance is still registered. A replacement opened in the meantime is never
evicted by its predecessor's teardown.

Forwarding reports a per-relay
[ForwardOutcome][shrine.services.common.relay_manager.ForwardOutcome].
``delivered`` means the frame was written to the socket; it is not an
acknowledgment from the relay. ``OK`` and ``NOTICE`` replies from relays are
only logged.

Examples:
    ```python
    async with RelayConnectionManager(connect_timeout=3.0) as manager:
        outcomes = await manager.forward(event, [RelayTarget("wss://relay.damus.io")])
        outcomes["wss://relay.damus.io"].ok
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from types import TracebackType
from typing import Self

import aiohttp

from shrine.core.exceptions import ConnectivityError, RelaySSLError, RelayTimeoutError
from shrine.core.logger import Logger
from shrine.core.metrics import RELAY_FORWARDS_TOTAL
from shrine.models.event import Event
from shrine.models.relay import RelayTarget
from shrine.nips.nip01 import event_message
from shrine.utils.transport import close_websocket, is_ssl_error, open_websocket, send_text

from .configs import ForwardingConfig


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class ForwardOutcome:
    """Result of pushing one event to one relay.

    Attributes:
        url: The relay URL.
        ok: Whether the frame was written to the socket.
        reason: Failure reason (``timeout``, ``connect_failed: ...``,
            ``ssl_error: ...`` or ``send_failed: ...``); ``None`` on success.
    """

    url: str
    ok: bool
    reason: str | None = None

    @classmethod
    def delivered(cls, url: str) -> ForwardOutcome:
        return cls(url=url, ok=True)

    @classmethod
    def failed(cls, url: str, reason: str) -> ForwardOutcome:
        return cls(url=url, ok=False, reason=reason)


class RelayConnection:
    """One WebSocket bound to one relay URL.

    Created and owned by a
    [RelayConnectionManager][shrine.services.common.relay_manager.RelayConnectionManager];
    *on_terminated* is called exactly once when the connection leaves the
    ``OPEN`` state for good.
    """

    def __init__(
        self,
        url: str,
        *,
        on_terminated: Callable[[RelayConnection], None],
        logger: Logger,
    ) -> None:
        self.url = url
        self.state = ConnectionState.DISCONNECTED
        self._on_terminated = on_terminated
        self._logger = logger
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader: asyncio.Task[None] | None = None
        self._send_lock = asyncio.Lock()
        self._terminated = False

    @property
    def is_live(self) -> bool:
        return self.state is ConnectionState.OPEN and self._ws is not None and not self._ws.closed

    async def open(self, session: aiohttp.ClientSession, *, timeout: float) -> None:  # noqa: ASYNC109
        """Complete the handshake and start the reader task.

        Raises:
            RelayTimeoutError: The handshake timed out.
            RelaySSLError: TLS or certificate failure.
            ConnectivityError: Any other connection failure.
        """
        self.state = ConnectionState.CONNECTING
        try:
            ws = await open_websocket(session, self.url, timeout=timeout)
        except TimeoutError:
            self.state = ConnectionState.ERRORED
            raise RelayTimeoutError() from None
        except (aiohttp.ClientError, OSError) as e:
            self.state = ConnectionState.ERRORED
            message = str(e) or type(e).__name__
            if is_ssl_error(e):
                raise RelaySSLError(message) from e
            raise ConnectivityError(message) from e

        self._ws = ws
        self.state = ConnectionState.OPEN
        self._reader = asyncio.create_task(self._read(ws), name=f"relay-reader:{self.url}")

    async def send(self, text: str, *, timeout: float) -> None:  # noqa: ASYNC109
        """Write one text frame.

        A failed write leaves the connection ``ERRORED`` and closes it, so the
        next forward to this URL opens a fresh one.

        Raises:
            RelayTimeoutError: The write timed out.
            ConnectivityError: The connection is not open or the write failed.
        """
        ws = self._ws
        if ws is None or not self.is_live:
            raise ConnectivityError("connection is not open")

        async with self._send_lock:
            try:
                await send_text(ws, text, timeout=timeout)
            except TimeoutError:
                await self._abort()
                raise RelayTimeoutError() from None
            except (aiohttp.ClientError, OSError, RuntimeError) as e:
                await self._abort()
                raise ConnectivityError(str(e) or type(e).__name__) from e

    async def close(self) -> None:
        """Close the socket and stop the reader. Safe to call more than once."""
        self._terminate(ConnectionState.CLOSED)
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader
        if self._ws is not None:
            await close_websocket(self._ws)

    async def _abort(self) -> None:
        self._terminate(ConnectionState.ERRORED)
        if self._ws is not None:
            await close_websocket(self._ws)

    def _terminate(self, state: ConnectionState) -> None:
        if self._terminated:
            return
        self._terminated = True
        self.state = state
        self._on_terminated(self)

    async def _read(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._on_text(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    break
        finally:
            errored = ws.exception() is not None
            self._terminate(ConnectionState.ERRORED if errored else ConnectionState.CLOSED)
            self._logger.debug("relay_connection_ended", url=self.url, state=self.state)

    def _on_text(self, data: str) -> None:
        try:
            frame = json.loads(data)
        except json.JSONDecodeError:
            self._logger.debug("relay_sent_invalid_json", url=self.url)
            return
        if not isinstance(frame, list) or not frame:
            return
        if frame[0] == "OK" and len(frame) >= 4:  # noqa: PLR2004
            if frame[2] is True:
                self._logger.debug("relay_accepted", url=self.url, id=frame[1])
            else:
                self._logger.warning("relay_rejected", url=self.url, id=frame[1], reason=frame[3])
        elif frame[0] == "NOTICE" and len(frame) >= 2:  # noqa: PLR2004
            self._logger.info("relay_notice", url=self.url, message=frame[1])


class RelayConnectionManager:
    """Registry and fan-out for downstream relay connections.

    Args:
        connect_timeout: Seconds allowed for each WebSocket handshake.
        send_timeout: Seconds allowed for each frame write.
        session: ``aiohttp`` session to connect with. When omitted, one is
            created on first use and closed by
            [close()][shrine.services.common.relay_manager.RelayConnectionManager.close].
        metrics_enabled: Count outcomes in ``relay_forwards_total``.
    """

    def __init__(
        self,
        *,
        connect_timeout: float = 5.0,
        send_timeout: float = 5.0,
        session: aiohttp.ClientSession | None = None,
        metrics_enabled: bool = False,
        logger: Logger | None = None,
    ) -> None:
        self._connect_timeout = connect_timeout
        self._send_timeout = send_timeout
        self._session = session
        self._owns_session = session is None
        self._metrics_enabled = metrics_enabled
        self._logger = logger or Logger("relay_manager")
        self._connections: dict[str, RelayConnection] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._closed = False

    @classmethod
    def from_config(cls, config: ForwardingConfig, **kwargs: object) -> Self:
        return cls(
            connect_timeout=config.connect_timeout,
            send_timeout=config.send_timeout,
            **kwargs,  # type: ignore[arg-type]
        )

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------

    def connection_state(self, url: str) -> ConnectionState:
        """State of the registered connection for *url*, ``DISCONNECTED`` if none."""
        conn = self._connections.get(url)
        return conn.state if conn is not None else ConnectionState.DISCONNECTED

    @property
    def live_connections(self) -> list[str]:
        return [url for url, conn in self._connections.items() if conn.is_live]

    # -------------------------------------------------------------------------
    # Forwarding
    # -------------------------------------------------------------------------

    async def forward(
        self, event: Event, targets: Iterable[RelayTarget | str]
    ) -> dict[str, ForwardOutcome]:
        """Push *event* to every target concurrently.

        Returns:
            One outcome per distinct target URL, in target order. Never
            raises for network failures.

        Raises:
            RuntimeError: The manager has been closed.
        """
        if self._closed:
            raise RuntimeError("RelayConnectionManager is closed")

        urls = list(dict.fromkeys(str(target) for target in targets))
        if not urls:
            return {}

        frame = event_message(event)
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(self._forward_one(url, frame)) for url in urls]

        outcomes = {task.result().url: task.result() for task in tasks}
        delivered = sum(1 for outcome in outcomes.values() if outcome.ok)
        self._logger.info(
            "event_forwarded",
            id=event.id,
            delivered=delivered,
            failed=len(outcomes) - delivered,
        )
        return outcomes

    async def _forward_one(self, url: str, frame: str) -> ForwardOutcome:
        stage = "connect"
        try:
            conn = await self._acquire(url)
            stage = "send"
            await conn.send(frame, timeout=self._send_timeout)
        except RelayTimeoutError:
            outcome = ForwardOutcome.failed(url, "timeout")
        except RelaySSLError as e:
            outcome = ForwardOutcome.failed(url, f"ssl_error: {e.message}")
        except ConnectivityError as e:
            outcome = ForwardOutcome.failed(url, f"{stage}_failed: {e.message}")
        except Exception as e:  # per-target boundary: one relay must not fail the fan-out
            self._logger.exception("forward_unexpected_error", url=url, stage=stage)
            outcome = ForwardOutcome.failed(url, f"{stage}_failed: {e}")
        else:
            outcome = ForwardOutcome.delivered(url)

        if outcome.ok:
            self._logger.debug("relay_delivered", url=url)
        else:
            self._logger.warning("relay_forward_failed", url=url, reason=outcome.reason)
        if self._metrics_enabled:
            RELAY_FORWARDS_TOTAL.labels(outcome="delivered" if outcome.ok else "failed").inc()
        return outcome

    async def _acquire(self, url: str) -> RelayConnection:
        lock = self._locks.setdefault(url, asyncio.Lock())
        self._lock_users[url] = self._lock_users.get(url, 0) + 1
        try:
            return await self._acquire_locked(url, lock)
        finally:
            self._lock_users[url] -= 1
            if not self._lock_users[url]:
                del self._lock_users[url]
                if url not in self._connections:
                    self._locks.pop(url, None)

    async def _acquire_locked(self, url: str, lock: asyncio.Lock) -> RelayConnection:
        async with lock:
            current = self._connections.get(url)
            if current is not None and current.is_live:
                return current
            if current is not None:
                await current.close()

            conn = RelayConnection(url, on_terminated=self._on_terminated, logger=self._logger)
            self._connections[url] = conn
            try:
                await conn.open(self._get_session(), timeout=self._connect_timeout)
            except BaseException:
                self._discard(url, conn)
                raise
            self._logger.info("relay_connected", url=url)
            return conn

    def _on_terminated(self, conn: RelayConnection) -> None:
        self._discard(conn.url, conn)

    def _discard(self, url: str, conn: RelayConnection) -> None:
        if self._connections.get(url) is conn:
            del self._connections[url]
            if url not in self._lock_users:
                self._locks.pop(url, None)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Close every connection and, if owned, the session."""
        self._closed = True
        connections = list(self._connections.values())
        for conn in connections:
            await conn.close()
        self._connections.clear()
        self._locks.clear()
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        if connections:
            self._logger.info("relay_connections_closed", count=len(connections))

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
