"""WebSocket transport to downstream relays.

Thin helpers over ``aiohttp`` that bound each network step with a timeout.
Failures propagate as the underlying ``TimeoutError``, ``aiohttp.ClientError``
or ``OSError``; [is_ssl_error()][shrine.utils.transport.is_ssl_error] tells
certificate and TLS problems apart so callers can report them separately.

Certificate verification is always on; there is no insecure fallback.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Final

import aiohttp


DEFAULT_TIMEOUT: Final[float] = 5.0
_CLOSE_TIMEOUT: Final[float] = 2.0

logger = logging.getLogger("utils.transport")

# Multi-word patterns only: single words such as "verify" also show up in DNS errors.
_SSL_ERROR_PATTERNS: tuple[str, ...] = (
    "ssl certificate",
    "certificate verify",
    "certificate has expired",
    "self signed certificate",
    "self-signed certificate",
    "unable to get local issuer",
    "tlsv1 alert",
    "ssl handshake",
    "cert verify failed",
)


def is_ssl_error(error: BaseException) -> bool:
    """Whether *error* is a certificate or TLS handshake failure."""
    if isinstance(error, (aiohttp.ClientSSLError, ssl.SSLError)):
        return True
    message = str(error).lower()
    return any(pattern in message for pattern in _SSL_ERROR_PATTERNS)


async def open_websocket(
    session: aiohttp.ClientSession,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> aiohttp.ClientWebSocketResponse:
    """Complete a WebSocket handshake with *url* within *timeout* seconds.

    Raises:
        TimeoutError: The handshake did not finish in time.
        aiohttp.ClientError: Connection refused, DNS, TLS or upgrade failure.
        OSError: Lower-level socket failure.
    """
    async with asyncio.timeout(timeout):
        ws = await session.ws_connect(url, autoping=True)
    logger.debug("ws_connected url=%s", url)
    return ws


async def send_text(
    ws: aiohttp.ClientWebSocketResponse,
    text: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> None:
    """Write one text frame, bounded by *timeout*.

    Raises:
        TimeoutError: The write did not complete in time.
        ConnectionResetError: The socket is already closed.
        aiohttp.ClientError: The write failed.
    """
    if ws.closed:
        raise ConnectionResetError("socket closed")
    async with asyncio.timeout(timeout):
        await ws.send_str(text)


async def close_websocket(ws: aiohttp.ClientWebSocketResponse) -> None:
    """Close *ws*, giving up quietly after a short timeout."""
    try:
        async with asyncio.timeout(_CLOSE_TIMEOUT):
            await ws.close()
    except (TimeoutError, aiohttp.ClientError, OSError) as e:
        logger.debug("ws_close_failed error=%s", e)
