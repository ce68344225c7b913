"""Helpers with I/O: the service keypair and the relay WebSocket transport.

Attributes:
    keys: [ShrineKeysConfig][shrine.utils.keys.ShrineKeysConfig] and
        [load_keys_from_env()][shrine.utils.keys.load_keys_from_env].
    transport: [open_websocket()][shrine.utils.transport.open_websocket],
        [send_text()][shrine.utils.transport.send_text],
        [close_websocket()][shrine.utils.transport.close_websocket]
        and [is_ssl_error()][shrine.utils.transport.is_ssl_error].
"""

from .keys import ENV_PRIVATE_KEY, ENV_PUBLIC_KEY, ShrineKeysConfig, load_keys_from_env
from .transport import DEFAULT_TIMEOUT, close_websocket, is_ssl_error, open_websocket, send_text


__all__ = [
    "DEFAULT_TIMEOUT",
    "ENV_PRIVATE_KEY",
    "ENV_PUBLIC_KEY",
    "ShrineKeysConfig",
    "close_websocket",
    "is_ssl_error",
    "load_keys_from_env",
    "open_websocket",
    "send_text",
]
