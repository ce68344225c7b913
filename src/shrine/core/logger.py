"""
Structured logging for the gateway.

Log lines are short event names followed by key=value context, for example
``request_rejected path=/wrap status=400 code=INVALID_SIGNATURE``. A JSON mode
emits one object per line for log shippers.

[StructuredFormatter][shrine.core.logger.StructuredFormatter] is installed
on the root handler by the CLI so that records from
[Logger][shrine.core.logger.Logger] and from plain ``logging.getLogger()``
calls in the lower layers share one layout.

Examples:
    ```python
    from shrine.core.logger import Logger

    logger = Logger("gateway")
    logger.info("event_wrapped", id=wrapped.id, relays=2)
    # info gateway event_wrapped id=5c83... relays=2

    request_logger = logger.bind(path="/wrap")
    request_logger.warning("request_rejected", code="RATE_LIMITED")
    # warning gateway request_rejected path=/wrap code=RATE_LIMITED
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


_NEEDS_QUOTES = (" ", "=", '"', "'", "\n", "\t")


def _truncate(value: str, limit: int | None) -> str:
    if limit and len(value) > limit:
        return value[:limit] + f"...<truncated {len(value) - limit} chars>"
    return value


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Render *kwargs* as space-separated ``key=value`` pairs.

    Values longer than *max_value_length* are truncated. Empty values and
    values containing whitespace, ``=`` or quotes are double-quoted with
    backslash escaping.

    Returns:
        The rendered pairs preceded by *prefix*, or ``""`` when *kwargs* is
        empty.
    """
    if not kwargs:
        return ""

    parts = []
    for key, value in kwargs.items():
        text = _truncate(str(value), max_value_length)
        if not text or any(ch in text for ch in _NEEDS_QUOTES):
            escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
            parts.append(f'{key}="{escaped}"')
        else:
            parts.append(f"{key}={text}")
    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Render every record as ``level name message key=value...``.

    Structured context is read from the ``structured_kv`` attribute that
    [Logger][shrine.core.logger.Logger] attaches; records without it are
    emitted with the same prefix and no pairs.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        context: dict[str, Any] = getattr(record, "structured_kv", {})
        if context:
            line += format_kv_pairs(context)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class Logger:
    """Structured logger with key=value or JSON output.

    Mirrors the stdlib level methods, each taking an event name plus
    arbitrary keyword context. [bind()][shrine.core.logger.Logger.bind]
    returns a child logger that prepends fixed context to every call.

    Args:
        name: Name passed to ``logging.getLogger``.
        json_output: Emit one JSON object per record instead of pairs.
        max_value_length: Per-value truncation limit, ``None`` for the
            default of 1000 characters.
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            self._DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )
        self._context: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return self._logger.name

    def bind(self, **context: Any) -> Logger:
        """Return a logger sharing this one's settings with extra fixed context."""
        child = Logger(
            self._logger.name,
            json_output=self._json_output,
            max_value_length=self._max_value_length,
        )
        child._context = {**self._context, **context}
        return child

    def _log(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        fields = {**self._context, **kwargs}
        if self._json_output:
            payload = {
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                "level": logging.getLevelName(level).lower(),
                "service": self._logger.name,
                "message": msg,
                **fields,
            }
            self._logger.log(level, json.dumps(payload, default=str), exc_info=exc_info)
            return

        limit = self._max_value_length
        extra = {
            "structured_kv": {
                k: _truncate(str(v), limit) if isinstance(v, str) else v for k, v in fields.items()
            }
        }
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log(logging.ERROR, msg, kwargs, exc_info=True)
