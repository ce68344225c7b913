"""Core layer: logging, errors, configuration, metrics and short-lived state.

Depends only on ``shrine.models`` and is depended upon by
``shrine.services``.

Attributes:
    BaseService: Abstract generic service with lifecycle, factories and
        Prometheus bookkeeping.
    Logger: Structured key=value / JSON logger.
    ShrineError: Root of the exception hierarchy; every subclass carries an
        [ErrorCode][shrine.models.constants.ErrorCode] and HTTP status.
    KeyValueStore: Async get/put-with-TTL protocol backing rate buckets and
        duplicate markers; [MemoryStore][shrine.core.kvstore.MemoryStore] is
        the in-process implementation.
    MetricsServer: Prometheus ``/metrics`` endpoint.
"""

from .base_service import BaseService, BaseServiceConfig, ConfigT
from .exceptions import (
    ConfigurationError,
    ConnectivityError,
    ContentTooLargeError,
    DuplicateEventError,
    InvalidEventIdError,
    InvalidRelayUrlError,
    InvalidSignatureError,
    KindNotAllowedError,
    MalformedJsonError,
    PayloadTooLargeError,
    PolicyError,
    RateLimitedError,
    RelaySSLError,
    RelayTimeoutError,
    RequestError,
    ShrineError,
    ShrineNotConfiguredError,
    StoreError,
    TimeLimitExceededError,
    TooManyTagsError,
    WrappingFailedError,
)
from .kvstore import KeyValueStore, MemoryStore
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import (
    CYCLE_DURATION_SECONDS,
    RELAY_FORWARDS_TOTAL,
    REQUESTS_TOTAL,
    SERVICE_COUNTER,
    SERVICE_GAUGE,
    SERVICE_INFO,
    MetricsConfig,
    MetricsServer,
    start_metrics_server,
)
from .yaml import load_yaml


__all__ = [
    "CYCLE_DURATION_SECONDS",
    "RELAY_FORWARDS_TOTAL",
    "REQUESTS_TOTAL",
    "SERVICE_COUNTER",
    "SERVICE_GAUGE",
    "SERVICE_INFO",
    "BaseService",
    "BaseServiceConfig",
    "ConfigT",
    "ConfigurationError",
    "ConnectivityError",
    "ContentTooLargeError",
    "DuplicateEventError",
    "InvalidEventIdError",
    "InvalidRelayUrlError",
    "InvalidSignatureError",
    "KeyValueStore",
    "KindNotAllowedError",
    "Logger",
    "MalformedJsonError",
    "MemoryStore",
    "MetricsConfig",
    "MetricsServer",
    "PayloadTooLargeError",
    "PolicyError",
    "RateLimitedError",
    "RelaySSLError",
    "RelayTimeoutError",
    "RequestError",
    "ShrineError",
    "ShrineNotConfiguredError",
    "StoreError",
    "StructuredFormatter",
    "TimeLimitExceededError",
    "TooManyTagsError",
    "WrappingFailedError",
    "format_kv_pairs",
    "load_yaml",
    "start_metrics_server",
]
