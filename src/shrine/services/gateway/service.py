"""Nostr gateway service: validate, re-sign and forward events.

The HTTP server runs as a background ``asyncio.Task`` alongside the standard
``run_forever()`` cycle. Each ``run()`` cycle logs request statistics and
updates Prometheus metrics.

Surfaces:

* ``POST /wrap``: validate a client event, wrap it under the service
  identity and forward the wrapped note to the relays the client names.
* ``POST /ingest``: validate a raw event against the ingest limits and
  forward it unchanged to the configured relays.
* ``GET /health`` and ``GET /shrine/pubkey``.
* ``GET /`` with ``Accept: application/nostr+json``: NIP-11 document.
* WebSocket ``/``: minimal relay protocol; ``EVENT`` frames run the ingest
  pipeline, ``REQ`` and ``CLOSE`` are acknowledged without storage.

See Also:
    [EventValidator][shrine.services.common.validation.EventValidator],
    [IdentitySigner][shrine.services.common.signer.IdentitySigner],
    [RateLimiter][shrine.services.common.rate_limit.RateLimiter] and
    [RelayConnectionManager][shrine.services.common.relay_manager.RelayConnectionManager]:
        The engine components wired together here.
"""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import json
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

import uvicorn
from fastapi import FastAPI, Request, Response, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from shrine import __version__
from shrine.core.base_service import BaseService
from shrine.core.exceptions import (
    ContentTooLargeError,
    DuplicateEventError,
    MalformedJsonError,
    PayloadTooLargeError,
    RequestError,
    ShrineError,
    StoreError,
    TooManyTagsError,
)
from shrine.core.kvstore import KeyValueStore, MemoryStore
from shrine.core.metrics import REQUESTS_TOTAL
from shrine.models.constants import INGEST_CODES, ErrorCode, IngestError, ServiceName
from shrine.models.event import Event
from shrine.models.relay import RelayTarget
from shrine.nips.nip01 import (
    ClientMessageType,
    eose_message,
    notice_message,
    ok_message,
    parse_client_message,
)
from shrine.nips.nip11 import (
    NIP11_CONTENT_TYPE,
    RelayInformation,
    RelayLimitation,
    wants_relay_info,
)
from shrine.services.common.rate_limit import RateLimiter
from shrine.services.common.relay_manager import ForwardOutcome, RelayConnectionManager
from shrine.services.common.signer import IdentitySigner
from shrine.services.common.validation import EventValidator, RelayUrlValidator

from .configs import GatewayConfig


if TYPE_CHECKING:
    from types import TracebackType


_HTTP_ERROR_THRESHOLD = 400
_SEEN_PREFIX = "seen"
_UNMATCHED_ROUTE = "unmatched"
_NIP11_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Methods": "GET",
}


def route_label(request: Request) -> str:
    """Route template matched by *request*, or ``"unmatched"``."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or _UNMATCHED_ROUTE


def ingest_code(error: ShrineError) -> IngestError:
    """Lower-case ``/ingest`` code for *error*."""
    if error.ingest_code is not None:
        return error.ingest_code
    return INGEST_CODES.get(error.code, IngestError.INTERNAL)


class Gateway(BaseService[GatewayConfig]):
    """Nostr event gateway.

    Lifecycle:
        1. ``__aenter__``: build the FastAPI app and start uvicorn.
        2. ``run()``: log statistics and update Prometheus metrics.
        3. ``__aexit__``: stop the HTTP server and close relay connections.

    Args:
        config: Gateway configuration; defaults when omitted.
        store: Backing store for rate buckets and duplicate markers;
            an in-process [MemoryStore][shrine.core.kvstore.MemoryStore]
            when omitted.
        relay_manager: Outbound connection manager; built from
            ``config.forwarding`` when omitted.
        clock: Wall-clock source shared by every time-dependent check.
    """

    SERVICE_NAME: ClassVar[ServiceName] = ServiceName.GATEWAY
    CONFIG_CLASS: ClassVar[type[GatewayConfig]] = GatewayConfig

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        relay_manager: RelayConnectionManager | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(config)
        self._clock = clock
        self._store = store if store is not None else MemoryStore()
        self._signer = IdentitySigner(self._config.keys.keys, clock=clock)
        self._wrap_validator = EventValidator(self._config.validation, clock=clock)
        self._ingest_validator = EventValidator(self._config.ingest, clock=clock)
        self._url_validator = RelayUrlValidator()
        self._rate_limiter = RateLimiter(self._store, self._config.rate_limit, clock=clock)
        self._relays = relay_manager or RelayConnectionManager.from_config(
            self._config.forwarding,
            metrics_enabled=self._config.metrics.enabled,
            logger=self._logger,
        )
        self._default_targets = [RelayTarget(url) for url in self._config.forwarding.relays]
        self._server_task: asyncio.Task[None] | None = None
        self._requests_total = 0
        self._requests_failed = 0
        self._events_wrapped = 0
        self._events_ingested = 0

    @property
    def signer(self) -> IdentitySigner:
        return self._signer

    @property
    def relay_manager(self) -> RelayConnectionManager:
        return self._relays

    async def __aenter__(self) -> Gateway:
        await super().__aenter__()
        if not self._signer.is_configured:
            self._logger.warning("shrine_keys_missing", privkey_env=self._config.keys.privkey_env)

        app = self._build_app()
        self._server_task = asyncio.create_task(self._run_server(app))
        self._logger.info(
            "http_server_started",
            host=self._config.host,
            port=self._config.port,
            pubkey=self._signer.public_key or "",
            default_relays=len(self._default_targets),
        )
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        if self._server_task is not None:
            self._server_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._server_task
            self._server_task = None
        self._logger.info("http_server_stopped")
        await self._relays.close()
        await super().__aexit__(_exc_type, _exc_val, _exc_tb)

    async def run(self) -> None:
        """Log request stats, purge expired store keys and update Prometheus counters."""
        if self._server_task is not None and self._server_task.done():
            exc = self._server_task.exception() if not self._server_task.cancelled() else None
            self._logger.error("http_server_crashed", error=str(exc) if exc else "cancelled")
            raise RuntimeError("HTTP server task has stopped unexpectedly") from exc

        total, failed = self._requests_total, self._requests_failed
        wrapped, ingested = self._events_wrapped, self._events_ingested
        self._requests_total = self._requests_failed = 0
        self._events_wrapped = self._events_ingested = 0

        purged = self._store.purge_expired() if isinstance(self._store, MemoryStore) else 0
        live = len(self._relays.live_connections)
        self._logger.info(
            "cycle_stats",
            keys_purged=purged,
            requests_total=total,
            requests_failed=failed,
            events_wrapped=wrapped,
            events_ingested=ingested,
            live_connections=live,
        )
        self.inc_counter("requests_total", total)
        self.inc_counter("requests_failed", failed)
        self.inc_counter("events_wrapped", wrapped)
        self.inc_counter("events_ingested", ingested)
        self.set_gauge("live_connections", live)

    # -------------------------------------------------------------------------
    # Pipelines
    # -------------------------------------------------------------------------

    async def wrap(self, body: Any, now: int | None = None) -> tuple[Event, dict[str, ForwardOutcome]]:
        """Run the ``/wrap`` pipeline on a decoded request body.

        Order: ``nostr_event`` present, service keyed, relay URLs, event
        shape, event policy, sender rate, wrap, forward. Nothing is counted
        against the sender's rate until the request has passed every
        validation step.

        Returns:
            The wrapped event and one forwarding outcome per relay.

        Raises:
            ShrineError: The first failure, carrying its code and status.
        """
        current = int(self._clock()) if now is None else now

        if not isinstance(body, dict):
            raise RequestError("Request body must be a JSON object")
        raw_event = body.get("nostr_event")
        if raw_event is None:
            raise RequestError("Missing nostr_event field")

        self._signer.require_configured()
        targets = self._url_validator.validate(body.get("relays"))
        event = self._parse_event(raw_event)
        self._wrap_validator.validate(event, now=current)
        await self._rate_limiter.try_admit(event.pubkey, now=current)

        wrapped = self._signer.wrap(event, now=current)
        self._events_wrapped += 1
        self._logger.info("event_wrapped", original_id=event.id, wrapped_id=wrapped.id)

        outcomes = await self._relays.forward(wrapped, targets) if targets else {}
        return wrapped, outcomes

    async def ingest(
        self,
        raw_event: Any,
        targets: list[RelayTarget] | None = None,
        now: int | None = None,
    ) -> Event:
        """Run the ingest pipeline on a decoded event and forward it unchanged.

        Order: size ceilings, shape, event policy, duplicate, sender rate.
        The event id is remembered only once it has been admitted.

        Args:
            raw_event: The decoded event object.
            targets: Relays to forward to; the configured defaults when
                ``None``.

        Raises:
            ShrineError: The first failure; ``ingest_code()`` gives its
                lower-case code.
        """
        current = int(self._clock()) if now is None else now
        limits = self._config.ingest

        if isinstance(raw_event, dict):
            content = raw_event.get("content")
            if isinstance(content, str):
                size = len(content.encode("utf-8", "surrogatepass"))
                if size > limits.max_content_bytes:
                    raise ContentTooLargeError()
            tags = raw_event.get("tags")
            if isinstance(tags, list) and len(tags) > limits.max_tags:
                raise TooManyTagsError()

        event = self._parse_event(raw_event)
        self._ingest_validator.validate(event, now=current)

        seen_key = f"{_SEEN_PREFIX}:{event.id}"
        try:
            seen = await self._store.get(seen_key)
        except Exception as e:  # store backends raise their own error types
            raise StoreError() from e
        if seen is not None:
            raise DuplicateEventError()

        await self._rate_limiter.try_admit(event.pubkey, now=current)

        try:
            await self._store.put(seen_key, str(current), ttl=limits.duplicate_ttl)
        except Exception as e:  # store backends raise their own error types
            raise StoreError() from e

        self._events_ingested += 1
        relays = self._default_targets if targets is None else targets
        if relays:
            await self._relays.forward(event, relays)
        return event

    @staticmethod
    def _parse_event(raw_event: Any) -> Event:
        try:
            return Event.parse(raw_event)
        except (ValueError, TypeError) as e:
            raise RequestError(f"Invalid event format: {e}") from None

    def relay_information(self) -> RelayInformation:
        """The NIP-11 document describing this gateway."""
        info = self._config.info
        limits = self._config.ingest
        return RelayInformation(
            name=info.name,
            description=info.description,
            pubkey=self._signer.public_key,
            contact=info.contact,
            software="shrine",
            version=__version__,
            limitation=RelayLimitation(
                max_message_length=self._config.max_body_bytes,
                max_content_length=limits.max_content_bytes,
                max_event_tags=limits.max_tags,
                created_at_lower_limit=limits.time_tolerance,
                created_at_upper_limit=limits.time_tolerance,
                auth_required=False,
                payment_required=False,
                restricted_writes=limits.allowed_kinds is not None,
            ),
        )

    async def handle_frame(self, raw: str) -> str | None:
        """Answer one client WebSocket frame.

        ``CLOSE`` gets no reply: no subscription outlives its ``EOSE``, and
        ``CLOSED`` is reserved for subscriptions the relay ends itself.
        """
        if len(raw.encode("utf-8", "surrogatepass")) > self._config.max_body_bytes:
            return notice_message("invalid: message too large")
        try:
            message = parse_client_message(raw)
        except ValueError as e:
            return notice_message(f"invalid: {e}")

        if message.type is ClientMessageType.REQ:
            return eose_message(message.subscription_id)
        if message.type is ClientMessageType.CLOSE:
            return None

        try:
            event = await self.ingest(message.payload[0])
        except ShrineError as e:
            self._logger.info("ws_event_rejected", code=ingest_code(e), error=e.message)
            return notice_message(f"{ingest_code(e)}: {e.message}")
        except Exception as e:  # WebSocket frame error boundary
            self._logger.exception("ws_event_failed", error=str(e))
            return notice_message(f"{IngestError.INTERNAL}: Internal server error")
        return ok_message(event.id, True)

    # -------------------------------------------------------------------------
    # HTTP application
    # -------------------------------------------------------------------------

    async def _read_json(self, request: Request) -> Any:
        body = await request.body()
        if len(body) > self._config.max_body_bytes:
            raise PayloadTooLargeError("Request body too large")
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise MalformedJsonError() from None

    def _wrap_error(self, error: ShrineError) -> JSONResponse:
        return JSONResponse(
            {"success": False, "error": error.message, "code": error.code},
            status_code=error.status,
        )

    def _build_app(self) -> FastAPI:
        """Construct the FastAPI application."""
        app = FastAPI(title="Shrine Gateway", version=__version__)

        if self._config.cors_origins:
            app.add_middleware(
                CORSMiddleware,
                allow_origins=self._config.cors_origins,
                allow_methods=["GET", "POST"],
                allow_headers=["*"],
            )

        @app.middleware("http")
        async def log_requests(request: Request, call_next: Any) -> Response:
            start = time.monotonic()
            try:
                response: Response = await call_next(request)
            except Exception as exc:  # HTTP request error boundary
                self._logger.error("unhandled_error", error=str(exc), path=request.url.path)
                response = JSONResponse(
                    {"success": False, "error": "Internal server error", "code": ErrorCode.INTERNAL_ERROR},
                    status_code=500,
                )
            duration_ms = round((time.monotonic() - start) * 1000, 1)
            self._requests_total += 1
            if self._config.metrics.enabled:
                REQUESTS_TOTAL.labels(
                    route=route_label(request), code=str(response.status_code)
                ).inc()
            if response.status_code >= _HTTP_ERROR_THRESHOLD:
                self._requests_failed += 1
                self._logger.warning(
                    "request_failed",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=duration_ms,
                )
            else:
                self._logger.info(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status=response.status_code,
                    duration_ms=duration_ms,
                )
            return response

        @app.get("/health")
        async def health() -> dict[str, str]:
            now = datetime.datetime.fromtimestamp(self._clock(), datetime.UTC)
            return {"status": "ok", "timestamp": now.isoformat().replace("+00:00", "Z")}

        @app.get("/shrine/pubkey")
        async def shrine_pubkey() -> JSONResponse:
            try:
                return JSONResponse({"pubkey": self._signer.require_configured()})
            except ShrineError as e:
                return self._wrap_error(e)

        @app.post("/wrap")
        async def wrap(request: Request) -> JSONResponse:
            try:
                body = await self._read_json(request)
                wrapped, outcomes = await self.wrap(body)
            except ShrineError as e:
                self._logger.info("wrap_rejected", code=e.code, error=e.message)
                return self._wrap_error(e)
            except Exception as e:  # HTTP request error boundary
                self._logger.exception("wrap_failed", error=str(e))
                return self._wrap_error(ShrineError())
            return JSONResponse(
                {
                    "success": True,
                    "wrapped_event": wrapped.to_dict(),
                    "relayed_to": [url for url, outcome in outcomes.items() if outcome.ok],
                }
            )

        @app.post("/ingest")
        async def ingest(request: Request) -> JSONResponse:
            try:
                raw_event = await self._read_json(request)
                targets = None
                override = request.query_params.get("relays")
                if override is not None:
                    urls = [url.strip() for url in override.split(",") if url.strip()]
                    targets = self._url_validator.validate(urls)
                event = await self.ingest(raw_event, targets)
            except ShrineError as e:
                self._logger.info("ingest_rejected", code=ingest_code(e), error=e.message)
                return JSONResponse({"error": ingest_code(e)}, status_code=e.status)
            except Exception as e:  # HTTP request error boundary
                self._logger.exception("ingest_failed", error=str(e))
                return JSONResponse({"error": IngestError.INTERNAL}, status_code=500)
            return JSONResponse({"ok": True, "id": event.id})

        @app.get("/")
        async def root(request: Request) -> Response:
            if wants_relay_info(request.headers.get("accept")):
                return JSONResponse(
                    self.relay_information().to_dict(),
                    media_type=NIP11_CONTENT_TYPE,
                    headers=_NIP11_HEADERS,
                )
            return PlainTextResponse("Shrine gateway. Connect with a Nostr client over WebSocket.")

        @app.websocket("/")
        async def relay_socket(websocket: WebSocket) -> None:
            await websocket.accept()
            self._logger.debug("ws_client_connected")
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                text = message.get("text")
                if text is None:
                    text = (message.get("bytes") or b"").decode("utf-8", errors="replace")
                reply = await self.handle_frame(text)
                if reply is not None:
                    await websocket.send_text(reply)
            self._logger.debug("ws_client_disconnected")

        return app

    async def _run_server(self, app: FastAPI) -> None:
        """Run uvicorn as an asyncio server."""
        config = uvicorn.Config(
            app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
            access_log=False,
        )
        server = uvicorn.Server(config)
        await server.serve()
