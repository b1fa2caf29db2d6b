"""ASGI middleware resolving the client IP of every request.

Configured once from a list of options applied in call order; each
option is an ``Options -> Options`` transformation over a frozen record,
so the detector chain cannot change after construction::

    app.add_middleware(
        ClientIPMiddleware,
        options=[
            with_xff_detector(trusted_networks("10.0.0.0/8")),
            with_trusted_header_detector("X-Real-IP"),
            with_reject(lambda conn: PlainTextResponse("undefined ip", 400)),
            with_callback(store_on_state("client_ip")),
        ],
    )

Per request: detector chain -> reject handler (no address) or
callback -> wrapped app.  The wrapped app is never invoked after a
rejection.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, replace

from starlette import status
from starlette.requests import HTTPConnection, Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocket, WebSocketClose

from clientip.configs.system import ClientIPConfig
from clientip.core.chain import DetectorChain
from clientip.core.detectors import (
    Detector,
    IPAddress,
    TrustPredicate,
    remote_addr_detector,
    trusted_header_detector,
    xff_detector,
)
from clientip.core.trust import trusted_networks
from clientip.infra.logging import bind_client_ip
from clientip.infra.metrics import DETECTIONS_TOTAL, REJECTIONS_TOTAL
from clientip.infra.telemetry import (
    ATTR_DETECTED,
    ATTR_REJECTED,
    SPAN_DETECT,
    get_current_trace_id,
    tracer,
)

logger = logging.getLogger(__name__)

Callback = Callable[
    [HTTPConnection, IPAddress | None],
    HTTPConnection | None | Awaitable[HTTPConnection | None],
]
RejectHandler = Callable[[HTTPConnection], ASGIApp | Awaitable[ASGIApp]]


@dataclass(frozen=True)
class Options:
    """Immutable middleware configuration."""

    detectors: tuple[Detector, ...] = (remote_addr_detector,)
    callback: Callback | None = None
    reject: RejectHandler | None = None


Option = Callable[[Options], Options]


def build_options(options: Iterable[Option] = ()) -> Options:
    """Apply *options* in order to the defaults."""
    return functools.reduce(lambda acc, option: option(acc), options, Options())


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


def with_detector(detector: Detector) -> Option:
    """Add a custom detector.  The last added detector runs first."""

    def apply(options: Options) -> Options:
        return replace(options, detectors=(*options.detectors, detector))

    return apply


def with_xff_detector(trusted_proxy: TrustPredicate) -> Option:
    """Add a detector based on ``X-Forwarded-For``.

    The client can set ``X-Forwarded-For`` to any value it wants; the
    header is only honoured through peers accepted by *trusted_proxy*.
    """
    return with_detector(xff_detector(trusted_proxy))


def with_trusted_header_detector(name: str) -> Option:
    """Add a detector reading header *name* (e.g. ``X-Real-IP``).

    No trust validation is done: enable it only for headers your edge
    proxy overwrites.
    """
    return with_detector(trusted_header_detector(name))


def with_callback(callback: Callback) -> Option:
    """Call *callback* with the detected address before the wrapped app.

    Returning a connection replaces the scope passed downstream;
    returning ``None`` keeps the original one.
    """

    def apply(options: Options) -> Options:
        return replace(options, callback=callback)

    return apply


def with_reject(reject: RejectHandler) -> Option:
    """Answer with ``reject(conn)`` when no address could be determined."""

    def apply(options: Options) -> Options:
        return replace(options, reject=reject)

    return apply


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class ClientIPMiddleware:
    """Detect the client IP of HTTP and websocket connections."""

    def __init__(
        self,
        app: ASGIApp,
        options: Iterable[Option] = (),
        *,
        metrics: bool = True,
    ) -> None:
        self.app = app
        self.metrics = metrics
        self.options = build_options(options)
        self.chain = DetectorChain(self.options.detectors)
        logger.info(
            "Client IP middleware configured with %d detector(s): %s",
            len(self.chain),
            ", ".join(_detector_name(d) for d in reversed(self.chain.detectors)),
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        conn: HTTPConnection
        if scope["type"] == "http":
            conn = Request(scope, receive)
        elif scope["type"] == "websocket":
            conn = WebSocket(scope, receive, send)
        else:
            await self.app(scope, receive, send)
            return

        with tracer.start_as_current_span(SPAN_DETECT) as span:
            ip = self.chain.detect(conn)
            span.set_attribute(ATTR_DETECTED, str(ip) if ip is not None else "")

            if self.metrics:
                DETECTIONS_TOTAL.labels(
                    result="undetermined" if ip is None else "detected"
                ).inc()

            if ip is None and self.options.reject is not None:
                span.set_attribute(ATTR_REJECTED, True)
                if self.metrics:
                    REJECTIONS_TOTAL.inc()
                with bind_client_ip(None):
                    logger.debug(
                        "Client IP undetermined, rejecting %s %s",
                        scope["type"],
                        scope.get("path", ""),
                    )
                    response = await _maybe_await(self.options.reject(conn))
                    await response(scope, receive, send)
                return

        with bind_client_ip(ip):
            if self.options.callback is not None:
                updated = await _maybe_await(self.options.callback(conn, ip))
                if updated is not None:
                    scope = updated.scope

            await self.app(scope, receive, send)


def new_handler(*options: Option) -> Callable[[ASGIApp], ClientIPMiddleware]:
    """Return a factory wrapping any ASGI app with the middleware."""

    def wrap(app: ASGIApp) -> ClientIPMiddleware:
        return ClientIPMiddleware(app, options=options)

    return wrap


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


def _detector_name(detector: Detector) -> str:
    return getattr(detector, "__name__", type(detector).__name__)


# ---------------------------------------------------------------------------
# Config wiring
# ---------------------------------------------------------------------------


def store_on_state(key: str) -> Callback:
    """Callback storing the detected address as ``conn.state.<key>``."""

    def callback(conn: HTTPConnection, ip: IPAddress | None) -> None:
        setattr(conn.state, key, ip)

    return callback


def json_reject(status_code: int, detail: str) -> RejectHandler:
    """Reject handler answering HTTP with JSON and websockets with a close."""

    def reject(conn: HTTPConnection) -> ASGIApp:
        if conn.scope["type"] == "websocket":
            return WebSocketClose(code=status.WS_1008_POLICY_VIOLATION, reason=detail)
        content = {"detail": detail, "code": "UNDEFINED_IP"}
        trace_id = get_current_trace_id()
        if trace_id:
            content["trace_id"] = trace_id
        return JSONResponse(status_code=status_code, content=content)

    return reject


def options_from_config(config: ClientIPConfig) -> list[Option]:
    """Translate ``ClientIPConfig`` into middleware options.

    Registration order (lowest priority first): peer address (implicit),
    X-Forwarded-For, trusted header.
    """
    options: list[Option] = []
    if config.trusted_proxies:
        options.append(with_xff_detector(trusted_networks(*config.trusted_proxies)))
    if config.trusted_header:
        options.append(with_trusted_header_detector(config.trusted_header))
    options.append(with_callback(store_on_state(config.state_key)))
    if config.reject_undetected:
        options.append(
            with_reject(json_reject(config.reject_status_code, config.reject_detail))
        )
    return options
