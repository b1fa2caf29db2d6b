"""Logging bootstrap with per-request client IP context.

``ClientIPMiddleware`` binds the detected address with
:func:`bind_client_ip` for the rest of the request, so any
``logging.getLogger(__name__)`` call made by downstream handlers carries
``client_ip`` next to the OTEL ``trace_id`` / ``span_id``::

    {"level": "INFO", "logger": "app.orders", "message": "order placed",
     "client_ip": "203.0.113.7", "trace_id": "...", "span_id": "..."}

Records emitted outside a request (startup, lifespan) get an empty
``client_ip``; an undetermined address, rejected or not, is logged as
``-``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from opentelemetry import trace

from clientip.configs.system import LoggingConfig
from clientip.core.detectors import IPAddress

UNDETERMINED = "-"

_client_ip: ContextVar[str] = ContextVar("clientip_client_ip", default="")

_CONTEXT_FIELDS = ("client_ip", "trace_id", "span_id")


@contextmanager
def bind_client_ip(ip: IPAddress | None) -> Iterator[None]:
    """Expose *ip* to log records emitted inside the ``with`` block."""
    token = _client_ip.set(UNDETERMINED if ip is None else str(ip))
    try:
        yield
    finally:
        _client_ip.reset(token)


def current_client_ip() -> str:
    """Address bound for the running request, ``""`` outside one."""
    return _client_ip.get()


class RequestContextFilter(logging.Filter):
    """Stamps the bound client IP and the OTEL trace/span IDs on records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.client_ip = _client_ip.get()  # type: ignore[attr-defined]
        ctx = trace.get_current_span().get_span_context()
        valid = ctx is not None and ctx.is_valid
        record.trace_id = format(ctx.trace_id, "032x") if valid else ""  # type: ignore[attr-defined]
        record.span_id = format(ctx.span_id, "016x") if valid else ""  # type: ignore[attr-defined]
        return True


def build_formatter(config: LoggingConfig) -> logging.Formatter:
    """JSON lines for shipping, coloured lines with the client IP for dev."""
    if config.json_output:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s "
            + " ".join(f"%({field})s" for field in _CONTEXT_FIELDS),
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "logger",
            },
            defaults=dict.fromkeys(_CONTEXT_FIELDS, ""),
        )

    from uvicorn.logging import DefaultFormatter

    return DefaultFormatter(
        fmt="%(levelprefix)s %(asctime)s [%(client_ip)s] %(name)s  %(message)s",
        datefmt="%H:%M:%S",
        use_colors=True,
    )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Route root and uvicorn loggers through one context-aware handler."""
    config = config or LoggingConfig()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(build_formatter(config))

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    root.handlers = [handler]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False
