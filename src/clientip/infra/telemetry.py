"""OpenTelemetry span names and helpers.

Only the OTEL API is used here; exporting spans is left to whatever
``TracerProvider`` the hosting process installs.  Without one every span
is a no-op.

Usage::

    from clientip.infra.telemetry import SPAN_DETECT, tracer

    with tracer.start_as_current_span(SPAN_DETECT) as span:
        ...
"""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.trace import format_trace_id

tracer = trace.get_tracer("clientip")

# ---------------------------------------------------------------------------
# Span names
# ---------------------------------------------------------------------------

SPAN_DETECT = "clientip.detect"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_DETECTED = "clientip.detected"
ATTR_REJECTED = "clientip.rejected"


def get_current_trace_id() -> str | None:
    """Return the active OTEL trace ID as a 32-char hex string, or ``None``."""
    ctx = trace.get_current_span().get_span_context()
    if ctx is None or not ctx.is_valid:
        return None
    return format_trace_id(ctx.trace_id)
