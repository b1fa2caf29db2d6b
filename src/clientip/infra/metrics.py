"""Prometheus metrics for client IP detection.

Business counters complement the auto-instrumented HTTP metrics
provided by ``prometheus-fastapi-instrumentator``.

All metrics use the ``clientip_`` prefix.
"""

import logging

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

from clientip.configs.system import MetricsConfig

logger = logging.getLogger(__name__)

DETECTIONS_TOTAL = Counter(
    "clientip_detections_total",
    "Total client IP detections, by outcome",
    ["result"],  # "detected" | "undetermined"
)

REJECTIONS_TOTAL = Counter(
    "clientip_rejections_total",
    "Total requests rejected because no client IP was determined",
)


def build_metrics(app: FastAPI, config: MetricsConfig) -> None:
    """Attach HTTP instrumentation and the ``/metrics`` endpoint to *app*."""
    if not config.enabled:
        logger.info("Prometheus metrics disabled")
        return

    Instrumentator(
        excluded_handlers=config.excluded_urls,
    ).instrument(app).expose(app, endpoint="/metrics")

    logger.info("Prometheus metrics initialised")
