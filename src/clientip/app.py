"""FastAPI application entry point.

Served with ``uvicorn --factory clientip.app:get_app`` (see
``python -m clientip``).
"""

import logging

from fastapi import FastAPI

from clientip.api.routes import router
from clientip.configs.config import AppConfig, get_app_config
from clientip.infra.logging import setup_logging
from clientip.infra.metrics import build_metrics
from clientip.middleware import ClientIPMiddleware, options_from_config

logger = logging.getLogger(__name__)


def get_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = get_app_config()

    setup_logging(config.logging)

    app = FastAPI(
        title="clientip",
        description="Spoof-resistant client IP detection",
        version="0.1.0",
    )
    app.state.client_ip_config = config.client_ip

    app.add_middleware(
        ClientIPMiddleware,
        options=options_from_config(config.client_ip),
        metrics=config.metrics.enabled,
    )
    build_metrics(app, config.metrics)

    app.include_router(router)

    logger.info(
        "Application created (trusted proxies: %s, trusted header: %s)",
        ", ".join(config.client_ip.trusted_proxies) or "none",
        config.client_ip.trusted_header or "none",
    )
    return app
