"""FastAPI dependencies exposing the detected client IP.

The middleware's ``store_on_state`` callback writes the address onto
``request.state``; route handlers read it through ``ClientIPDep``
instead of touching headers themselves.
"""

from typing import Annotated

from fastapi import Depends, Request

from clientip.configs.system import ClientIPConfig
from clientip.core.detectors import IPAddress


def get_client_ip_config(request: Request) -> ClientIPConfig:
    """Config the middleware of ``request.app`` was built from."""
    config = getattr(request.app.state, "client_ip_config", None)
    return config if config is not None else ClientIPConfig()


def get_client_ip(
    request: Request,
    config: Annotated[ClientIPConfig, Depends(get_client_ip_config)],
) -> IPAddress | None:
    """Detected client address, or ``None`` when undetermined."""
    return getattr(request.state, config.state_key, None)


ClientIPDep = Annotated[IPAddress | None, Depends(get_client_ip)]
