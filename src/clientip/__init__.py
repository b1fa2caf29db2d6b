"""Spoof-resistant client IP detection for ASGI applications.

Only trust ``X-Forwarded-For`` through proxies you control::

    from clientip import (
        ClientIPMiddleware,
        trusted_networks,
        with_callback,
        with_xff_detector,
        store_on_state,
    )

    app.add_middleware(
        ClientIPMiddleware,
        options=[
            with_xff_detector(trusted_networks("10.0.0.0/8")),
            with_callback(store_on_state("client_ip")),
        ],
    )
"""

from .core import (
    Detector,
    DetectorChain,
    IPAddress,
    TrustPredicate,
    parse_ip,
    remote_addr_detector,
    trusted_addresses,
    trusted_header_detector,
    trusted_networks,
    xff_detector,
)
from .middleware import (
    Callback,
    ClientIPMiddleware,
    Option,
    Options,
    RejectHandler,
    build_options,
    json_reject,
    new_handler,
    options_from_config,
    store_on_state,
    with_callback,
    with_detector,
    with_reject,
    with_trusted_header_detector,
    with_xff_detector,
)

__all__ = [
    "Callback",
    "ClientIPMiddleware",
    "Detector",
    "DetectorChain",
    "IPAddress",
    "Option",
    "Options",
    "RejectHandler",
    "TrustPredicate",
    "build_options",
    "json_reject",
    "new_handler",
    "options_from_config",
    "parse_ip",
    "remote_addr_detector",
    "store_on_state",
    "trusted_addresses",
    "trusted_header_detector",
    "trusted_networks",
    "with_callback",
    "with_detector",
    "with_reject",
    "with_trusted_header_detector",
    "with_xff_detector",
    "xff_detector",
]
