"""Built-in client IP detectors.

A detector is a pure function ``Request -> IPAddress | None``.  It never
raises on malformed input: anything that does not parse is ``None``.

Three detectors ship with the package:

1. :func:`remote_addr_detector`: the connection peer reported by the
   ASGI server.  Always registered first (lowest priority).
2. :func:`trusted_header_detector`: a single header set by an edge
   proxy (``X-Real-IP``, ``CF-Connecting-IP``, ...).  Performs **no**
   trust validation: only enable it for headers the edge strips or
   overwrites.
3. :func:`xff_detector`: walks ``X-Forwarded-For`` backwards, accepting
   hops only while they satisfy the caller's trust predicate.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Callable

from starlette.requests import HTTPConnection

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
TrustPredicate = Callable[[IPAddress], bool]
Detector = Callable[[HTTPConnection], IPAddress | None]

HEADER_FORWARDED_FOR = "x-forwarded-for"


def parse_ip(raw: str | None) -> IPAddress | None:
    """Parse *raw* into an address, or ``None`` if it is not one.

    IPv4-mapped IPv6 addresses collapse to their IPv4 form so that
    ``::ffff:10.0.0.1`` and ``10.0.0.1`` compare equal.  Zoned addresses
    (``fe80::1%eth0``) are not client addresses and yield ``None``.
    """
    if raw is None:
        return None
    try:
        ip = ipaddress.ip_address(raw.strip())
    except ValueError:
        return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.scope_id is not None:
        return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def split_host_port(addr: str) -> tuple[str, str] | None:
    """Split ``host:port`` (or ``[v6host]:port``); ``None`` when malformed."""
    addr = addr.strip()
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0 or addr[end + 1 : end + 2] != ":":
            return None
        host, port = addr[1:end], addr[end + 2 :]
    else:
        host, sep, port = addr.rpartition(":")
        if not sep or ":" in host:
            return None
    if not port or "[" in host or "]" in host:
        return None
    return host, port


def specified(ip: IPAddress | None) -> IPAddress | None:
    """Drop the unspecified address (``0.0.0.0`` / ``::``)."""
    if ip is None or ip.is_unspecified:
        return None
    return ip


def peer_ip(request: HTTPConnection) -> IPAddress | None:
    """Address of the immediate peer, taken from the connection only."""
    client = request.scope.get("client")
    if not client:
        return None
    if isinstance(client, str):
        parts = split_host_port(client)
        return parse_ip(parts[0]) if parts else None
    return parse_ip(client[0])


def remote_addr_detector(request: HTTPConnection) -> IPAddress | None:
    """Default detector: the connection peer address."""
    return specified(peer_ip(request))


def trusted_header_detector(name: str) -> Detector:
    """Build a detector reading the first value of header *name*.

    The client can set any header to any value it wants; using a header
    that is not overwritten by a trusted proxy allows IP spoofing.

    Raises:
        ValueError: when *name* cannot be a header name (not latin-1).
    """
    try:
        name.lower().encode("latin-1")
    except UnicodeEncodeError as exc:
        raise ValueError(f"Invalid trusted header name: {name!r}") from exc

    def detect(request: HTTPConnection) -> IPAddress | None:
        value = request.headers.get(name, "").strip()
        if not value:
            return None
        return specified(parse_ip(value))

    detect.__name__ = f"trusted_header[{name.lower()}]"
    return detect


def forwarded_chain(request: HTTPConnection) -> list[IPAddress | None]:
    """Every ``X-Forwarded-For`` hop, in header order.

    Unparseable tokens stay in the chain as ``None`` so the backward walk
    stops at them instead of skipping over them.
    """
    chain: list[IPAddress | None] = []
    for forwarded in request.headers.getlist(HEADER_FORWARDED_FOR):
        chain.extend(parse_ip(token) for token in forwarded.split(","))
    return chain


def xff_detector(trusted_proxy: TrustPredicate) -> Detector:
    """Build a detector based on ``X-Forwarded-For``.

    Header example: ``X-Forwarded-For: <client>, <proxy1>, <proxy2>``.
    The header is honoured only when the direct peer is a trusted proxy.
    The chain is then walked from the hop closest to this server outward
    and the first untrusted hop wins.  A malformed hop ends the walk
    with ``None`` so a lower-priority detector decides.  When every hop
    is trusted the outermost one is returned.
    """

    def detect(request: HTTPConnection) -> IPAddress | None:
        peer = peer_ip(request)
        if peer is None or not trusted_proxy(peer):
            return None

        chain = forwarded_chain(request)
        for hop in reversed(chain):
            if hop is None:
                return None
            if not trusted_proxy(hop):
                return specified(hop)

        if chain:
            return specified(chain[0])
        return None

    detect.__name__ = "xff"
    return detect
