"""Trust predicates for :func:`~clientip.core.detectors.xff_detector`.

Both helpers validate their input eagerly, so a typo in a trusted proxy
list fails at startup instead of silently trusting nothing.
"""

from __future__ import annotations

import ipaddress

from .detectors import IPAddress, TrustPredicate, parse_ip


def trusted_addresses(*addrs: str) -> TrustPredicate:
    """Trust exactly the given proxy addresses."""
    trusted: set[IPAddress] = set()
    for addr in addrs:
        ip = parse_ip(addr)
        if ip is None:
            raise ValueError(f"Invalid trusted proxy address: {addr!r}")
        trusted.add(ip)
    frozen = frozenset(trusted)

    def is_trusted(ip: IPAddress) -> bool:
        return ip in frozen

    return is_trusted


def _unmap(
    network: ipaddress.IPv4Network | ipaddress.IPv6Network,
) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
    """``::ffff:a.b.c.d/N`` (N >= 96) as the IPv4 network ``parse_ip`` matches."""
    if network.version == 6 and network.prefixlen >= 96:
        mapped = network.network_address.ipv4_mapped
        if mapped is not None:
            return ipaddress.IPv4Network((mapped, network.prefixlen - 96))
    return network


def trusted_networks(*cidrs: str) -> TrustPredicate:
    """Trust any address inside the given networks (``10.0.0.0/8``, ...)."""
    networks = tuple(
        _unmap(ipaddress.ip_network(cidr.strip(), strict=False)) for cidr in cidrs
    )

    def is_trusted(ip: IPAddress) -> bool:
        return any(
            ip.version == network.version and ip in network
            for network in networks
        )

    return is_trusted
