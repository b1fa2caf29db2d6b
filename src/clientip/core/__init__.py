"""Client IP detection core.

Pure computation over an already-received request; nothing here blocks
or performs I/O.

* **Detectors** map a request to an address or ``None``.
* **DetectorChain** evaluates detectors in reverse registration order
  and returns the first specified address.
* **Trust predicates** decide which proxy hops may speak for a client.
"""

from .chain import DetectorChain
from .detectors import (
    HEADER_FORWARDED_FOR,
    Detector,
    IPAddress,
    TrustPredicate,
    forwarded_chain,
    parse_ip,
    peer_ip,
    remote_addr_detector,
    split_host_port,
    trusted_header_detector,
    xff_detector,
)
from .trust import trusted_addresses, trusted_networks

__all__ = [
    "HEADER_FORWARDED_FOR",
    "Detector",
    "DetectorChain",
    "IPAddress",
    "TrustPredicate",
    "forwarded_chain",
    "parse_ip",
    "peer_ip",
    "remote_addr_detector",
    "split_host_port",
    "trusted_addresses",
    "trusted_header_detector",
    "trusted_networks",
    "xff_detector",
]
