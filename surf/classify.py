"""Private-range predicate used to split SSRF candidates into internal and external.

The range table is data, not logic: pass your own networks to
:class:`IPClassifier` to widen or narrow what counts as internal (for example
adding carrier-grade NAT space).
"""

from __future__ import annotations

import ipaddress
from typing import Iterable

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

DEFAULT_PRIVATE_NETWORKS: tuple[str, ...] = (
    # IPv4
    "0.0.0.0/8",
    "10.0.0.0/8",
    "127.0.0.0/8",
    "169.254.0.0/16",
    "172.16.0.0/12",
    "192.168.0.0/16",
    # IPv6
    "::/128",
    "::1/128",
    "fc00::/7",
    "fe80::/10",
)


class IPClassifier:
    def __init__(self, networks: Iterable[str | IPNetwork] = DEFAULT_PRIVATE_NETWORKS):
        self.networks: tuple[IPNetwork, ...] = tuple(
            n if isinstance(n, (ipaddress.IPv4Network, ipaddress.IPv6Network)) else ipaddress.ip_network(n)
            for n in networks
        )

    def is_private(self, ip: str) -> bool:
        """Return True if ``ip`` falls in any configured range.

        IPv4-mapped IPv6 addresses (``::ffff:10.0.0.1``) are checked as IPv4.
        Strings that do not parse as an address are never private.
        """
        try:
            addr = ipaddress.ip_address(ip.strip().split("%", 1)[0])
        except ValueError:
            return False
        if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
            addr = addr.ipv4_mapped
        return any(addr.version == n.version and addr in n for n in self.networks)


_default = IPClassifier()


def is_private_ip(ip: str) -> bool:
    return _default.is_private(ip)


__all__ = ["DEFAULT_PRIVATE_NETWORKS", "IPClassifier", "is_private_ip"]
