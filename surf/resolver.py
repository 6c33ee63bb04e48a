from __future__ import annotations

import logging
import socket
from typing import Protocol, Sequence

import anyio
import dns.asyncresolver
import dns.exception
import dns.resolver

from .utils import uniq

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    async def resolve(self, domain: str) -> list[str]: ...


class SystemResolver:
    """Resolve through the operating system (``/etc/hosts``, search domains, nsswitch)."""

    async def resolve(self, domain: str) -> list[str]:
        try:
            infos = await anyio.getaddrinfo(domain, None, type=socket.SOCK_STREAM)
        except (OSError, UnicodeError) as e:
            logger.debug("getaddrinfo(%s) failed: %s", domain, e)
            return []
        return uniq(str(info[4][0]) for info in infos)


class DNSResolver:
    """Query A then AAAA records directly, optionally against explicit nameservers.

    Any resolver failure (NXDOMAIN, no answer, no nameservers, timeout) is
    reported as an empty list. The only time bound is dnspython's own
    ``lifetime`` default.
    """

    RECORD_TYPES = ("A", "AAAA")

    def __init__(self, nameservers: Sequence[str] | None = None):
        self.resolver = dns.asyncresolver.Resolver(configure=not nameservers)
        if nameservers:
            self.resolver.nameservers = list(nameservers)

    async def resolve(self, domain: str) -> list[str]:
        ips: list[str] = []
        for rdtype in self.RECORD_TYPES:
            try:
                answer = await self.resolver.resolve(domain, rdtype)
            except (dns.resolver.NXDOMAIN, dns.resolver.YXDOMAIN):
                # no point asking for AAAA on a name that does not exist
                return uniq(ips)
            except (dns.resolver.NoAnswer, dns.resolver.NoNameservers, dns.exception.Timeout) as e:
                logger.debug("%s %s lookup failed: %s", domain, rdtype, e)
                continue
            except dns.exception.DNSException as e:
                logger.debug("%s %s lookup error: %s", domain, rdtype, e)
                continue
            ips.extend(rr.to_text() for rr in answer)
        return uniq(ips)


def build_resolver(nameservers: Sequence[str] | None = None) -> Resolver:
    return DNSResolver(nameservers) if nameservers else SystemResolver()
