from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import httpx
from yarl import URL

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ProbeResult:
    reachable: bool
    scheme: Optional[str] = None
    error: Optional[str] = None

class DomainProber(Protocol):
    async def probe(self, domain: str, timeout_ms: int) -> ProbeResult: ...

class Prober:
    """Decide whether a host answers over HTTP(S).

    Schemes are tried in order; the first one that produces any HTTP response,
    whatever its status code, makes the host reachable. Each attempt gets the
    full timeout. Every failure (timeout, refused, TLS, DNS, malformed host)
    collapses into ``reachable=False`` carrying the last error text.
    """

    def __init__(self, client: httpx.AsyncClient, schemes: Sequence[str] = ("https", "http")):
        self.client = client
        self.schemes = tuple(schemes)

    async def probe(self, domain: str, timeout_ms: int) -> ProbeResult:
        error: Optional[str] = None
        for scheme in self.schemes:
            try:
                url = str(URL.build(scheme=scheme, host=domain, path="/"))
                r = await self.client.get(url, timeout=timeout_ms / 1000)
            except Exception as e:
                error = f"{scheme}: {type(e).__name__}: {e}" if str(e) else f"{scheme}: {type(e).__name__}"
                logger.debug("probe %s failed: %s", domain, error)
                continue
            logger.debug("probe %s answered on %s (status %s)", domain, scheme, r.status_code)
            return ProbeResult(reachable=True, scheme=scheme)
        return ProbeResult(reachable=False, error=error or "no schemes configured")
