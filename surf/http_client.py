from __future__ import annotations
import random
import httpx

from .config import Settings

# A small pool of common user-agent strings
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/115.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/114.0 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
]

class SurfClient(httpx.AsyncClient):
    """Async HTTP client that rotates user agents across probe requests."""

    def __init__(self, *, random_ua: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.random_ua = random_ua

    async def request(self, method: str, url: httpx.URL | str, headers: dict | None = None, **kwargs):  # type: ignore[override]
        headers = dict(headers) if headers else {}
        if self.random_ua:
            headers.setdefault("User-Agent", random.choice(USER_AGENTS))
        return await super().request(method, url, headers=headers, **kwargs)

def build_client(settings: Settings, **kwargs) -> SurfClient:
    limits = httpx.Limits(
        max_connections=max(settings.MAX_CONCURRENCY, 1) * max(len(settings.PROBE_SCHEMES), 1),
        max_keepalive_connections=0,
    )
    return SurfClient(
        random_ua=settings.RANDOM_UA,
        http2=settings.HTTP2,
        limits=limits,
        timeout=httpx.Timeout(settings.TIMEOUT_MS / 1000),
        verify=settings.VERIFY_TLS,
        follow_redirects=False,
        proxy=settings.PROXY_URL or None,
        **kwargs,
    )
