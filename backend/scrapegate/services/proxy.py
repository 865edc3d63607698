"""Proxy selection extension point.

The render launcher asks ``get_proxy()`` for an endpoint and passes it to
Chromium unchanged. With no PROXY_URLS configured it returns None and all
traffic goes out directly. There is no rotation state, health tracking or
authentication handling here.
"""

import logging
import random
from dataclasses import dataclass
from urllib.parse import urlparse

from scrapegate.config import settings

logger = logging.getLogger(__name__)


@dataclass
class Proxy:
    protocol: str  # http, https, socks5
    host: str
    port: int
    username: str | None = None
    password: str | None = None

    @classmethod
    def from_url(cls, url: str) -> "Proxy":
        """Parse a proxy URL into a Proxy object."""
        parsed = urlparse(url)
        return cls(
            protocol=parsed.scheme or "http",
            host=parsed.hostname or "",
            port=parsed.port or 8080,
            username=parsed.username,
            password=parsed.password,
        )

    @property
    def server(self) -> str:
        """Endpoint in the form Chromium's --proxy-server flag expects."""
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def masked(self) -> str:
        if self.username:
            return f"{self.protocol}://{self.username}:***@{self.host}:{self.port}"
        return self.server


class ProxyManager:
    """Holds the configured proxies and picks one per launch."""

    def __init__(self, proxies: list[Proxy] | None = None):
        self._proxies = proxies or []

    @classmethod
    def from_urls(cls, urls: list[str]) -> "ProxyManager":
        proxies = [Proxy.from_url(url.strip()) for url in urls if url.strip()]
        return cls(proxies)

    @property
    def has_proxies(self) -> bool:
        return len(self._proxies) > 0

    def get_random(self) -> Proxy | None:
        if not self._proxies:
            return None
        return random.choice(self._proxies)


def get_proxy() -> str | None:
    """Return a proxy endpoint for the next render session, or None."""
    manager = ProxyManager.from_urls(settings.PROXY_URLS)
    if not manager.has_proxies:
        return None
    proxy = manager.get_random()
    logger.debug(f"Using proxy {proxy.masked}")
    return proxy.server
