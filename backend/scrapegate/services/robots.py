"""robots.txt policy gate.

The policy is fetched fresh for every request and never cached. If it cannot
be fetched or parsed the gate raises PolicyFetchError instead of guessing
either way: a missing answer is not permission.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
from robotexclusionrulesparser import RobotExclusionRulesParser

from scrapegate.config import settings
from scrapegate.core.exceptions import PolicyFetchError
from scrapegate.core.metrics import robots_decisions_total

logger = logging.getLogger(__name__)

_HTML_MARKERS = ("<!doctype html", "<html")


@dataclass
class PolicyDecision:
    allowed: bool
    robots_url: str


def robots_url_for(url: str) -> str:
    """``{scheme}://{host}/robots.txt`` for the host serving ``url``."""
    parsed = urlparse(url)
    host = parsed.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parsed.port:
        host = f"{host}:{parsed.port}"
    return f"{parsed.scheme}://{host}/robots.txt"


class RobotsPolicy:
    def __init__(self, timeout: float | None = None, user_agent: str | None = None):
        self.timeout = timeout or settings.ROBOTS_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.BOT_USER_AGENT

    async def fetch(self, robots_url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            ) as client:
                resp = await client.get(robots_url)
        except httpx.HTTPError as e:
            raise PolicyFetchError(f"Could not fetch {robots_url}: {e}") from e

        if resp.status_code != 200:
            raise PolicyFetchError(f"{robots_url} returned HTTP {resp.status_code}")

        text = resp.text
        # Soft-404 pages answer 200 with an HTML document
        if text.lstrip()[:20].lower().startswith(_HTML_MARKERS):
            raise PolicyFetchError(f"{robots_url} is not a robots.txt document")
        return text

    def parse(self, text: str, robots_url: str) -> RobotExclusionRulesParser:
        parser = RobotExclusionRulesParser()
        try:
            parser.parse(text)
        except Exception as e:
            raise PolicyFetchError(f"Could not parse {robots_url}: {e}") from e
        return parser

    async def decide(self, target_url: str, actor: str | None = None) -> PolicyDecision:
        actor = actor or settings.BOT_NAME
        robots_url = robots_url_for(target_url)
        try:
            text = await self.fetch(robots_url)
            parser = self.parse(text, robots_url)
        except PolicyFetchError as e:
            robots_decisions_total.labels(decision="error").inc()
            logger.warning(f"robots.txt unavailable for {target_url}: {e}")
            raise

        allowed = parser.is_allowed(actor, target_url)
        robots_decisions_total.labels(decision="allowed" if allowed else "denied").inc()
        logger.debug(f"robots.txt decision for {actor} on {target_url}: allowed={allowed}")
        return PolicyDecision(allowed=allowed, robots_url=robots_url)
