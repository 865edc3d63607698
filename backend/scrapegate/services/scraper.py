"""Scrape orchestration.

One request walks these states:

    VALIDATING -> POLICY_CHECK -> CACHE_LOOKUP -> RESOLVING -> RENDERING
        -> ENRICHING -> CACHING -> RESPONDING

A run that finds the same URL already being scraped moves to JOINING and
waits for that shared execution instead of resolving its own.

Bad input, a robots.txt denial or fetch failure, and a cache hit leave early.
A failure in any later state ends the run in FAILED with the error that
caused it; nothing is retried and nothing partial is cached.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

from scrapegate.config import settings
from scrapegate.core.cache import ResponseCache, SingleFlight, create_response_cache
from scrapegate.core.exceptions import (
    InvalidInputError,
    PolicyDeniedError,
    ScrapeGateError,
)
from scrapegate.core.metrics import scrape_duration_seconds, scrape_requests_total
from scrapegate.services.browser import RenderExecutor
from scrapegate.services.enrichment import ImageEnricher
from scrapegate.services.robots import RobotsPolicy
from scrapegate.services.runtime import DeploymentContext, RuntimeResolver

logger = logging.getLogger(__name__)


class ScrapeState(str, Enum):
    VALIDATING = "validating"
    POLICY_CHECK = "policy_check"
    CACHE_LOOKUP = "cache_lookup"
    JOINING = "joining"
    RESOLVING = "resolving"
    RENDERING = "rendering"
    ENRICHING = "enriching"
    CACHING = "caching"
    RESPONDING = "responding"
    FAILED = "failed"


@dataclass
class ScrapeOutcome:
    response: dict
    from_cache: bool


@dataclass
class PipelineRun:
    url: str
    state: ScrapeState = ScrapeState.VALIDATING

    def advance(self, state: ScrapeState) -> None:
        logger.debug(f"{self.url}: {self.state.value} -> {state.value}")
        self.state = state


def validate_target_url(url: str | None) -> str:
    """Return ``url`` unchanged if it is an absolute http(s) URL."""
    if url is None or not str(url).strip():
        raise InvalidInputError("URL is required")
    if not isinstance(url, str):
        raise InvalidInputError(f"Invalid URL: {url}")

    try:
        parsed = urlparse(url)
        parsed.port  # raises ValueError for a malformed port
    except ValueError as e:
        raise InvalidInputError(f"Invalid URL: {url}") from e

    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidInputError(f"Invalid URL: {url}")
    return url


class ScrapePipeline:
    def __init__(
        self,
        policy: RobotsPolicy | None = None,
        cache: ResponseCache | None = None,
        resolver: RuntimeResolver | None = None,
        executor: RenderExecutor | None = None,
        enricher: ImageEnricher | None = None,
        single_flight: SingleFlight | None = None,
        actor: str | None = None,
    ):
        self.policy = policy or RobotsPolicy()
        self.cache = cache if cache is not None else create_response_cache()
        self.resolver = resolver or RuntimeResolver()
        self.executor = executor or RenderExecutor()
        self.enricher = enricher or ImageEnricher()
        self.single_flight = single_flight or SingleFlight()
        self.actor = actor or settings.BOT_NAME

    async def run(self, url: str | None) -> ScrapeOutcome:
        run = PipelineRun(url=str(url))
        start = time.monotonic()
        try:
            url = validate_target_url(url)

            run.advance(ScrapeState.POLICY_CHECK)
            decision = await self.policy.decide(url, self.actor)
            if not decision.allowed:
                raise PolicyDeniedError()

            run.advance(ScrapeState.CACHE_LOOKUP)
            cached = self.cache.get(url)
            if cached is not None:
                logger.info(f"Returning cached data for {url}")
                run.advance(ScrapeState.RESPONDING)
                scrape_requests_total.labels(status="cached").inc()
                return ScrapeOutcome(response=cached, from_cache=True)

            if url in self.single_flight:
                run.advance(ScrapeState.JOINING)
            response = await self.single_flight.run(url, lambda: self._scrape(run))
        except ScrapeGateError as e:
            self._record_failure(run, e)
            raise
        except Exception as e:
            error = ScrapeGateError(str(e) or e.__class__.__name__)
            self._record_failure(run, error)
            raise error from e

        scrape_requests_total.labels(status="success").inc()
        scrape_duration_seconds.observe(time.monotonic() - start)
        run.advance(ScrapeState.RESPONDING)
        return ScrapeOutcome(response=dict(response), from_cache=False)

    async def _scrape(self, run: PipelineRun) -> dict:
        """Resolve, render, enrich and cache. Runs once per in-flight URL."""
        run.advance(ScrapeState.RESOLVING)
        config = self.resolver.resolve(DeploymentContext.from_settings())

        run.advance(ScrapeState.RENDERING)
        extraction = await self.executor.execute(run.url, config)

        run.advance(ScrapeState.ENRICHING)
        response = (await self.enricher.enrich(extraction)).model_dump()

        run.advance(ScrapeState.CACHING)
        self.cache.put(run.url, response)
        return response

    def _record_failure(self, run: PipelineRun, error: ScrapeGateError) -> None:
        failed_in = run.state
        run.advance(ScrapeState.FAILED)
        scrape_requests_total.labels(status=error.kind).inc()
        if error.status_code >= 500:
            logger.error(
                f"Scraping failed for {run.url} during {failed_in.value} "
                f"[{error.kind}]: {error.message}"
            )
        else:
            logger.warning(
                f"Scrape rejected for {run.url} during {failed_in.value} "
                f"[{error.kind}]: {error.message}"
            )


_pipeline: ScrapePipeline | None = None


def get_pipeline() -> ScrapePipeline:
    """Process-wide pipeline; owns the shared cache and render gate."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ScrapePipeline()
    return _pipeline


async def scrape_url(url: str) -> ScrapeOutcome:
    return await get_pipeline().run(url)
