"""Shared fixtures: a scrape pipeline with stubbed collaborators and an ASGI client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from scrapegate.core.cache import ResponseCache, SingleFlight
from scrapegate.main import app
from scrapegate.schemas.scrape import ScrapeResponse
from scrapegate.services.extraction import ExtractionResult
from scrapegate.services.robots import PolicyDecision
from scrapegate.services.runtime import LaunchConfiguration
from scrapegate.services.scraper import ScrapePipeline, get_pipeline

PRODUCT_URL = "https://shop.example/dp/B000WIDGET"
IMAGE_URL = "https://img.example/x.jpg"
DESCRIPTION = "Widget\n\nGreat\nProduct"


@pytest.fixture
def extraction():
    return ExtractionResult(description=DESCRIPTION, image_url=IMAGE_URL)


@pytest.fixture
def policy():
    mock = MagicMock()
    mock.decide = AsyncMock(
        return_value=PolicyDecision(allowed=True, robots_url="https://shop.example/robots.txt")
    )
    return mock


@pytest.fixture
def resolver():
    mock = MagicMock()
    mock.resolve.return_value = LaunchConfiguration(args=["--no-sandbox"])
    return mock


@pytest.fixture
def executor(extraction):
    mock = MagicMock()
    mock.execute = AsyncMock(return_value=extraction)
    mock.active_sessions = 0
    mock.max_concurrent = 4
    return mock


@pytest.fixture
def enricher():
    mock = MagicMock()
    mock.enrich = AsyncMock(
        side_effect=lambda result: ScrapeResponse(
            description=result.description,
            imageUrl=result.image_url,
            mimeType="image/png",
        )
    )
    return mock


@pytest.fixture
def cache():
    return ResponseCache()


@pytest.fixture
def pipeline(policy, cache, resolver, executor, enricher):
    return ScrapePipeline(
        policy=policy,
        cache=cache,
        resolver=resolver,
        executor=executor,
        enricher=enricher,
        single_flight=SingleFlight(),
        actor="ScrapeGateBot/1.0",
    )


@pytest_asyncio.fixture
async def client(pipeline):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
