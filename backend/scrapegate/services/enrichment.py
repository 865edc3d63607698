"""Resolve the image's content type and assemble the public response."""

import logging

import httpx

from scrapegate.config import settings
from scrapegate.core.exceptions import EnrichmentError
from scrapegate.schemas.scrape import ScrapeResponse
from scrapegate.services.extraction import ExtractionResult

logger = logging.getLogger(__name__)


def mime_type_from_data_uri(uri: str) -> str | None:
    """Media type of a ``data:`` URI, e.g. ``data:image/png;base64,...``."""
    header = uri[len("data:"):].split(",", 1)[0]
    media_type = header.split(";", 1)[0].strip()
    return media_type or None


class ImageEnricher:
    def __init__(self, timeout: float | None = None, default_mime_type: str | None = None):
        self.timeout = timeout or settings.IMAGE_FETCH_TIMEOUT_SECONDS
        self.default_mime_type = default_mime_type or settings.DEFAULT_IMAGE_MIME_TYPE

    async def fetch_content_type(self, image_url: str) -> str | None:
        """Read the content-type header of ``image_url`` without the body.

        The status code is not judged: a 404 that still names a type is
        accepted. Only a failed exchange raises.
        """
        if image_url.startswith("data:"):
            return mime_type_from_data_uri(image_url)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": settings.BOT_USER_AGENT},
            ) as client:
                async with client.stream("GET", image_url) as response:
                    return response.headers.get("content-type")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise EnrichmentError(f"Could not fetch image {image_url}: {e}") from e

    async def enrich(self, result: ExtractionResult) -> ScrapeResponse:
        content_type = await self.fetch_content_type(result.image_url)
        if not content_type:
            logger.debug(
                f"No content-type for {result.image_url}, "
                f"defaulting to {self.default_mime_type}"
            )
        return ScrapeResponse(
            description=result.description,
            imageUrl=result.image_url,
            mimeType=content_type or self.default_mime_type,
        )
