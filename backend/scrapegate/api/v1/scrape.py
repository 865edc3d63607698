import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from scrapegate.schemas.scrape import ErrorResponse, ScrapeRequest, ScrapeResponse
from scrapegate.services.scraper import ScrapePipeline, get_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=ScrapeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed URL"},
        403: {"model": ErrorResponse, "description": "Disallowed by robots.txt"},
        500: {"model": ErrorResponse, "description": "Any other pipeline failure"},
    },
    summary="Scrape a single product page",
    description="Check robots.txt, serve from cache when possible, otherwise render the page in a headless browser, extract the description and main image, and resolve the image's content type.",
)
async def scrape(
    request: ScrapeRequest | None = None,
    pipeline: ScrapePipeline = Depends(get_pipeline),
):
    """Scrape ``request.url``. Pipeline errors are rendered by the app's exception handler."""
    outcome = await pipeline.run(request.url if request else None)
    return JSONResponse(
        content=outcome.response,
        headers={"X-Cache": "HIT" if outcome.from_cache else "MISS"},
    )
