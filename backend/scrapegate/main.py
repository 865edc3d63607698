import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scrapegate.api.v1.router import api_router
from scrapegate.api.v1.health import router as health_router
from scrapegate.config import settings
from scrapegate.core.exceptions import InvalidInputError, ScrapeGateError
from scrapegate.core.logging_config import configure_logging
from scrapegate.middleware.request_id import RequestIDMiddleware

# Configure structured logging (must happen before any logger is created)
configure_logging(log_format=settings.LOG_FORMAT, log_level=settings.LOG_LEVEL)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.ENVIRONMENT,
        release=f"scrapegate@{settings.APP_VERSION}",
    )

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Render sessions are launched per request, nothing to warm up
    logger.info(
        f"Starting {settings.APP_NAME} v{settings.APP_VERSION} "
        f"(environment={settings.ENVIRONMENT})"
    )

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="ScrapeGate - robots.txt-aware single-page product scraper. "
    "Renders pages in headless Chromium and returns the description, "
    "main image URL and image content type.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Request ID middleware (must be added before other middleware)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ScrapeGateError)
async def scrape_error_handler(request: Request, exc: ScrapeGateError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.public_message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Bodies that do not fit the request model get the same 400 shape as a bad URL."""
    error = InvalidInputError("Invalid request body")
    for detail in exc.errors():
        if tuple(detail.get("loc", ()))[-1:] == ("url",):
            error = InvalidInputError(f"Invalid URL: {detail.get('input')}")
            break
    logger.warning(f"Rejected request to {request.url.path}: {error.message}")
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.public_message},
    )


app.include_router(api_router)

# Health & metrics routes
app.include_router(health_router)


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "status": "running",
    }
