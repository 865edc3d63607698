from fastapi import APIRouter

from scrapegate.api.v1 import scrape

api_router = APIRouter()

api_router.include_router(scrape.router, prefix="/scrape", tags=["Scrape"])
