from pydantic import BaseModel, Field


class ScrapeRequest(BaseModel):
    # Optional so a missing url reaches the handler and gets the 400 body
    url: str | None = Field(default=None, description="Absolute http(s) URL to scrape")


class ScrapeResponse(BaseModel):
    description: str
    imageUrl: str
    mimeType: str


class ErrorResponse(BaseModel):
    error: str
