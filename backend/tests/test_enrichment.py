"""Unit tests for scrapegate.services.enrichment: image content-type lookup."""

import httpx
import pytest
import respx

from scrapegate.core.exceptions import EnrichmentError
from scrapegate.services.enrichment import ImageEnricher, mime_type_from_data_uri
from scrapegate.services.extraction import ExtractionResult

IMAGE_URL = "https://img.example/x.jpg"
EXTRACTION = ExtractionResult(description="Widget\n\nGreat\nProduct", image_url=IMAGE_URL)


class TestEnrich:
    @pytest.mark.asyncio
    async def test_content_type_from_header(self):
        with respx.mock:
            respx.get(IMAGE_URL).mock(
                return_value=httpx.Response(
                    200, content=b"\x89PNG\r\n", headers={"content-type": "image/png"}
                )
            )
            response = await ImageEnricher().enrich(EXTRACTION)

        assert response.model_dump() == {
            "description": "Widget\n\nGreat\nProduct",
            "imageUrl": IMAGE_URL,
            "mimeType": "image/png",
        }

    @pytest.mark.asyncio
    async def test_missing_header_falls_back_to_default(self):
        with respx.mock:
            respx.get(IMAGE_URL).mock(return_value=httpx.Response(200, content=b"\xff\xd8"))
            response = await ImageEnricher(default_mime_type="image/jpeg").enrich(EXTRACTION)

        assert response.mimeType == "image/jpeg"

    @pytest.mark.asyncio
    async def test_error_status_still_reports_type(self):
        with respx.mock:
            respx.get(IMAGE_URL).mock(
                return_value=httpx.Response(404, headers={"content-type": "text/html"})
            )
            response = await ImageEnricher().enrich(EXTRACTION)

        assert response.mimeType == "text/html"

    @pytest.mark.asyncio
    async def test_fetch_failure_raises(self):
        with respx.mock:
            respx.get(IMAGE_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))
            with pytest.raises(EnrichmentError) as exc_info:
                await ImageEnricher().enrich(EXTRACTION)

        assert IMAGE_URL in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_image_url_is_an_enrichment_error(self):
        with respx.mock:
            respx.get(IMAGE_URL).mock(side_effect=httpx.InvalidURL("Invalid URL component 'path'"))
            with pytest.raises(EnrichmentError) as exc_info:
                await ImageEnricher().enrich(EXTRACTION)

        assert exc_info.value.kind == "enrichment"

    @pytest.mark.asyncio
    async def test_data_uri_needs_no_fetch(self):
        extraction = ExtractionResult(
            description="Widget", image_url="data:image/webp;base64,UklGRg=="
        )
        with respx.mock(assert_all_called=False) as mock:
            response = await ImageEnricher().enrich(extraction)

        assert response.mimeType == "image/webp"
        assert mock.calls.call_count == 0


class TestDataUri:
    @pytest.mark.parametrize(
        "uri,expected",
        [
            ("data:image/png;base64,iVBOR", "image/png"),
            ("data:image/svg+xml,<svg/>", "image/svg+xml"),
            ("data:,hello", None),
        ],
    )
    def test_media_type(self, uri, expected):
        assert mime_type_from_data_uri(uri) == expected
