"""Site-specific extraction rules evaluated against a rendered page.

The orchestration never looks at the DOM itself; it hands the live page to an
Extractor. ProductPageExtractor is the one implementation: it reads a product
detail page (image, title, feature bullets) using configurable selectors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from playwright.async_api import Page

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    description: str = ""
    image_url: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.description) and bool(self.image_url)


class Extractor(Protocol):
    async def extract(self, page: Page) -> ExtractionResult: ...


def build_description(title: str | None, highlights: list[str] | None) -> str:
    """Join the title and highlight fragments into one description.

    Highlights are joined line by line; the title and the highlight block are
    separated by a blank line. Empty parts are dropped.

        >>> build_description("Widget", ["Great", "Product"])
        'Widget\\n\\nGreat\\nProduct'
    """
    fragments = [h.strip() for h in (highlights or []) if h and h.strip()]
    parts = [(title or "").strip(), "\n".join(fragments)]
    return "\n\n".join(p for p in parts if p)


# Runs inside the page. Receives the selector config, returns raw fields.
_JS_EXTRACT_PRODUCT = """
(sel) => {
    let imageUrl = null;
    for (const selector of sel.image) {
        const el = document.querySelector(selector);
        if (el && el.src) {
            imageUrl = el.src;
            break;
        }
    }
    const titleEl = document.querySelector(sel.title);
    const title = titleEl ? titleEl.innerText.trim() : '';
    const highlights = Array.from(document.querySelectorAll(sel.highlights))
        .map(el => el.innerText.trim());
    return { imageUrl, title, highlights };
}
"""


@dataclass
class ProductSelectors:
    image: list[str] = field(
        default_factory=lambda: ["#landingImage", "#imgTagWrapperId img"]
    )
    title: str = "#productTitle"
    highlights: str = "#feature-bullets ul li .a-list-item"

    def as_js_arg(self) -> dict:
        return {"image": self.image, "title": self.title, "highlights": self.highlights}


class ProductPageExtractor:
    def __init__(self, selectors: ProductSelectors | None = None):
        self.selectors = selectors or ProductSelectors()

    async def extract(self, page: Page) -> ExtractionResult:
        raw = await page.evaluate(_JS_EXTRACT_PRODUCT, self.selectors.as_js_arg())
        raw = raw or {}
        result = ExtractionResult(
            description=build_description(raw.get("title"), raw.get("highlights")),
            image_url=raw.get("imageUrl") or "",
        )
        logger.debug(
            f"Extracted description={len(result.description)} chars, "
            f"image={'yes' if result.image_url else 'no'}"
        )
        return result
