import asyncio
import logging
from contextlib import asynccontextmanager

from playwright.async_api import (
    Browser,
    Page,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from scrapegate.config import settings
from scrapegate.core.exceptions import (
    BrowserPoolExhaustedError,
    ExtractionIncompleteError,
    RenderError,
    ScrapeGateError,
)
from scrapegate.core.metrics import active_browser_sessions, browser_pool_exhausted_total
from scrapegate.services.extraction import ExtractionResult, Extractor, ProductPageExtractor
from scrapegate.services.runtime import LaunchConfiguration

logger = logging.getLogger(__name__)

INCOMPLETE_MESSAGE = (
    "Could not find product details on the page. Selectors might be outdated."
)


class RenderExecutor:
    """Renders one URL per session and runs the extractor against it.

    Every call launches its own browser (no shared pool), so sessions are
    fully isolated. The number of sessions alive at once is capped by a
    semaphore; callers past the cap queue for up to ``queue_timeout`` seconds.
    """

    def __init__(
        self,
        extractor: Extractor | None = None,
        max_concurrent: int | None = None,
        queue_timeout: float | None = None,
        playwright_factory=async_playwright,
    ):
        self.extractor = extractor or ProductPageExtractor()
        self.max_concurrent = max_concurrent or settings.MAX_CONCURRENT_RENDERS
        self.queue_timeout = (
            queue_timeout
            if queue_timeout is not None
            else settings.RENDER_QUEUE_TIMEOUT_SECONDS
        )
        self._playwright_factory = playwright_factory
        self._semaphore: asyncio.Semaphore | None = None
        self._loop = None
        self._active = 0

    @property
    def active_sessions(self) -> int:
        return self._active

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Get or create the admission semaphore for the current event loop."""
        current_loop = asyncio.get_running_loop()
        if self._semaphore is None or self._loop is not current_loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
            self._loop = current_loop
        return self._semaphore

    @asynccontextmanager
    async def _admission(self):
        semaphore = self._get_semaphore()
        try:
            await asyncio.wait_for(semaphore.acquire(), timeout=self.queue_timeout)
        except asyncio.TimeoutError:
            browser_pool_exhausted_total.inc()
            raise BrowserPoolExhaustedError(
                f"No render slot available after {self.queue_timeout:.0f}s"
            )
        try:
            yield
        finally:
            semaphore.release()

    @asynccontextmanager
    async def render_session(self, config: LaunchConfiguration):
        """Launch an isolated browser, yield a page, always tear it down."""
        try:
            playwright = await self._playwright_factory().start()
        except Exception as e:
            raise RenderError(f"Browser runtime failed to start: {e}") from e

        browser: Browser | None = None
        self._active += 1
        active_browser_sessions.inc()
        try:
            try:
                browser = await playwright.chromium.launch(**config.launch_kwargs())
            except Exception as e:
                raise RenderError(f"Browser launch failed: {e}") from e

            context = await browser.new_context(user_agent=settings.BOT_USER_AGENT)
            page: Page = await context.new_page()
            yield page
        finally:
            self._active -= 1
            active_browser_sessions.dec()
            try:
                # Teardown must finish even if the request task is cancelled
                await asyncio.shield(self._teardown(browser, playwright))
            except asyncio.CancelledError:
                logger.debug("Render session teardown continues after cancellation")
                raise

    async def _teardown(self, browser: Browser | None, playwright) -> None:
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.debug(f"Browser close failed: {e}")
        try:
            await playwright.stop()
        except Exception as e:
            logger.debug(f"Playwright stop failed: {e}")

    async def _navigate(self, page: Page, url: str) -> None:
        # networkidle: no network connections for at least 500 ms
        await page.goto(
            url,
            wait_until="networkidle",
            timeout=settings.NAVIGATION_TIMEOUT_MS,
        )

    async def execute(self, url: str, config: LaunchConfiguration) -> ExtractionResult:
        async with self._admission():
            try:
                async with self.render_session(config) as page:
                    await self._navigate(page, url)
                    result = await self.extractor.extract(page)
            except ScrapeGateError:
                raise
            except PlaywrightTimeoutError as e:
                raise RenderError(
                    f"Navigation timed out after {settings.NAVIGATION_TIMEOUT_MS} ms"
                ) from e
            except Exception as e:
                raise RenderError(str(e)) from e

        if not result.is_complete:
            raise ExtractionIncompleteError(INCOMPLETE_MESSAGE)
        return result
