"""Error taxonomy for the scrape pipeline.

Each pipeline failure has its own class so the HTTP layer, the logs and the
metrics can tell them apart. ``status_code`` is the HTTP status the API
answers with; ``kind`` is the stable label used in logs and metrics.
"""

FAILURE_PREFIX = "Failed to scrape the URL."


class ScrapeGateError(Exception):
    """Base class. Anything without a more specific class is a 500."""

    status_code = 500
    kind = "internal"

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        """Message placed in the ``error`` field of the response body."""
        if self.status_code >= 500:
            return f"{FAILURE_PREFIX} {self.message}"
        return self.message


class InvalidInputError(ScrapeGateError):
    status_code = 400
    kind = "invalid_input"


class PolicyDeniedError(ScrapeGateError):
    status_code = 403
    kind = "policy_denied"

    def __init__(self, message: str = "Scraping is disallowed by this site's robots.txt"):
        super().__init__(message)


class PolicyFetchError(ScrapeGateError):
    """robots.txt could not be retrieved or parsed, so permission is unknown."""

    kind = "policy_fetch"


class RenderError(ScrapeGateError):
    """Browser launch, navigation or DOM evaluation failed."""

    kind = "render"


class BrowserPoolExhaustedError(RenderError):
    """No render slot became free within the queue timeout."""


class ExtractionIncompleteError(ScrapeGateError):
    """The page rendered but the extractor found no image or description."""

    kind = "extraction_incomplete"


class EnrichmentError(ScrapeGateError):
    """The image reference could not be fetched to read its content type."""

    kind = "enrichment"
