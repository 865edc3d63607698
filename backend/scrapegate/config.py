from typing import List

from pydantic_settings import BaseSettings

PRODUCTION_ENVIRONMENTS = frozenset({"production", "prod"})


class Settings(BaseSettings):
    # App
    APP_NAME: str = "ScrapeGate"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    PORT: int = 3001

    # Deployment mode: gates browser executable discovery
    ENVIRONMENT: str = "development"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Actor identity presented to robots.txt and to every browser request
    BOT_NAME: str = "ScrapeGateBot/1.0"
    BOT_USER_AGENT: str = "Mozilla/5.0 (compatible; ScrapeGateBot/1.0)"

    # Timeouts
    ROBOTS_TIMEOUT_SECONDS: float = 10.0
    NAVIGATION_TIMEOUT_MS: int = 30000
    IMAGE_FETCH_TIMEOUT_SECONDS: float = 15.0

    # Enrichment
    DEFAULT_IMAGE_MIME_TYPE: str = "image/jpeg"

    # Render admission gate
    MAX_CONCURRENT_RENDERS: int = 4
    RENDER_QUEUE_TIMEOUT_SECONDS: float = 30.0

    # Response cache (0 disables the corresponding bound; by default entries
    # live for the process lifetime)
    CACHE_ENABLED: bool = True
    CACHE_MAX_ENTRIES: int = 0
    CACHE_TTL_SECONDS: int = 0

    # Browser executable discovery (production only)
    BROWSER_EXECUTABLE_PATH: str = ""
    BROWSER_CACHE_DIR: str = ""  # empty = ~/.cache/ms-playwright
    CHROME_PATH: str = ""

    # Proxy: empty means direct connections
    PROXY_URLS: List[str] = []

    # Sentry
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    # Logging
    LOG_FORMAT: str = "json"  # "json" for production, "text" for development
    LOG_LEVEL: str = "INFO"

    # Metrics
    METRICS_ENABLED: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() in PRODUCTION_ENVIRONMENTS


settings = Settings()
