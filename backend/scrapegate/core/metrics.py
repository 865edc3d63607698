from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# ---------------------------------------------------------------------------
# Request outcomes
# ---------------------------------------------------------------------------
scrape_requests_total = Counter(
    "scrape_requests_total",
    "Total number of scrape requests by outcome",
    ["status"],
)
scrape_duration_seconds = Histogram(
    "scrape_duration_seconds",
    "Time spent on a full scrape pipeline run",
    buckets=[0.5, 1, 2, 5, 10, 30, 60],
)

# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------
robots_decisions_total = Counter(
    "robots_decisions_total",
    "robots.txt evaluations by decision",
    ["decision"],
)
cache_lookups_total = Counter(
    "cache_lookups_total",
    "Response cache lookups by result",
    ["result"],
)

# ---------------------------------------------------------------------------
# Browser sessions
# ---------------------------------------------------------------------------
active_browser_sessions = Gauge(
    "active_browser_sessions",
    "Number of currently running render sessions",
)
browser_pool_exhausted_total = Counter(
    "browser_pool_exhausted_total",
    "Number of times no render slot became free in time",
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
