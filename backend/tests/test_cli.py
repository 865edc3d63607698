"""Tests for the scrapegate command line."""

import json
import sys

import pytest

import scrapegate.services.scraper as scraper_module
from scrapegate.cli import main
from scrapegate.config import settings
from scrapegate.core.exceptions import PolicyDeniedError
from scrapegate.services.runtime import BASELINE_ARGS
from scrapegate.services.scraper import ScrapeOutcome


def _run(monkeypatch, *argv) -> int:
    monkeypatch.setattr(sys, "argv", ["scrapegate", *argv])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code


def test_resolve_outside_production(monkeypatch, capsys):
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "PROXY_URLS", [])

    assert _run(monkeypatch, "resolve") == 0

    config = json.loads(capsys.readouterr().out)
    assert config["headless"] is True
    assert config["executable_path"] is None
    assert config["args"] == list(BASELINE_ARGS)


def test_scrape_prints_response(monkeypatch, capsys):
    async def fake_scrape(url):
        return ScrapeOutcome(
            response={"description": "Widget", "imageUrl": "u", "mimeType": "image/png"},
            from_cache=False,
        )

    monkeypatch.setattr(scraper_module, "scrape_url", fake_scrape)

    assert _run(monkeypatch, "scrape", "https://shop.example/dp/1") == 0
    assert json.loads(capsys.readouterr().out)["description"] == "Widget"


def test_scrape_failure_exits_nonzero(monkeypatch, capsys):
    async def fake_scrape(url):
        raise PolicyDeniedError()

    monkeypatch.setattr(scraper_module, "scrape_url", fake_scrape)

    assert _run(monkeypatch, "scrape", "https://shop.example/dp/1") == 1
    err = json.loads(capsys.readouterr().err)
    assert err == {"error": "Scraping is disallowed by this site's robots.txt"}


def test_no_command_prints_help(monkeypatch):
    assert _run(monkeypatch) == 1
