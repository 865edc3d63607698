"""CLI for ScrapeGate: run the scrape pipeline without the HTTP server.

Usage:
    python -m scrapegate.cli scrape https://example.com/product/123
    python -m scrapegate.cli resolve --production
    python -m scrapegate.cli serve --port 3001
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def _cmd_scrape(args) -> int:
    """Scrape a single URL and print the response body."""
    from scrapegate.core.exceptions import ScrapeGateError
    from scrapegate.services.scraper import scrape_url

    try:
        outcome = await scrape_url(args.url)
    except ScrapeGateError as e:
        print(json.dumps({"error": e.public_message}, indent=2), file=sys.stderr)
        return 1

    print(json.dumps(outcome.response, indent=2, ensure_ascii=False))
    return 0


def _cmd_resolve(args) -> int:
    """Print the launch configuration the resolver would hand to Chromium."""
    from scrapegate.services.runtime import DeploymentContext, RuntimeResolver

    context = DeploymentContext.from_settings()
    if args.production:
        context.production = True

    config = RuntimeResolver().resolve(context)
    print(json.dumps(asdict(config), indent=2))
    return 0


def _cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("scrapegate.main:app", host=args.host, port=args.port)
    return 0


def main():
    from scrapegate.config import settings

    parser = argparse.ArgumentParser(
        prog="scrapegate",
        description="ScrapeGate CLI: scrape product pages and inspect the browser runtime",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    scrape_parser = subparsers.add_parser("scrape", help="Scrape a single URL")
    scrape_parser.add_argument("url", help="URL to scrape")

    resolve_parser = subparsers.add_parser(
        "resolve", help="Show which browser executable would be launched"
    )
    resolve_parser.add_argument(
        "--production", action="store_true",
        help="Run executable discovery even if ENVIRONMENT is not production",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=settings.PORT)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    _setup_logging(args.verbose)

    if args.command == "scrape":
        code = asyncio.run(_cmd_scrape(args))
    elif args.command == "resolve":
        code = _cmd_resolve(args)
    else:
        code = _cmd_serve(args)
    sys.exit(code)


if __name__ == "__main__":
    main()
