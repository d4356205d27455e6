import argparse
import logging
import os
import sys

import requests

from .db import apply_schema, get_engine
from .logging_setup import setup_logging
from .types import ScrapeResult

logger = logging.getLogger("heritage-scraper")


def cmd_init(engine):
    apply_schema(engine)
    logger.info("Schema ready")


def cmd_scrape(engine, args) -> int:
    from .harvest import run as run_harvest
    from .scrapers.listing import ListingStructureError

    try:
        result = run_harvest(
            engine,
            url=args.listing_url,
            workers=args.max_concurrency,
            dry_run=True if args.dry_run else None,
            skip_datacite=True if args.skip_datacite else None,
        )
    except (ListingStructureError, requests.RequestException) as exc:
        logger.error("Fatal error: %s", exc)
        return 1

    print(format_summary(result, database=str(engine.url)))
    return 0


def cmd_check(engine) -> int:
    from .doctor import format_report, run_doctor

    report = run_doctor(engine)
    print(format_report(report))
    return 0 if report.ok else 1


def cmd_api(host: str, port: int):
    import uvicorn

    uvicorn.run("heritage.api:app", host=host, port=port, log_level="info")


def format_summary(result: ScrapeResult, database: str = "") -> str:
    lines = [
        "",
        "=== Summary ===",
        f"Total projects found: {result.projects_found}",
        f"New projects added: {result.new_projects}",
        f"Projects updated: {result.updated_projects}",
        f"New project details added: {result.new_details}",
        f"Project details updated: {result.updated_details}",
        f"Projects without details: {result.details_missing}",
        f"Projects without a detail link: {result.details_skipped}",
    ]
    if result.write_failures:
        lines.append(f"Write failures: {result.write_failures}")
    if database:
        lines.append(f"Database location: {database}")
    return "\n".join(lines)


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def parse_args(argv=None):
    ap = argparse.ArgumentParser(prog="heritage")
    ap.add_argument("command", choices=["init", "scrape", "check", "api"])
    ap.add_argument(
        "--listing-url",
        type=str,
        default=os.getenv("HERITAGE_LISTING_URL"),
        help="Listing page to harvest (default: the public catalogue)",
    )
    ap.add_argument(
        "--max-concurrency",
        type=_positive_int,
        default=None,
        help="Detail pages fetched at once (default: SCRAPER_MAX_CONCURRENCY or 3)",
    )
    ap.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and parse everything but write no project rows",
    )
    ap.add_argument(
        "--skip-datacite",
        action="store_true",
        help="Do not query the DataCite API for each DOI",
    )
    ap.add_argument("--host", type=str, default=os.getenv("API_HOST", "127.0.0.1"))
    ap.add_argument("--port", type=int, default=int(os.getenv("API_PORT", "8000")))
    return ap.parse_args(argv)


def main(argv=None) -> int:
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    args = parse_args(argv)

    if args.command == "api":
        cmd_api(args.host, args.port)
        return 0

    engine = get_engine()
    if args.command == "init":
        cmd_init(engine)
    elif args.command == "scrape":
        return cmd_scrape(engine, args)
    elif args.command == "check":
        return cmd_check(engine)
    return 0


if __name__ == "__main__":
    sys.exit(main())
