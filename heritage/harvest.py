"""Two-pass harvest of the Open Heritage 3D catalogue.

Pass 1 fetches the listing once and upserts every stub in order. Pass 2
fetches each project's detail page through a fixed-size worker pool; workers
only fetch and parse, while every database write and counter update happens
on the calling thread as futures complete.
"""
from __future__ import annotations

import logging
import os
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial
from typing import Any, Callable, Dict, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import apply_schema
from .scraper_observability import (
    StepTimer,
    datacite_disabled,
    log_event,
    new_run_id,
    scraper_dry_run_enabled,
    upsert_run,
)
from .scrapers.detail import parse_detail
from .scrapers.http import LISTING_TIMEOUT_S, fetch_datacite, fetch_html
from .scrapers.listing import parse_listing
from .store import upsert_project, upsert_project_details
from .types import ProjectDetail, ProjectStub, ScrapeResult

logger = logging.getLogger("heritage-scraper")

SCRAPER = "open_heritage3d"
DEFAULT_LISTING_URL = "https://openheritage3d.org/data#"
DEFAULT_MAX_CONCURRENCY = 3
POLITENESS_DELAY_S = (1.0, 2.0)

FetchHtml = Callable[[str], str]
FetchMetadata = Callable[[str], Optional[Dict[str, Any]]]


def listing_url() -> str:
    return os.getenv("HERITAGE_LISTING_URL", "").strip() or DEFAULT_LISTING_URL


def max_concurrency() -> int:
    raw = os.getenv("SCRAPER_MAX_CONCURRENCY", "").strip()
    if not raw:
        return DEFAULT_MAX_CONCURRENCY
    try:
        return max(1, int(raw))
    except ValueError:
        logger.warning("Ignoring non-numeric SCRAPER_MAX_CONCURRENCY=%r", raw)
        return DEFAULT_MAX_CONCURRENCY


def fetch_listing(url: str, fetch: FetchHtml | None = None) -> list[ProjectStub]:
    fetch = fetch or partial(fetch_html, timeout=LISTING_TIMEOUT_S)
    timer = StepTimer()
    html = fetch(url)
    log_event(
        "FETCH",
        scraper=SCRAPER,
        url=url,
        bytes=len(html.encode("utf-8")),
        latency_ms=timer.elapsed_ms(),
    )
    stubs = parse_listing(html)
    log_event("PARSE", scraper=SCRAPER, url=url, items_found=len(stubs))
    return stubs


def fetch_project_details(
    stub: ProjectStub,
    *,
    fetch: FetchHtml,
    fetch_metadata: FetchMetadata | None,
    delay_range: tuple[float, float] = POLITENESS_DELAY_S,
) -> ProjectDetail | None:
    """Fetch and parse one detail page; None means nothing was extracted.

    Runs on a worker thread. The politeness delay is taken before returning,
    on success and failure alike, so the worker slot stays busy through it.
    """
    try:
        logger.info("Fetching details for: %s", stub.name)
        timer = StepTimer()
        html = fetch(stub.project_link)
        log_event(
            "FETCH",
            scraper=SCRAPER,
            url=stub.project_link,
            bytes=len(html.encode("utf-8")),
            latency_ms=timer.elapsed_ms(),
        )
        detail = parse_detail(html, stub.doi)
    except Exception as exc:
        logger.error("Error fetching details for %s: %s", stub.name, exc)
        return None
    else:
        if fetch_metadata is not None:
            try:
                detail.datacite = fetch_metadata(stub.doi)
            except Exception as exc:
                logger.warning("DataCite fetch failed for %s: %s", stub.doi, exc)
        return detail
    finally:
        time.sleep(random.uniform(*delay_range))


def _store_stubs(engine: Engine, stubs: list[ProjectStub], result: ScrapeResult, dry_run: bool) -> None:
    logger.info("Processing main project data...")
    for stub in stubs:
        if dry_run:
            continue
        try:
            is_new = upsert_project(engine, stub)
        except SQLAlchemyError as exc:
            result.write_failures += 1
            logger.error("Error processing project %s: %s", stub.name, exc)
            continue
        if is_new:
            result.new_projects += 1
            logger.info("Added new project: %s (DOI: %s)", stub.name, stub.doi)
        else:
            result.updated_projects += 1
            logger.info("Updated project: %s (DOI: %s)", stub.name, stub.doi)

    log_event(
        "WRITE",
        scraper=SCRAPER,
        table="heritage_projects",
        rows_inserted=result.new_projects,
        rows_updated=result.updated_projects,
        mode="dry-run" if dry_run else "write",
    )


def _store_detail(engine: Engine, stub: ProjectStub, detail: ProjectDetail, result: ScrapeResult) -> None:
    try:
        is_new = upsert_project_details(engine, detail)
    except SQLAlchemyError as exc:
        result.write_failures += 1
        logger.error("Error storing details for %s: %s", stub.name, exc)
        return
    if is_new:
        result.new_details += 1
        logger.info("Added details for: %s", stub.name)
    else:
        result.updated_details += 1
        logger.info("Updated details for: %s", stub.name)


def _harvest_details(
    engine: Engine,
    stubs: list[ProjectStub],
    result: ScrapeResult,
    *,
    dry_run: bool,
    workers: int,
    fetch: FetchHtml,
    fetch_metadata: FetchMetadata | None,
    delay_range: tuple[float, float],
) -> int:
    logger.info("Processing project details...")
    todo: list[ProjectStub] = []
    for stub in stubs:
        if stub.project_link:
            todo.append(stub)
            continue
        result.details_skipped += 1
        logger.warning("No project link for %s, skipping details", stub.name)
        log_event("SKIP", scraper=SCRAPER, doi=stub.doi, reason="no project link")

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="detail") as pool:
        futures = {
            pool.submit(
                fetch_project_details,
                stub,
                fetch=fetch,
                fetch_metadata=fetch_metadata,
                delay_range=delay_range,
            ): stub
            for stub in todo
        }
        for future in as_completed(futures):
            stub = futures[future]
            detail = future.result()
            if detail is None:
                result.details_missing += 1
                result.failed_dois.append(stub.doi)
                logger.warning("No details extracted for: %s", stub.name)
                continue
            if dry_run:
                continue
            _store_detail(engine, stub, detail, result)

    log_event(
        "WRITE",
        scraper=SCRAPER,
        table="project_details",
        rows_inserted=result.new_details,
        rows_updated=result.updated_details,
        mode="dry-run" if dry_run else "write",
    )
    return len(todo)


def run(
    engine: Engine,
    *,
    url: str | None = None,
    workers: int | None = None,
    dry_run: bool | None = None,
    skip_datacite: bool | None = None,
    run_id: str | None = None,
    fetch: FetchHtml | None = None,
    fetch_metadata: FetchMetadata | None = None,
    delay_range: tuple[float, float] = POLITENESS_DELAY_S,
) -> ScrapeResult:
    """Harvest the listing and every reachable detail page.

    Raises when the listing itself cannot be fetched or parsed; every
    per-project failure is logged and counted instead.
    """
    url = url or listing_url()
    workers = max(1, workers) if workers else max_concurrency()
    dry_run = scraper_dry_run_enabled() if dry_run is None else dry_run
    skip_datacite = datacite_disabled() if skip_datacite is None else skip_datacite
    run_id = run_id or new_run_id()
    if skip_datacite:
        fetch_metadata = None
    elif fetch_metadata is None:
        fetch_metadata = fetch_datacite

    apply_schema(engine)
    log_event("START", scraper=SCRAPER, run_id=run_id, dry_run=dry_run, url=url, workers=workers)
    upsert_run(engine, run_id=run_id, scraper=SCRAPER, status="running", dry_run=dry_run)

    result = ScrapeResult()
    fetch_count = 0
    try:
        stubs = fetch_listing(url, fetch=fetch)
        fetch_count += 1
        result.projects_found = len(stubs)
        _store_stubs(engine, stubs, result, dry_run)
        fetch_count += _harvest_details(
            engine,
            stubs,
            result,
            dry_run=dry_run,
            workers=workers,
            fetch=fetch or fetch_html,
            fetch_metadata=fetch_metadata,
            delay_range=delay_range,
        )
    except Exception as exc:
        upsert_run(
            engine,
            run_id=run_id,
            scraper=SCRAPER,
            status="failed",
            dry_run=dry_run,
            rows_inserted=result.new_projects + result.new_details,
            rows_updated=result.updated_projects + result.updated_details,
            fetch_count=fetch_count,
            last_error=f"{type(exc).__name__}: {exc}",
            details=result.to_dict(),
        )
        log_event(
            "END",
            scraper=SCRAPER,
            run_id=run_id,
            success=False,
            error_type=type(exc).__name__,
        )
        raise

    upsert_run(
        engine,
        run_id=run_id,
        scraper=SCRAPER,
        status="success",
        dry_run=dry_run,
        rows_inserted=result.new_projects + result.new_details,
        rows_updated=result.updated_projects + result.updated_details,
        fetch_count=fetch_count,
        details=result.to_dict(),
    )
    log_event("END", scraper=SCRAPER, run_id=run_id, success=True, **result.to_dict())
    return result
