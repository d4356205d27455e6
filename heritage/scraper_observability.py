from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Any

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from .db import RUNS_TABLE

logger = logging.getLogger("heritage-scraper")

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in _TRUTHY


def scraper_dry_run_enabled() -> bool:
    return _env_flag("SCRAPER_DRY_RUN")


def datacite_disabled() -> bool:
    return _env_flag("SCRAPER_SKIP_DATACITE")


def new_run_id() -> str:
    return str(uuid.uuid4())


def log_event(event: str, **payload: Any) -> None:
    logger.info(
        "SCRAPER_%s %s", event, json.dumps(payload, default=str, sort_keys=True)
    )


def upsert_run(
    engine: Engine,
    *,
    run_id: str,
    scraper: str,
    status: str,
    dry_run: bool,
    rows_inserted: int = 0,
    rows_updated: int = 0,
    fetch_count: int = 0,
    last_error: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    with engine.begin() as conn:
        conn.execute(
            sql_text(
                f"""
                INSERT INTO {RUNS_TABLE}
                (run_id, scraper, status, dry_run, rows_inserted, rows_updated, fetch_count, last_error, details_json)
                VALUES (:run_id, :scraper, :status, :dry_run, :rows_inserted, :rows_updated, :fetch_count, :last_error, :details)
                ON CONFLICT (run_id, scraper) DO UPDATE SET
                  finished_at = CASE WHEN excluded.status IN ('success', 'failed') THEN CURRENT_TIMESTAMP ELSE {RUNS_TABLE}.finished_at END,
                  status = excluded.status,
                  dry_run = excluded.dry_run,
                  rows_inserted = excluded.rows_inserted,
                  rows_updated = excluded.rows_updated,
                  fetch_count = excluded.fetch_count,
                  last_error = excluded.last_error,
                  details_json = excluded.details_json
                """
            ),
            {
                "run_id": run_id,
                "scraper": scraper,
                "status": status,
                "dry_run": dry_run,
                "rows_inserted": rows_inserted,
                "rows_updated": rows_updated,
                "fetch_count": fetch_count,
                "last_error": last_error,
                "details": json.dumps(details or {}, default=str),
            },
        )


def latest_status(engine: Engine, limit: int = 10) -> list[dict[str, Any]]:
    with engine.begin() as conn:
        rows = (
            conn.execute(
                sql_text(
                    f"""
                SELECT run_id, scraper, started_at, finished_at, status, dry_run,
                       rows_inserted, rows_updated, fetch_count, last_error, details_json
                FROM {RUNS_TABLE}
                ORDER BY started_at DESC
                LIMIT :n
                """
                ),
                {"n": limit},
            )
            .mappings()
            .all()
        )
    out: list[dict[str, Any]] = []
    for row in rows:
        data = dict(row)
        data["dry_run"] = bool(data["dry_run"])
        data["details"] = json.loads(data.pop("details_json") or "{}")
        data["last_success"] = (
            data["finished_at"] if data["status"] == "success" else None
        )
        out.append(data)
    return out


class StepTimer:
    def __init__(self) -> None:
        self.started = time.perf_counter()

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)
