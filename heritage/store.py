"""Persistence for harvested projects.

In-memory records are typed dataclasses; nested structures are serialized to
JSON text only here, at the storage boundary. Empty collections are stored as
NULL, never as ``[]``.
"""
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection, Engine

from .db import DETAILS_TABLE, PROJECTS_TABLE
from .types import ProjectDetail, ProjectStub

PROJECT_COLUMNS = (
    "project_name",
    "country",
    "doi",
    "status",
    "collectors",
    "keywords",
    "contributor",
    "project_link",
    "doi_link",
    "collectors_link",
)

DETAIL_COLUMNS = (
    "doi",
    "site_description",
    "project_description",
    "external_project_link",
    "additional_information_link",
    "collection_date",
    "publication_date",
    "license",
    "license_url",
    "reuse_score",
    "citation",
    "point_cloud_iframe",
    "bbox_json",
    "center_lat",
    "center_lng",
    "data_types_json",
    "downloads_json",
    "contributors_json",
    "collectors_json",
    "funders_json",
    "partners_json",
    "site_authority",
    "datacite_json",
)

# Columns the read API serves; NULLs become "" for the browser table
API_COLUMNS = (
    "project_name",
    "country",
    "status",
    "project_link",
    "reuse_score",
    "publication_date",
)


def dump_json_list(items: Optional[Sequence[Any]]) -> Optional[str]:
    if not items:
        return None
    return json.dumps([asdict(i) if is_dataclass(i) else i for i in items])


def dump_json_blob(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    if not payload:
        return None
    return json.dumps(payload)


def _upsert_sql(table: str, columns: Sequence[str]) -> str:
    names = ", ".join(columns)
    values = ", ".join(f":{c}" for c in columns)
    updates = ",\n                ".join(
        f"{c} = excluded.{c}" for c in columns if c != "doi"
    )
    return f"""
        INSERT INTO {table} ({names}, updated_at)
        VALUES ({values}, CURRENT_TIMESTAMP)
        ON CONFLICT (doi) DO UPDATE SET
                {updates},
                updated_at = CURRENT_TIMESTAMP
    """


_UPSERT_PROJECT_SQL = _upsert_sql(PROJECTS_TABLE, PROJECT_COLUMNS)
_UPSERT_DETAIL_SQL = _upsert_sql(DETAILS_TABLE, DETAIL_COLUMNS)


def project_params(stub: ProjectStub) -> Dict[str, Any]:
    return {
        "project_name": stub.name,
        "country": stub.country,
        "doi": stub.doi,
        "status": stub.status,
        "collectors": stub.collectors,
        "keywords": stub.keywords,
        "contributor": stub.contributor,
        "project_link": stub.project_link,
        "doi_link": stub.doi_link,
        "collectors_link": stub.collectors_link,
    }


def detail_params(detail: ProjectDetail) -> Dict[str, Any]:
    return {
        "doi": detail.doi,
        "site_description": detail.site_description,
        "project_description": detail.project_description,
        "external_project_link": detail.external_project_link,
        "additional_information_link": detail.additional_information_link,
        "collection_date": detail.collection_date,
        "publication_date": detail.publication_date,
        "license": detail.license,
        "license_url": detail.license_url,
        "reuse_score": detail.reuse_score,
        "citation": detail.citation,
        "point_cloud_iframe": detail.point_cloud_iframe,
        "bbox_json": dump_json_list(detail.bbox),
        "center_lat": detail.center_lat,
        "center_lng": detail.center_lng,
        "data_types_json": dump_json_list(detail.data_types),
        "downloads_json": dump_json_list(detail.downloads),
        "contributors_json": dump_json_list(detail.contributors),
        "collectors_json": dump_json_list(detail.collectors),
        "funders_json": dump_json_list(detail.funders),
        "partners_json": dump_json_list(detail.partners),
        "site_authority": dump_json_list(detail.site_authority),
        "datacite_json": dump_json_blob(detail.datacite),
    }


def _exists(conn: Connection, table: str, doi: str) -> bool:
    row = conn.execute(
        sql_text(f"SELECT 1 FROM {table} WHERE doi = :doi"), {"doi": doi}
    ).first()
    return row is not None


def _upsert(engine: Engine, table: str, sql: str, params: Dict[str, Any]) -> bool:
    with engine.begin() as conn:
        existed = _exists(conn, table, params["doi"])
        conn.execute(sql_text(sql), params)
    return not existed


def upsert_project(engine: Engine, stub: ProjectStub) -> bool:
    """Insert or update one stub. Returns True when the DOI was new."""
    return _upsert(engine, PROJECTS_TABLE, _UPSERT_PROJECT_SQL, project_params(stub))


def upsert_project_details(engine: Engine, detail: ProjectDetail) -> bool:
    """Insert or update one detail record. Returns True when the DOI was new."""
    return _upsert(engine, DETAILS_TABLE, _UPSERT_DETAIL_SQL, detail_params(detail))


def list_projects(engine: Engine) -> List[Dict[str, str]]:
    with engine.begin() as conn:
        rows = (
            conn.execute(
                sql_text(
                    f"""
                    SELECT
                        p.project_name,
                        p.country,
                        p.status,
                        p.project_link,
                        d.reuse_score,
                        d.publication_date
                    FROM {PROJECTS_TABLE} p
                    LEFT JOIN {DETAILS_TABLE} d ON p.doi = d.doi
                    ORDER BY p.project_name
                    """
                )
            )
            .mappings()
            .all()
        )
    return [{c: row[c] or "" for c in API_COLUMNS} for row in rows]


def get_stats(engine: Engine) -> Dict[str, int]:
    with engine.begin() as conn:
        row = (
            conn.execute(
                sql_text(
                    f"""
                    SELECT
                      COUNT(*) AS total_projects,
                      COUNT(d.doi) AS projects_with_details,
                      COUNT(d.license) AS projects_with_license,
                      COUNT(d.point_cloud_iframe) AS projects_with_pointcloud,
                      COUNT(d.datacite_json) AS projects_with_datacite
                    FROM {PROJECTS_TABLE} p
                    LEFT JOIN {DETAILS_TABLE} d ON p.doi = d.doi
                    """
                )
            )
            .mappings()
            .first()
        )
    return {k: int(v or 0) for k, v in dict(row or {}).items()}


def sample_project(engine: Engine) -> Optional[Dict[str, Any]]:
    """One project with license details, with JSON columns decoded."""
    with engine.begin() as conn:
        row = (
            conn.execute(
                sql_text(
                    f"""
                    SELECT p.project_name, p.country, p.doi, p.status,
                           d.license, d.license_url, d.collection_date, d.publication_date,
                           d.point_cloud_iframe, d.center_lat, d.center_lng,
                           d.contributors_json, d.data_types_json, d.downloads_json,
                           d.datacite_json, d.site_description
                    FROM {PROJECTS_TABLE} p
                    INNER JOIN {DETAILS_TABLE} d ON p.doi = d.doi
                    WHERE d.license IS NOT NULL
                    ORDER BY p.project_name
                    LIMIT 1
                    """
                )
            )
            .mappings()
            .first()
        )
    if row is None:
        return None
    data = dict(row)
    for key in ("contributors_json", "data_types_json", "downloads_json"):
        raw = data.pop(key)
        data[key.removesuffix("_json")] = json.loads(raw) if raw else []
    data["has_datacite"] = data.pop("datacite_json") is not None
    data["description_length"] = len(data.pop("site_description") or "")
    return data
