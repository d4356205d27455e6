"""Post-run sanity report: one detailed sample project plus coverage stats."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.engine import Engine

from .scraper_observability import datacite_disabled
from .store import get_stats, sample_project

logger = logging.getLogger("heritage-scraper")


@dataclass
class DoctorReport:
    ok: bool
    stats: dict[str, int]
    sample: dict[str, Any] | None = None
    warnings: list[str] = field(default_factory=list)


def _check_env() -> list[str]:
    warnings: list[str] = []
    if datacite_disabled():
        warnings.append("SCRAPER_SKIP_DATACITE is set (DataCite metadata will stay empty)")
    return warnings


def run_doctor(engine: Engine) -> DoctorReport:
    stats = get_stats(engine)
    warnings = _check_env()
    if stats.get("total_projects", 0) == 0:
        warnings.append("No projects stored yet; run `scrape` first")
    elif stats.get("projects_with_details", 0) == 0:
        warnings.append("No project has details; detail pages may have changed layout")
    return DoctorReport(
        ok=stats.get("total_projects", 0) > 0,
        stats=stats,
        sample=sample_project(engine),
        warnings=warnings,
    )


def format_report(report: DoctorReport) -> str:
    lines: list[str] = []
    sample = report.sample
    if sample:
        lines.append("=== Detailed Project Example ===")
        lines.append(f"Project: {sample['project_name']}")
        lines.append(f"Country: {sample['country']}")
        lines.append(f"DOI: {sample['doi']}")
        lines.append(f"Status: {sample['status']}")
        lines.append(f"License: {sample['license']}")
        lines.append(f"License URL: {sample['license_url']}")
        lines.append(f"Collection Date: {sample['collection_date']}")
        lines.append(f"Publication Date: {sample['publication_date']}")
        lines.append(f"Has Point Cloud: {'Yes' if sample['point_cloud_iframe'] else 'No'}")
        if sample["center_lat"] is not None:
            lines.append(f"Center Coordinates: {sample['center_lat']}, {sample['center_lng']}")
        else:
            lines.append("Center Coordinates: Not available")
        lines.append(f"Description Length: {sample['description_length']} characters")
        lines.append(f"Has DataCite: {'Yes' if sample['has_datacite'] else 'No'}")
        if sample["contributors"]:
            lines.append("Contributors: " + ", ".join(c["name"] for c in sample["contributors"]))
        if sample["data_types"]:
            lines.append(
                "Data Types: " + ", ".join(f"{d['type']} ({d['size']})" for d in sample["data_types"])
            )
        if sample["downloads"]:
            lines.append(f"Download Files: {len(sample['downloads'])} file(s) available")
    else:
        lines.append("No detailed project found with license info")

    s = report.stats
    lines.append("")
    lines.append("=== Database Statistics ===")
    lines.append(f"Total projects: {s.get('total_projects', 0)}")
    lines.append(f"Projects with details: {s.get('projects_with_details', 0)}")
    lines.append(f"Projects with license info: {s.get('projects_with_license', 0)}")
    lines.append(f"Projects with point clouds: {s.get('projects_with_pointcloud', 0)}")
    lines.append(f"Projects with DataCite metadata: {s.get('projects_with_datacite', 0)}")
    for w in report.warnings:
        lines.append(f"WARNING: {w}")
    return "\n".join(lines)
