from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

# Listing cells that stand in for a missing DOI
DOI_SENTINEL = "N/A"


@dataclass(frozen=True)
class Cell:
    text: str
    link: Optional[str] = None


@dataclass(frozen=True)
class Entity:
    """A named party (contributor, collector, funder, partner, authority)."""

    name: str
    link: Optional[str] = None


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True)
class DataType:
    type: str
    size: str
    device_name: str
    device_type: str


@dataclass(frozen=True)
class Download:
    field: str
    value: str


@dataclass
class Coordinates:
    bbox: Optional[list[LatLng]] = None
    center_lat: Optional[float] = None
    center_lng: Optional[float] = None


@dataclass
class ProjectStub:
    name: str
    country: str
    doi: str
    status: str
    collectors: str
    keywords: Optional[str] = None
    contributor: Optional[str] = None
    project_link: Optional[str] = None
    doi_link: Optional[str] = None
    collectors_link: Optional[str] = None


@dataclass
class ProjectDetail:
    doi: str
    site_description: Optional[str] = None
    project_description: Optional[str] = None
    external_project_link: Optional[str] = None
    additional_information_link: Optional[str] = None
    collection_date: Optional[str] = None
    publication_date: Optional[str] = None
    license: Optional[str] = None
    license_url: Optional[str] = None
    reuse_score: Optional[str] = None
    citation: Optional[str] = None
    point_cloud_iframe: Optional[str] = None
    bbox: Optional[list[LatLng]] = None
    center_lat: Optional[float] = None
    center_lng: Optional[float] = None
    data_types: Optional[list[DataType]] = None
    downloads: Optional[list[Download]] = None
    contributors: Optional[list[Entity]] = None
    collectors: Optional[list[Entity]] = None
    funders: Optional[list[Entity]] = None
    partners: Optional[list[Entity]] = None
    site_authority: Optional[list[Entity]] = None
    datacite: Optional[dict[str, Any]] = None


@dataclass
class ScrapeResult:
    projects_found: int = 0
    new_projects: int = 0
    updated_projects: int = 0
    new_details: int = 0
    updated_details: int = 0
    details_missing: int = 0
    details_skipped: int = 0
    write_failures: int = 0
    failed_dois: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
