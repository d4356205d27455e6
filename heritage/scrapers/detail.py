"""Per-project detail page parser.

Detail pages hold a handful of label/value tables whose labels drift in
spelling and punctuation, one optional data-type table, a point-cloud viewer
iframe and the inline map/download script. Labels are normalized and looked
up in ``LABEL_HANDLERS``; to support a new row add an entry there.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from bs4 import BeautifulSoup, Tag

from ..types import DataType, Entity, ProjectDetail
from .cells import (
    SITE_BASE_URL,
    cell_text,
    extract_entities,
    first_href,
    normalize_label,
)
from .script_miner import extract_coordinates, extract_downloads

logger = logging.getLogger("heritage-scraper")

VIEWER_CONTAINER_ID = "portreeViewer"
DATA_TYPE_MARKER = "datatype"
DATA_TYPE_COLUMNS = 4

LabelHandler = Callable[[ProjectDetail, Tag], None]


def _inner_html(cell: Tag) -> Optional[str]:
    html = cell.decode_contents().strip()
    return html or None


def _markup(attr: str) -> LabelHandler:
    def handler(detail: ProjectDetail, cell: Tag) -> None:
        setattr(detail, attr, _inner_html(cell))

    return handler


def _text(attr: str) -> LabelHandler:
    def handler(detail: ProjectDetail, cell: Tag) -> None:
        setattr(detail, attr, cell_text(cell))

    return handler


def _href(attr: str) -> LabelHandler:
    def handler(detail: ProjectDetail, cell: Tag) -> None:
        setattr(detail, attr, first_href(cell))

    return handler


def _entities(attr: str) -> LabelHandler:
    def handler(detail: ProjectDetail, cell: Tag) -> None:
        setattr(detail, attr, extract_entities(cell, SITE_BASE_URL) or None)

    return handler


def _license(detail: ProjectDetail, cell: Tag) -> None:
    detail.license = cell_text(cell)
    href = first_href(cell)
    if href:
        detail.license_url = href if href.startswith("http") else f"https://{href}"


def _site_authority(detail: ProjectDetail, cell: Tag) -> None:
    # Authorities are names like "Ministry of Culture, Italy": without anchors
    # the whole text is one party, not a comma list.
    if cell.find("a") is not None:
        entities = extract_entities(cell, SITE_BASE_URL)
    else:
        text = cell_text(cell)
        entities = [Entity(name=text)] if text else []
    detail.site_authority = entities or None


LABEL_HANDLERS: dict[str, LabelHandler] = {
    "sitedescription": _markup("site_description"),
    "projectdescription": _markup("project_description"),
    "externalprojectlink": _href("external_project_link"),
    "additionalinformation": _href("additional_information_link"),
    "collectiondate": _text("collection_date"),
    "publicationdate": _text("publication_date"),
    "licensetype": _license,
    "reusescore": _text("reuse_score"),
    "citation": _text("citation"),
    "contributors": _entities("contributors"),
    "collectors": _entities("collectors"),
    "funders": _entities("funders"),
    "partners": _entities("partners"),
    "siteauthority": _site_authority,
}


def _viewer_src(soup: BeautifulSoup) -> Optional[str]:
    iframe = soup.select_one(f"#{VIEWER_CONTAINER_ID} iframe") or soup.find("iframe")
    if iframe is None:
        return None
    return iframe.get("src") or None


def is_data_type_table(rows: list[Tag]) -> bool:
    if not rows:
        return False
    header = rows[0].find_all(["th", "td"])
    return len(header) >= DATA_TYPE_COLUMNS and DATA_TYPE_MARKER in normalize_label(
        header[0].get_text()
    )


def _data_types(rows: list[Tag]) -> list[DataType]:
    out: list[DataType] = []
    for row in rows[1:]:
        cells = row.find_all("td")
        if len(cells) < DATA_TYPE_COLUMNS:
            continue
        out.append(
            DataType(
                type=cells[0].get_text().strip(),
                size=cells[1].get_text().strip(),
                device_name=cells[2].get_text().strip(),
                device_type=cells[3].get_text().strip(),
            )
        )
    return out


def _apply_labels(detail: ProjectDetail, rows: list[Tag]) -> None:
    for row in rows:
        cells = row.find_all(["td", "th"])
        if len(cells) < 2:
            continue
        handler = LABEL_HANDLERS.get(normalize_label(cells[0].get_text()))
        if handler is None:
            continue
        try:
            handler(detail, cells[1])
        except Exception as exc:
            logger.warning("Label %r not extracted for %s: %s", cells[0].get_text().strip(), detail.doi, exc)


def parse_detail(html: str, doi: str) -> ProjectDetail:
    soup = BeautifulSoup(html or "", "html.parser")
    detail = ProjectDetail(doi=doi)

    detail.point_cloud_iframe = _viewer_src(soup)

    coords = extract_coordinates(html)
    detail.bbox = coords.bbox
    detail.center_lat = coords.center_lat
    detail.center_lng = coords.center_lng
    detail.downloads = extract_downloads(soup)

    data_types: list[DataType] = []
    for table in soup.find_all("table"):
        rows = table.find_all("tr")
        if is_data_type_table(rows):
            data_types.extend(_data_types(rows))
        else:
            _apply_labels(detail, rows)
    detail.data_types = data_types or None

    return detail
