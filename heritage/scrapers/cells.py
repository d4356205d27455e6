"""Cell-level helpers shared by the listing and detail parsers."""
from __future__ import annotations

from typing import Optional, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from ..types import Cell, Entity

SITE_BASE_URL = "https://openheritage3d.org/"

Fragment = Union[str, Tag]


def _as_tag(fragment: Fragment | None) -> Tag:
    if isinstance(fragment, Tag):
        return fragment
    return BeautifulSoup(fragment or "", "html.parser")


def resolve_link(href: Optional[str], base_url: str = SITE_BASE_URL) -> Optional[str]:
    if href is None:
        return None
    href = href.strip()
    if not href:
        return None
    return urljoin(base_url, href)


def normalize_label(text: str) -> str:
    """Reduce a row/column label to lowercase alphanumerics for dispatch.

    "Site Description:", "site-description" and "SiteDescription" all map to
    "sitedescription". Never use the result for display.
    """
    return "".join(ch for ch in (text or "").lower() if ch.isalnum())


def extract_cell(fragment: Fragment | None, base_url: str = SITE_BASE_URL) -> Cell:
    tag = _as_tag(fragment)
    anchor = tag.find("a")
    link = resolve_link(anchor.get("href"), base_url) if anchor is not None else None
    return Cell(text=tag.get_text().strip(), link=link)


def extract_entities(fragment: Fragment | None, base_url: str = SITE_BASE_URL) -> list[Entity]:
    tag = _as_tag(fragment)
    entities: list[Entity] = []

    for anchor in tag.find_all("a"):
        name = anchor.get_text().strip()
        if name:
            entities.append(Entity(name=name, link=resolve_link(anchor.get("href"), base_url)))

    # Some rows list parties as bare comma-separated text
    if not entities:
        for piece in tag.get_text().split(","):
            name = piece.strip()
            if name:
                entities.append(Entity(name=name))

    return entities


def first_href(fragment: Fragment | None) -> Optional[str]:
    anchor = _as_tag(fragment).find("a")
    if anchor is None:
        return None
    return anchor.get("href") or None


def cell_text(fragment: Fragment | None) -> Optional[str]:
    text = _as_tag(fragment).get_text().strip()
    return text or None
