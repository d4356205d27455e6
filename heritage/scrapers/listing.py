from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from ..types import DOI_SENTINEL, ProjectStub
from .cells import SITE_BASE_URL, extract_cell

logger = logging.getLogger("heritage-scraper")

LISTING_TABLE_ID = "demo"
MIN_CELLS = 5
EXTENDED_CELLS = 7

_DOI_LINK_RE = re.compile(r"doi\.org/(.+)$")


class ListingStructureError(RuntimeError):
    """The listing page no longer carries the project table."""


def resolve_doi(text: str, link: str | None) -> str:
    """Prefer the resolver path suffix; some rows print the resolver URL as text."""
    for candidate in (link, text):
        if candidate and "doi.org/" in candidate:
            match = _DOI_LINK_RE.search(candidate.strip())
            if match:
                return match.group(1)
    return text


def parse_listing(html: str, base_url: str = SITE_BASE_URL) -> list[ProjectStub]:
    soup = BeautifulSoup(html, "html.parser")
    table = soup.find("table", id=LISTING_TABLE_ID)
    if table is None:
        raise ListingStructureError(f'Table with id="{LISTING_TABLE_ID}" not found')

    body = table.find("tbody")
    if body is not None:
        rows = body.find_all("tr")
    else:
        # html.parser does not synthesize <tbody>; header rows have no <td>
        rows = [tr for tr in table.find_all("tr") if tr.find("td")]

    stubs: list[ProjectStub] = []
    for row in rows:
        cells = row.find_all(["th", "td"])
        if len(cells) < MIN_CELLS:
            continue

        project = extract_cell(cells[0], base_url)
        country = extract_cell(cells[1], base_url)
        doi_cell = extract_cell(cells[2], base_url)
        status = extract_cell(cells[3], base_url)
        collectors = extract_cell(cells[4], base_url)

        # Older table layouts omit the hidden keyword/contributor columns
        keywords = contributor = None
        if len(cells) >= EXTENDED_CELLS:
            keywords = extract_cell(cells[5], base_url).text
            contributor = extract_cell(cells[6], base_url).text

        doi = resolve_doi(doi_cell.text, doi_cell.link)
        if not doi or doi == DOI_SENTINEL:
            continue

        stubs.append(
            ProjectStub(
                name=project.text,
                country=country.text,
                doi=doi,
                status=status.text,
                collectors=collectors.text,
                keywords=keywords,
                contributor=contributor,
                project_link=project.link,
                doi_link=doi_cell.link,
                collectors_link=collectors.link,
            )
        )

    logger.info("Found %s projects", len(stubs))
    return stubs
