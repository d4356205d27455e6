from __future__ import annotations

import logging
from typing import Any, Dict
from urllib.parse import quote

import requests

logger = logging.getLogger("heritage-scraper")

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
API_USER_AGENT = "OpenHeritage3D-Scraper/1.0"

LISTING_TIMEOUT_S = 30
DETAIL_TIMEOUT_S = 15
DATACITE_TIMEOUT_S = 10
DATACITE_URL = "https://api.datacite.org/dois/{doi}"


def fetch_html(url: str, timeout: float = DETAIL_TIMEOUT_S) -> str:
    """GET a page as text. Transport and HTTP errors propagate to the caller."""
    r = requests.get(url, headers={"User-Agent": BROWSER_USER_AGENT}, timeout=timeout)
    r.raise_for_status()
    # requests assumes ISO-8859-1 for text/html without a charset; the site serves UTF-8
    if "charset" not in r.headers.get("Content-Type", "").lower():
        r.encoding = "utf-8"
    return r.text


def fetch_datacite(doi: str, timeout: float = DATACITE_TIMEOUT_S) -> Dict[str, Any] | None:
    """Best-effort DataCite lookup; any failure returns None."""
    url = DATACITE_URL.format(doi=quote(doi, safe=""))
    try:
        r = requests.get(
            url,
            headers={"Accept": "application/vnd.api+json", "User-Agent": API_USER_AGENT},
            timeout=timeout,
        )
        r.raise_for_status()
        payload = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("DataCite fetch failed for DOI %s: %s", doi, e)
        return None
    return payload if isinstance(payload, dict) else None
