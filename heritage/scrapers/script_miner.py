"""Mine coordinates and download descriptors embedded in a detail page.

Detail pages are static generated markup. The map widget is fed by inline
script written with one fixed idiom:

    var lat_mid = (41.8902 + 41.8912) / 2;
    var lng_mid = (12.4922 + 12.4932) / 2;
    var cords = [
        {lat: 41.8902, lng: 12.4922},
        {lat: 41.8912, lng: 12.4932},
    ];

and the download form carries hidden inputs named f0, f1, ... whose values
are single-quoted file descriptors. A few pages instead echo the descriptor
list through ``console.log('a.zip', '2GB', ...)``.

We match those idioms with regexes rather than parsing script. Anything that
does not match leaves the affected field as None; nothing here raises.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from ..types import Coordinates, Download, LatLng

logger = logging.getLogger("heritage-scraper")

_NUMBER = r"([0-9.\-]+)"
_LAT_MID_RE = re.compile(
    r"lat_mid\s*=\s*\(\s*" + _NUMBER + r"\s*\+\s*" + _NUMBER + r"\s*\)\s*/\s*2"
)
_LNG_MID_RE = re.compile(
    r"lng_mid\s*=\s*\(\s*" + _NUMBER + r"\s*\+\s*" + _NUMBER + r"\s*\)\s*/\s*2"
)
_CORDS_RE = re.compile(r"cords\s*=\s*\[\s*((?:\{[^}]+\},?\s*)+)\]")
_PAIR_RE = re.compile(r"\{\s*lat\s*:\s*" + _NUMBER + r"\s*,\s*lng\s*:\s*" + _NUMBER + r"\s*\}")

_DOWNLOAD_FIELD_RE = re.compile(r"^f\d+$")
_CONSOLE_LOG_RE = re.compile(r"console\.log\(([^)]+)\)")
_EDGE_QUOTES_RE = re.compile(r"^'|'$")


def _midpoint(pattern: re.Pattern[str], html: str) -> Optional[float]:
    match = pattern.search(html)
    if not match:
        return None
    try:
        return (float(match.group(1)) + float(match.group(2))) / 2
    except ValueError:
        logger.debug("Unparsable midpoint literal: %s", match.group(0))
        return None


def _bbox(html: str) -> Optional[list[LatLng]]:
    match = _CORDS_RE.search(html)
    if not match:
        return None
    try:
        points = [
            LatLng(lat=float(lat), lng=float(lng))
            for lat, lng in _PAIR_RE.findall(match.group(1))
        ]
    except ValueError:
        logger.debug("Unparsable bounding box literal")
        return None
    return points or None


def extract_coordinates(html: str) -> Coordinates:
    html = html or ""
    return Coordinates(
        bbox=_bbox(html),
        center_lat=_midpoint(_LAT_MID_RE, html),
        center_lng=_midpoint(_LNG_MID_RE, html),
    )


def _strip_quotes(value: str) -> str:
    return _EDGE_QUOTES_RE.sub("", value)


def extract_downloads(soup: BeautifulSoup) -> Optional[list[Download]]:
    downloads: list[Download] = []

    for el in soup.find_all("input", attrs={"type": "hidden"}):
        name = el.get("name")
        value = el.get("value")
        if name and _DOWNLOAD_FIELD_RE.match(name) and value and value.strip():
            downloads.append(Download(field=name, value=_strip_quotes(value)))

    for script in soup.find_all("script"):
        content = script.string or script.get_text()
        if not content or "console.log" not in content:
            continue
        match = _CONSOLE_LOG_RE.search(content)
        if not match or "," not in match.group(1):
            continue
        parts = [_strip_quotes(p.strip()) for p in match.group(1).split(",")]
        downloads.append(Download(field="console_log", value="|".join(parts)))

    return downloads or None
