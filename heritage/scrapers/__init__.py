"""
Open Heritage 3D page parsers.

Parsers are designed to be:
- pure (HTML text in, typed records out; fetching lives in ``http``)
- fail-soft (a missing field never sinks the rest of the page)
"""
from .detail import parse_detail
from .listing import ListingStructureError, parse_listing

__all__ = ["ListingStructureError", "parse_detail", "parse_listing"]
