"""Scraper system for extracting deals from vendor listing pages.

This package provides:
- Immutable vendor and selector configuration
- The selector-driven extractor that turns markup into DealRecords
- Field normalizers, request headers, and retry helpers
"""

from .base import DealRecord, FetchResult, SelectorSet, VendorConfig
from .extractor import parse_vendor_response
from .vendors import VENDORS, build_vendor_url, get_vendor_by_name, require_vendor

__all__ = [
    # Data structures
    "DealRecord",
    "FetchResult",
    "SelectorSet",
    "VendorConfig",
    # Extraction
    "parse_vendor_response",
    # Vendor catalogue
    "VENDORS",
    "build_vendor_url",
    "get_vendor_by_name",
    "require_vendor",
]
