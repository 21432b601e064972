"""Normalization utilities for prices and URLs scraped from vendor markup."""

import math
import re
from typing import Optional


PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/300x300?text=No+Image"

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d*(?:\.\d*)?")


def normalize_price(raw: Optional[str]) -> float:
    """Parse a price string into a non-negative float.

    Everything except ASCII digits and the decimal point is stripped first,
    so thousands separators and currency symbols disappear:

    - "$29.99" -> 29.99
    - "$1,299.00" -> 1299.0
    - "Free" -> 0.0

    Only the leading numeric part of what remains is parsed ("1.2.3" -> 1.2).

    Args:
        raw: Raw price text

    Returns:
        Price as float, or 0.0 if no finite number could be parsed
    """
    if not raw:
        return 0.0

    cleaned = _NON_NUMERIC.sub("", raw)
    number = _LEADING_NUMBER.match(cleaned).group(0)

    # "" and "." carry no digits
    if not number.strip("."):
        return 0.0

    value = float(number)
    # Overlong digit runs overflow to inf, which has no JSON representation
    if not math.isfinite(value):
        return 0.0
    return value


def normalize_url(url: str, base_url: str) -> str:
    """Make a product link absolute.

    Links already starting with "http" are returned unchanged; anything else
    is appended to base_url as-is, without inserting or collapsing slashes.

    Args:
        url: href as found in the markup (e.g. "/products/x" or "#")
        base_url: Vendor origin without trailing slash

    Returns:
        Absolute URL
    """
    if url.startswith("http"):
        return url
    return f"{base_url}{url}"


def normalize_image_url(src: Optional[str], base_url: Optional[str] = None) -> str:
    """Make an image source absolute.

    Handles:
    - missing source -> placeholder image
    - protocol-relative "//cdn.example.com/x.jpg" -> "https://cdn.example.com/x.jpg"
    - absolute "https://..." -> unchanged
    - relative "/media/x.jpg" -> base_url + src (or src if no base_url)
    """
    if not src:
        return PLACEHOLDER_IMAGE_URL

    if src.startswith("//"):
        return f"https:{src}"

    if src.startswith("http"):
        return src

    if base_url:
        return f"{base_url}{src}"

    return src
