"""Vendor catalogue for FPV clearance and search scraping.

Three markup dialects cover all configured storefronts:

- GetFPV (Magento): li.product-item cards
- RaceDayQuads: div.product-item cards with a title link
- Shopify themes: a broad selector union that matches the common
  Debut/Dawn/Boundless class names
"""

from typing import List, Optional
from urllib.parse import quote

from dealhunter.core.exceptions import VendorNotFoundError
from dealhunter.scrapers.base import SelectorSet, VendorConfig


# Characters left unescaped by JavaScript's encodeURIComponent
_QUERY_SAFE_CHARS = "-_.!~*'()"

SHOPIFY_SELECTORS = SelectorSet(
    card="div.grid-view-item, .product-card, .product-item, .card-wrapper, .product-grid-item",
    title=(
        "div.grid-view-item__title, .card__heading, .product-item__title, "
        ".full-unstyled-link, .product-title, h3 a"
    ),
    price=(
        "span.price-item--sale, span.price-item--regular, .price__current, "
        ".product-price__price, .money, .price"
    ),
    image=(
        "img.grid-view-item__image, .card__media img, "
        ".product-item__image-wrapper img, .product-grid-image img"
    ),
    link="a.grid-view-item__link, a.full-unstyled-link, .product-item__image-link, .product-card a",
)

GETFPV_SELECTORS = SelectorSet(
    card="li.product-item",
    title="a.product-item-link",
    price="span.price",
    image="img.product-image-photo",
    link="a.product-item-photo",
)

RDQ_SELECTORS = SelectorSet(
    card="div.product-item",
    title="a.product-item__title",
    price="span.price",
    image="div.product-item__image-wrapper img",
    link="a.product-item__title",
)

SHOPIFY_SEARCH_PATH = "/search?q={query}"

VENDORS: List[VendorConfig] = [
    VendorConfig(
        name="GetFPV",
        base_url="https://www.getfpv.com",
        clearance_path="/on-sale/clearance.html?product_list_limit=100",
        search_path="/catalogsearch/result/?q={query}",
        selectors=GETFPV_SELECTORS,
    ),
    VendorConfig(
        name="RaceDayQuads",
        base_url="https://www.racedayquads.com",
        clearance_path="/collections/clearance",
        search_path=SHOPIFY_SEARCH_PATH,
        selectors=RDQ_SELECTORS,
    ),
    VendorConfig(
        name="Pyrodrone",
        base_url="https://pyrodrone.com",
        clearance_path="/collections/clearance",
        search_path=SHOPIFY_SEARCH_PATH,
        selectors=SHOPIFY_SELECTORS,
    ),
    VendorConfig(
        name="NewBeeDrone",
        base_url="https://newbeedrone.com",
        clearance_path="/collections/clearance",
        search_path=SHOPIFY_SEARCH_PATH,
        selectors=SHOPIFY_SELECTORS,
    ),
    VendorConfig(
        name="TinyWhoop",
        base_url="https://www.tinywhoop.com",
        clearance_path="/collections/clearance",
        search_path=SHOPIFY_SEARCH_PATH,
        selectors=SHOPIFY_SELECTORS,
    ),
    VendorConfig(
        name="RotorRiot",
        base_url="https://rotorriot.com",
        clearance_path="/collections/clearance-sale",
        search_path=SHOPIFY_SEARCH_PATH,
        selectors=SHOPIFY_SELECTORS,
    ),
    VendorConfig(
        name="Webleedfpv",
        base_url="https://webleedfpv.com",
        clearance_path="/collections/clearance-1",
        search_path=SHOPIFY_SEARCH_PATH,
        selectors=SHOPIFY_SELECTORS,
    ),
]


def get_vendor_by_name(name: str) -> Optional[VendorConfig]:
    """Find a configured vendor by its exact name.

    Returns:
        VendorConfig, or None if no vendor has that name
    """
    for vendor in VENDORS:
        if vendor.name == name:
            return vendor
    return None


def require_vendor(name: str) -> VendorConfig:
    """Like get_vendor_by_name but raises VendorNotFoundError."""
    vendor = get_vendor_by_name(name)
    if vendor is None:
        raise VendorNotFoundError(name)
    return vendor


def build_vendor_url(vendor: VendorConfig, search_query: str = "") -> str:
    """Build the listing URL to fetch for a vendor.

    Args:
        vendor: Vendor configuration
        search_query: Free-text search; empty means the clearance listing

    Returns:
        Absolute URL, e.g. "https://pyrodrone.com/search?q=5%20inch%20frame"
    """
    if not search_query:
        return f"{vendor.base_url}{vendor.clearance_path}"

    encoded = quote(search_query, safe=_QUERY_SAFE_CHARS)
    return f"{vendor.base_url}{vendor.search_path.replace('{query}', encoded)}"
