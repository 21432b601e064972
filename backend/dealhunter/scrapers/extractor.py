"""Selector-driven extraction of deal records from vendor listing markup.

The extractor knows nothing about individual vendors: every storefront is
described by a SelectorSet, and each matched card is read independently.
Missing fields fall back to fixed defaults instead of failing the card:

    title  -> "Unknown"
    price  -> "$0.00" (and the card is then dropped, see below)
    link   -> "#"
    image  -> placeholder image

Cards whose price normalizes to exactly 0 are treated as out-of-stock or
placeholder tiles and are not emitted.
"""

from typing import List, Optional

import structlog
from bs4 import BeautifulSoup, Tag

from dealhunter.scrapers.base import DealRecord, VendorConfig
from dealhunter.scrapers.utils.normalizer import (
    normalize_image_url,
    normalize_price,
    normalize_url,
)


logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "Unknown"
DEFAULT_PRICE = "$0.00"
DEFAULT_LINK = "#"


def parse_vendor_response(markup: Optional[str], config: VendorConfig) -> List[DealRecord]:
    """Parse a vendor listing page into deal records.

    Args:
        markup: Raw HTML of the listing page (malformed markup is fine)
        config: Vendor configuration holding the selectors and base URL

    Returns:
        DealRecords in document order, zero-priced cards excluded
    """
    if not markup:
        return []

    soup = BeautifulSoup(markup, "html.parser")
    selectors = config.selectors
    cards = soup.select(selectors.card)

    deals: List[DealRecord] = []
    for card in cards:
        title = _extract_title(card, selectors.title)

        price_el = card.select_one(selectors.price)
        price_str = (price_el.get_text().strip() if price_el else "") or DEFAULT_PRICE
        price_val = normalize_price(price_str)

        if price_val == 0:
            continue

        link_el = card.select_one(selectors.link)
        href = _attr(link_el, "href") or DEFAULT_LINK
        link = normalize_url(href, config.base_url)

        img_el = card.select_one(selectors.image)
        image = normalize_image_url(_image_source(img_el), config.base_url)

        deals.append(
            DealRecord(
                vendor=config.name,
                title=title,
                price_str=price_str,
                price_val=price_val,
                link=link,
                image=image,
            )
        )

    logger.debug(
        "vendor_markup_parsed",
        vendor=config.name,
        cards=len(cards),
        deals=len(deals),
    )
    return deals


def _extract_title(card: Tag, selector: str) -> str:
    """Return the first non-empty title text under the card.

    Some themes render several title nodes per card (e.g. a hidden mobile
    variant) with only one of them populated.
    """
    for node in card.select(selector):
        text = node.get_text().strip()
        if text:
            return text
    return DEFAULT_TITLE


def _image_source(img: Optional[Tag]) -> str:
    """Pick the image URL from src, data-src, or the first srcset candidate."""
    if img is None:
        return ""

    src = _attr(img, "src") or _attr(img, "data-src")
    if src:
        return src

    srcset = _attr(img, "srcset")
    if srcset:
        first_candidate = srcset.split(",")[0].split()
        if first_candidate:
            return first_candidate[0]

    return ""


def _attr(node: Optional[Tag], name: str) -> str:
    """Read an attribute as a plain string ("" when missing)."""
    if node is None:
        return ""
    value = node.get(name)
    if value is None:
        return ""
    # Multi-valued attributes come back from BeautifulSoup as lists
    if isinstance(value, list):
        return " ".join(value)
    return value
