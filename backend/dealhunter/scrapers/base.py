"""Core data structures shared by the extractor and the aggregator.

Vendor configuration is plain immutable data; the extractor is a pure
function of (markup, VendorConfig) and produces DealRecord values.
"""

from dataclasses import asdict, dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class SelectorSet:
    """CSS selectors for each semantic role on a vendor listing page."""

    card: str  # Repeating item container
    title: str
    price: str
    image: str
    link: str


@dataclass(frozen=True)
class VendorConfig:
    """One storefront: where to fetch and how to read its markup."""

    name: str
    base_url: str  # Origin without trailing slash, e.g. "https://pyrodrone.com"
    clearance_path: str
    search_path: str  # Must contain the "{query}" placeholder
    selectors: SelectorSet

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.name:
            raise ValueError("name is required")
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an absolute http(s) origin: {self.base_url}")
        if self.base_url.endswith("/"):
            raise ValueError(f"base_url must not end with a slash: {self.base_url}")
        if "{query}" not in self.search_path:
            raise ValueError("search_path must contain the {query} placeholder")


@dataclass
class DealRecord:
    """Normalized deal extracted from a single vendor card."""

    vendor: str
    title: str
    price_str: str  # Raw, human readable (e.g. "$29.99")
    price_val: float
    link: str
    image: str

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.title:
            raise ValueError("title is required")
        if self.price_val is None or self.price_val < 0:
            raise ValueError("price_val must be a non-negative number")

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FetchResult:
    """Outcome of one fetch+extract cycle for a single vendor."""

    vendor: str
    url: str
    deals: List[DealRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
