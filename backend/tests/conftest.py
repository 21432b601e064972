"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable, Dict, List

import httpx
import pytest

from dealhunter.scrapers.base import SelectorSet, VendorConfig
from dealhunter.scrapers.vendors import GETFPV_SELECTORS
from dealhunter.services.cache_service import MemoryCacheService

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def card_html(title: str, price: str, href: str = "/test", img: str = "/test.jpg") -> str:
    """Render one GetFPV-style listing card."""
    return (
        '<li class="product-item">'
        f'<a class="product-item-link" href="{href}">{title}</a>'
        f'<span class="price">{price}</span>'
        f'<a class="product-item-photo" href="{href}">'
        f'<img class="product-image-photo" src="{img}">'
        "</a>"
        "</li>"
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class VendorSite:
    """Records requests and answers them per host from a route table.

    A route is either an httpx.Response, an exception class from httpx
    (raised with the request attached), or a callable taking the request.
    """

    def __init__(self, routes: Dict[str, object]):
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes[request.url.host]
        if isinstance(route, type) and issubclass(route, httpx.HTTPError):
            raise route(f"{route.__name__} for {request.url.host}", request=request)
        if callable(route) and not isinstance(route, httpx.Response):
            return route(request)
        return route

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def urls(self) -> List[str]:
        return [str(r.url) for r in self.requests]


def make_vendor(name: str, host: str, selectors: SelectorSet = GETFPV_SELECTORS) -> VendorConfig:
    return VendorConfig(
        name=name,
        base_url=f"https://{host}",
        clearance_path="/clearance",
        search_path="/search?q={query}",
        selectors=selectors,
    )


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def load_fixture() -> Callable[[str], str]:
    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCacheService:
    """Isolated in-memory cache with a controllable clock."""
    return MemoryCacheService(default_ttl=900, clock=clock)


@pytest.fixture
def vendors() -> List[VendorConfig]:
    """Three test vendors on distinct hosts, sharing GetFPV-style markup."""
    return [
        make_vendor("Alpha", "alpha.test"),
        make_vendor("Bravo", "bravo.test"),
        make_vendor("Charlie", "charlie.test"),
    ]
