"""Tests for the vendor fan-out aggregator."""

import asyncio
import json
import time

import httpx
import pytest

from conftest import VendorSite, card_html
from dealhunter.core.exceptions import AggregationError
from dealhunter.scrapers.vendors import VENDORS, get_vendor_by_name
from dealhunter.services.aggregator import DealAggregator
from dealhunter.services.cache_service import cache_key_for_deals


def ok(body: str) -> httpx.Response:
    return httpx.Response(200, text=body)


def make_aggregator(cache, vendors, site: VendorSite, **kwargs) -> DealAggregator:
    return DealAggregator(cache=cache, vendors=vendors, transport=site.transport, **kwargs)


class TestFetchVendor:
    """Tests for a single vendor fetch."""

    async def test_fetches_and_parses_deals(self, cache):
        vendor = get_vendor_by_name("GetFPV")
        site = VendorSite({"www.getfpv.com": ok(card_html("Test Product", "$25.00"))})
        aggregator = make_aggregator(cache, [vendor], site)

        result = await aggregator.fetch_vendor(vendor)

        assert result.vendor == "GetFPV"
        assert result.ok
        assert result.error is None
        assert result.url == "https://www.getfpv.com/on-sale/clearance.html?product_list_limit=100"
        assert len(result.deals) == 1
        assert result.deals[0].title == "Test Product"
        assert result.deals[0].price_val == 25.0

    async def test_sends_polite_headers(self, cache, vendors):
        site = VendorSite({"alpha.test": ok("")})
        aggregator = make_aggregator(cache, vendors, site)

        await aggregator.fetch_vendor(vendors[0])

        headers = site.requests[0].headers
        assert "FPV-Deal-Hunter" in headers["User-Agent"]
        assert headers["Cache-Control"] == "no-cache"
        assert headers["Pragma"] == "no-cache"
        assert "text/html" in headers["Accept"]

    async def test_search_query_builds_search_url(self, cache, vendors):
        site = VendorSite({"alpha.test": ok("")})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_vendor(vendors[0], "tiny whoop")

        assert result.url == "https://alpha.test/search?q=tiny%20whoop"
        assert site.urls == ["https://alpha.test/search?q=tiny%20whoop"]

    async def test_non_success_status(self, cache, vendors):
        site = VendorSite({"alpha.test": httpx.Response(404, text="Not Found")})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_vendor(vendors[0])

        assert result.deals == []
        assert not result.ok
        assert result.error == "HTTP 404: Not Found"
        assert result.url == "https://alpha.test/clearance"

    async def test_server_error_status(self, cache, vendors):
        site = VendorSite({"alpha.test": httpx.Response(503)})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_vendor(vendors[0])

        assert "503" in result.error

    async def test_transport_error(self, cache, vendors):
        site = VendorSite({"alpha.test": httpx.ConnectError})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_vendor(vendors[0])

        assert result.deals == []
        assert "ConnectError for alpha.test" in result.error
        assert result.url == "https://alpha.test/clearance"

    async def test_timeout_error(self, cache, vendors):
        site = VendorSite({"alpha.test": httpx.ReadTimeout})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_vendor(vendors[0])

        assert "ReadTimeout" in result.error

    async def test_unexpected_error_is_captured(self, cache, vendors):
        def explode(request):
            raise RuntimeError("boom")

        site = VendorSite({"alpha.test": explode})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_vendor(vendors[0])

        assert result.error == "boom"
        assert result.deals == []

    async def test_retries_transient_errors_when_enabled(self, cache, vendors):
        attempts = []

        def flaky(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("reset", request=request)
            return ok(card_html("Second try", "$9.00"))

        site = VendorSite({"alpha.test": flaky})
        aggregator = make_aggregator(cache, vendors, site, max_attempts=2, retry_backoff=0)

        result = await aggregator.fetch_vendor(vendors[0])

        assert len(attempts) == 2
        assert result.ok
        assert result.deals[0].title == "Second try"

    async def test_single_attempt_by_default(self, cache, vendors):
        site = VendorSite({"alpha.test": httpx.ConnectError})
        aggregator = make_aggregator(cache, vendors, site, max_attempts=1)

        await aggregator.fetch_vendor(vendors[0])

        assert len(site.requests) == 1

    async def test_bad_status_is_not_retried(self, cache, vendors):
        site = VendorSite({"alpha.test": httpx.Response(500)})
        aggregator = make_aggregator(cache, vendors, site, max_attempts=3, retry_backoff=0)

        await aggregator.fetch_vendor(vendors[0])

        assert len(site.requests) == 1


class TestFetchAllVendors:
    """Tests for the concurrent fan-out."""

    async def test_merges_all_vendors(self, cache, vendors):
        site = VendorSite({
            "alpha.test": ok(card_html("A", "$10.00")),
            "bravo.test": ok(card_html("B", "$10.00")),
            "charlie.test": ok(card_html("C", "$10.00")),
        })
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        assert len(result.deals) == 3
        assert result.failed == []
        assert result.cached is False
        assert result.timestamp > 0
        assert result.search_query is None
        assert len(site.requests) == 3

    async def test_reports_failed_vendors(self, cache):
        vendors = VENDORS
        site = VendorSite({
            "www.getfpv.com": ok(card_html("Product", "$10.00")),
            "www.racedayquads.com": ok('<div class="product-item"><a class="product-item__title" href="/p">Quad</a><span class="price">$10.00</span></div>'),
            "pyrodrone.com": ok('<div class="product-card"><a class="full-unstyled-link" href="/p">Cam</a><span class="money">$10.00</span></div>'),
            "newbeedrone.com": httpx.ReadTimeout,
            "www.tinywhoop.com": httpx.ConnectError,
            "rotorriot.com": httpx.Response(500),
            "webleedfpv.com": httpx.RemoteProtocolError,
        })
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        assert len(result.failed) == 4
        assert len(result.deals) >= 3
        assert [f.vendor for f in result.failed] == ["NewBeeDrone", "TinyWhoop", "RotorRiot", "Webleedfpv"]
        for failure in result.failed:
            assert failure.vendor
            assert failure.error
            assert failure.url.startswith("https://")

    async def test_failures_keep_configuration_order(self, cache, vendors):
        async def slow_failure(request):
            await asyncio.sleep(0.05)
            return httpx.Response(502)

        async def fast_failure(request):
            return httpx.Response(404)

        site = VendorSite({
            "alpha.test": slow_failure,
            "bravo.test": ok(card_html("B", "$1.00")),
            "charlie.test": fast_failure,
        })
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        assert [f.vendor for f in result.failed] == ["Alpha", "Charlie"]

    async def test_deals_sorted_by_price(self, cache, vendors):
        site = VendorSite({
            "alpha.test": ok(card_html("Expensive", "$100.00") + card_html("Cheapest", "$1.50")),
            "bravo.test": ok(card_html("Cheap", "$5.00")),
            "charlie.test": ok(card_html("Medium", "$50.00")),
        })
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        prices = [d.price_val for d in result.deals]
        assert prices == [1.5, 5.0, 50.0, 100.0]
        assert prices == sorted(prices)

    async def test_equal_prices_keep_vendor_order(self, cache, vendors):
        async def slow(request):
            await asyncio.sleep(0.05)
            return ok(card_html("From Alpha", "$10.00"))

        site = VendorSite({
            "alpha.test": slow,
            "bravo.test": ok(card_html("From Bravo", "$10.00")),
            "charlie.test": ok(card_html("From Charlie", "$10.00")),
        })
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        assert [d.title for d in result.deals] == ["From Alpha", "From Bravo", "From Charlie"]

    async def test_mixed_dialects_sorted(self, cache):
        vendors = VENDORS[:3]
        site = VendorSite({
            "www.getfpv.com": ok(card_html("Expensive", "$100.00")),
            "www.racedayquads.com": ok(
                '<div class="product-item"><a class="product-item__title" href="/test">Cheap</a>'
                '<span class="price">$5.00</span>'
                '<div class="product-item__image-wrapper"><img src="/test.jpg"></div></div>'
            ),
            "pyrodrone.com": ok(
                '<div class="product-card"><div class="card__heading">'
                '<a href="/test" class="full-unstyled-link">Medium</a></div>'
                '<div class="card__media"><img src="/test.jpg"></div>'
                '<span class="price-item price-item--sale">$50.00</span></div>'
            ),
        })
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        assert [(d.title, d.price_val) for d in result.deals] == [
            ("Cheap", 5.0),
            ("Medium", 50.0),
            ("Expensive", 100.0),
        ]
        assert result.deals[0].vendor == "RaceDayQuads"

    async def test_timestamp_taken_before_fan_out(self, cache, vendors):
        async def slow(request):
            await asyncio.sleep(0.05)
            return ok("")

        site = VendorSite({"alpha.test": slow, "bravo.test": slow, "charlie.test": slow})
        aggregator = make_aggregator(cache, vendors, site)

        before = int(time.time() * 1000)
        result = await aggregator.fetch_all_vendors()
        after = int(time.time() * 1000)

        assert before <= result.timestamp
        assert result.timestamp <= after - 40

    async def test_search_query_echoed_and_used(self, cache, vendors):
        site = VendorSite({host: ok("") for host in ("alpha.test", "bravo.test", "charlie.test")})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors("5 inch frame")

        assert result.search_query == "5 inch frame"
        assert all("/search?q=5%20inch%20frame" in url for url in site.urls)

    async def test_all_vendors_failing_still_returns(self, cache, vendors):
        site = VendorSite({host: httpx.ConnectError for host in ("alpha.test", "bravo.test", "charlie.test")})
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        assert result.deals == []
        assert len(result.failed) == 3


class TestCaching:
    """Memoization of aggregate responses."""

    @pytest.fixture
    def site(self):
        return VendorSite({
            "alpha.test": ok(card_html("A", "$10.00")),
            "bravo.test": ok(card_html("B", "$20.00")),
            "charlie.test": httpx.Response(500),
        })

    async def test_second_call_served_from_cache(self, cache, vendors, site):
        aggregator = make_aggregator(cache, vendors, site)

        first = await aggregator.fetch_all_vendors()
        requests_after_first = len(site.requests)
        second = await aggregator.fetch_all_vendors()

        assert first.cached is False
        assert second.cached is True
        assert len(site.requests) == requests_after_first
        assert second.deals == first.deals
        assert second.failed == first.failed
        assert second.timestamp == first.timestamp

    async def test_skip_cache_forces_fresh_fan_out(self, cache, vendors, site):
        aggregator = make_aggregator(cache, vendors, site)

        await aggregator.fetch_all_vendors()
        refreshed = await aggregator.fetch_all_vendors(skip_cache=True)

        assert refreshed.cached is False
        assert len(site.requests) == 6

    async def test_skip_cache_still_writes_cache(self, cache, vendors, site):
        aggregator = make_aggregator(cache, vendors, site)

        await aggregator.fetch_all_vendors(skip_cache=True)
        cached = await aggregator.fetch_all_vendors()

        assert cached.cached is True
        assert len(site.requests) == 3

    async def test_cache_expires_after_ttl(self, cache, vendors, site, clock):
        aggregator = make_aggregator(cache, vendors, site)

        await aggregator.fetch_all_vendors()
        clock.advance(901)
        again = await aggregator.fetch_all_vendors()

        assert again.cached is False
        assert len(site.requests) == 6

    async def test_queries_cached_separately(self, cache, vendors, site):
        aggregator = make_aggregator(cache, vendors, site)

        await aggregator.fetch_all_vendors()
        search = await aggregator.fetch_all_vendors("battery")
        search_again = await aggregator.fetch_all_vendors("battery")

        assert search.cached is False
        assert search_again.cached is True
        assert search_again.search_query == "battery"
        assert len(site.requests) == 6

    async def test_cached_value_is_a_snapshot(self, cache, vendors, site):
        aggregator = make_aggregator(cache, vendors, site)

        first = await aggregator.fetch_all_vendors()
        first.deals.clear()
        second = await aggregator.fetch_all_vendors()

        assert len(second.deals) == 2

    async def test_cache_stores_wire_format(self, cache, vendors, site):
        aggregator = make_aggregator(cache, vendors, site)

        await aggregator.fetch_all_vendors("battery")

        stored = json.loads(await cache.get(cache_key_for_deals("battery")))
        assert stored["searchQuery"] == "battery"
        assert stored["cached"] is False
        assert set(stored["deals"][0]) == {"vendor", "title", "price_str", "price_val", "link", "image"}

    async def test_fan_out_failure_not_cached(self, cache, vendors, site):
        aggregator = make_aggregator(cache, vendors, site)

        async def broken(*args, **kwargs):
            raise RuntimeError("event loop trouble")

        aggregator.fetch_vendor = broken

        with pytest.raises(AggregationError):
            await aggregator.fetch_all_vendors()

        assert await cache.get(cache_key_for_deals("")) is None

    async def test_invalid_cache_entry_treated_as_miss(self, cache, vendors, site):
        await cache.set(cache_key_for_deals(""), '{"deals": [{"price_val": null}], "timestamp": 1}')
        aggregator = make_aggregator(cache, vendors, site)

        result = await aggregator.fetch_all_vendors()

        assert result.cached is False
        assert len(result.deals) == 2
        assert len(site.requests) == 3

        again = await aggregator.fetch_all_vendors()
        assert again.cached is True

    async def test_overflowing_price_does_not_poison_cache(self, cache, vendors):
        site = VendorSite({
            "alpha.test": ok(card_html("Huge", "$" + "9" * 400) + card_html("Normal", "$12.00")),
            "bravo.test": ok(""),
            "charlie.test": ok(""),
        })
        aggregator = make_aggregator(cache, vendors, site)

        first = await aggregator.fetch_all_vendors()
        second = await aggregator.fetch_all_vendors()

        assert [d.title for d in first.deals] == ["Normal"]
        assert second.cached is True
        assert [d.price_val for d in second.deals] == [12.0]
