"""Vendor fan-out aggregation service.

Runs one fetch+extract pipeline per configured vendor concurrently, turns
every per-vendor fault into a failure descriptor, and merges the surviving
deals into a single price-sorted response that is memoized in the cache.
"""

import asyncio
import time
from typing import List, Optional, Sequence

import httpx
import structlog
from pydantic import ValidationError

from dealhunter.config import settings
from dealhunter.core.exceptions import AggregationError, ScraperError
from dealhunter.schemas.deal import AggregateResponse, DealResponse, FailureDescriptor
from dealhunter.scrapers.base import DealRecord, FetchResult, VendorConfig
from dealhunter.scrapers.extractor import parse_vendor_response
from dealhunter.scrapers.utils.retry import vendor_retry
from dealhunter.scrapers.utils.user_agents import get_request_headers
from dealhunter.scrapers.vendors import VENDORS, build_vendor_url
from dealhunter.services.cache_service import CacheService, cache_key_for_deals

logger = structlog.get_logger(__name__)


class DealAggregator:
    """Service for fanning out to vendors and merging their deals.

    The cache and the HTTP transport are injected so callers (and tests)
    control both the shared state and the network.
    """

    def __init__(
        self,
        cache: CacheService,
        vendors: Optional[Sequence[VendorConfig]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        cache_ttl: Optional[int] = None,
    ):
        """Initialize aggregator.

        Args:
            cache: Cache backend used to memoize responses
            vendors: Vendors to fan out to (default: the full catalogue)
            transport: httpx transport override (e.g. httpx.MockTransport)
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per vendor request, 1 disables retrying
            retry_backoff: Exponential backoff multiplier between attempts
            cache_ttl: TTL for stored responses (default: the cache's own)
        """
        self.cache = cache
        self.vendors = list(vendors) if vendors is not None else list(VENDORS)
        self.transport = transport
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS
        self.cache_ttl = cache_ttl
        self._get = vendor_retry(
            max_attempts=max_attempts if max_attempts is not None else settings.FETCH_MAX_ATTEMPTS,
            backoff=retry_backoff if retry_backoff is not None else settings.FETCH_RETRY_BACKOFF,
        )(self._get_once)
        self.logger = logger.bind(service="deal_aggregator")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def _get_once(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        return await client.get(url, headers=get_request_headers())

    async def fetch_vendor(
        self,
        vendor: VendorConfig,
        search_query: str = "",
        client: Optional[httpx.AsyncClient] = None,
    ) -> FetchResult:
        """Fetch one vendor listing page and extract its deals.

        Never raises: HTTP status errors and transport failures come back as
        a FetchResult with an empty deal list and an error string.

        Args:
            vendor: Vendor configuration
            search_query: Free-text search; empty fetches the clearance page
            client: Shared client for the current cycle (one is created if omitted)

        Returns:
            FetchResult for this vendor
        """
        url = build_vendor_url(vendor, search_query)

        if client is None:
            async with self._client() as own_client:
                return await self.fetch_vendor(vendor, search_query, own_client)

        try:
            response = await self._get(client, url)
            if not response.is_success:
                raise ScraperError(
                    vendor.name,
                    f"HTTP {response.status_code}: {response.reason_phrase or 'Error'}",
                )

            deals = parse_vendor_response(response.text, vendor)

        except ScraperError as e:
            self.logger.warning("vendor_bad_status", vendor=vendor.name, url=url, error=e.reason)
            return FetchResult(vendor=vendor.name, url=url, error=e.reason)

        except httpx.HTTPError as e:
            error = str(e) or type(e).__name__
            self.logger.warning("vendor_fetch_failed", vendor=vendor.name, url=url, error=error)
            return FetchResult(vendor=vendor.name, url=url, error=error)

        except Exception as e:
            error = str(e) or "Unknown error"
            self.logger.error(
                "vendor_fetch_unexpected_error",
                vendor=vendor.name,
                url=url,
                error=error,
                exc_info=True,
            )
            return FetchResult(vendor=vendor.name, url=url, error=error)

        self.logger.info("vendor_fetched", vendor=vendor.name, url=url, deals=len(deals))
        return FetchResult(vendor=vendor.name, url=url, deals=deals)

    async def fetch_all_vendors(
        self,
        search_query: str = "",
        skip_cache: bool = False,
    ) -> AggregateResponse:
        """Fetch every vendor concurrently and merge the results.

        A live cached response for the same query is returned (flagged
        cached=True) unless skip_cache is set. Fresh responses are always
        written back, even when skip_cache is set.

        Args:
            search_query: Free-text search; empty aggregates clearance pages
            skip_cache: Ignore any cached response and fan out again

        Returns:
            AggregateResponse with deals sorted by ascending price

        Raises:
            AggregationError: If the fan-out itself fails (nothing is cached)
        """
        cache_key = cache_key_for_deals(search_query)

        if not skip_cache:
            cached = await self.cache.get(cache_key)
            if cached:
                try:
                    hit = AggregateResponse.model_validate_json(cached)
                except ValidationError as e:
                    # Undecodable entries are treated as a miss and overwritten below
                    self.logger.warning("deals_cache_entry_invalid", key=cache_key, error=str(e))
                else:
                    self.logger.info("deals_cache_hit", key=cache_key)
                    return hit.model_copy(update={"cached": True})

        timestamp = int(time.time() * 1000)

        try:
            async with self._client() as client:
                results = await asyncio.gather(
                    *(self.fetch_vendor(vendor, search_query, client) for vendor in self.vendors)
                )
        except Exception as e:
            self.logger.error("fan_out_failed", key=cache_key, error=str(e), exc_info=True)
            raise AggregationError(f"Failed to aggregate vendor deals: {e}") from e

        response = self._merge(results, timestamp, search_query)

        await self.cache.set(cache_key, response.to_json(), ttl=self.cache_ttl)

        self.logger.info(
            "deals_aggregated",
            key=cache_key,
            deals=len(response.deals),
            failed=len(response.failed),
            skip_cache=skip_cache,
        )
        return response

    def _merge(
        self,
        results: List[FetchResult],
        timestamp: int,
        search_query: str,
    ) -> AggregateResponse:
        """Partition results in vendor order and sort the merged deals."""
        deals: List[DealRecord] = []
        failed: List[FailureDescriptor] = []

        for result in results:
            if result.ok:
                deals.extend(result.deals)
            else:
                failed.append(
                    FailureDescriptor(vendor=result.vendor, error=result.error, url=result.url)
                )

        # sorted() is stable, so equal prices keep vendor/document order
        deals = sorted(deals, key=lambda deal: deal.price_val)

        return AggregateResponse(
            deals=[DealResponse.model_validate(deal) for deal in deals],
            failed=failed,
            cached=False,
            timestamp=timestamp,
            search_query=search_query or None,
        )


def get_deal_aggregator(cache: CacheService) -> DealAggregator:
    """Build an aggregator wired to the configured settings."""
    return DealAggregator(cache=cache)
