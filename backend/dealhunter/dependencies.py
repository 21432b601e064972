"""FastAPI dependency injection providers."""

from fastapi import Depends

from dealhunter.services.aggregator import DealAggregator, get_deal_aggregator
from dealhunter.services.cache_service import CacheService, get_cache


async def get_aggregator(cache: CacheService = Depends(get_cache)) -> DealAggregator:
    """Provide a DealAggregator bound to the request's cache.

    Tests override get_cache (or this dependency) to run against an
    isolated cache and a mocked transport.
    """
    return get_deal_aggregator(cache)
