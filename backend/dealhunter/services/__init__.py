"""Service layer: vendor fan-out aggregation and response caching."""

from dealhunter.services.aggregator import DealAggregator, get_deal_aggregator
from dealhunter.services.cache_service import (
    CacheService,
    MemoryCacheService,
    RedisCacheService,
    cache_key_for_deals,
    get_cache,
    get_cache_service,
)

__all__ = [
    "DealAggregator",
    "get_deal_aggregator",
    "CacheService",
    "MemoryCacheService",
    "RedisCacheService",
    "cache_key_for_deals",
    "get_cache",
    "get_cache_service",
]
