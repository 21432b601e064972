"""Health check endpoint."""

from fastapi import APIRouter, Depends

from dealhunter.config import settings
from dealhunter.schemas import HealthCheckResponse
from dealhunter.scrapers.vendors import VENDORS
from dealhunter.services.cache_service import CacheService, get_cache

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(cache: CacheService = Depends(get_cache)):
    """Return service health status.

    Reports cache connectivity and how many vendors are configured. A cache
    outage only degrades the service, since every request can still fan out.
    """
    try:
        cache_status = "ok" if await cache.health_check() else "error: ping failed"
    except Exception as e:
        cache_status = f"error: {str(e)}"

    services = {"cache": cache_status, "cache_backend": settings.CACHE_BACKEND}
    for name, value in cache.stats().items():
        services[f"cache_{name}"] = str(value)

    return HealthCheckResponse(
        status="ok" if cache_status == "ok" else "degraded",
        cache=cache_status,
        vendors=len(VENDORS),
        services=services,
    )
