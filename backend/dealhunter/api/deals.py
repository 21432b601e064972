"""Deals API endpoint."""

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from dealhunter.dependencies import get_aggregator
from dealhunter.schemas import ErrorResponse
from dealhunter.services.aggregator import DealAggregator

router = APIRouter()
logger = structlog.get_logger(__name__)

# Lets browsers and CDNs reuse an answer for as long as the server-side cache would
API_CACHE_CONTROL = "public, max-age=900"


@router.get("/deals")
async def list_deals(
    q: str = Query("", description="Search query; empty lists clearance items"),
    refresh: str = Query("", description="\"true\" bypasses the cache and fetches fresh"),
    aggregator: DealAggregator = Depends(get_aggregator),
):
    """Aggregate deals from every vendor.

    Returns `{deals, failed, cached, timestamp, searchQuery}` with deals
    sorted by ascending price. Vendors that could not be fetched are listed
    in `failed`; they never fail the request.

    Responses are cached for 15 minutes per query unless `refresh=true`;
    any other `refresh` value is ignored.
    """
    search_query = q.strip()
    try:
        data = await aggregator.fetch_all_vendors(search_query, skip_cache=refresh == "true")
    except Exception as e:
        logger.error("deals_request_failed", search_query=search_query, error=str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=str(e)).model_dump(mode="json"),
        )

    return JSONResponse(
        content=data.to_wire(),
        headers={"Cache-Control": API_CACHE_CONTROL},
    )
