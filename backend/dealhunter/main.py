"""FPV Deal Hunter -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse

from dealhunter.api.router import api_router
from dealhunter.config import settings
from dealhunter.scrapers.vendors import VENDORS
from dealhunter.services.cache_service import get_cache_service

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DASHBOARD_PATH = Path(__file__).parent / "templates" / "dashboard.html"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting FPV Deal Hunter API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Cache backend: {settings.CACHE_BACKEND} (ttl={settings.CACHE_TTL_SECONDS}s)")
    logger.info(f"Vendors configured: {len(VENDORS)}")

    try:
        cache = get_cache_service()
        if await cache.health_check():
            logger.info("Cache ready")
        else:
            logger.warning("Cache health check failed (requests will fan out every time)")
    except Exception as e:
        logger.warning(f"Cache initialization failed: {e}")

    yield

    logger.info("Shutting down FPV Deal Hunter API server...")
    try:
        await get_cache_service().close()
    except Exception as e:
        logger.warning(f"Error closing cache: {e}")


app = FastAPI(
    title="FPV Deal Hunter API",
    description="Clearance and search deals aggregated from FPV vendors",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)


@app.middleware("http")
async def cors(request: Request, call_next):
    """Allow GET from any origin and answer every OPTIONS with an empty 204."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


app.include_router(api_router, prefix="/api")


@app.get("/", response_class=HTMLResponse)
async def dashboard():
    """Serve the browsing dashboard."""
    return HTMLResponse(
        DASHBOARD_PATH.read_text(encoding="utf-8"),
        headers={"Cache-Control": "public, max-age=300"},
    )
