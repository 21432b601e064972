"""API router -- aggregates all endpoint routers."""

from fastapi import APIRouter

from dealhunter.api import deals, health

api_router = APIRouter()

api_router.include_router(deals.router, tags=["deals"])
api_router.include_router(health.router, tags=["health"])
