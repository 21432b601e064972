"""Pydantic schemas for the Deal Hunter API."""

from dealhunter.schemas.deal import AggregateResponse, DealResponse, ErrorResponse, FailureDescriptor
from dealhunter.schemas.health import HealthCheckResponse

__all__ = [
    # Deal
    "AggregateResponse",
    "DealResponse",
    "ErrorResponse",
    "FailureDescriptor",
    # Health
    "HealthCheckResponse",
]
