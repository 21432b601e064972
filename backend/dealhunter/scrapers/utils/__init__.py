"""Scraper utilities for request headers, retries, and field normalization."""

from .user_agents import get_user_agent, get_request_headers, ACCEPT_HTML
from .normalizer import (
    normalize_price,
    normalize_url,
    normalize_image_url,
    PLACEHOLDER_IMAGE_URL,
)
from .retry import vendor_retry, RETRYABLE_ERRORS


__all__ = [
    # Headers
    "get_user_agent",
    "get_request_headers",
    "ACCEPT_HTML",
    # Normalization
    "normalize_price",
    "normalize_url",
    "normalize_image_url",
    "PLACEHOLDER_IMAGE_URL",
    # Retry
    "vendor_retry",
    "RETRYABLE_ERRORS",
]
