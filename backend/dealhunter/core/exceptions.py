"""Custom exception classes for the application."""


class DealHunterException(Exception):
    """Base exception for all Deal Hunter errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class VendorNotFoundError(DealHunterException):
    """Raised when a vendor name is not in the catalogue."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Vendor with name '{name}' not found")


class ScraperError(DealHunterException):
    """Raised when a vendor page cannot be fetched."""

    def __init__(self, vendor: str, message: str):
        self.vendor = vendor
        self.reason = message
        super().__init__(f"Scraper error for {vendor}: {message}")


class AggregationError(DealHunterException):
    """Raised when an aggregation cycle fails as a whole."""
