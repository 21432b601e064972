"""FPV Deal Hunter: vendor deal aggregation behind a small HTTP API."""

__version__ = "0.1.0"
