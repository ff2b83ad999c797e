"""Utility functions and classes."""

from lean_ledger_etl.utils.rate_limiter import FECRateLimiter

__all__ = [
    "FECRateLimiter",
]
