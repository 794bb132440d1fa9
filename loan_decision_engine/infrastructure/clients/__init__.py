"""External API client implementations."""

from .credit_bureau_client import HttpCreditCheckClient

__all__ = [
    "HttpCreditCheckClient",
]
