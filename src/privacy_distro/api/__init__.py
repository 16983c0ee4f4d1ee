"""
API module for privacy-distro.

Provides FastAPI routes and models exposing fund, payout and balance as a REST API.
"""

from privacy_distro.api.models import (
    BalanceResponse,
    FundRequest,
    FundResponse,
    PayoutRequest,
    PayoutResponse,
)

__all__ = [
    "BalanceResponse",
    "FundRequest",
    "FundResponse",
    "PayoutRequest",
    "PayoutResponse",
]
