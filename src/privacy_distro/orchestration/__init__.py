"""
privacy_distro.orchestration: funding and payout sequences.

Provides:
- FundingOrchestrator: signing wallet -> deposit wallet -> pool
- PayoutBatchProcessor: pool -> recipients, sequentially
- BalanceTracker, RecipientQueue, RetryPolicy
"""

from privacy_distro.orchestration.balance import BalanceTracker
from privacy_distro.orchestration.funding import FundingOrchestrator
from privacy_distro.orchestration.payout import PayoutBatchProcessor
from privacy_distro.orchestration.recipients import RecipientQueue
from privacy_distro.orchestration.retry import RetryPolicy

__all__ = [
    "BalanceTracker",
    "FundingOrchestrator",
    "PayoutBatchProcessor",
    "RecipientQueue",
    "RetryPolicy",
]
