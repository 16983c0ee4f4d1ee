"""
Core data models for the funding and payout engine.
All amounts are in lamports (1 SOL = 1,000,000,000 lamports) internally.
"""

from __future__ import annotations

import secrets
import time

from pydantic import BaseModel, Field

LAMPORTS_PER_SOL = 1_000_000_000

# Added on top of every funding transfer so the deposit wallet can pay relayer costs.
FEE_BUFFER_LAMPORTS = 6_900_000


def new_id() -> str:
    """Short opaque id for queue, log and activity entries."""
    return secrets.token_hex(6)


class WalletSessionState(BaseModel):
    """What is currently known about the external signing wallet."""
    connected: bool = False
    address: str | None = None


class NetworkReference(BaseModel):
    """A recent blockhash and the last block height at which it stays valid."""
    blockhash: str
    last_valid_block_height: int


class PendingTransfer(BaseModel):
    """A funding transfer from the signing wallet to the deposit wallet."""
    amount_lamports: int
    fee_buffer_lamports: int
    transfer_lamports: int
    blockhash: str
    last_valid_block_height: int
    signature: str | None = None


class Recipient(BaseModel):
    """A queued payout destination."""
    id: str = Field(default_factory=new_id)
    address: str
    amount_lamports: int

    @property
    def amount_sol(self) -> float:
        """SOL value (human-readable)."""
        return self.amount_lamports / LAMPORTS_PER_SOL


class WithdrawalResult(BaseModel):
    """One settled payout as reported by the relay."""
    transaction_id: str
    recipient_address: str
    amount_requested_lamports: int
    amount_settled_lamports: int
    fee_charged_lamports: int
    is_partial: bool = False


class DepositReceipt(BaseModel):
    """Relay response to a deposit."""
    transaction_id: str
    pool_balance_lamports: int


class FundingResult(BaseModel):
    """Outcome of a completed fund() call."""
    transaction_id: str
    transfer_signature: str
    amount_lamports: int
    transfer_lamports: int
    pool_balance_lamports: int
    settled: bool


class PayoutReport(BaseModel):
    """Outcome of a payout batch that ran to completion."""
    results: list[WithdrawalResult] = Field(default_factory=list)
    pool_balance_lamports: int | None = None
    completed: bool = True

    @property
    def partial_count(self) -> int:
        return sum(1 for r in self.results if r.is_partial)


class LogEntry(BaseModel):
    """A single relay log line."""
    id: str = Field(default_factory=new_id)
    scope: str
    message: str
    timestamp: float = Field(default_factory=time.time)


class ActivityEntry(BaseModel):
    """A completed operation shown in the activity feed."""
    id: str = Field(default_factory=new_id)
    headline: str
    detail: str
    timestamp: float = Field(default_factory=time.time)
