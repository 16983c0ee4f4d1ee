from decimal import Decimal

from pydantic import BaseModel, Field

from privacy_distro.core.models import ActivityEntry, LogEntry, WithdrawalResult


class FundRequest(BaseModel):
    """Request model for funding the pool from the signing wallet."""

    amount: Decimal = Field(..., gt=0, description="Amount to deposit into the pool, in SOL")


class FundResponse(BaseModel):
    """Response model for a completed deposit."""

    transaction_id: str = Field(..., description="Relay transaction ID of the pool deposit")
    transfer_signature: str = Field(..., description="Signature of the funding transfer")
    amount_lamports: int = Field(..., description="Lamports deposited into the pool")
    transfer_lamports: int = Field(..., description="Lamports transferred, fee buffer included")
    pool_balance_lamports: int = Field(..., description="Pool balance reported by the relay")
    settled: bool = Field(
        ..., description="Whether the deposit wallet showed the transfer before the relay call"
    )


class PayoutItemRequest(BaseModel):
    """One payout destination."""

    address: str = Field("", description="Destination wallet address")
    amount: Decimal = Field(..., description="Amount to send, in SOL")


class PayoutRequest(BaseModel):
    """Request model for a payout batch. Omit `recipients` to pay the queued ones."""

    recipients: list[PayoutItemRequest] | None = Field(
        None, description="Explicit batch, processed in order"
    )


class PayoutResponse(BaseModel):
    """Response model for a payout batch that ran to completion."""

    results: list[WithdrawalResult]
    pool_balance_lamports: int | None = Field(
        None, description="Pool balance re-fetched from the relay after the batch"
    )
    completed: bool = True


class BalanceResponse(BaseModel):
    """Response model for the tracked pool balance."""

    pool_balance_lamports: int
    pool_balance: float = Field(..., description="Pool balance in SOL")
    last_synced_at: float | None = None


class RecipientRequest(BaseModel):
    """Request model for queueing a recipient."""

    address: str
    amount: Decimal = Field(..., description="Amount to send, in SOL")


class RecipientResponse(BaseModel):
    id: str
    address: str
    amount_lamports: int
    amount: float


class QueueResponse(BaseModel):
    recipients: list[RecipientResponse]
    total_lamports: int


class WalletResponse(BaseModel):
    """Signing wallet session and the deposit wallet it funds."""

    connected: bool
    address: str | None = None
    deposit_address: str


class LogResponse(BaseModel):
    entries: list[LogEntry]


class ActivityResponse(BaseModel):
    entries: list[ActivityEntry]
