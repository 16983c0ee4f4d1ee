"""
FundingOrchestrator: move funds from the signing wallet into the privacy pool.

Sequence:
    1. transfer = requested amount + fee buffer
    2. read the signer's balance, fetch a fresh blockhash, price the message
    3. refuse (InsufficientFunds, exact shortfall) if balance < transfer + fee
    4. build the transfer signer -> deposit wallet, valid for that blockhash
    5. sign-and-send through the WalletSession
    6. wait for `finalized` or blockhash expiry (SubmissionExpired)
    7. poll the deposit wallet until it shows the transfer (non-fatal on exhaustion)
    8. reset the relay session and deposit the requested amount (buffer excluded)
    9. take the pool balance the relay reports

Steps 1-4 have no side effects. From step 5 on a real transfer may exist,
so nothing after that point ever resubmits it; only the relay deposit (8)
is safe for the caller to retry.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from privacy_distro.core.activity import ActivityLog
from privacy_distro.core.amounts import format_sol, lamports_to_sol, to_lamports
from privacy_distro.core.identity import OwnerIdentity
from privacy_distro.core.models import FEE_BUFFER_LAMPORTS, FundingResult, PendingTransfer
from privacy_distro.core.node import SolanaNode
from privacy_distro.core.transfer import SystemTransfer, TransferBuildError
from privacy_distro.core.wallet import WalletSession
from privacy_distro.errors import (
    InsufficientFunds,
    LedgerError,
    PrivacyDistroError,
    RelayError,
    SubmissionExpired,
    ValidationError,
)
from privacy_distro.orchestration.balance import BalanceTracker
from privacy_distro.orchestration.retry import RetryPolicy, Sleep
from privacy_distro.relay.errors import translate_relay_error
from privacy_distro.relay.session_cache import RelaySessionCache

logger = logging.getLogger("privacy_distro.funding")

# Used when the ledger cannot price the transfer message
DEFAULT_NETWORK_FEE_LAMPORTS = 5_000

SCOPE = "deposit"


class FundingOrchestrator:
    """
    Funds the deposit wallet and deposits into the pool.

    Usage:
        orchestrator = FundingOrchestrator(node, session, relay, owner, balance, activity)
        result = await orchestrator.fund("1.5")
    """

    def __init__(
        self,
        ledger: SolanaNode,
        wallet: WalletSession,
        relay: RelaySessionCache,
        owner: OwnerIdentity,
        balance: BalanceTracker,
        activity: ActivityLog,
        fee_buffer_lamports: int = FEE_BUFFER_LAMPORTS,
        default_network_fee: int = DEFAULT_NETWORK_FEE_LAMPORTS,
        settle_policy: RetryPolicy | None = None,
        finality_interval: float = 2.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._ledger = ledger
        self._wallet = wallet
        self._relay = relay
        self._owner = owner
        self._balance = balance
        self._activity = activity
        self.fee_buffer_lamports = fee_buffer_lamports
        self.default_network_fee = default_network_fee
        self._settle_policy = settle_policy or RetryPolicy()
        self._finality_interval = finality_interval
        self._sleep = sleep

    async def fund(self, amount: int | float | str | Decimal) -> FundingResult:
        """
        Fund the deposit wallet with `amount` SOL and deposit it into the pool.

        Returns:
            FundingResult with the relay transaction id and the new pool balance.

        Raises:
            ValidationError, WalletUnavailable, ConnectionRejected,
            InsufficientFunds, SubmissionExpired, RelayNotYetSynced,
            RelayError, LedgerError
        """
        try:
            lamports = to_lamports(amount, label="Deposit amount")
        except ValidationError as e:
            self._activity.append(SCOPE, e.message)
            raise

        # The session logs its own connection failures.
        sender = await self._wallet.ensure_connected()

        try:
            return await self._fund(sender, lamports)
        except PrivacyDistroError as e:
            self._activity.append(SCOPE, e.message)
            raise

    async def prepare(self, sender: str, lamports: int) -> tuple[PendingTransfer, bytes]:
        """
        Build and price the funding transfer without submitting anything.

        Raises:
            ValidationError: if the transfer cannot be built
            InsufficientFunds: if the sender cannot cover transfer plus network fee
        """
        transfer_lamports = lamports + self.fee_buffer_lamports
        available = await self._ledger.get_balance(sender)
        reference = await self._ledger.get_latest_blockhash()

        try:
            message = SystemTransfer(
                from_address=sender,
                to_address=self._owner.address,
                lamports=transfer_lamports,
                recent_blockhash=reference.blockhash,
            ).message_bytes()
        except TransferBuildError as e:
            raise ValidationError(f"Cannot build funding transfer: {e}") from None

        estimated_fee = await self._ledger.estimate_fee(message)
        if estimated_fee is None:
            estimated_fee = self.default_network_fee

        required = transfer_lamports + estimated_fee
        if available < required:
            shortfall = required - available
            raise InsufficientFunds(
                f"Insufficient SOL in wallet. Add at least {lamports_to_sol(shortfall):.4f} SOL and retry.",
                required_lamports=required,
                available_lamports=available,
            )

        pending = PendingTransfer(
            amount_lamports=lamports,
            fee_buffer_lamports=self.fee_buffer_lamports,
            transfer_lamports=transfer_lamports,
            blockhash=reference.blockhash,
            last_valid_block_height=reference.last_valid_block_height,
        )
        return pending, message

    async def _fund(self, sender: str, lamports: int) -> FundingResult:
        pending, message = await self.prepare(sender, lamports)

        self._activity.append(SCOPE, f"Submitting deposit for {format_sol(lamports)}.")
        self._activity.append(
            SCOPE,
            f"Requesting transfer of {format_sol(pending.transfer_lamports)} (includes fee buffer).",
        )
        pending.signature = await self._wallet.sign_and_send(message)
        self._activity.append(SCOPE, f"Transfer signature {pending.signature}.")

        finalized = await self._ledger.await_finality(
            pending.signature,
            pending.last_valid_block_height,
            interval=self._finality_interval,
            sleep=self._sleep,
        )
        if not finalized:
            raise SubmissionExpired(pending.signature)
        self._activity.append(SCOPE, "Transfer finalized on-chain.")
        self._wallet.refresh_address()

        settled = await self._settle_policy.poll(
            lambda: self._destination_reflects(pending.transfer_lamports),
            sleep=self._sleep,
        )
        if not settled:
            self._activity.append(
                SCOPE, "Deposit wallet balance not yet reflecting transfer; retrying anyway."
            )

        try:
            receipt = await self._relay.deposit(pending.amount_lamports)
        except RelayError as e:
            raise translate_relay_error(e.message) from e

        self._balance.update_from_relay(receipt.pool_balance_lamports)
        self._activity.record("Deposit completed", f"Transaction {receipt.transaction_id}")
        self._activity.append(SCOPE, f"Confirmed tx {receipt.transaction_id}.")

        return FundingResult(
            transaction_id=receipt.transaction_id,
            transfer_signature=pending.signature,
            amount_lamports=pending.amount_lamports,
            transfer_lamports=pending.transfer_lamports,
            pool_balance_lamports=receipt.pool_balance_lamports,
            settled=settled,
        )

    async def _destination_reflects(self, transfer_lamports: int) -> bool:
        try:
            return await self._ledger.get_balance(self._owner.address) >= transfer_lamports
        except LedgerError as e:
            logger.warning(f"Deposit wallet balance check failed: {e.message}")
            return False
