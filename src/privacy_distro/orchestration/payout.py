"""
PayoutBatchProcessor: disburse pooled funds to a list of recipients.

The whole batch is validated before the first relay call, so an invalid batch
never causes a partial on-chain effect. Withdrawals then run strictly one at
a time in the order given; the pool's proof and note state only serializes
correctly for sequential operations against one relay session.

On a per-item failure the batch stops. Completed items stay completed and are
reported; later items are never attempted. Either way the pool balance is
re-fetched once from the relay at the end.
"""

from __future__ import annotations

import logging

from privacy_distro.core.activity import ActivityLog
from privacy_distro.core.amounts import format_sol, lamports_to_sol
from privacy_distro.core.models import PayoutReport, Recipient, WithdrawalResult
from privacy_distro.errors import (
    InsufficientFunds,
    PartialBatchFailure,
    PrivacyDistroError,
    RelayError,
    ValidationError,
)
from privacy_distro.orchestration.balance import BalanceTracker
from privacy_distro.orchestration.recipients import RecipientQueue
from privacy_distro.relay.errors import translate_relay_error
from privacy_distro.relay.session_cache import RelaySessionCache

logger = logging.getLogger("privacy_distro.payout")

SCOPE = "withdraw"


class PayoutBatchProcessor:
    """
    Runs payout batches against the shared private balance.

    Usage:
        processor = PayoutBatchProcessor(relay, balance, activity, queue)
        report = await processor.payout()            # the queued recipients
        report = await processor.payout(recipients)  # an explicit batch
    """

    def __init__(
        self,
        relay: RelaySessionCache,
        balance: BalanceTracker,
        activity: ActivityLog,
        queue: RecipientQueue | None = None,
    ) -> None:
        self._relay = relay
        self._balance = balance
        self._activity = activity
        self._queue = queue

    @staticmethod
    def validate(recipients: list[Recipient], tracked_balance: int | None = None) -> int:
        """
        Check a batch as a whole before anything is submitted.

        The balance guard is advisory: it only applies when the tracked
        balance is known and positive, and the relay stays the authority.

        Returns:
            int: total lamports requested

        Raises:
            ValidationError: empty batch, missing address, non-positive amount
            InsufficientFunds: batch total above the tracked balance
        """
        if not recipients:
            raise ValidationError("Add at least one payout before sending.")
        for recipient in recipients:
            if not recipient.address or not recipient.address.strip():
                raise ValidationError("Each payout must include an address.")
            if recipient.amount_lamports <= 0:
                raise ValidationError(
                    f"Withdrawal amount for {recipient.address} must be greater than zero."
                )

        total = sum(r.amount_lamports for r in recipients)
        if total <= 0:
            raise ValidationError("Queued payout amount must be greater than zero.")
        if tracked_balance is not None and tracked_balance > 0 and total > tracked_balance:
            raise InsufficientFunds(
                f"Queued payouts ({lamports_to_sol(total):.4f} SOL) exceed tracked balance "
                f"({lamports_to_sol(tracked_balance):.4f} SOL).",
                required_lamports=total,
                available_lamports=tracked_balance,
            )
        return total

    async def payout(
        self,
        recipients: list[Recipient] | None = None,
        tracked_balance: int | None = None,
    ) -> PayoutReport:
        """
        Withdraw to every recipient in order.

        Args:
            recipients: explicit batch; defaults to the queued recipients, in
                which case the queue is cleared once the batch completes.
            tracked_balance: balance for the advisory guard; defaults to the
                tracker's value when the relay has reported one.

        Raises:
            ValidationError, InsufficientFunds: nothing was submitted
            PartialBatchFailure: an item failed after others completed
            RelayNotYetSynced, RelayError: the first item failed
        """
        from_queue = recipients is None
        if from_queue:
            batch = self._queue.items if self._queue is not None else []
        else:
            batch = list(recipients)
        if tracked_balance is None and self._balance.known:
            tracked_balance = self._balance.lamports

        try:
            self.validate(batch, tracked_balance)
        except PrivacyDistroError as e:
            self._activity.append(SCOPE, e.message)
            raise

        self._activity.append(
            SCOPE, f"Submitting {len(batch)} payout{'' if len(batch) == 1 else 's'}."
        )

        results: list[WithdrawalResult] = []
        failure: tuple[int, Recipient, PrivacyDistroError] | None = None
        for index, recipient in enumerate(batch):
            try:
                result = await self._relay.withdraw(recipient.address, recipient.amount_lamports)
            except RelayError as e:
                failure = (index, recipient, translate_relay_error(e.message))
                break
            except PrivacyDistroError as e:
                failure = (index, recipient, e)
                break
            results.append(result)
            self._record(result)

        pool_balance = await self._refetch_balance()

        if failure is not None:
            index, recipient, cause = failure
            if results:
                error: PrivacyDistroError = PartialBatchFailure(
                    results=results,
                    failed_index=index,
                    failed_recipient=recipient.address,
                    cause=cause,
                    pool_balance_lamports=pool_balance,
                )
            else:
                error = cause
            self._activity.append(SCOPE, error.message)
            raise error

        if from_queue and self._queue is not None:
            self._queue.clear()
        self._activity.append(
            SCOPE, f"Batch completed with {len(results)} transfer{'' if len(results) == 1 else 's'}."
        )
        return PayoutReport(results=results, pool_balance_lamports=pool_balance, completed=True)

    def _record(self, result: WithdrawalResult) -> None:
        settled = format_sol(result.amount_settled_lamports)
        if result.is_partial:
            self._activity.append(
                SCOPE,
                f"Partial payout to {result.recipient_address}: {settled} of "
                f"{format_sol(result.amount_requested_lamports)} (tx {result.transaction_id}).",
            )
            headline = f"Sent {settled} (partial)"
        else:
            self._activity.append(
                SCOPE, f"Sent {settled} to {result.recipient_address} (tx {result.transaction_id})."
            )
            headline = f"Sent {settled}"
        self._activity.record(
            headline, f"Recipient {result.recipient_address} • tx {result.transaction_id}"
        )

    async def _refetch_balance(self) -> int | None:
        try:
            return await self._balance.refresh()
        except PrivacyDistroError as e:
            # The tracker already logged the failure; keep the last known value.
            logger.warning(f"Pool balance refresh after payout failed: {e.message}")
            return None
