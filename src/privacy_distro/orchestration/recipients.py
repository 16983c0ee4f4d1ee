"""
RecipientQueue: the ordered list of payouts waiting to be sent.

Recipients are added and removed explicitly. After a payout batch runs to
completion the whole queue is cleared at once; after a failed batch it is
left as it was so the caller can retry.
"""

from __future__ import annotations

from decimal import Decimal

from privacy_distro.core.address import AddressError, validate_address
from privacy_distro.core.amounts import to_lamports
from privacy_distro.core.models import Recipient
from privacy_distro.errors import ValidationError


class RecipientQueue:
    """In-memory ordered payout queue."""

    def __init__(self) -> None:
        self._items: list[Recipient] = []

    def add(self, address: str, amount: int | float | str | Decimal) -> Recipient:
        """
        Queue a payout of `amount` SOL to `address`.

        Raises:
            ValidationError: for an empty or malformed address, or an amount
                that is not above zero.
        """
        target = (address or "").strip()
        if not target:
            raise ValidationError("Enter a destination wallet address.")
        try:
            validate_address(target)
        except AddressError as e:
            raise ValidationError(f"Invalid destination address: {e}") from None
        lamports = to_lamports(amount, label="Recipient amount")

        recipient = Recipient(address=target, amount_lamports=lamports)
        self._items.append(recipient)
        return recipient

    def remove(self, recipient_id: str) -> bool:
        """Drop a queued recipient. Returns False if the id is unknown."""
        before = len(self._items)
        self._items = [r for r in self._items if r.id != recipient_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []

    @property
    def items(self) -> list[Recipient]:
        """Snapshot of the queue in insertion order."""
        return list(self._items)

    @property
    def total_lamports(self) -> int:
        return sum(r.amount_lamports for r in self._items)

    def __len__(self) -> int:
        return len(self._items)
