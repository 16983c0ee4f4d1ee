"""
RelaySessionCache: fresh relay state before every privileged call.

The relay may memoize proof and note state per owner. The owner identity is
rebuilt by this process, so every deposit, withdraw and balance query is
preceded by a session reset for that owner. This is a reset, not a lock:
callers that need strict non-interleaving must serialize their own calls.
"""

from __future__ import annotations

import logging

from privacy_distro.core.identity import OwnerIdentity
from privacy_distro.core.models import DepositReceipt, WithdrawalResult
from privacy_distro.relay.client import RelayService

logger = logging.getLogger("privacy_distro.relay.session")


class RelaySessionCache:
    """Wraps a RelayService so every primitive call starts from a reset session."""

    def __init__(self, relay: RelayService, owner: OwnerIdentity) -> None:
        self._relay = relay
        self._owner = owner

    @property
    def owner_address(self) -> str:
        return self._owner.address

    async def reset_before_call(self) -> None:
        logger.debug(f"Resetting relay session for {self._owner.address}")
        await self._relay.reset_session(self._owner)

    async def deposit(self, lamports: int) -> DepositReceipt:
        await self.reset_before_call()
        return await self._relay.deposit(self._owner, lamports)

    async def withdraw(self, recipient_address: str, lamports: int) -> WithdrawalResult:
        await self.reset_before_call()
        return await self._relay.withdraw(self._owner, recipient_address, lamports)

    async def get_pool_balance(self) -> int:
        await self.reset_before_call()
        return await self._relay.get_pool_balance(self._owner)
