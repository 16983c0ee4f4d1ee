"""
BalanceTracker: the last private pool balance reported by the relay.

The tracked value is never computed locally. It is overwritten only from a
relay response, so it cannot drift from the pool's own accounting (fees make
naive arithmetic wrong).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from privacy_distro.core.activity import ActivityLog
from privacy_distro.errors import PrivacyDistroError
from privacy_distro.relay.session_cache import RelaySessionCache

logger = logging.getLogger("privacy_distro.balance")


class BalanceTracker:
    """Single mutable balance cell fed by relay responses."""

    def __init__(
        self,
        relay: RelaySessionCache,
        activity: ActivityLog | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._relay = relay
        self._activity = activity
        self._clock = clock
        self._lamports = 0
        self._known = False
        self._last_synced_at: float | None = None

    @property
    def lamports(self) -> int:
        return self._lamports

    @property
    def known(self) -> bool:
        """False until the relay has reported a balance at least once."""
        return self._known

    @property
    def last_synced_at(self) -> float | None:
        return self._last_synced_at

    def update_from_relay(self, lamports: int) -> None:
        """Overwrite the tracked balance with a value the relay reported."""
        self._lamports = int(lamports)
        self._known = True
        self._last_synced_at = self._clock()

    async def refresh(self) -> int:
        """
        Re-fetch the pool balance from the relay.

        Raises:
            PrivacyDistroError: the relay failure; the tracked value is left as it was.
        """
        try:
            lamports = await self._relay.get_pool_balance()
        except PrivacyDistroError as e:
            self._log(e.message)
            raise
        self.update_from_relay(lamports)
        self._log("Balance refreshed.")
        return lamports

    def _log(self, message: str) -> None:
        if self._activity is not None:
            self._activity.append("balance", message)
        else:
            logger.info(message)
