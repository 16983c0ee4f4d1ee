"""
PrivateCashService: the request surface of the engine.

Wires one owner identity to the ledger, the signing wallet session, the relay
and the orchestrators, and exposes the three operations a caller (such as
the HTTP API) needs:

    fund(amount)          -> FundingResult
    payout(recipients)    -> PayoutReport
    get_balance()         -> int (lamports)

Operations are not mutually excluded. Callers that need strict
non-interleaving of fund/payout calls must serialize them themselves.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from privacy_distro.config import Settings
from privacy_distro.core.activity import ActivityLog
from privacy_distro.core.identity import (
    FileSecretStore,
    OwnerIdentity,
    SecretStore,
    load_or_create_identity,
)
from privacy_distro.core.models import FundingResult, PayoutReport, Recipient, WalletSessionState
from privacy_distro.core.node import SolanaNode
from privacy_distro.core.wallet import KeypairSigner, ProviderRegistry, WalletSession
from privacy_distro.orchestration.balance import BalanceTracker
from privacy_distro.orchestration.funding import FundingOrchestrator
from privacy_distro.orchestration.payout import PayoutBatchProcessor
from privacy_distro.orchestration.recipients import RecipientQueue
from privacy_distro.orchestration.retry import Sleep
from privacy_distro.relay.client import HttpRelayClient, RelayService
from privacy_distro.relay.session_cache import RelaySessionCache

logger = logging.getLogger("privacy_distro.service")


class PrivateCashService:
    """
    One client instance: one deposit wallet, one wallet session, one relay session.

    Usage:
        service = PrivateCashService.from_settings(Settings.from_env())
        await service.get_balance()
        await service.fund("1.5")
        service.add_recipient("9f...", "0.2")
        report = await service.payout()
        await service.aclose()
    """

    def __init__(
        self,
        owner: OwnerIdentity,
        ledger: SolanaNode,
        relay: RelayService,
        registry: ProviderRegistry,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.settings = settings or Settings()
        self.owner = owner
        self.ledger = ledger
        self.relay = relay
        self.activity = ActivityLog()
        self.queue = RecipientQueue()
        self.wallet = WalletSession(registry, self.activity)
        self.relay_session = RelaySessionCache(relay, owner)
        self.balance = BalanceTracker(self.relay_session, self.activity)
        self.funding = FundingOrchestrator(
            ledger=ledger,
            wallet=self.wallet,
            relay=self.relay_session,
            owner=owner,
            balance=self.balance,
            activity=self.activity,
            fee_buffer_lamports=self.settings.fee_buffer_lamports,
            default_network_fee=self.settings.default_network_fee,
            settle_policy=self.settings.settle_policy,
            finality_interval=self.settings.finality_interval,
            sleep=sleep,
        )
        self.payouts = PayoutBatchProcessor(self.relay_session, self.balance, self.activity, self.queue)
        self.wallet.attach()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: SecretStore | None = None,
    ) -> PrivateCashService:
        """Build the production wiring: HTTP ledger, HTTP relay, stored identity."""
        owner = load_or_create_identity(store or FileSecretStore(settings.secret_store_path))
        ledger = SolanaNode(settings.rpc_url, timeout=settings.http_timeout)
        relay = HttpRelayClient(settings.relay_url, rpc_url=settings.rpc_url, timeout=settings.http_timeout)

        registry = ProviderRegistry()
        if settings.funder_secret:
            registry.register(KeypairSigner(OwnerIdentity.from_secret(settings.funder_secret), ledger))
        else:
            logger.warning("No signing wallet configured; funding will report the wallet as unavailable.")

        logger.info(f"Deposit wallet {owner.address}, relay {settings.relay_url}")
        return cls(owner, ledger, relay, registry, settings=settings)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def fund(self, amount: int | float | str | Decimal) -> FundingResult:
        return await self.funding.fund(amount)

    async def payout(self, recipients: list[Recipient] | None = None) -> PayoutReport:
        """Pay an explicit batch, or the queued recipients when none is given."""
        return await self.payouts.payout(recipients)

    async def get_balance(self) -> int:
        return await self.balance.refresh()

    # ------------------------------------------------------------------
    # Wallet
    # ------------------------------------------------------------------

    async def connect_wallet(self) -> WalletSessionState:
        await self.wallet.ensure_connected()
        return self.wallet.state

    async def disconnect_wallet(self) -> WalletSessionState:
        await self.wallet.disconnect()
        return self.wallet.state

    # ------------------------------------------------------------------
    # Recipient queue
    # ------------------------------------------------------------------

    def add_recipient(self, address: str, amount: int | float | str | Decimal) -> Recipient:
        recipient = self.queue.add(address, amount)
        self.activity.append("withdraw", f"Queued {recipient.amount_sol:.4f} SOL for {recipient.address}.")
        return recipient

    def remove_recipient(self, recipient_id: str) -> bool:
        return self.queue.remove(recipient_id)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        self.wallet.close()
        for resource in (self.relay, self.ledger):
            close = getattr(resource, "aclose", None)
            if close is not None:
                await close()
