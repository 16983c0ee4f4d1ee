"""
Relay client: the privacy pool relay as an external capability.

The relay owns the pool. It deposits from the owner's deposit wallet into the
pool, withdraws pooled funds to recipients, and reports the owner's private
balance. This package never re-implements any of that; it only calls it.

Wire format (JSON over HTTP POST, every body carries `rpcUrl` and `owner`):

    /session/reset   {}                                   -> {}
    /deposit         {lamports}                           -> {tx, balanceLamports}
    /withdraw        {recipientAddress, lamports}         -> {tx, recipient, amount_in_lamports,
                                                              fee_in_lamports, isPartial}
    /balance         {}                                   -> {balanceLamports}

Failures come back as a non-2xx status with `{"error": message, "code"?: code}`.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from privacy_distro.core.identity import OwnerIdentity
from privacy_distro.core.models import DepositReceipt, WithdrawalResult
from privacy_distro.errors import RelayError
from privacy_distro.relay.errors import translate_relay_error

logger = logging.getLogger("privacy_distro.relay")

DEFAULT_RELAY_URL = "http://127.0.0.1:8787"


class RelayService(Protocol):
    """Relay capability contract. Every call must follow a `reset_session`."""

    async def reset_session(self, owner: OwnerIdentity) -> None: ...

    async def deposit(self, owner: OwnerIdentity, lamports: int) -> DepositReceipt: ...

    async def withdraw(
        self, owner: OwnerIdentity, recipient_address: str, lamports: int
    ) -> WithdrawalResult: ...

    async def get_pool_balance(self, owner: OwnerIdentity) -> int: ...


class HttpRelayClient:
    """
    RelayService over HTTP.

    Usage:
        relay = HttpRelayClient("http://127.0.0.1:8787", rpc_url=settings.rpc_url)
        await relay.reset_session(owner)
        receipt = await relay.deposit(owner, 1_500_000_000)
    """

    def __init__(
        self,
        relay_url: str = DEFAULT_RELAY_URL,
        rpc_url: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.relay_url = relay_url.rstrip("/")
        self.rpc_url = rpc_url
        # The relay call itself is not bounded here; the timeout only covers
        # a relay that stops responding at the socket level.
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def reset_session(self, owner: OwnerIdentity) -> None:
        await self._post("/session/reset", owner, {})

    async def deposit(self, owner: OwnerIdentity, lamports: int) -> DepositReceipt:
        data = await self._post("/deposit", owner, {"lamports": lamports})
        try:
            return DepositReceipt(
                transaction_id=str(data["tx"]),
                pool_balance_lamports=int(data["balanceLamports"]),
            )
        except (KeyError, TypeError, ValueError):
            raise RelayError("Relay returned an invalid response.") from None

    async def withdraw(
        self, owner: OwnerIdentity, recipient_address: str, lamports: int
    ) -> WithdrawalResult:
        data = await self._post(
            "/withdraw", owner, {"recipientAddress": recipient_address, "lamports": lamports}
        )
        try:
            return WithdrawalResult(
                transaction_id=str(data["tx"]),
                recipient_address=str(data.get("recipient") or recipient_address),
                amount_requested_lamports=lamports,
                amount_settled_lamports=int(data["amount_in_lamports"]),
                fee_charged_lamports=int(data.get("fee_in_lamports") or 0),
                is_partial=bool(data.get("isPartial", False)),
            )
        except (KeyError, TypeError, ValueError):
            raise RelayError("Relay returned an invalid response.") from None

    async def get_pool_balance(self, owner: OwnerIdentity) -> int:
        data = await self._post("/balance", owner, {})
        try:
            return int(data["balanceLamports"])
        except (KeyError, TypeError, ValueError):
            raise RelayError("Relay returned an invalid response.") from None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post(self, path: str, owner: OwnerIdentity, body: dict[str, Any]) -> dict[str, Any]:
        payload = {"rpcUrl": self.rpc_url, "owner": owner.secret, **body}
        try:
            response = await self._client.post(f"{self.relay_url}{path}", json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Relay unreachable at {self.relay_url}{path}: {e.__class__.__name__}")
            raise RelayError("Failed to reach the relay.") from e

        try:
            data = response.json()
        except ValueError:
            raise RelayError("Relay returned an invalid response.") from None

        if not response.is_success:
            error = data.get("error") if isinstance(data, dict) else None
            code = data.get("code") if isinstance(data, dict) else None
            if not isinstance(error, str):
                error = "Relay request failed."
            raise translate_relay_error(error, code if isinstance(code, str) else None)

        if not isinstance(data, dict):
            raise RelayError("Relay returned an invalid response.")
        return data

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpRelayClient:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()
