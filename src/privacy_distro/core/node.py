"""
SolanaNode: async JSON-RPC client for the Solana ledger.

Covers exactly what the funding flow needs: balances, fee estimates, recent
blockhashes, transaction submission and finality tracking.

Docs: https://solana.com/docs/rpc
"""

from __future__ import annotations

import asyncio
import base64
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from privacy_distro.core.models import NetworkReference
from privacy_distro.errors import LedgerError

logger = logging.getLogger("privacy_distro.node")

PUBLIC_RPC_URL = "https://api.mainnet-beta.solana.com"

Sleep = Callable[[float], Awaitable[None]]


class SolanaNode:
    """
    Async client for a Solana RPC endpoint.

    Usage:
        async with SolanaNode("https://api.devnet.solana.com") as node:
            lamports = await node.get_balance("9f...")
    """

    def __init__(
        self,
        rpc_url: str = PUBLIC_RPC_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rpc_url = rpc_url.rstrip("/")
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Balances & fees
    # ------------------------------------------------------------------

    async def get_balance(self, address: str, commitment: str = "confirmed") -> int:
        """Return the lamport balance of an address."""
        result = await self._call("getBalance", [address, {"commitment": commitment}])
        return int(result["value"])

    async def estimate_fee(self, message: bytes) -> int | None:
        """
        Return the network fee for a serialized message, in lamports.

        Returns None when the node cannot price the message (e.g. the
        blockhash it references has already expired).
        """
        encoded = base64.b64encode(message).decode("ascii")
        result = await self._call("getFeeForMessage", [encoded, {"commitment": "processed"}])
        value = result.get("value")
        return int(value) if value is not None else None

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    async def get_latest_blockhash(self, commitment: str = "finalized") -> NetworkReference:
        """Return a fresh blockhash and the last block height it is valid for."""
        result = await self._call("getLatestBlockhash", [{"commitment": commitment}])
        value = result["value"]
        return NetworkReference(
            blockhash=value["blockhash"],
            last_valid_block_height=int(value["lastValidBlockHeight"]),
        )

    async def get_block_height(self, commitment: str = "confirmed") -> int:
        result = await self._call("getBlockHeight", [{"commitment": commitment}])
        return int(result)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def send_transaction(self, raw_tx: bytes) -> str:
        """
        Submit a signed wire transaction.

        Returns:
            str: the transaction signature (Base58)
        """
        encoded = base64.b64encode(raw_tx).decode("ascii")
        result = await self._call(
            "sendTransaction",
            [encoded, {"encoding": "base64", "preflightCommitment": "confirmed"}],
        )
        return str(result)

    async def get_signature_status(self, signature: str) -> dict[str, Any] | None:
        """Return the status record of a signature, or None if the node has not seen it."""
        result = await self._call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": False}],
        )
        statuses = result.get("value") or [None]
        return statuses[0]

    async def await_finality(
        self,
        signature: str,
        last_valid_block_height: int,
        interval: float = 2.0,
        sleep: Sleep = asyncio.sleep,
    ) -> bool:
        """
        Wait for a transaction to reach `finalized` commitment.

        Returns:
            True once finalized, False once the block height passes
            `last_valid_block_height` without the transaction finalizing.

        Raises:
            LedgerError: if the transaction landed but failed on-chain.
        """
        while True:
            status = await self.get_signature_status(signature)
            if status:
                if status.get("err"):
                    raise LedgerError(f"Transaction {signature} failed on-chain: {status['err']}")
                if status.get("confirmationStatus") == "finalized":
                    return True

            height = await self.get_block_height()
            if height > last_valid_block_height:
                logger.warning(
                    f"Blockhash for {signature} expired at height {height} "
                    f"(valid through {last_valid_block_height})"
                )
                return False
            await sleep(interval)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self._client.post(self.rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise LedgerError(f"RPC {method} failed: {e}") from e
        if response.status_code != 200:
            raise LedgerError(f"RPC error {response.status_code} for {method}: {response.text}")
        try:
            data = response.json()
        except ValueError:
            raise LedgerError(f"RPC {method} returned invalid JSON") from None
        if data.get("error"):
            error = data["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise LedgerError(f"RPC {method} error: {message}")
        return data.get("result")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> SolanaNode:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.aclose()
