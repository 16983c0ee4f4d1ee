"""
WalletSession: connection lifecycle for an external signing wallet.

The session only ever holds a capability handle to the provider and the
public address it currently exposes. Private key material stays inside the
provider; the session asks it to sign-and-send and gets a signature back.

Providers are discovered through a ProviderRegistry. A provider that already
exposes a public key (the user authorized this app earlier) is preferred over
one that would need a fresh permission prompt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from privacy_distro.core.activity import ActivityLog
from privacy_distro.core.address import to_address_string
from privacy_distro.core.identity import OwnerIdentity
from privacy_distro.core.models import WalletSessionState
from privacy_distro.core.node import SolanaNode
from privacy_distro.core.transfer import serialize_transaction
from privacy_distro.errors import ConnectionRejected, WalletUnavailable

logger = logging.getLogger("privacy_distro.wallet")

ACCOUNT_CHANGED = "accountChanged"

EventHandler = Callable[[Any], None]


class SigningProvider(Protocol):
    """What a signing wallet must offer. Mirrors the browser-extension wallet API."""

    name: str

    @property
    def public_key(self) -> Any: ...

    async def connect(self) -> Any: ...

    async def disconnect(self) -> None: ...

    async def sign_and_send(self, message: bytes) -> str: ...

    def on(self, event: str, handler: EventHandler) -> None: ...

    def off(self, event: str, handler: EventHandler) -> None: ...


class ProviderRegistry:
    """Ordered set of candidate signing providers."""

    def __init__(self, providers: list[SigningProvider] | None = None) -> None:
        self._providers: list[SigningProvider] = list(providers or [])

    def register(self, provider: SigningProvider) -> None:
        self._providers.append(provider)

    def discover(self) -> SigningProvider | None:
        """
        Return the best provider, or None if nothing is installed.

        An already-authorized provider (one exposing a public key) wins.
        """
        for provider in self._providers:
            if to_address_string(provider.public_key):
                return provider
        return self._providers[0] if self._providers else None


class WalletSession:
    """
    Tracks the connection to one signing wallet.

    Usage:
        session = WalletSession(ProviderRegistry([signer]), activity)
        session.attach()                       # pick up an existing authorization
        address = await session.ensure_connected()
        signature = await session.sign_and_send(message)
        session.close()
    """

    def __init__(self, registry: ProviderRegistry, activity: ActivityLog | None = None) -> None:
        self._registry = registry
        self._activity = activity
        self._provider: SigningProvider | None = None
        self._address: str | None = None
        self._subscribed = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> WalletSessionState:
        return WalletSessionState(connected=self._address is not None, address=self._address)

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def provider(self) -> SigningProvider | None:
        return self._provider

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def discover(self) -> SigningProvider | None:
        """Find a provider, keeping the one already bound to this session."""
        if self._provider is None:
            self._provider = self._registry.discover()
        return self._provider

    def attach(self) -> WalletSessionState:
        """
        Bind to the discovered provider without prompting.

        Picks up the address of an already-authorized wallet and subscribes
        to account changes for the rest of the session.
        """
        provider = self.discover()
        if provider is None:
            return self.state
        current = to_address_string(provider.public_key)
        if current:
            self._address = current
        self._subscribe(provider)
        return self.state

    async def ensure_connected(self) -> str:
        """
        Return the connected wallet address, prompting the user only if needed.

        Raises:
            WalletUnavailable: if no provider is installed
            ConnectionRejected: if the user declines or the provider errors
        """
        provider = self.discover()
        if provider is None:
            error = WalletUnavailable()
            self._log(error.message)
            raise error
        self._subscribe(provider)

        existing = to_address_string(provider.public_key)
        if existing:
            self._address = existing
            return existing

        try:
            result = await provider.connect()
        except Exception as e:
            message = str(e) or "Wallet connection failed."
            self._log(message)
            raise ConnectionRejected(message) from e

        key = to_address_string(getattr(result, "public_key", result))
        if not key:
            self._log("Wallet connection failed.")
            raise ConnectionRejected("Wallet connection failed.")

        self._address = key
        self._log(f"Connected {key}")
        return key

    async def disconnect(self) -> None:
        provider = self._provider
        if provider is not None:
            await provider.disconnect()
        if self._address is not None:
            self._address = None
            self._log("Wallet disconnected.")

    def close(self) -> None:
        """Stop listening to the provider's account changes."""
        if self._provider is not None and self._subscribed:
            self._provider.off(ACCOUNT_CHANGED, self._on_account_changed)
        self._subscribed = False

    def refresh_address(self) -> str | None:
        """Re-read the address the provider currently exposes."""
        if self._provider is not None:
            latest = to_address_string(self._provider.public_key)
            if latest:
                self._address = latest
        return self._address

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    async def sign_and_send(self, message: bytes) -> str:
        """
        Ask the wallet to sign a message and submit the transaction.

        Returns:
            str: the transaction signature
        """
        provider = self._provider
        if provider is None or self._address is None:
            raise WalletUnavailable("Connect a wallet before sending a transfer.")
        try:
            return await provider.sign_and_send(message)
        except Exception as e:
            raise ConnectionRejected(str(e) or "Wallet rejected the transfer.") from e

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _subscribe(self, provider: SigningProvider) -> None:
        if not self._subscribed:
            provider.on(ACCOUNT_CHANGED, self._on_account_changed)
            self._subscribed = True

    def _on_account_changed(self, value: Any) -> None:
        next_address = to_address_string(value)
        self._address = next_address
        if next_address:
            self._log(f"Switched to {next_address}")
        else:
            self._log("Wallet disconnected.")

    def _log(self, message: str) -> None:
        if self._activity is not None:
            self._activity.append("wallet", message)
        else:
            logger.info(message)


class KeypairSigner:
    """
    Headless SigningProvider backed by a local Ed25519 keypair.

    Stands in for a browser-extension wallet when the engine runs as a
    service: it signs with its own key and submits through a SolanaNode.

    Usage:
        signer = KeypairSigner(OwnerIdentity.from_secret(funder_secret), node)
        registry = ProviderRegistry([signer])
    """

    def __init__(
        self,
        keypair: OwnerIdentity,
        node: SolanaNode,
        name: str = "keypair",
        trusted: bool = True,
    ) -> None:
        self.name = name
        self._keypair = keypair
        self._node = node
        self._connected = trusted
        self._handlers: dict[str, list[EventHandler]] = {}

    @property
    def public_key(self) -> str | None:
        return self._keypair.address if self._connected else None

    async def connect(self) -> str:
        self._connected = True
        return self._keypair.address

    async def disconnect(self) -> None:
        self._connected = False

    async def sign_and_send(self, message: bytes) -> str:
        if not self._connected:
            raise ConnectionRejected("Signer is not connected.")
        signature = self._keypair.signing_key().sign_deterministic(message)
        return await self._node.send_transaction(serialize_transaction([signature], message))

    def switch_account(self, keypair: OwnerIdentity) -> None:
        """Swap the active key and notify listeners, like a wallet account switch."""
        self._keypair = keypair
        for handler in list(self._handlers.get(ACCOUNT_CHANGED, [])):
            handler(keypair.address)

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
