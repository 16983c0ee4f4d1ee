"""
Shared in-memory fakes for the ledger, the signing wallet and the relay.

Nothing here touches the network; every collaborator records what it was
asked to do so tests can assert on call order and arguments.
"""

from __future__ import annotations

import pytest

from privacy_distro.core.activity import ActivityLog
from privacy_distro.core.address import base58_encode
from privacy_distro.core.identity import OwnerIdentity
from privacy_distro.core.models import DepositReceipt, NetworkReference, WithdrawalResult
from privacy_distro.core.wallet import ACCOUNT_CHANGED, ProviderRegistry, WalletSession
from privacy_distro.errors import LedgerError, RelayError
from privacy_distro.orchestration.balance import BalanceTracker
from privacy_distro.orchestration.recipients import RecipientQueue
from privacy_distro.relay.session_cache import RelaySessionCache


def make_address(n: int) -> str:
    """Deterministic valid address: 32 copies of byte n."""
    return base58_encode(bytes([n]) * 32)


SENDER = make_address(7)
BLOCKHASH = make_address(9)


class FakeLedger:
    def __init__(
        self,
        balances: dict[str, int] | None = None,
        fee: int | None = 5_000,
        finalized: bool = True,
        credit_after: int = 0,
        credit: tuple[str, int] | None = None,
    ) -> None:
        self.balances = dict(balances or {})
        self.fee = fee
        self.finalized = finalized
        self.finality_error: Exception | None = None
        # (address, lamports) credited once `credit_after` balance reads of that address happened
        self.credit = credit
        self.credit_after = credit_after
        self.calls: list[tuple] = []
        self._reads: dict[str, int] = {}

    async def get_balance(self, address: str) -> int:
        self.calls.append(("get_balance", address))
        self._reads[address] = self._reads.get(address, 0) + 1
        if self.credit and self.credit[0] == address and self._reads[address] > self.credit_after:
            return self.balances.get(address, 0) + self.credit[1]
        return self.balances.get(address, 0)

    async def get_latest_blockhash(self) -> NetworkReference:
        self.calls.append(("get_latest_blockhash",))
        return NetworkReference(blockhash=BLOCKHASH, last_valid_block_height=1_000)

    async def estimate_fee(self, message: bytes) -> int | None:
        self.calls.append(("estimate_fee", message))
        return self.fee

    async def await_finality(self, signature, last_valid_block_height, interval=2.0, sleep=None) -> bool:
        self.calls.append(("await_finality", signature, last_valid_block_height))
        if self.finality_error is not None:
            raise self.finality_error
        return self.finalized

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


class FakeSigner:
    """Stands in for a browser-extension wallet."""

    def __init__(self, address: str | None = SENDER, authorized: bool = True, reject: bool = False) -> None:
        self.name = "fake"
        self._address = address
        self._authorized = authorized
        self.reject = reject
        self.reject_signing = False
        self.connect_calls = 0
        self.sent: list[bytes] = []
        self.handlers: dict[str, list] = {}

    @property
    def public_key(self):
        return self._address if self._authorized else None

    async def connect(self):
        self.connect_calls += 1
        if self.reject:
            raise RuntimeError("User rejected the request.")
        self._authorized = True
        return self._address

    async def disconnect(self) -> None:
        self._authorized = False

    async def sign_and_send(self, message: bytes) -> str:
        if self.reject_signing:
            raise RuntimeError("User rejected the request.")
        self.sent.append(message)
        return f"sig-{len(self.sent)}"

    def on(self, event, handler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def off(self, event, handler) -> None:
        if handler in self.handlers.get(event, []):
            self.handlers[event].remove(handler)

    def emit_account_changed(self, value) -> None:
        self._address = value
        for handler in list(self.handlers.get(ACCOUNT_CHANGED, [])):
            handler(value)


class FakeRelay:
    """RelayService that keeps a private balance and records every call."""

    def __init__(self, pool_balance: int = 0) -> None:
        self.pool_balance = pool_balance
        self.calls: list[tuple] = []
        self.deposit_error: Exception | None = None
        self.balance_error: Exception | None = None
        # recipient address -> exception raised by withdraw
        self.withdraw_errors: dict[str, Exception] = {}
        # recipient address -> lamports actually settled (marks the payout partial)
        self.partial: dict[str, int] = {}
        self.fee = 1_000
        self._tx = 0

    async def reset_session(self, owner) -> None:
        self.calls.append(("reset", owner.address))

    async def deposit(self, owner, lamports: int) -> DepositReceipt:
        self.calls.append(("deposit", lamports))
        if self.deposit_error is not None:
            raise self.deposit_error
        self.pool_balance += lamports
        return DepositReceipt(transaction_id=self._next_tx(), pool_balance_lamports=self.pool_balance)

    async def withdraw(self, owner, recipient_address: str, lamports: int) -> WithdrawalResult:
        self.calls.append(("withdraw", recipient_address, lamports))
        if recipient_address in self.withdraw_errors:
            raise self.withdraw_errors[recipient_address]
        settled = self.partial.get(recipient_address, lamports)
        self.pool_balance -= settled + self.fee
        return WithdrawalResult(
            transaction_id=self._next_tx(),
            recipient_address=recipient_address,
            amount_requested_lamports=lamports,
            amount_settled_lamports=settled,
            fee_charged_lamports=self.fee,
            is_partial=settled < lamports,
        )

    async def get_pool_balance(self, owner) -> int:
        self.calls.append(("balance",))
        if self.balance_error is not None:
            raise self.balance_error
        return self.pool_balance

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def _next_tx(self) -> str:
        self._tx += 1
        return f"relay-tx-{self._tx}"


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def owner() -> OwnerIdentity:
    return OwnerIdentity.generate()


@pytest.fixture
def activity() -> ActivityLog:
    return ActivityLog()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def session(signer, activity) -> WalletSession:
    return WalletSession(ProviderRegistry([signer]), activity)


@pytest.fixture
def relay_session(relay, owner) -> RelaySessionCache:
    return RelaySessionCache(relay, owner)


@pytest.fixture
def balance(relay_session, activity) -> BalanceTracker:
    return BalanceTracker(relay_session, activity)


@pytest.fixture
def queue() -> RecipientQueue:
    return RecipientQueue()


@pytest.fixture
def fakes():
    """The fake classes and helpers, for tests that need custom instances."""
    class _Fakes:
        Ledger = FakeLedger
        Signer = FakeSigner
        Relay = FakeRelay
        Sleep = RecordingSleep
        address = staticmethod(make_address)
        sender = SENDER
        blockhash = BLOCKHASH
        ledger_error = LedgerError
        relay_error = RelayError

    return _Fakes
