"""
Unit tests for FundingOrchestrator.

The ledger, wallet and relay are in-memory fakes (see conftest.py); nothing
here touches the network.
"""

import asyncio
import struct

import pytest

from privacy_distro.core.address import base58_decode
from privacy_distro.core.models import FEE_BUFFER_LAMPORTS
from privacy_distro.core.wallet import ProviderRegistry, WalletSession
from privacy_distro.errors import (
    InsufficientFunds,
    RelayError,
    RelayNotYetSynced,
    SubmissionExpired,
    ValidationError,
    WalletUnavailable,
)
from privacy_distro.orchestration.funding import FundingOrchestrator
from privacy_distro.orchestration.retry import RetryPolicy

ONE_AND_A_HALF = 1_500_000_000
TRANSFER = ONE_AND_A_HALF + FEE_BUFFER_LAMPORTS  # 1_506_900_000
NETWORK_FEE = 5_000


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def make(fakes, session, relay_session, owner, balance, activity, sleep):
    def _make(sender_balance=2_000_000_000, credit_after=0, ledger=None, wallet=None, **kwargs):
        if ledger is None:
            ledger = fakes.Ledger(
                balances={fakes.sender: sender_balance},
                credit=(owner.address, TRANSFER),
                credit_after=credit_after,
            )
        orchestrator = FundingOrchestrator(
            ledger=ledger,
            wallet=wallet or session,
            relay=relay_session,
            owner=owner,
            balance=balance,
            activity=activity,
            settle_policy=RetryPolicy(max_attempts=3, interval=1.5),
            sleep=sleep,
            **kwargs,
        )
        return orchestrator, ledger

    return _make


def log_lines(activity):
    return [e.message for e in reversed(activity.entries)]


def test_fund_transfers_amount_plus_buffer_and_deposits_amount(make, signer, relay, owner, balance, activity, fakes):
    orchestrator, ledger = make()
    result = run(orchestrator.fund("1.5"))

    assert result.amount_lamports == ONE_AND_A_HALF
    assert result.transfer_lamports == TRANSFER
    assert result.transfer_signature == "sig-1"
    assert result.transaction_id == "relay-tx-1"
    assert result.settled is True

    # the signed transfer moves amount + buffer from the signer to the deposit wallet
    message = signer.sent[0]
    assert message[4:36] == base58_decode(fakes.sender)
    assert message[36:68] == base58_decode(owner.address)
    assert struct.unpack("<Q", message[-8:])[0] == TRANSFER

    # the relay receives the requested amount only, after a session reset
    assert relay.calls == [("reset", owner.address), ("deposit", ONE_AND_A_HALF)]
    assert balance.lamports == ONE_AND_A_HALF
    assert activity.activity[0].headline == "Deposit completed"
    assert activity.activity[0].detail == "Transaction relay-tx-1"
    assert log_lines(activity) == [
        "Submitting deposit for 1.5000 SOL.",
        "Requesting transfer of 1.5069 SOL (includes fee buffer).",
        "Transfer signature sig-1.",
        "Transfer finalized on-chain.",
        "Confirmed tx relay-tx-1.",
    ]


def test_fund_waits_for_finality_before_relay(make, relay):
    orchestrator, ledger = make()
    run(orchestrator.fund("1.5"))
    assert ledger.names() == [
        "get_balance",           # signer
        "get_latest_blockhash",
        "estimate_fee",
        "await_finality",
        "get_balance",           # deposit wallet settle check
    ]
    assert relay.names() == ["reset", "deposit"]


def test_insufficient_funds_reports_exact_shortfall(make, signer, relay, activity):
    available = TRANSFER + NETWORK_FEE - 500_000_000
    orchestrator, ledger = make(sender_balance=available)

    with pytest.raises(InsufficientFunds) as exc:
        run(orchestrator.fund("1.5"))

    assert exc.value.required_lamports == TRANSFER + NETWORK_FEE
    assert exc.value.available_lamports == available
    assert exc.value.shortfall_lamports == 500_000_000
    assert exc.value.message == "Insufficient SOL in wallet. Add at least 0.5000 SOL and retry."
    assert signer.sent == []
    assert relay.calls == []
    assert "await_finality" not in ledger.names()
    assert activity.entries[0].message == exc.value.message


def test_exact_balance_is_enough(make):
    orchestrator, _ = make(sender_balance=TRANSFER + NETWORK_FEE)
    assert run(orchestrator.fund("1.5")).transfer_lamports == TRANSFER


def test_unpriceable_message_uses_default_fee(make, fakes, owner):
    ledger = fakes.Ledger(
        balances={fakes.sender: TRANSFER + NETWORK_FEE},
        fee=None,
        credit=(owner.address, TRANSFER),
    )
    orchestrator, _ = make(ledger=ledger, default_network_fee=10_000)
    with pytest.raises(InsufficientFunds) as exc:
        run(orchestrator.fund("1.5"))
    assert exc.value.shortfall_lamports == 5_000


def test_custom_fee_buffer(make, relay, signer, fakes, owner):
    ledger = fakes.Ledger(
        balances={fakes.sender: 2_000_000_000},
        credit=(owner.address, ONE_AND_A_HALF + 1_000),
    )
    orchestrator, _ = make(ledger=ledger, fee_buffer_lamports=1_000)
    result = run(orchestrator.fund("1.5"))
    assert result.transfer_lamports == ONE_AND_A_HALF + 1_000
    assert struct.unpack("<Q", signer.sent[0][-8:])[0] == ONE_AND_A_HALF + 1_000
    assert relay.calls[-1] == ("deposit", ONE_AND_A_HALF)


def test_prepare_has_no_side_effects(make, signer, relay, fakes):
    orchestrator, ledger = make()
    pending, message = run(orchestrator.prepare(fakes.sender, ONE_AND_A_HALF))
    assert pending.transfer_lamports == TRANSFER
    assert pending.fee_buffer_lamports == FEE_BUFFER_LAMPORTS
    assert pending.blockhash == fakes.blockhash
    assert pending.last_valid_block_height == 1_000
    assert pending.signature is None
    assert signer.sent == []
    assert relay.calls == []


def test_expired_submission_never_reaches_relay(make, relay, activity):
    orchestrator, ledger = make()
    ledger.finalized = False
    with pytest.raises(SubmissionExpired) as exc:
        run(orchestrator.fund("1.5"))
    assert exc.value.signature == "sig-1"
    assert relay.calls == []
    assert activity.entries[0].message == exc.value.message


def test_settle_poll_retries_until_balance_shows(make, sleep):
    orchestrator, _ = make(credit_after=2)
    result = run(orchestrator.fund("1.5"))
    assert result.settled is True
    assert sleep.delays == [1.5, 1.5]


def test_settle_exhaustion_is_not_fatal(make, relay, sleep, activity):
    orchestrator, _ = make(credit_after=99)
    result = run(orchestrator.fund("1.5"))
    assert result.settled is False
    assert sleep.delays == [1.5, 1.5]
    assert relay.names() == ["reset", "deposit"]
    assert "Deposit wallet balance not yet reflecting transfer; retrying anyway." in log_lines(activity)


def test_relay_not_synced_is_translated(make, relay, balance, activity):
    relay.deposit_error = RelayError(
        "Simulation failed: Attempt to debit an account but found no record of a prior credit."
    )
    orchestrator, _ = make()
    with pytest.raises(RelayNotYetSynced) as exc:
        run(orchestrator.fund("1.5"))
    assert not balance.known
    assert activity.entries[0].message == exc.value.message
    assert activity.activity == []


def test_opaque_relay_error_passes_through(make, relay):
    relay.deposit_error = RelayError("proof generation failed")
    orchestrator, _ = make()
    with pytest.raises(RelayError, match="^proof generation failed$"):
        run(orchestrator.fund("1.5"))


@pytest.mark.parametrize("amount", ["0", "-1", "abc"])
def test_invalid_amount_does_nothing(make, amount, signer, relay, activity):
    orchestrator, ledger = make()
    with pytest.raises(ValidationError):
        run(orchestrator.fund(amount))
    assert ledger.calls == []
    assert signer.sent == []
    assert relay.calls == []
    assert len(activity) == 1
    assert activity.entries[0].scope == "deposit"


def test_missing_wallet_is_logged_once(make, activity, relay):
    orchestrator, ledger = make(wallet=WalletSession(ProviderRegistry(), activity))
    with pytest.raises(WalletUnavailable):
        run(orchestrator.fund("1.5"))
    assert len(activity) == 1
    assert activity.entries[0].scope == "wallet"
    assert ledger.calls == []
    assert relay.calls == []
