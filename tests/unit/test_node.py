"""
Unit tests for the Solana JSON-RPC client.
HTTP is served by httpx.MockTransport; no network access.
"""

import asyncio
import base64
import json

import httpx
import pytest

from privacy_distro.core.node import SolanaNode
from privacy_distro.errors import LedgerError


def rpc_node(results, seen=None):
    """SolanaNode whose RPC answers `results[method]` (a value or a list consumed in order)."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if seen is not None:
            seen.append(body)
        answer = results[body["method"]]
        if isinstance(answer, list):
            answer = answer.pop(0)
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **answer})

    return SolanaNode("https://rpc.test", transport=httpx.MockTransport(handler))


def run(coro):
    return asyncio.run(coro)


async def _no_sleep(_):
    return None


def test_get_balance_sends_commitment():
    seen = []
    node = rpc_node({"getBalance": {"result": {"context": {"slot": 1}, "value": 42}}}, seen)
    assert run(node.get_balance("Addr")) == 42
    assert seen[0]["params"] == ["Addr", {"commitment": "confirmed"}]


def test_estimate_fee_encodes_message_and_handles_null():
    seen = []
    node = rpc_node(
        {"getFeeForMessage": [{"result": {"value": 5000}}, {"result": {"value": None}}]}, seen
    )
    assert run(node.estimate_fee(b"\x01\x02")) == 5000
    assert run(node.estimate_fee(b"\x01\x02")) is None
    assert seen[0]["params"][0] == base64.b64encode(b"\x01\x02").decode()


def test_get_latest_blockhash():
    node = rpc_node(
        {"getLatestBlockhash": {"result": {"value": {"blockhash": "Hash", "lastValidBlockHeight": 150}}}}
    )
    reference = run(node.get_latest_blockhash())
    assert reference.blockhash == "Hash"
    assert reference.last_valid_block_height == 150


def test_send_transaction_returns_signature():
    seen = []
    node = rpc_node({"sendTransaction": {"result": "5igSig"}}, seen)
    assert run(node.send_transaction(b"raw")) == "5igSig"
    assert seen[0]["params"][1]["encoding"] == "base64"


def test_rpc_error_raises_ledger_error():
    node = rpc_node({"getBalance": {"error": {"code": -32602, "message": "Invalid param"}}})
    with pytest.raises(LedgerError, match="Invalid param"):
        run(node.get_balance("bad"))


def test_http_error_status_raises_ledger_error():
    node = rpc_node({"getBalance": httpx.Response(503, text="unavailable")})
    with pytest.raises(LedgerError, match="503"):
        run(node.get_balance("Addr"))


def test_invalid_json_raises_ledger_error():
    node = rpc_node({"getBalance": httpx.Response(200, text="<html>")})
    with pytest.raises(LedgerError, match="invalid JSON"):
        run(node.get_balance("Addr"))


def test_transport_failure_raises_ledger_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    node = SolanaNode("https://rpc.test", transport=httpx.MockTransport(handler))
    with pytest.raises(LedgerError, match="getBalance failed"):
        run(node.get_balance("Addr"))


def _status(confirmation, err=None):
    return {"result": {"value": [{"confirmationStatus": confirmation, "err": err}]}}


def test_await_finality_polls_until_finalized():
    node = rpc_node(
        {
            "getSignatureStatuses": [
                {"result": {"value": [None]}},
                _status("confirmed"),
                _status("finalized"),
            ],
            "getBlockHeight": [{"result": 100}, {"result": 101}],
        }
    )
    assert run(node.await_finality("sig", 150, sleep=_no_sleep)) is True


def test_await_finality_gives_up_after_expiry():
    node = rpc_node(
        {
            "getSignatureStatuses": [_status("processed"), _status("confirmed")],
            "getBlockHeight": [{"result": 150}, {"result": 151}],
        }
    )
    assert run(node.await_finality("sig", 150, sleep=_no_sleep)) is False


def test_await_finality_raises_on_failed_transaction():
    node = rpc_node({"getSignatureStatuses": _status("confirmed", err={"InstructionError": [0, 1]})})
    with pytest.raises(LedgerError, match="failed on-chain"):
        run(node.await_finality("sig", 150, sleep=_no_sleep))
