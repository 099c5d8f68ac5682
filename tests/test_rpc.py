import hashlib
import json

import base58
import httpx
import pytest
from httpx import MockTransport, Request, Response

from solfund.core.transactions import RecentBlockhash, build, sign_transaction
from solfund.exceptions import (
    ConfirmationTimeout,
    FundingDenied,
    LedgerUnavailable,
    SubmissionRejected,
    TransactionExpired,
)
from solfund.networking.rpc import RpcError, SolanaRPC
from solfund.programs import create_memo_instruction

from .conftest import RECIPIENT

BLOCKHASH = base58.b58encode(hashlib.sha256(b"rpc-test-block").digest()).decode()


class FakeNode:
    """Answers JSON-RPC methods from a table of handlers or fixed results."""

    def __init__(self, **methods):
        self.methods = methods
        self.requests = []

    def __call__(self, request: Request) -> Response:
        body = json.loads(request.content)
        self.requests.append(body)
        handler = self.methods[body["method"]]
        result = handler(*body["params"]) if callable(handler) else handler
        if isinstance(result, Response):
            return result
        if isinstance(result, dict) and "error" in result:
            return Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": result["error"]})
        return Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def methods_called(self):
        return [r["method"] for r in self.requests]


def make_rpc(node, **kwargs):
    kwargs.setdefault("poll_interval", 0)
    client = httpx.Client(transport=MockTransport(node))
    return SolanaRPC("https://rpc.test", client=client, **kwargs)


def status(level="confirmed", err=None):
    return {"value": [{"slot": 1, "confirmations": 0, "err": err, "confirmationStatus": level}]}


def sequence(*results):
    it = iter(results)
    return lambda *params: next(it)


@pytest.fixture
def transaction(keypair):
    message = build(keypair.address, [create_memo_instruction("hi")], RecentBlockhash(BLOCKHASH, 500))
    return sign_transaction(message, keypair)


def test_get_balance_sends_commitment():
    node = FakeNode(getBalance={"context": {"slot": 1}, "value": 42})
    rpc = make_rpc(node, commitment="finalized")

    assert rpc.get_balance(RECIPIENT) == 42
    request = node.requests[0]
    assert request["jsonrpc"] == "2.0"
    assert request["params"] == [RECIPIENT, {"commitment": "finalized"}]


def test_http_errors_become_ledger_unavailable():
    rpc = make_rpc(lambda request: Response(503, text="unavailable"))
    with pytest.raises(LedgerUnavailable) as exc_info:
        rpc.get_balance(RECIPIENT)
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


def test_transport_errors_become_ledger_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(LedgerUnavailable):
        make_rpc(handler).get_balance(RECIPIENT)


def test_invalid_json_becomes_ledger_unavailable():
    rpc = make_rpc(lambda request: Response(200, text="<html>"))
    with pytest.raises(LedgerUnavailable, match="invalid JSON"):
        rpc.get_balance(RECIPIENT)


@pytest.mark.parametrize("payload", [[1, 2], "ok", None])
def test_non_object_body_becomes_ledger_unavailable(payload):
    rpc = make_rpc(lambda request: Response(200, json=payload))
    with pytest.raises(LedgerUnavailable, match="non-object"):
        rpc.get_balance(RECIPIENT)


def test_json_rpc_error_is_raised_as_rpc_error():
    node = FakeNode(getBalance={"error": {"code": -32602, "message": "Invalid param"}})
    with pytest.raises(RpcError) as exc_info:
        make_rpc(node).get_balance("bad")
    assert exc_info.value.code == -32602
    assert isinstance(exc_info.value, LedgerUnavailable)


def test_request_funding_returns_airdrop_signature():
    node = FakeNode(requestAirdrop="AIRDROP_SIG")
    assert make_rpc(node).request_funding(RECIPIENT, 1_000_000_000) == "AIRDROP_SIG"
    assert node.requests[0]["params"][:2] == [RECIPIENT, 1_000_000_000]


def test_request_funding_refusal_is_funding_denied():
    node = FakeNode(requestAirdrop={"error": {"code": -32603, "message": "airdrop request failed"}})
    with pytest.raises(FundingDenied, match="airdrop request failed"):
        make_rpc(node).request_funding(RECIPIENT, 1)


def test_await_finalized_polls_until_commitment_reached():
    node = FakeNode(getSignatureStatuses=sequence(
        {"value": [None]},
        status("processed"),
        status("confirmed"),
    ))
    make_rpc(node).await_finalized("AIRDROP_SIG", timeout=5)
    assert node.methods_called() == ["getSignatureStatuses"] * 3


def test_await_finalized_honours_finalized_commitment():
    node = FakeNode(getSignatureStatuses=sequence(status("confirmed"), status("finalized")))
    make_rpc(node, commitment="finalized").await_finalized("AIRDROP_SIG", timeout=5)
    assert len(node.requests) == 2


def test_await_finalized_reports_failed_airdrop():
    node = FakeNode(getSignatureStatuses=status(err={"InstructionError": [0, "Custom"]}))
    with pytest.raises(FundingDenied):
        make_rpc(node).await_finalized("AIRDROP_SIG", timeout=5)


def test_await_finalized_times_out():
    node = FakeNode(getSignatureStatuses={"value": [None]})
    with pytest.raises(ConfirmationTimeout) as exc_info:
        make_rpc(node).await_finalized("AIRDROP_SIG", timeout=0)
    assert exc_info.value.signature == "AIRDROP_SIG"


def test_get_recent_reference_hash():
    node = FakeNode(getLatestBlockhash={
        "context": {"slot": 1},
        "value": {"blockhash": BLOCKHASH, "lastValidBlockHeight": 3090},
    })
    assert make_rpc(node).get_recent_reference_hash() == RecentBlockhash(BLOCKHASH, 3090)


def test_is_reference_hash_valid():
    node = FakeNode(isBlockhashValid={"context": {"slot": 1}, "value": False})
    assert make_rpc(node).is_reference_hash_valid(RecentBlockhash(BLOCKHASH)) is False
    assert node.requests[0]["params"][0] == BLOCKHASH


def test_broadcast_and_confirm(transaction):
    node = FakeNode(
        sendTransaction=transaction.signature,
        getBlockHeight=100,
        getSignatureStatuses=sequence({"value": [None]}, status("confirmed")),
    )

    assert make_rpc(node).broadcast_and_confirm(transaction, timeout=5) == transaction.signature

    params = node.requests[0]["params"]
    assert params[0] == transaction.to_base64()
    assert params[1]["encoding"] == "base64"


def test_broadcast_preflight_failure_is_rejected(transaction):
    node = FakeNode(sendTransaction={"error": {
        "code": -32002,
        "message": "Transaction simulation failed: Attempt to debit an account but found no record of a prior credit.",
    }})
    with pytest.raises(SubmissionRejected, match="prior credit") as exc_info:
        make_rpc(node).broadcast_and_confirm(transaction)
    assert not isinstance(exc_info.value, TransactionExpired)


def test_broadcast_with_unknown_blockhash_is_expired(transaction):
    node = FakeNode(sendTransaction={"error": {
        "code": -32002,
        "message": "Transaction simulation failed: Blockhash not found",
    }})
    with pytest.raises(TransactionExpired):
        make_rpc(node).broadcast_and_confirm(transaction)


def test_broadcast_failed_on_chain_is_rejected(transaction):
    node = FakeNode(
        sendTransaction=transaction.signature,
        getBlockHeight=100,
        getSignatureStatuses=status(err={"InstructionError": [0, {"Custom": 1}]}),
    )
    with pytest.raises(SubmissionRejected, match="InstructionError"):
        make_rpc(node).broadcast_and_confirm(transaction, timeout=5)


def test_broadcast_expires_when_block_height_passes(transaction):
    node = FakeNode(
        sendTransaction=transaction.signature,
        getBlockHeight=sequence(499, 501),
        getSignatureStatuses={"value": [None]},
    )
    with pytest.raises(TransactionExpired):
        make_rpc(node).broadcast_and_confirm(transaction, timeout=5)


def test_landing_at_the_last_moment_still_confirms(transaction):
    node = FakeNode(
        sendTransaction=transaction.signature,
        getBlockHeight=501,
        getSignatureStatuses=status("confirmed"),
    )
    assert make_rpc(node).broadcast_and_confirm(transaction, timeout=5) == transaction.signature


def test_unknown_commitment_is_rejected():
    with pytest.raises(ValueError):
        SolanaRPC("https://rpc.test", commitment="max")


def test_context_manager_closes_client():
    client = httpx.Client(transport=MockTransport(FakeNode()))
    with SolanaRPC("https://rpc.test", client=client):
        pass
    assert client.is_closed
