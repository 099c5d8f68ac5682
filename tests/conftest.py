"""Shared pytest fixtures and an in-memory ledger double."""

import hashlib
import itertools

import base58
import pytest

from solfund.config import SecretProvider
from solfund.core.keypairs import Keypair
from solfund.core.transactions import RecentBlockhash
from solfund.exceptions import SubmissionRejected, TransactionExpired
from solfund.networking.ledger import LedgerService


# A real devnet address, used as a fixed transfer destination
RECIPIENT = "5BgTrJEQw1XWSJ1DiX1hT78xiHC1RpNtcV8rwrbmGfwU"


class FakeLedger(LedgerService):
    """
    Ledger double that records every call.

    Airdrops credit the balance once awaited. Blockhashes stay valid until
    `expire()` is called on them.
    """

    def __init__(self, balance=0, signature="SIG123"):
        self.balance = balance
        self.signature = signature
        self.calls = []
        self.funding_requests = []
        self.finalized = []
        self.broadcasts = []
        self.expired = set()
        self._pending = {}
        self._ids = itertools.count(1)

    def get_balance(self, address):
        self.calls.append("get_balance")
        return self.balance

    def request_funding(self, address, lamports):
        self.calls.append("request_funding")
        request_id = f"AIRDROP{next(self._ids)}"
        self.funding_requests.append((address, lamports))
        self._pending[request_id] = lamports
        return request_id

    def await_finalized(self, request_id, timeout=None):
        self.calls.append("await_finalized")
        self.balance += self._pending.pop(request_id)
        self.finalized.append(request_id)

    def get_recent_reference_hash(self):
        self.calls.append("get_recent_reference_hash")
        n = next(self._ids)
        blockhash = base58.b58encode(hashlib.sha256(f"block-{n}".encode()).digest()).decode()
        return RecentBlockhash(blockhash, last_valid_block_height=1000 + n)

    def is_reference_hash_valid(self, token):
        self.calls.append("is_reference_hash_valid")
        return token.blockhash not in self.expired

    def expire(self, token):
        self.expired.add(token.blockhash)

    def broadcast_and_confirm(self, transaction, timeout=None):
        self.calls.append("broadcast_and_confirm")
        self.broadcasts.append(transaction)
        if transaction.message.recent_blockhash.blockhash in self.expired:
            raise TransactionExpired()
        if not transaction.verify_signatures():
            raise SubmissionRejected("signature verification failed")
        return self.signature


class StaticSecretProvider(SecretProvider):
    def __init__(self, secret):
        self.secret = secret

    def load_secret(self):
        return self.secret


@pytest.fixture
def keypair():
    return Keypair.generate()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def blockhash(ledger):
    return ledger.get_recent_reference_hash()
