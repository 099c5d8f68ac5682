"""
Balance-gated funding.

Before an account can pay fees it needs lamports. On devnet and testnet the
faucet (requestAirdrop) provides them; the gate asks for an airdrop only
when the balance is below a threshold, and waits until the airdrop lands so
that anything built afterwards sees the funded account.

The default threshold of 1 lamport only distinguishes "empty" from "has
something". Callers about to transfer should pass a threshold that covers
the transfer amount plus fees.
"""

from typing import Optional

from .accounts import LAMPORTS_PER_SOL
from .keypairs import Keypair
from ..exceptions import LedgerUnavailable, SolfundError


DEFAULT_THRESHOLD = 1
DEFAULT_AIRDROP_AMOUNT = LAMPORTS_PER_SOL


def needs_funding(balance: int, threshold: int = DEFAULT_THRESHOLD) -> bool:
    """Whether a balance in lamports falls below the funding threshold."""
    return balance < threshold


def ensure_funded(identity: Keypair, ledger, threshold: int = DEFAULT_THRESHOLD,
                  amount: int = DEFAULT_AIRDROP_AMOUNT,
                  timeout: Optional[float] = None) -> int:
    """
    Top up `identity`'s account if its balance is below `threshold`.

    Issues at most one airdrop of `amount` lamports and blocks until the
    ledger reports it final. Returns the balance observed before any
    funding; re-query the ledger for the post-funding balance.

    Service failures surface as LedgerUnavailable with the original error
    attached. Nothing is retried.
    """
    if threshold < 0 or amount <= 0:
        raise ValueError("threshold must be >= 0 and amount > 0")

    address = identity.address
    try:
        balance = ledger.get_balance(address)
        if not needs_funding(balance, threshold):
            return balance

        request_id = ledger.request_funding(address, amount)
        ledger.await_finalized(request_id, timeout)
    except SolfundError:
        raise
    except Exception as e:
        raise LedgerUnavailable(f"Funding {address} failed: {e}", cause=e) from e

    return balance
