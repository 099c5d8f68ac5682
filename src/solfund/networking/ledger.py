"""
Ledger service interface.

Everything the funding gate and submission pipeline need from a cluster,
expressed as blocking calls. `SolanaRPC` implements it over JSON-RPC;
tests substitute an in-memory double.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.transactions import RecentBlockhash, SolanaTransaction


class LedgerService(ABC):
    """Blocking view of a Solana cluster for a single caller."""

    @abstractmethod
    def get_balance(self, address: str) -> int:
        """Spendable balance of `address` in lamports."""

    @abstractmethod
    def request_funding(self, address: str, lamports: int) -> str:
        """Ask the faucet for `lamports`; returns the airdrop signature."""

    @abstractmethod
    def await_finalized(self, request_id: str, timeout: Optional[float] = None) -> None:
        """Block until the airdrop `request_id` reaches the configured commitment."""

    @abstractmethod
    def get_recent_reference_hash(self) -> RecentBlockhash:
        """Latest blockhash and the last block height it stays valid for."""

    @abstractmethod
    def is_reference_hash_valid(self, token: RecentBlockhash) -> bool:
        """Whether transactions referencing `token` would still be accepted."""

    @abstractmethod
    def broadcast_and_confirm(self, transaction: SolanaTransaction,
                              timeout: Optional[float] = None) -> str:
        """Send a signed transaction and block until it is confirmed."""
