"""
Solana Account Addressing and Units

Everything the pipeline needs to know about accounts without talking to a
ledger:
- Addresses are base58 encodings of 32-byte Ed25519 public keys
- Balances are integer lamports (1 SOL = 1_000_000_000 lamports)
- Instructions declare how they touch each account through AccountMeta

Based on: https://solana.com/docs/core/accounts
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

import base58

from ..exceptions import InvalidAddress


LAMPORTS_PER_SOL = 1_000_000_000
MAX_LAMPORTS = 2 ** 64 - 1  # balances and amounts are u64 on-chain
PUBKEY_LENGTH = 32


def lamports_to_sol(lamports: int) -> float:
    """Convert lamports to SOL for human-readable display only."""
    return lamports / LAMPORTS_PER_SOL


def sol_to_lamports(sol: Union[str, float, Decimal]) -> int:
    """
    Convert a SOL amount to whole lamports.

    Goes through Decimal so that "0.01" becomes exactly 10_000_000 rather
    than whatever the nearest binary float rounds to.
    """
    try:
        value = Decimal(str(sol))
    except InvalidOperation:
        raise ValueError(f"Invalid SOL amount: {sol!r}")
    if not value.is_finite():
        raise ValueError(f"SOL amount must be finite, got {sol!r}")
    value *= LAMPORTS_PER_SOL
    if value < 0:
        raise ValueError("SOL amount cannot be negative")
    if value != value.to_integral_value():
        raise ValueError(f"{sol} SOL is not a whole number of lamports")
    if value > MAX_LAMPORTS:
        raise ValueError(f"{sol} SOL exceeds the largest lamport amount")
    return int(value)


def encode_pubkey(raw: bytes) -> str:
    """Encode raw public key bytes as a base58 address."""
    return base58.b58encode(raw).decode()


def parse_address(address: str) -> bytes:
    """
    Validate a public key string and return its raw bytes.

    Raises InvalidAddress for non-base58 text or keys that do not decode to
    exactly 32 bytes.
    """
    if not isinstance(address, str) or not address:
        raise InvalidAddress("Address cannot be empty")
    try:
        raw = base58.b58decode(address.encode())
    except ValueError as e:
        raise InvalidAddress(f"Address {address!r} is not valid base58: {e}") from e
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidAddress(
            f"Address {address!r} decodes to {len(raw)} bytes, expected {PUBKEY_LENGTH}"
        )
    return raw


@dataclass(frozen=True)
class AccountMeta:
    """
    Account metadata for instruction building.

    This tells the runtime how an instruction wants to access each account.
    """
    pubkey: str          # Account address (base58)
    is_signer: bool      # Must sign transaction
    is_writable: bool    # Can be modified

    def __str__(self) -> str:
        flags = []
        if self.is_signer:
            flags.append("signer")
        if self.is_writable:
            flags.append("writable")
        flag_str = f"({', '.join(flags)})" if flags else "(readonly)"
        return f"{self.pubkey[:8]}...{flag_str}"
