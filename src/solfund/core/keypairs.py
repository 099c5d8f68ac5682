"""
Solana Keypairs

A keypair is the signing authority for one account. Solana uses Ed25519:
the address is the base58 encoded 32-byte public key, and the secret is
stored as 64 bytes (32-byte seed followed by the public key), which is the
layout written by `solana-keygen` and kept in SECRET_KEY as a JSON array.

Based on: https://solana.com/docs/core/accounts#keypair
"""

import json
from typing import List, Union

from ecdsa import BadSignatureError, Ed25519, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError

from .accounts import encode_pubkey, parse_address
from ..exceptions import InvalidKeyMaterial


SEED_LENGTH = 32
SECRET_KEY_LENGTH = 64


class Keypair:
    """
    An immutable Ed25519 signing authority.

    Construct with `Keypair.generate()` or `Keypair.from_bytes(secret)`.
    The secret never leaves memory unless a caller asks for it explicitly.
    """

    __slots__ = ('_signing_key', '_pubkey')

    def __init__(self, signing_key: SigningKey):
        if signing_key.curve is not Ed25519:
            raise InvalidKeyMaterial("Solana keypairs must use Ed25519")
        self._signing_key = signing_key
        self._pubkey = signing_key.verifying_key.to_string()

    @classmethod
    def generate(cls) -> 'Keypair':
        """Create a new random keypair."""
        return cls(SigningKey.generate(curve=Ed25519))

    @classmethod
    def from_seed(cls, seed: bytes) -> 'Keypair':
        """Derive the keypair for a 32-byte seed."""
        if len(seed) != SEED_LENGTH:
            raise InvalidKeyMaterial(f"Seed must be {SEED_LENGTH} bytes, got {len(seed)}")
        try:
            return cls(SigningKey.from_string(bytes(seed), curve=Ed25519))
        except (MalformedPointError, ValueError) as e:
            raise InvalidKeyMaterial(f"Invalid seed: {e}") from e

    @classmethod
    def from_bytes(cls, secret: Union[bytes, bytearray, List[int]]) -> 'Keypair':
        """
        Rebuild a keypair from its 64-byte secret.

        The trailing 32 bytes must equal the public key derived from the
        leading seed, otherwise the material is structurally invalid.
        """
        try:
            secret = bytes(secret)
        except (TypeError, ValueError) as e:
            raise InvalidKeyMaterial(f"Secret key is not a byte sequence: {e}") from e

        if len(secret) != SECRET_KEY_LENGTH:
            raise InvalidKeyMaterial(
                f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret)}"
            )

        keypair = cls.from_seed(secret[:SEED_LENGTH])
        if keypair.pubkey != secret[SEED_LENGTH:]:
            raise InvalidKeyMaterial("Public key half does not match the seed")
        return keypair

    @classmethod
    def from_json(cls, text: str) -> 'Keypair':
        """Parse the JSON byte array form, e.g. "[12, 201, ...]"."""
        return cls.from_bytes(parse_secret_json(text))

    @property
    def pubkey(self) -> bytes:
        """Raw 32-byte public key."""
        return self._pubkey

    @property
    def address(self) -> str:
        """Base58 address of this keypair."""
        return encode_pubkey(self._pubkey)

    def secret_bytes(self) -> bytes:
        """64-byte secret in the Solana layout (seed || pubkey)."""
        return self._signing_key.to_string() + self._pubkey

    def to_json(self) -> str:
        return json.dumps(list(self.secret_bytes()))

    def sign(self, message: bytes) -> bytes:
        """Produce a 64-byte Ed25519 signature over `message`."""
        return self._signing_key.sign(message)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Keypair):
            return NotImplemented
        return self.secret_bytes() == other.secret_bytes()

    def __hash__(self) -> int:
        return hash(self._pubkey)

    def __repr__(self) -> str:
        return f"Keypair({self.address})"


def generate_keypair() -> Keypair:
    """Generate a fresh keypair for this run."""
    return Keypair.generate()


def load_keypair(secret: Union[bytes, bytearray, List[int]]) -> Keypair:
    """Reconstruct a keypair from persisted secret bytes."""
    return Keypair.from_bytes(secret)


def verify_signature(address: str, signature: bytes, message: bytes) -> bool:
    """Check an Ed25519 signature against a base58 address."""
    try:
        verifying_key = VerifyingKey.from_string(parse_address(address), curve=Ed25519)
        return verifying_key.verify(signature, message)
    except (BadSignatureError, MalformedPointError, ValueError):
        return False


def parse_secret_json(text: str) -> bytes:
    """
    Decode a secret key stored as a JSON byte array, e.g. "[12, 201, ...]".

    Anything other than a list of integers in 0..255 is InvalidKeyMaterial.
    """
    try:
        values = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise InvalidKeyMaterial(f"Failed to parse secret key JSON: {e}") from e
    if not isinstance(values, list) or not all(
        isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 255 for v in values
    ):
        raise InvalidKeyMaterial("Secret key JSON must be an array of byte values")
    return bytes(values)
