"""
Solana Transaction and Instruction Model

This implements Solana's transaction structure where:
- Transactions contain multiple instructions that execute atomically, in order
- All account access is declared upfront in one ordered account list
- A recent blockhash bounds how long the transaction stays valid
- The fee payer is the first account and the first signature

Messages serialize to the legacy wire format so the bytes that get signed
are exactly the bytes the cluster verifies.

Based on: https://solana.com/docs/core/transactions
"""

import base64
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

import base58

from .accounts import AccountMeta, encode_pubkey, parse_address
from .keypairs import Keypair, verify_signature
from ..exceptions import InvalidInstructionSet, SigningError


BLOCKHASH_LENGTH = 32


def encode_length(value: int) -> bytes:
    """
    Encode a length as Solana's compact-u16 ("shortvec").

    Seven bits per byte, low bits first, high bit set on every byte but
    the last.
    """
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"Length {value} does not fit in compact-u16")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


@dataclass(frozen=True)
class RecentBlockhash:
    """
    Freshness token for a transaction.

    The cluster rejects a transaction once its block height passes
    `last_valid_block_height`.
    """
    blockhash: str                              # base58, 32 bytes
    last_valid_block_height: Optional[int] = None

    def __str__(self) -> str:
        return self.blockhash


@dataclass(frozen=True)
class Instruction:
    """
    High-level instruction before compilation to indices.

    This is the developer-friendly format for building transactions.
    It gets compiled down to CompiledInstruction inside a message.
    """
    program_id: str                                # Program to invoke
    accounts: Tuple[AccountMeta, ...]             # Accounts with access metadata
    data: bytes                                   # Instruction data

    def __post_init__(self):
        # Accept lists for convenience but keep the value immutable
        object.__setattr__(self, 'accounts', tuple(self.accounts))
        object.__setattr__(self, 'data', bytes(self.data))

    def __str__(self) -> str:
        return f"Instruction({self.program_id[:8]}..., {len(self.accounts)} accounts, {len(self.data)} bytes)"


@dataclass(frozen=True)
class MessageHeader:
    """
    Transaction message header with account access metadata.

    This tells the runtime how many accounts need to sign and
    which accounts are read-only vs writable.
    """
    num_required_signatures: int        # Number of signatures required
    num_readonly_signed_accounts: int   # Read-only accounts that must sign
    num_readonly_unsigned_accounts: int # Read-only accounts (no signature)


@dataclass(frozen=True)
class CompiledInstruction:
    """
    Instruction compiled to reference accounts by index.

    Instead of embedding full account keys, we reference them by their
    position in the message's account array.
    """
    program_id_index: int           # Index into account_keys for program
    accounts: Tuple[int, ...]       # Indices into account_keys
    data: bytes                     # Program-specific instruction data

    def __str__(self) -> str:
        return f"Instruction(program_id_index={self.program_id_index}, accounts={list(self.accounts)}, data_len={len(self.data)})"


@dataclass(frozen=True)
class TransactionMessage:
    """
    The unsigned transaction: everything the signature covers.
    """
    header: MessageHeader
    account_keys: Tuple[str, ...]      # All account addresses, fee payer first
    recent_blockhash: RecentBlockhash  # Replay protection / expiry
    instructions: Tuple[CompiledInstruction, ...]

    @property
    def fee_payer(self) -> str:
        return self.account_keys[0]

    @property
    def signer_keys(self) -> Tuple[str, ...]:
        return self.account_keys[:self.header.num_required_signatures]

    def with_blockhash(self, recent_blockhash: RecentBlockhash) -> 'TransactionMessage':
        """Return a copy referencing a different freshness token."""
        return replace(self, recent_blockhash=recent_blockhash)

    def serialize(self) -> bytes:
        """Serialize the message for signing and transmission."""
        parts = [
            bytes([
                self.header.num_required_signatures,
                self.header.num_readonly_signed_accounts,
                self.header.num_readonly_unsigned_accounts,
            ]),
            encode_length(len(self.account_keys)),
        ]
        parts.extend(parse_address(key) for key in self.account_keys)

        blockhash = base58.b58decode(self.recent_blockhash.blockhash.encode())
        if len(blockhash) != BLOCKHASH_LENGTH:
            raise ValueError(f"Blockhash must be {BLOCKHASH_LENGTH} bytes, got {len(blockhash)}")
        parts.append(blockhash)

        parts.append(encode_length(len(self.instructions)))
        for instruction in self.instructions:
            parts.append(bytes([instruction.program_id_index]))
            parts.append(encode_length(len(instruction.accounts)))
            parts.append(bytes(instruction.accounts))
            parts.append(encode_length(len(instruction.data)))
            parts.append(instruction.data)

        return b''.join(parts)


@dataclass(frozen=True)
class SolanaTransaction:
    """
    Signed transaction ready for broadcast.
    """
    signatures: Tuple[bytes, ...]      # Ed25519 signatures, one per required signer
    message: TransactionMessage

    @property
    def signature(self) -> str:
        """Transaction id: base58 of the fee payer's signature."""
        if not self.signatures:
            raise ValueError("Transaction is not signed")
        return encode_pubkey(self.signatures[0])

    def serialize(self) -> bytes:
        parts = [encode_length(len(self.signatures))]
        parts.extend(self.signatures)
        parts.append(self.message.serialize())
        return b''.join(parts)

    def to_base64(self) -> str:
        """Wire encoding accepted by sendTransaction."""
        return base64.b64encode(self.serialize()).decode()

    def verify_signatures(self) -> bool:
        """
        Verify all transaction signatures.

        Each required signer must provide a valid Ed25519 signature
        over the serialized message.
        """
        signers = self.message.signer_keys
        if len(self.signatures) != len(signers):
            return False

        message_data = self.message.serialize()
        return all(
            verify_signature(signer, signature, message_data)
            for signer, signature in zip(signers, self.signatures)
        )


class TransactionBuilder:
    """
    Builder for constructing Solana transactions.

    This handles ordering accounts correctly and compiling instructions
    to their index-based form. Instruction order is never changed.
    """

    def __init__(self, fee_payer: str, recent_blockhash: RecentBlockhash):
        """
        Initialize transaction builder.

        Args:
            fee_payer: Address that pays transaction fees (must sign)
            recent_blockhash: Freshness token fetched immediately beforehand
        """
        self.fee_payer = fee_payer
        self.recent_blockhash = recent_blockhash
        self.instructions: List[Instruction] = []

    def add_instruction(self, instruction: Instruction) -> 'TransactionBuilder':
        """Add an instruction to the transaction (fluent interface)."""
        self.instructions.append(instruction)
        return self

    def add_instructions(self, instructions: Sequence[Instruction]) -> 'TransactionBuilder':
        """Add multiple instructions at once."""
        self.instructions.extend(instructions)
        return self

    def build(self) -> TransactionMessage:
        """
        Build the final transaction message.

        Accounts are ordered according to Solana's rules:
        1. Writable signers (fee payer always first)
        2. Readonly signers
        3. Writable non-signers
        4. Readonly non-signers (programs land here)

        Within each group accounts keep the order they were first seen.
        """
        if not self.instructions:
            raise InvalidInstructionSet("A transaction needs at least one instruction")

        # address -> [is_signer, is_writable], insertion ordered
        flags: Dict[str, List[bool]] = {self.fee_payer: [True, True]}

        for instruction in self.instructions:
            for account in instruction.accounts:
                entry = flags.setdefault(account.pubkey, [False, False])
                entry[0] = entry[0] or account.is_signer
                entry[1] = entry[1] or account.is_writable
            flags.setdefault(instruction.program_id, [False, False])

        def group(is_signer: bool, is_writable: bool) -> List[str]:
            return [key for key, (s, w) in flags.items() if s == is_signer and w == is_writable]

        writable_signers = group(True, True)
        readonly_signers = group(True, False)
        writable_non_signers = group(False, True)
        readonly_non_signers = group(False, False)

        account_keys = writable_signers + readonly_signers + writable_non_signers + readonly_non_signers
        account_index = {key: i for i, key in enumerate(account_keys)}

        compiled_instructions = tuple(
            CompiledInstruction(
                program_id_index=account_index[instruction.program_id],
                accounts=tuple(account_index[acc.pubkey] for acc in instruction.accounts),
                data=instruction.data,
            )
            for instruction in self.instructions
        )

        header = MessageHeader(
            num_required_signatures=len(writable_signers) + len(readonly_signers),
            num_readonly_signed_accounts=len(readonly_signers),
            num_readonly_unsigned_accounts=len(readonly_non_signers),
        )

        return TransactionMessage(
            header=header,
            account_keys=tuple(account_keys),
            recent_blockhash=self.recent_blockhash,
            instructions=compiled_instructions,
        )


def build(fee_payer: str, instructions: Sequence[Instruction],
          recent_blockhash: RecentBlockhash) -> TransactionMessage:
    """Assemble an unsigned message from an ordered, non-empty instruction list."""
    return TransactionBuilder(fee_payer, recent_blockhash).add_instructions(instructions).build()


def sign_transaction(message: TransactionMessage, signer: Keypair) -> SolanaTransaction:
    """
    Sign a finished message with the fee payer's keypair.

    Only single-signer messages are supported: the keypair must be the fee
    payer and the only required signer.
    """
    if signer.address != message.fee_payer:
        raise SigningError(
            f"Keypair {signer.address} is not the fee payer {message.fee_payer}"
        )
    if message.header.num_required_signatures != 1:
        raise SigningError(
            f"Message requires {message.header.num_required_signatures} signatures, "
            "only single-signer transactions are supported"
        )

    signature = signer.sign(message.serialize())
    return SolanaTransaction(signatures=(signature,), message=message)
