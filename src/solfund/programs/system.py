"""
System Program instructions.

The System Program owns every plain wallet account; moving lamports between
two of them is its `Transfer` instruction (index 2, u32) followed by the
amount (u64), both little-endian.

Based on: https://solana.com/docs/core/programs#system-program
"""

from ..core.accounts import MAX_LAMPORTS, AccountMeta
from ..core.transactions import Instruction


SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

TRANSFER = 2


def create_transfer_instruction(from_pubkey: str, to_pubkey: str,
                                lamports: int) -> Instruction:
    """Create a simple SOL transfer instruction."""
    if not 0 <= lamports <= MAX_LAMPORTS:
        raise ValueError(f"Transfer amount {lamports} is outside the u64 lamport range")

    data = bytearray()
    data.extend(TRANSFER.to_bytes(4, 'little'))
    data.extend(lamports.to_bytes(8, 'little'))

    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=[
            AccountMeta(from_pubkey, is_signer=True, is_writable=True),
            AccountMeta(to_pubkey, is_signer=False, is_writable=True),
        ],
        data=bytes(data),
    )
