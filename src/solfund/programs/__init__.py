"""
Solana Program Instructions

Builders for the on-chain programs the pipeline talks to:
- System Program: lamport transfers between wallet accounts
- Memo Program: attaching a UTF-8 note to a transaction
"""

from .system import SYSTEM_PROGRAM_ID, create_transfer_instruction
from .memo import MEMO_PROGRAM_ID, create_memo_instruction

__all__ = [
    'SYSTEM_PROGRAM_ID',
    'create_transfer_instruction',
    'MEMO_PROGRAM_ID',
    'create_memo_instruction',
]
