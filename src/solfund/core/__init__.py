"""
Solana Client Core

Keypairs, transaction building, and the balance-gated funding and
submission steps, independent of any particular RPC transport.
"""

from .accounts import (
    LAMPORTS_PER_SOL, AccountMeta, lamports_to_sol, sol_to_lamports, parse_address,
)
from .keypairs import Keypair, generate_keypair, load_keypair
from .transactions import (
    RecentBlockhash,
    Instruction,
    MessageHeader,
    CompiledInstruction,
    TransactionMessage,
    SolanaTransaction,
    TransactionBuilder,
    build,
    sign_transaction,
)
from .funding import ensure_funded
from .submission import Submission, SubmissionState, submit

__all__ = [
    'LAMPORTS_PER_SOL', 'AccountMeta', 'lamports_to_sol', 'sol_to_lamports', 'parse_address',
    'Keypair', 'generate_keypair', 'load_keypair',
    'RecentBlockhash', 'Instruction', 'MessageHeader', 'CompiledInstruction',
    'TransactionMessage', 'SolanaTransaction', 'TransactionBuilder',
    'build', 'sign_transaction',
    'ensure_funded',
    'Submission', 'SubmissionState', 'submit',
]
