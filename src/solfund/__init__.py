"""
solfund: Solana account funding and transfers

Loads or generates a keypair, tops the account up from the devnet faucet
when its balance is low, and sends multi-instruction transactions
(transfer + memo), waiting for the cluster to confirm them.

Key pieces:
- Ed25519 keypairs with base58 addresses
- Balance-gated airdrops
- Solana wire-format transaction building and signing
- Blocking submission with expiry and timeout handling
- A JSON-RPC ledger client and a small CLI
"""

__version__ = "1.0.0"

from .core import *
from .exceptions import (
    SolfundError,
    InvalidKeyMaterial,
    InvalidAddress,
    InvalidInstructionSet,
    LedgerUnavailable,
    FundingDenied,
    SigningError,
    SubmissionRejected,
    TransactionExpired,
    ConfirmationTimeout,
)
from .networking import LedgerService, SolanaRPC
from .pipeline import PipelineResult, run_pipeline, transfer_operation, memo_operation

__all__ = [
    # Core
    'Keypair',
    'generate_keypair',
    'load_keypair',
    'Instruction',
    'RecentBlockhash',
    'TransactionBuilder',
    'TransactionMessage',
    'SolanaTransaction',
    'build',
    'sign_transaction',
    'ensure_funded',
    'submit',
    'LAMPORTS_PER_SOL',

    # Ledger access
    'LedgerService',
    'SolanaRPC',

    # Pipeline
    'PipelineResult',
    'run_pipeline',
    'transfer_operation',
    'memo_operation',

    # Errors
    'SolfundError',
    'InvalidKeyMaterial',
    'InvalidAddress',
    'InvalidInstructionSet',
    'LedgerUnavailable',
    'FundingDenied',
    'SigningError',
    'SubmissionRejected',
    'TransactionExpired',
    'ConfirmationTimeout',
]
