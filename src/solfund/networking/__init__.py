"""
Solana Networking

The ledger seen from a client:
- LedgerService: the blocking interface the pipeline is written against
- SolanaRPC: JSON-RPC implementation for devnet, testnet or mainnet
"""

from .ledger import LedgerService
from .rpc import DEVNET_URL, RpcError, SolanaRPC

__all__ = [
    'LedgerService',
    'SolanaRPC',
    'RpcError',
    'DEVNET_URL',
]
