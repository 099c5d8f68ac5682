"""
Fund-then-transact pipeline.

One straight-line flow for a single account:

    ensure_funded -> fetch blockhash -> build -> submit

The post-funding work is a list of operations, each turning the payer's
keypair into instructions. With no operations the pipeline only funds.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .core.funding import DEFAULT_AIRDROP_AMOUNT, DEFAULT_THRESHOLD, ensure_funded
from .core.keypairs import Keypair
from .core.submission import submit
from .core.transactions import Instruction, build
from .programs.memo import create_memo_instruction
from .programs.system import create_transfer_instruction


Operation = Callable[[Keypair], List[Instruction]]

DEFAULT_MEMO = "Hello from Solana!"


@dataclass(frozen=True)
class PipelineResult:
    balance_before: int               # lamports, as seen before any airdrop
    signature: Optional[str] = None   # None when no operations were given

    @property
    def submitted(self) -> bool:
        return self.signature is not None


def transfer_operation(recipient: str, lamports: int) -> Operation:
    """Send `lamports` from the payer to `recipient`."""
    def operation(payer: Keypair) -> List[Instruction]:
        return [create_transfer_instruction(payer.address, recipient, lamports)]
    return operation


def memo_operation(text: str = DEFAULT_MEMO) -> Operation:
    def operation(payer: Keypair) -> List[Instruction]:
        return [create_memo_instruction(text)]
    return operation


def run_pipeline(identity: Keypair, ledger, operations: Sequence[Operation] = (), *,
                 threshold: int = DEFAULT_THRESHOLD,
                 amount: int = DEFAULT_AIRDROP_AMOUNT,
                 timeout: Optional[float] = None,
                 refresh_blockhash: bool = False) -> PipelineResult:
    """
    Fund `identity` if needed, then run `operations` as one transaction.

    The blockhash is fetched only after the funding step has returned, i.e.
    after any airdrop is final.
    """
    balance = ensure_funded(identity, ledger, threshold=threshold, amount=amount, timeout=timeout)
    if not operations:
        return PipelineResult(balance_before=balance)

    instructions: List[Instruction] = []
    for operation in operations:
        instructions.extend(operation(identity))

    recent_blockhash = ledger.get_recent_reference_hash()
    message = build(identity.address, instructions, recent_blockhash)
    signature = submit(
        message, identity, ledger,
        refresh_blockhash=refresh_blockhash, timeout=timeout,
    )
    return PipelineResult(balance_before=balance, signature=signature)
