"""
Transaction submission.

A submission moves through

    Unsigned -> Signed -> Broadcast -> Confirmed | Rejected | Expired

Signing happens only here, after the message (instructions and blockhash)
is final. A stale blockhash is a terminal failure unless the caller opts in
to refreshing it; once broadcast, a transaction cannot be withdrawn.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .keypairs import Keypair
from .transactions import SolanaTransaction, TransactionMessage, sign_transaction
from ..exceptions import (
    LedgerUnavailable,
    SolfundError,
    SubmissionRejected,
    TransactionExpired,
)


class SubmissionState(Enum):
    UNSIGNED = "unsigned"
    SIGNED = "signed"
    BROADCAST = "broadcast"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    EXPIRED = "expired"


TERMINAL_STATES = frozenset({
    SubmissionState.CONFIRMED,
    SubmissionState.REJECTED,
    SubmissionState.EXPIRED,
})


@dataclass
class Submission:
    """Record of one submission attempt and the states it went through."""
    message: TransactionMessage
    state: SubmissionState = SubmissionState.UNSIGNED
    transaction: Optional[SolanaTransaction] = None
    signature: Optional[str] = None
    error: Optional[SolfundError] = None
    history: List[SubmissionState] = field(default_factory=lambda: [SubmissionState.UNSIGNED])

    def advance(self, state: SubmissionState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Submission already {self.state.value}")
        self.state = state
        self.history.append(state)


def submit(message: TransactionMessage, identity: Keypair, ledger, *,
           refresh_blockhash: bool = False, timeout: Optional[float] = None,
           record: Optional[Submission] = None) -> str:
    """
    Sign `message` with `identity`, broadcast it and wait for confirmation.

    Returns the transaction signature once the ledger confirms it.

    Raises:
        TransactionExpired: the blockhash is no longer valid (and
            `refresh_blockhash` is off), or it lapsed before confirmation
        SigningError: `identity` is not the message's fee payer
        SubmissionRejected: the ledger refused the transaction
        ConfirmationTimeout: no confirmation within `timeout`
        LedgerUnavailable: any other service failure
        RuntimeError: `record` has already left the unsigned state
    """
    record = record or Submission(message)
    if record.state is not SubmissionState.UNSIGNED:
        raise RuntimeError(f"Submission already {record.state.value}, start a new record")

    try:
        if not ledger.is_reference_hash_valid(message.recent_blockhash):
            if not refresh_blockhash:
                raise TransactionExpired(
                    f"blockhash {message.recent_blockhash} is no longer valid, rebuild the transaction"
                )
            message = message.with_blockhash(ledger.get_recent_reference_hash())
            record.message = message

        transaction = sign_transaction(message, identity)
        record.transaction = transaction
        record.advance(SubmissionState.SIGNED)

        record.advance(SubmissionState.BROADCAST)
        signature = ledger.broadcast_and_confirm(transaction, timeout)
    except TransactionExpired as e:
        _fail(record, SubmissionState.EXPIRED, e)
        raise
    except SubmissionRejected as e:
        _fail(record, SubmissionState.REJECTED, e)
        raise
    except SolfundError as e:
        record.error = e
        raise
    except Exception as e:
        error = LedgerUnavailable(f"Submission failed: {e}", cause=e)
        record.error = error
        raise error from e

    record.signature = signature
    record.advance(SubmissionState.CONFIRMED)
    return signature


def _fail(record: Submission, state: SubmissionState, error: SolfundError) -> None:
    record.error = error
    record.advance(state)
