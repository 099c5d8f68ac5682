"""Package-wide custom exceptions."""

from typing import Optional


class SolfundError(Exception):
    """Base exception."""


class InvalidKeyMaterial(SolfundError):
    """Secret bytes do not decode to a usable Ed25519 keypair."""


class InvalidAddress(SolfundError):
    """A public key string is not a valid base58 encoded 32-byte key."""


class InvalidInstructionSet(SolfundError):
    """A transaction was built with no instructions."""


class LedgerUnavailable(SolfundError):
    """
    Transport, timeout or service error from the ledger.

    The underlying error (if any) is kept on ``cause`` and chained.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class FundingDenied(LedgerUnavailable):
    """The ledger refused or failed an airdrop request."""


class SigningError(SolfundError):
    """The signing identity is not the transaction's fee payer."""


class SubmissionRejected(SolfundError):
    """The ledger explicitly refused a transaction."""

    def __init__(self, reason: str):
        super().__init__(f"Transaction rejected: {reason}")
        self.reason = reason


class TransactionExpired(SubmissionRejected):
    """The recent blockhash lapsed before the transaction was confirmed."""

    def __init__(self, reason: str = "blockhash expired"):
        super().__init__(reason)


class ConfirmationTimeout(SolfundError):
    """No confirmation was observed within the allotted time."""

    def __init__(self, signature: str, timeout: float):
        super().__init__(f"No confirmation for {signature} after {timeout:.1f}s")
        self.signature = signature
        self.timeout = timeout
