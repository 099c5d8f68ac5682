"""
Solana JSON-RPC client.

Implements LedgerService against a cluster's HTTP endpoint (devnet by
default) using a single synchronous httpx client. Confirmation waits poll
getSignatureStatuses until the configured commitment is reached, the
blockhash expires, or the timeout elapses.

Based on: https://solana.com/docs/rpc/http
"""

import itertools
import time
from typing import Any, Dict, Optional

import httpx

from .ledger import LedgerService
from ..core.transactions import RecentBlockhash, SolanaTransaction
from ..exceptions import (
    ConfirmationTimeout,
    FundingDenied,
    LedgerUnavailable,
    SubmissionRejected,
    TransactionExpired,
)


DEVNET_URL = "https://api.devnet.solana.com"
COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


class RpcError(LedgerUnavailable):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int, message: str, data: Any = None):
        super().__init__(f"{method}: {message} (code {code})")
        self.method = method
        self.code = code
        self.message = message
        self.data = data


class SolanaRPC(LedgerService):
    """
    Blocking JSON-RPC 2.0 client for one Solana endpoint.

    The underlying httpx.Client is safe to share between independent
    callers; request ids come from a thread-safe counter.
    """

    def __init__(
        self,
        endpoint: str = DEVNET_URL,
        *,
        commitment: str = "confirmed",
        request_timeout: float = 10.0,
        confirm_timeout: float = 60.0,
        poll_interval: float = 0.5,
        client: Optional[httpx.Client] = None,
    ):
        if commitment not in COMMITMENT_LEVELS:
            raise ValueError(f"Unknown commitment {commitment!r}")
        self.endpoint = endpoint
        self.commitment = commitment
        self.confirm_timeout = confirm_timeout
        self.poll_interval = poll_interval
        self._client = client or httpx.Client(timeout=request_timeout)
        self._ids = itertools.count(1)

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.Client] = None) -> 'SolanaRPC':
        return cls(
            settings.rpc_url,
            commitment=settings.commitment,
            request_timeout=settings.request_timeout,
            confirm_timeout=settings.confirm_timeout,
            poll_interval=settings.poll_interval,
            client=client,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> 'SolanaRPC':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # transport
    # ------------------------------------------------------------------ #
    def _call(self, method: str, *params: Any) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        try:
            response = self._client.post(self.endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise LedgerUnavailable(f"{method} failed: {e}", cause=e) from e
        except ValueError as e:
            raise LedgerUnavailable(f"{method} returned invalid JSON", cause=e) from e

        if not isinstance(body, dict):
            raise LedgerUnavailable(f"{method} returned a non-object JSON body")

        error = body.get("error")
        if error is not None:
            raise RpcError(method, error.get("code", 0), error.get("message", ""), error.get("data"))
        return body.get("result")

    def _reached(self, status: Dict[str, Any]) -> bool:
        level = status.get("confirmationStatus")
        if level is None:
            # Nodes that predate confirmationStatus report confirmations=None once rooted
            level = "finalized" if status.get("confirmations") is None else "processed"
        return COMMITMENT_LEVELS.index(level) >= COMMITMENT_LEVELS.index(self.commitment)

    def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        result = self._call(
            "getSignatureStatuses", [signature], {"searchTransactionHistory": True}
        )
        return result["value"][0]

    def get_block_height(self) -> int:
        return self._call("getBlockHeight", {"commitment": self.commitment})

    def wait_for_confirmation(self, signature: str, timeout: Optional[float] = None,
                              last_valid_block_height: Optional[int] = None) -> Dict[str, Any]:
        """
        Poll until `signature` reaches the commitment level or fails.

        Returns the final status (its "err" may be set). Raises
        TransactionExpired once the block height passes
        `last_valid_block_height` with nothing landed, and
        ConfirmationTimeout after `timeout` seconds.
        """
        timeout = self.confirm_timeout if timeout is None else timeout
        start_time = time.monotonic()

        while True:
            # Height is read before status so a last-moment landing still counts
            expired = (
                last_valid_block_height is not None
                and self.get_block_height() > last_valid_block_height
            )
            status = self.get_signature_status(signature)
            if status is not None and (status.get("err") is not None or self._reached(status)):
                return status
            if expired:
                raise TransactionExpired(
                    f"block height exceeded {last_valid_block_height} before {signature} landed"
                )
            if time.monotonic() - start_time >= timeout:
                raise ConfirmationTimeout(signature, timeout)
            time.sleep(self.poll_interval)

    # ------------------------------------------------------------------ #
    # LedgerService
    # ------------------------------------------------------------------ #
    def get_balance(self, address: str) -> int:
        result = self._call("getBalance", address, {"commitment": self.commitment})
        return result["value"]

    def request_funding(self, address: str, lamports: int) -> str:
        try:
            return self._call("requestAirdrop", address, lamports, {"commitment": self.commitment})
        except RpcError as e:
            raise FundingDenied(f"Airdrop of {lamports} lamports refused: {e.message}", cause=e) from e

    def await_finalized(self, request_id: str, timeout: Optional[float] = None) -> None:
        status = self.wait_for_confirmation(request_id, timeout)
        if status.get("err") is not None:
            raise FundingDenied(f"Airdrop {request_id} failed: {status['err']}")

    def get_recent_reference_hash(self) -> RecentBlockhash:
        result = self._call("getLatestBlockhash", {"commitment": self.commitment})
        value = result["value"]
        return RecentBlockhash(value["blockhash"], value["lastValidBlockHeight"])

    def is_reference_hash_valid(self, token: RecentBlockhash) -> bool:
        result = self._call(
            "isBlockhashValid", token.blockhash, {"commitment": self.commitment}
        )
        return bool(result["value"])

    def broadcast_and_confirm(self, transaction: SolanaTransaction,
                              timeout: Optional[float] = None) -> str:
        try:
            signature = self._call(
                "sendTransaction",
                transaction.to_base64(),
                {"encoding": "base64", "preflightCommitment": self.commitment},
            )
        except RpcError as e:
            if "Blockhash not found" in e.message:
                raise TransactionExpired(e.message) from e
            raise SubmissionRejected(e.message) from e

        status = self.wait_for_confirmation(
            signature, timeout, transaction.message.recent_blockhash.last_valid_block_height
        )
        if status.get("err") is not None:
            raise SubmissionRejected(str(status["err"]))
        return signature
