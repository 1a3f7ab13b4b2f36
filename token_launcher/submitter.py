# submitter.py

import logging
import time
from enum import Enum
from typing import Callable, Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment, Finalized
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from .assembler import AssembledTransaction
from .errors import (
    InsufficientFundsError,
    MintError,
    OnChainRejectionError,
    RpcConnectionError,
    SubmissionExpiredError,
)
from .models import SubmissionResult, TerminalStatus

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_MAX_POLL_FAILURES = 5
DEFAULT_DETAIL_ATTEMPTS = 5

INSUFFICIENT_FUNDS_MARKERS = ("insufficient funds", "insufficientfunds", "insufficient lamports")


class SubmissionState(Enum):
    BUILT = "Built"
    SIGNED = "Signed"
    SUBMITTED = "Submitted"
    CONFIRMED = "Confirmed"
    EXPIRED = "Expired"
    REJECTED = "Rejected"


TERMINAL_STATES = (SubmissionState.CONFIRMED, SubmissionState.EXPIRED, SubmissionState.REJECTED)


def _is_insufficient_funds(*texts) -> bool:
    for text in texts:
        lowered = str(text).lower()
        if any(marker in lowered for marker in INSUFFICIENT_FUNDS_MARKERS):
            return True
    return False


def classify_rpc_error(error: RPCException, signature: Optional[str] = None) -> MintError:
    """Turn an RPC error response into the matching launcher error."""
    detail = error.args[0] if error.args else error
    message = getattr(detail, "message", None) or str(detail)
    logs = list(getattr(getattr(detail, "data", None), "logs", None) or [])
    if "blockhash not found" in message.lower():
        return SubmissionExpiredError(message, signature=signature)
    if _is_insufficient_funds(message, *logs):
        return InsufficientFundsError(message, logs=logs, signature=signature)
    return OnChainRejectionError(message, logs=logs, signature=signature)


def _reached(status: Optional[TransactionConfirmationStatus], commitment: Commitment) -> bool:
    # Statuses old enough to be rooted come back without a confirmation level.
    if status is None:
        return True
    if commitment == Finalized:
        return status == TransactionConfirmationStatus.Finalized
    return status in (TransactionConfirmationStatus.Confirmed, TransactionConfirmationStatus.Finalized)


class SubmissionEngine:
    """Sends one signed transaction and follows it to a terminal state.

    The engine never resends signed bytes. An expired transaction has to be
    rebuilt by the caller with a fresh blockhash.
    """

    def __init__(
        self,
        client: Client,
        commitment: Commitment,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_failures: int = DEFAULT_MAX_POLL_FAILURES,
        detail_attempts: int = DEFAULT_DETAIL_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.commitment = commitment
        self.poll_interval = poll_interval
        self.max_poll_failures = max_poll_failures
        self.detail_attempts = detail_attempts
        self.sleep = sleep
        self.state = SubmissionState.BUILT
        self.cancel_requested = False

    def _move(self, state: SubmissionState):
        logger.info("Transaction state: %s -> %s", self.state.value, state.value)
        self.state = state

    # --- Submission ---

    def submit(self, assembled: AssembledTransaction) -> Signature:
        if self.state in TERMINAL_STATES or self.state is SubmissionState.SUBMITTED:
            raise RuntimeError(f"Engine already used (state {self.state.value}); build a new one per attempt")
        self._move(SubmissionState.SIGNED)
        opts = TxOpts(skip_confirmation=True, skip_preflight=False, preflight_commitment=self.commitment)
        try:
            response = self.client.send_raw_transaction(assembled.serialize(), opts=opts)
        except SolanaRpcException as e:
            raise RpcConnectionError(f"Could not reach the RPC node while submitting: {e}") from e
        except RPCException as e:
            error = classify_rpc_error(e, signature=str(assembled.signature))
            self._move(SubmissionState.EXPIRED if isinstance(error, SubmissionExpiredError) else SubmissionState.REJECTED)
            raise error from e
        signature = response.value
        self._move(SubmissionState.SUBMITTED)
        logger.info("Submitted transaction %s", signature)
        return signature

    # --- Confirmation ---

    def _poll_status(self, signature: Signature):
        response = self.client.get_signature_statuses([signature])
        return response.value[0] if response.value else None

    def _block_height(self) -> int:
        return self.client.get_block_height(commitment=self.commitment).value

    def wait_for_landing(self, signature: Signature, last_valid_block_height: int):
        """Poll until the transaction lands, fails, or its blockhash expires.

        Returns the landed status. Once submitted the wait cannot be cancelled:
        a KeyboardInterrupt is recorded in ``cancel_requested`` and polling goes
        on until a terminal state is reached.
        """
        failures = 0
        while True:
            try:
                try:
                    # Height first, so a landing between the two calls is still seen.
                    height = self._block_height()
                    status = self._poll_status(signature)
                    failures = 0
                except SolanaRpcException as e:
                    failures += 1
                    logger.warning("Polling %s failed (%d/%d): %s", signature, failures, self.max_poll_failures, e)
                    if failures >= self.max_poll_failures:
                        raise RpcConnectionError(
                            f"Lost contact with the RPC node while confirming {signature}: {e}"
                        ) from e
                    self.sleep(self.poll_interval)
                    continue

                if status is not None:
                    if status.err is not None or _reached(status.confirmation_status, self.commitment):
                        return status
                elif height > last_valid_block_height:
                    self._move(SubmissionState.EXPIRED)
                    raise SubmissionExpiredError(
                        f"Block height {height} passed {last_valid_block_height} before {signature} landed",
                        signature=str(signature),
                    )
                self.sleep(self.poll_interval)
            except KeyboardInterrupt:
                self.cancel_requested = True
                logger.warning("Transaction %s is already submitted; waiting for a final status", signature)

    def fetch_details(self, signature: Signature):
        for attempt in range(self.detail_attempts):
            try:
                response = self.client.get_transaction(
                    signature, commitment=self.commitment, max_supported_transaction_version=0
                )
            except SolanaRpcException as e:
                logger.warning("Transaction detail lookup failed (%d/%d): %s", attempt + 1, self.detail_attempts, e)
                response = None
            if response is not None and response.value is not None:
                return response.value
            self.sleep(self.poll_interval)
        logger.warning("No transaction details available for %s", signature)
        return None

    def confirm(
        self,
        assembled: AssembledTransaction,
        signature: Signature,
        mint_address: Optional[str] = None,
        associated_account_address: Optional[str] = None,
    ) -> SubmissionResult:
        status = self.wait_for_landing(signature, assembled.block_reference.last_valid_block_height)
        details = self.fetch_details(signature)
        fee = block_time = None
        logs = []
        if details is not None:
            block_time = details.block_time
            meta = details.transaction.meta
            if meta is not None:
                fee = meta.fee
                logs = list(meta.log_messages or [])

        if status.err is not None:
            self._move(SubmissionState.REJECTED)
            reason = str(status.err)
            error_type = InsufficientFundsError if _is_insufficient_funds(reason, *logs) else OnChainRejectionError
            raise error_type(reason, logs=logs, signature=str(signature))

        self._move(SubmissionState.CONFIRMED)
        return SubmissionResult(
            signature_id=str(signature),
            terminal_status=TerminalStatus.CONFIRMED,
            fee=fee,
            block_time=block_time,
            logs=tuple(logs),
            mint_address=mint_address,
            associated_account_address=associated_account_address,
        )

    def submit_and_confirm(self, assembled: AssembledTransaction, **addresses) -> SubmissionResult:
        signature = self.submit(assembled)
        return self.confirm(assembled, signature, **addresses)
