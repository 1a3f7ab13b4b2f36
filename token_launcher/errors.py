# errors.py

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldIssue:
    field: str
    reason: str

    def __str__(self):
        return f"{self.field}: {self.reason}"


class MintError(Exception):
    """Base class for every failure the launcher reports.

    ``retryable`` tells the caller whether running the same request again can
    succeed without the user changing anything.
    """

    retryable = False


class ValidationError(MintError):
    def __init__(self, issues: List[FieldIssue]):
        self.issues = list(issues)
        super().__init__("; ".join(str(issue) for issue in self.issues))


class KeyFormatError(MintError):
    pass


class RpcConnectionError(MintError, ConnectionError):
    retryable = True


class InstructionBuildError(MintError):
    pass


class SubmissionExpiredError(MintError):
    """The block-reference went stale before the transaction landed.

    Only a rebuild with a fresh block-reference can recover from this, never a
    resend of the same signed bytes.
    """

    retryable = True

    def __init__(self, message: str, signature: Optional[str] = None):
        super().__init__(message)
        self.signature = signature


class OnChainRejectionError(MintError):
    def __init__(self, reason: str, logs: Optional[List[str]] = None, signature: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.logs = list(logs or [])
        self.signature = signature


class InsufficientFundsError(OnChainRejectionError):
    pass
