# models.py

from dataclasses import dataclass, field
from decimal import Decimal, Inexact, localcontext
from enum import Enum
from typing import Optional, Tuple

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .errors import InstructionBuildError, MintError

U64_MAX = 2**64 - 1
MAX_DECIMALS = 9
MAX_BASIS_POINTS = 10_000

# Metaplex on-chain field limits
MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
MAX_CREATORS = 5


def to_raw_amount(total_supply: Decimal, decimals: int) -> int:
    """Scale a human supply figure to raw token units with exact arithmetic.

    Raises InstructionBuildError when the supply has more fractional digits
    than ``decimals`` allows, or when the result does not fit in a u64.
    """
    if not total_supply.is_finite() or total_supply <= 0:
        raise InstructionBuildError(f"Supply must be a positive number, got {total_supply}")
    # Bound the exponent before scaling.
    magnitude = total_supply.adjusted() + decimals
    if magnitude >= len(str(U64_MAX)):
        raise InstructionBuildError(f"Supply {total_supply} scaled by 10^{decimals} does not fit in a u64")
    if magnitude < 0:
        raise InstructionBuildError(f"Supply {total_supply} has more than {decimals} decimal places")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(total_supply.as_tuple().digits) + decimals + 1)
        ctx.traps[Inexact] = True
        scaled = total_supply.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise InstructionBuildError(
            f"Supply {total_supply} has more than {decimals} decimal places"
        )
    raw = int(scaled)
    if raw > U64_MAX:
        raise InstructionBuildError(f"Raw amount {raw} does not fit in a u64")
    return raw


@dataclass(frozen=True)
class TokenSpec:
    decimals: int
    total_supply: Decimal

    @property
    def raw_amount(self) -> int:
        return to_raw_amount(self.total_supply, self.decimals)


# --- Optional metadata parts ---

@dataclass(frozen=True)
class Creator:
    address: Pubkey
    share: int
    verified: bool = False


@dataclass(frozen=True)
class Collection:
    key: Pubkey
    verified: bool = False


class UseMethod(Enum):
    BURN = "Burn"
    MULTIPLE = "Multiple"
    SINGLE = "Single"


@dataclass(frozen=True)
class Uses:
    use_method: UseMethod
    remaining: int
    total: int


@dataclass(frozen=True)
class TokenMetadata:
    name: str
    symbol: str
    uri: str
    royalty_basis_points: int
    creators: Optional[Tuple[Creator, ...]] = None
    collection: Optional[Collection] = None
    uses: Optional[Uses] = None
    is_mutable: bool = True


# --- Validated input ---

@dataclass(frozen=True)
class MintConfig:
    """Validated configuration for one run. Holds the payer keypair in memory only."""

    network: str
    token: TokenSpec
    metadata: TokenMetadata
    image_uri: str
    payer: Keypair = field(repr=False)
    rpc_url: Optional[str] = None


# --- Builder output ---

@dataclass(frozen=True)
class InstructionSet:
    instructions: Tuple[Instruction, ...]
    mint: Pubkey
    associated_account: Pubkey
    metadata_account: Pubkey
    raw_amount: int
    rent_lamports: int

    def __len__(self):
        return len(self.instructions)

    def __iter__(self):
        return iter(self.instructions)


# --- Run results ---

class TerminalStatus(Enum):
    CONFIRMED = "Confirmed"
    EXPIRED = "Expired"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class SubmissionResult:
    signature_id: str
    terminal_status: TerminalStatus
    mint_address: Optional[str] = None
    associated_account_address: Optional[str] = None
    fee: Optional[int] = None
    block_time: Optional[int] = None
    logs: Tuple[str, ...] = ()


class OutcomeKind(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class LaunchOutcome:
    kind: OutcomeKind
    result: Optional[SubmissionResult] = None
    error: Optional[MintError] = None
    attempts: int = 0
    cancel_requested: bool = False

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def from_error(cls, error: MintError, result: Optional[SubmissionResult] = None, **extra):
        kind = OutcomeKind.RETRYABLE if error.retryable else OutcomeKind.FATAL
        return cls(kind=kind, result=result, error=error, **extra)
