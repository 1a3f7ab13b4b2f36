from .assembler import AssembledTransaction, BlockReference, assemble, compile_and_sign, fetch_block_reference
from .builder import build_instruction_set, derive_associated_address
from .config import ConfigSupplier, EnvConfigSupplier, StaticConfigSupplier
from .errors import (
    FieldIssue,
    InstructionBuildError,
    InsufficientFundsError,
    KeyFormatError,
    MintError,
    OnChainRejectionError,
    RpcConnectionError,
    SubmissionExpiredError,
    ValidationError,
)
from .launcher import TokenLauncher, connect, launch_token
from .metadata import build_offchain_metadata, derive_metadata_address
from .models import (
    InstructionSet,
    LaunchOutcome,
    MintConfig,
    OutcomeKind,
    SubmissionResult,
    TerminalStatus,
    TokenMetadata,
    TokenSpec,
)
from .network import NetworkProfile, resolve_network
from .submitter import SubmissionEngine, SubmissionState
from .validation import check_field, validate_config
