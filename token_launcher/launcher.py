# launcher.py

import logging
import time
from typing import Callable, Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.constants import ACCOUNT_LEN, MINT_LEN

from .assembler import AssembledTransaction, assemble
from .builder import build_instruction_set
from .errors import InsufficientFundsError, MintError, OnChainRejectionError, RpcConnectionError, SubmissionExpiredError
from .models import InstructionSet, LaunchOutcome, MintConfig, OutcomeKind, SubmissionResult, TerminalStatus
from .network import NetworkProfile, resolve_network
from .submitter import DEFAULT_POLL_INTERVAL, SubmissionEngine

logger = logging.getLogger(__name__)


def connect(profile: NetworkProfile) -> Client:
    return Client(profile.cluster_endpoint, commitment=profile.commitment)


class TokenLauncher:
    """Runs one token launch: build, sign, submit and confirm a single transaction.

    Network calls happen only for the rent figures, the payer balance, the
    blockhash, submission and confirmation. An expired transaction is rebuilt
    with a fresh blockhash at most ``max_rebuilds`` times.
    """

    def __init__(
        self,
        client: Client,
        profile: NetworkProfile,
        mint_factory: Callable[[], Keypair] = Keypair,
        max_rebuilds: int = 1,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.profile = profile
        self.mint_factory = mint_factory
        self.max_rebuilds = max_rebuilds
        self.poll_interval = poll_interval
        self.sleep = sleep

    # --- Network lookups ---

    def _rent_exempt_minimum(self, size: int) -> int:
        try:
            return self.client.get_minimum_balance_for_rent_exemption(size, commitment=self.profile.commitment).value
        except SolanaRpcException as e:
            raise RpcConnectionError(f"Could not fetch the rent-exempt minimum: {e}") from e

    def _check_balance(self, payer: Pubkey, instruction_set: InstructionSet, assembled: AssembledTransaction):
        try:
            account_rent = self._rent_exempt_minimum(ACCOUNT_LEN)
            fee = self.client.get_fee_for_message(assembled.message, commitment=self.profile.commitment).value or 0
            balance = self.client.get_balance(payer, commitment=self.profile.commitment).value
        except SolanaRpcException as e:
            raise RpcConnectionError(f"Could not check the payer balance: {e}") from e
        required = instruction_set.rent_lamports + account_rent + fee
        if balance < required:
            raise InsufficientFundsError(
                f"Payer {payer} holds {balance} lamports but at least {required} are needed for rent and fees"
            )
        logger.info("Payer balance %d lamports covers the %d lamport minimum", balance, required)

    # --- Pipeline ---

    def launch(self, config: MintConfig) -> LaunchOutcome:
        payer = config.payer
        try:
            rent = self._rent_exempt_minimum(MINT_LEN)
            mint = self.mint_factory()
            logger.info("Generated mint address %s", mint.pubkey())
            instruction_set = build_instruction_set(
                config.token, config.metadata, payer.pubkey(), mint.pubkey(), rent
            )
        except MintError as e:
            return LaunchOutcome.from_error(e)

        addresses = {
            "mint_address": str(instruction_set.mint),
            "associated_account_address": str(instruction_set.associated_account),
        }
        attempts = 0
        engines = []
        while True:
            attempts += 1
            engine = SubmissionEngine(
                self.client, self.profile.commitment, poll_interval=self.poll_interval, sleep=self.sleep
            )
            engines.append(engine)
            try:
                assembled = assemble(self.client, payer, mint, instruction_set, self.profile.commitment)
                if attempts == 1:
                    self._check_balance(payer.pubkey(), instruction_set, assembled)
                result = engine.submit_and_confirm(assembled, **addresses)
            except SubmissionExpiredError as e:
                if attempts <= self.max_rebuilds:
                    logger.warning("Transaction expired (%s); rebuilding with a fresh blockhash", e)
                    continue
                result = SubmissionResult(
                    signature_id=e.signature or "", terminal_status=TerminalStatus.EXPIRED, **addresses
                )
                return LaunchOutcome.from_error(
                    e, result=result, attempts=attempts, cancel_requested=_cancel_requested(engines)
                )
            except OnChainRejectionError as e:
                result = None
                if e.signature:
                    result = SubmissionResult(
                        signature_id=e.signature,
                        terminal_status=TerminalStatus.REJECTED,
                        logs=tuple(e.logs),
                        **addresses,
                    )
                return LaunchOutcome.from_error(
                    e, result=result, attempts=attempts, cancel_requested=_cancel_requested(engines)
                )
            except MintError as e:
                return LaunchOutcome.from_error(e, attempts=attempts, cancel_requested=_cancel_requested(engines))

            logger.info("Token %s created in transaction %s", instruction_set.mint, result.signature_id)
            return LaunchOutcome(
                kind=OutcomeKind.SUCCESS,
                result=result,
                attempts=attempts,
                cancel_requested=_cancel_requested(engines),
            )


def _cancel_requested(engines) -> bool:
    return any(engine.cancel_requested for engine in engines)


def launch_token(config: MintConfig, client: Optional[Client] = None, **kwargs) -> LaunchOutcome:
    profile = resolve_network(config.network, config.rpc_url)
    return TokenLauncher(client or connect(profile), profile, **kwargs).launch(config)
