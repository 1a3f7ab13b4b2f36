# assembler.py

import logging
from dataclasses import dataclass
from typing import Tuple

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .errors import RpcConnectionError
from .models import InstructionSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockReference:
    blockhash: Hash
    last_valid_block_height: int


@dataclass(frozen=True)
class AssembledTransaction:
    transaction: VersionedTransaction
    block_reference: BlockReference

    @property
    def message(self) -> MessageV0:
        return self.transaction.message

    @property
    def signatures(self) -> Tuple[Signature, ...]:
        return tuple(self.transaction.signatures)

    @property
    def signature(self) -> Signature:
        # The fee payer's signature doubles as the transaction id.
        return self.transaction.signatures[0]

    def serialize(self) -> bytes:
        return bytes(self.transaction)


def fetch_block_reference(client: Client, commitment: Commitment) -> BlockReference:
    try:
        response = client.get_latest_blockhash(commitment=commitment)
    except SolanaRpcException as e:
        raise RpcConnectionError(f"Could not fetch a recent blockhash: {e}") from e
    reference = BlockReference(
        blockhash=response.value.blockhash,
        last_valid_block_height=response.value.last_valid_block_height,
    )
    logger.info(
        "Using blockhash %s (valid through block height %d)",
        reference.blockhash, reference.last_valid_block_height,
    )
    return reference


def compile_and_sign(
    payer: Keypair,
    mint: Keypair,
    instruction_set: InstructionSet,
    block_reference: BlockReference,
) -> AssembledTransaction:
    """Compile one v0 message and sign it with the payer and the new mint.

    No network access and no ledger mutation happens here.
    """
    message = MessageV0.try_compile(
        payer.pubkey(),
        list(instruction_set.instructions),
        [],
        block_reference.blockhash,
    )
    transaction = VersionedTransaction(message, [payer, mint])
    return AssembledTransaction(transaction=transaction, block_reference=block_reference)


def assemble(
    client: Client,
    payer: Keypair,
    mint: Keypair,
    instruction_set: InstructionSet,
    commitment: Commitment,
) -> AssembledTransaction:
    block_reference = fetch_block_reference(client, commitment)
    return compile_and_sign(payer, mint, instruction_set, block_reference)
