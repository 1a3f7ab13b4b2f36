# builder.py

import logging
from typing import Optional

from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID
from solders.system_program import CreateAccountParams, create_account
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, MINT_LEN, TOKEN_PROGRAM_ID
from spl.token.instructions import (
    InitializeMintParams,
    MintToParams,
    create_associated_token_account,
    initialize_mint,
    mint_to,
)

from .errors import InstructionBuildError
from .metadata import METADATA_PROGRAM_ID, create_metadata_account_v3, derive_metadata_address
from .models import MAX_DECIMALS, InstructionSet, TokenMetadata, TokenSpec

logger = logging.getLogger(__name__)

# Program invoked by each step, in the only order the ledger can execute them.
INSTRUCTION_PROGRAMS = (
    SYS_PROGRAM_ID,  # 1. allocate the mint account
    TOKEN_PROGRAM_ID,  # 2. initialize the mint
    ASSOCIATED_TOKEN_PROGRAM_ID,  # 3. create the holder's associated account
    TOKEN_PROGRAM_ID,  # 4. mint the full supply
    METADATA_PROGRAM_ID,  # 5. attach metadata
)


def derive_associated_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Associated token account for (owner, mint). Pure, no network access."""
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)], ASSOCIATED_TOKEN_PROGRAM_ID
    )
    return address


def build_instruction_set(
    token: TokenSpec,
    metadata: TokenMetadata,
    payer: Pubkey,
    mint: Pubkey,
    rent_lamports: int,
    owner: Optional[Pubkey] = None,
    mint_authority: Optional[Pubkey] = None,
) -> InstructionSet:
    """Produce the five instructions that create, fund and describe a new token.

    ``owner`` receives the minted supply and defaults to the payer. The payer is
    also the mint authority and the metadata update authority unless
    ``mint_authority`` says otherwise. Freeze authority is always left unset.
    """
    owner = owner or payer
    mint_authority = mint_authority or payer

    if not 0 <= token.decimals <= MAX_DECIMALS:
        raise InstructionBuildError(f"Decimals must be between 0 and {MAX_DECIMALS}")
    if rent_lamports <= 0:
        raise InstructionBuildError(f"Rent-exempt minimum must be positive, got {rent_lamports}")
    if mint in (payer, owner):
        raise InstructionBuildError("Mint address must be a fresh account")

    raw_amount = token.raw_amount
    associated_account = derive_associated_address(owner, mint)
    metadata_account = derive_metadata_address(mint)

    instructions = (
        create_account(
            CreateAccountParams(
                from_pubkey=payer,
                to_pubkey=mint,
                lamports=rent_lamports,
                space=MINT_LEN,
                owner=TOKEN_PROGRAM_ID,
            )
        ),
        initialize_mint(
            InitializeMintParams(
                decimals=token.decimals,
                program_id=TOKEN_PROGRAM_ID,
                mint=mint,
                mint_authority=mint_authority,
                freeze_authority=None,
            )
        ),
        create_associated_token_account(payer, owner, mint),
        mint_to(
            MintToParams(
                program_id=TOKEN_PROGRAM_ID,
                mint=mint,
                dest=associated_account,
                mint_authority=mint_authority,
                amount=raw_amount,
            )
        ),
        create_metadata_account_v3(
            metadata_account=metadata_account,
            mint=mint,
            mint_authority=mint_authority,
            payer=payer,
            update_authority=mint_authority,
            metadata=metadata,
        ),
    )

    programs = tuple(ix.program_id for ix in instructions)
    if programs != INSTRUCTION_PROGRAMS:
        raise InstructionBuildError(f"Instruction order broken: {programs}")
    # The library-built associated-account instruction must target our derivation.
    if instructions[2].accounts[1].pubkey != associated_account:
        raise InstructionBuildError("Associated account derivation mismatch")

    logger.debug(
        "Built %d instructions for mint %s (ata=%s, metadata=%s, raw amount=%d)",
        len(instructions), mint, associated_account, metadata_account, raw_amount,
    )
    return InstructionSet(
        instructions=instructions,
        mint=mint,
        associated_account=associated_account,
        metadata_account=metadata_account,
        raw_amount=raw_amount,
        rent_lamports=rent_lamports,
    )
