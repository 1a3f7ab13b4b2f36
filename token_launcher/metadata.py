# metadata.py

from borsh_construct import Bool, CStruct, Enum, Option, String, U16, U64, U8, Vec
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID

from .errors import InstructionBuildError
from .models import (
    MAX_BASIS_POINTS,
    MAX_CREATORS,
    MAX_NAME_LENGTH,
    MAX_SYMBOL_LENGTH,
    MAX_URI_LENGTH,
    TokenMetadata,
    UseMethod,
)

METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
METADATA_SEED = b"metadata"
CREATE_METADATA_ACCOUNT_V3 = 33

# --- Borsh layouts for CreateMetadataAccountV3 ---
CreatorLayout = CStruct(
    "address" / U8[32],
    "verified" / Bool,
    "share" / U8,
)
CollectionLayout = CStruct(
    "verified" / Bool,
    "key" / U8[32],
)
UseMethodLayout = Enum("Burn" / CStruct(), "Multiple" / CStruct(), "Single" / CStruct(), enum_name="UseMethod")
UsesLayout = CStruct(
    "use_method" / UseMethodLayout,
    "remaining" / U64,
    "total" / U64,
)
DataV2Layout = CStruct(
    "name" / String,
    "symbol" / String,
    "uri" / String,
    "seller_fee_basis_points" / U16,
    "creators" / Option(Vec(CreatorLayout)),
    "collection" / Option(CollectionLayout),
    "uses" / Option(UsesLayout),
)
CollectionDetailsLayout = Enum("V1" / CStruct("size" / U64), enum_name="CollectionDetails")
CreateMetadataAccountArgsV3Layout = CStruct(
    "data" / DataV2Layout,
    "is_mutable" / Bool,
    "collection_details" / Option(CollectionDetailsLayout),
)


def derive_metadata_address(mint: Pubkey) -> Pubkey:
    return Pubkey.find_program_address(
        [METADATA_SEED, bytes(METADATA_PROGRAM_ID), bytes(mint)], METADATA_PROGRAM_ID
    )[0]


def _check_limits(metadata: TokenMetadata):
    if len(metadata.name.encode("utf-8")) > MAX_NAME_LENGTH:
        raise InstructionBuildError(f"Metadata name exceeds {MAX_NAME_LENGTH} bytes")
    if len(metadata.symbol.encode("utf-8")) > MAX_SYMBOL_LENGTH:
        raise InstructionBuildError(f"Metadata symbol exceeds {MAX_SYMBOL_LENGTH} bytes")
    if len(metadata.uri.encode("utf-8")) > MAX_URI_LENGTH:
        raise InstructionBuildError(f"Metadata uri exceeds {MAX_URI_LENGTH} bytes")
    if not 0 <= metadata.royalty_basis_points <= MAX_BASIS_POINTS:
        raise InstructionBuildError("Royalty must be between 0 and 10000 basis points")
    if metadata.creators is not None:
        if len(metadata.creators) > MAX_CREATORS:
            raise InstructionBuildError(f"At most {MAX_CREATORS} creators are allowed")
        if sum(creator.share for creator in metadata.creators) != 100:
            raise InstructionBuildError("Creator shares must add up to 100")


def _encode_use_method(method: UseMethod):
    return getattr(UseMethodLayout.enum, method.value)()


def encode_data_v2(metadata: TokenMetadata) -> dict:
    creators = None
    if metadata.creators is not None:
        creators = [
            {"address": list(bytes(creator.address)), "verified": creator.verified, "share": creator.share}
            for creator in metadata.creators
        ]
    collection = None
    if metadata.collection is not None:
        collection = {"verified": metadata.collection.verified, "key": list(bytes(metadata.collection.key))}
    uses = None
    if metadata.uses is not None:
        uses = {
            "use_method": _encode_use_method(metadata.uses.use_method),
            "remaining": metadata.uses.remaining,
            "total": metadata.uses.total,
        }
    return {
        "name": metadata.name,
        "symbol": metadata.symbol,
        "uri": metadata.uri,
        "seller_fee_basis_points": metadata.royalty_basis_points,
        "creators": creators,
        "collection": collection,
        "uses": uses,
    }


def encode_create_metadata_v3(metadata: TokenMetadata) -> bytes:
    _check_limits(metadata)
    data = CreateMetadataAccountArgsV3Layout.build(
        {
            "data": encode_data_v2(metadata),
            "is_mutable": metadata.is_mutable,
            "collection_details": None,
        }
    )
    return bytes([CREATE_METADATA_ACCOUNT_V3]) + data


def create_metadata_account_v3(
    metadata_account: Pubkey,
    mint: Pubkey,
    mint_authority: Pubkey,
    payer: Pubkey,
    update_authority: Pubkey,
    metadata: TokenMetadata,
) -> Instruction:
    accounts = [
        AccountMeta(pubkey=metadata_account, is_signer=False, is_writable=True),
        AccountMeta(pubkey=mint, is_signer=False, is_writable=False),
        AccountMeta(pubkey=mint_authority, is_signer=True, is_writable=False),
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=update_authority, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(METADATA_PROGRAM_ID, encode_create_metadata_v3(metadata), accounts)


def build_offchain_metadata(metadata: TokenMetadata, image_uri: str) -> dict:
    """JSON document a storage service would host at ``metadata.uri``."""
    return {
        "name": metadata.name,
        "symbol": metadata.symbol,
        "image": image_uri,
        "seller_fee_basis_points": metadata.royalty_basis_points,
    }
