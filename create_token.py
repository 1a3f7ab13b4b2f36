# create_token.py

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from token_launcher import (
    EnvConfigSupplier,
    KeyFormatError,
    LaunchOutcome,
    MintConfig,
    OutcomeKind,
    ValidationError,
    build_offchain_metadata,
    launch_token,
    resolve_network,
)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-token",
        description="Create an SPL token with metadata in one transaction. Unset flags fall back to .env values.",
    )
    parser.add_argument("--network", choices=("devnet", "mainnet"))
    parser.add_argument("--rpc-url", dest="rpc_url")
    parser.add_argument("--decimals")
    parser.add_argument("--supply")
    parser.add_argument("--name")
    parser.add_argument("--symbol")
    parser.add_argument("--image-uri", dest="image_uri")
    parser.add_argument("--metadata-uri", dest="metadata_uri")
    parser.add_argument("--royalty", help="royalty in basis points, 500 = 5%%")
    return parser


def print_summary(config: MintConfig):
    print(f"👑 Using creator wallet: {config.payer.pubkey()}")
    print(f"🌐 Network: {config.network}")
    print("🪙 Token information:")
    print(f"   - Name: {config.metadata.name}")
    print(f"   - Symbol: {config.metadata.symbol}")
    print(f"   - Image URL: {config.image_uri}")
    print(f"   - Metadata URI: {config.metadata.uri}")
    print(f"   - Royalty: {config.metadata.royalty_basis_points} basis points")
    print(f"   - Decimals: {config.token.decimals}")
    print(f"   - Total Supply: {config.token.total_supply:,}\n")
    if config.metadata.uri == config.image_uri:
        print("📝 No metadata URI set, using the image URL. Host this JSON and pass --metadata-uri to use it instead:")
        print(json.dumps(build_offchain_metadata(config.metadata, config.image_uri), indent=2) + "\n")


def print_outcome(config: MintConfig, outcome: LaunchOutcome) -> int:
    profile = resolve_network(config.network, config.rpc_url)
    result = outcome.result
    if outcome.ok:
        print(f"✅ Token created! Mint address: {result.mint_address}")
        print(f"✅ Your wallet's token account: {result.associated_account_address}")
        if result.fee is not None:
            print(f"💸 Fee paid: {result.fee} lamports")
        print(f"🔗 View transaction: {profile.explorer_tx_url(result.signature_id)}")
        print(f"🔗 View token: {profile.explorer_address_url(result.mint_address)}")
        print("\n🎉🎉🎉 ALL DONE! Your new token is ready! 🎉🎉🎉")
        return 0

    label = "Temporary failure, it is safe to try again" if outcome.kind is OutcomeKind.RETRYABLE else "Failed"
    print(f"😿 {label}: {outcome.error}")
    for line in getattr(outcome.error, "logs", []):
        print(f"   {line}")
    if result is not None and result.signature_id:
        print(f"🔗 Transaction: {profile.explorer_tx_url(result.signature_id)}")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    try:
        config = EnvConfigSupplier(overrides=vars(args)).load()
    except ValidationError as e:
        print("😿 Some settings need fixing:")
        for issue in e.issues:
            print(f"   - {issue}")
        return 1
    except KeyFormatError as e:
        print(f"😿 Could not read SECRET_KEY: {e}")
        return 1

    print_summary(config)
    print("🚀 Creating and sending the mint transaction...")
    outcome = launch_token(config)
    return print_outcome(config, outcome)


if __name__ == "__main__":
    sys.exit(main())
