# validation.py

import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlparse

import base58
from solders.keypair import Keypair

from .errors import FieldIssue, InstructionBuildError, KeyFormatError, ValidationError
from .models import (
    MAX_BASIS_POINTS,
    MAX_DECIMALS,
    MAX_NAME_LENGTH,
    MAX_SYMBOL_LENGTH,
    MAX_URI_LENGTH,
    MintConfig,
    TokenMetadata,
    TokenSpec,
    to_raw_amount,
)
from .network import NETWORK_ALIASES

logger = logging.getLogger(__name__)

KEYPAIR_LENGTH = 64


@dataclass(frozen=True)
class FieldCheck:
    valid: bool
    reason: Optional[str] = None


# --- Field parsers ---

def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("not an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError("not an integer") from None


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("not a number")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError("not a number") from None
    if not number.is_finite():
        raise ValueError("not a finite number")
    return number


def decode_secret_key(text: str) -> bytes:
    """Decode a base58 secret key or a JSON byte array (Solana CLI keypair file)."""
    text = (text or "").strip()
    if not text:
        raise KeyFormatError("Secret key is empty")
    if text.startswith("["):
        try:
            raw = bytes(json.loads(text))
        except (ValueError, TypeError) as e:
            raise KeyFormatError(f"Secret key is not a valid byte array: {e}") from None
    else:
        try:
            raw = base58.b58decode(text)
        except ValueError:
            raise KeyFormatError("Secret key is not valid base58") from None
    if len(raw) != KEYPAIR_LENGTH:
        raise KeyFormatError(f"Secret key must decode to {KEYPAIR_LENGTH} bytes, got {len(raw)}")
    return raw


def load_keypair(text: str) -> Keypair:
    raw = decode_secret_key(text)
    try:
        keypair = Keypair.from_bytes(raw)
    except Exception as e:  # noqa: BLE001
        raise KeyFormatError(f"Secret key is not an ed25519 keypair: {e}") from None
    if bytes(keypair.pubkey()) != raw[32:]:
        raise KeyFormatError("Secret key public half does not match its seed")
    return keypair


# --- Rules: each returns None when valid, or the reason it is not ---

def _check_network(value):
    if value not in NETWORK_ALIASES:
        return f"must be one of {', '.join(sorted(NETWORK_ALIASES))}"
    return None


def _check_decimals(value):
    try:
        decimals = _as_int(value)
    except ValueError:
        return "must be an integer"
    if not 0 <= decimals <= MAX_DECIMALS:
        return f"must be between 0 and {MAX_DECIMALS}"
    return None


def _check_supply(value):
    try:
        supply = _as_decimal(value)
    except ValueError:
        return "must be a number"
    if supply <= 0:
        return "must be greater than 0"
    return None


def _check_text(limit: int) -> Callable[[Any], Optional[str]]:
    def check(value):
        if value is None or not str(value).strip():
            return "must not be empty"
        if len(str(value).strip().encode("utf-8")) > limit:
            return f"must be at most {limit} bytes of UTF-8"
        return None
    return check


def _check_uri(value):
    text = "" if value is None else str(value)
    parsed = urlparse(text)
    if not parsed.scheme or not parsed.netloc or any(ch.isspace() for ch in text):
        return "must be a well-formed URL"
    if len(text.encode("utf-8")) > MAX_URI_LENGTH:
        return f"must be at most {MAX_URI_LENGTH} bytes"
    return None


def _check_optional_uri(value):
    if value in (None, ""):
        return None
    return _check_uri(value)


def _check_royalty(value):
    try:
        royalty = _as_int(value)
    except ValueError:
        return "must be an integer"
    if not 0 <= royalty <= MAX_BASIS_POINTS:
        return f"must be between 0 and {MAX_BASIS_POINTS} basis points"
    return None


def _check_secret_key(value):
    try:
        load_keypair(value)
    except KeyFormatError as e:
        return str(e)
    return None


RULES: Dict[str, Callable[[Any], Optional[str]]] = {
    "network": _check_network,
    "decimals": _check_decimals,
    "supply": _check_supply,
    "name": _check_text(MAX_NAME_LENGTH),
    "symbol": _check_text(MAX_SYMBOL_LENGTH),
    "image_uri": _check_uri,
    "metadata_uri": _check_optional_uri,
    "royalty": _check_royalty,
    "secret_key": _check_secret_key,
}


def check_field(field: str, value: Any) -> FieldCheck:
    reason = RULES[field](value)
    return FieldCheck(valid=reason is None, reason=reason)


def validate_config(raw: Mapping[str, Any]) -> MintConfig:
    """Check every field of a raw configuration and build the run's MintConfig.

    Field problems are collected and raised together as a ValidationError. A bad
    secret key is raised on its own as KeyFormatError, after the other fields
    pass. Nothing here touches the network.
    """
    issues = []
    for field, rule in RULES.items():
        if field == "secret_key":
            continue
        reason = rule(raw.get(field))
        if reason is not None:
            issues.append(FieldIssue(field, reason))

    if not any(issue.field in ("decimals", "supply") for issue in issues):
        try:
            to_raw_amount(_as_decimal(raw["supply"]), _as_int(raw["decimals"]))
        except InstructionBuildError as e:
            issues.append(FieldIssue("supply", str(e)))

    if issues:
        raise ValidationError(issues)

    payer = load_keypair(raw.get("secret_key"))

    image_uri = str(raw["image_uri"])
    metadata_uri = raw.get("metadata_uri") or None
    if metadata_uri is None:
        logger.warning(
            "No metadata URI set; writing the image URL %s on-chain. Wallets expect a JSON document there.",
            image_uri,
        )
    token = TokenSpec(decimals=_as_int(raw["decimals"]), total_supply=_as_decimal(raw["supply"]))
    metadata = TokenMetadata(
        name=str(raw["name"]).strip(),
        symbol=str(raw["symbol"]).strip(),
        uri=str(metadata_uri or image_uri),
        royalty_basis_points=_as_int(raw["royalty"]),
    )
    return MintConfig(
        network=NETWORK_ALIASES[raw["network"]],
        token=token,
        metadata=metadata,
        image_uri=image_uri,
        payer=payer,
        rpc_url=raw.get("rpc_url") or None,
    )
