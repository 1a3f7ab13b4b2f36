# config.py

import os
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .models import MintConfig
from .validation import validate_config

# Defaults for every field except the secret key.
DEFAULTS = {
    "network": "devnet",
    "decimals": "9",
    "supply": "1000000",
    "name": "MyToken",
    "symbol": "MTK",
    "image_uri": "https://example.com/image.png",
    "metadata_uri": None,
    "royalty": "500",
    "secret_key": None,
    "rpc_url": None,
}

# Raw config field -> environment variable
ENV_VARS = {
    "network": "NETWORK",
    "decimals": "TOKEN_DECIMALS",
    "supply": "TOKEN_SUPPLY",
    "name": "TOKEN_NAME",
    "symbol": "TOKEN_SYMBOL",
    "image_uri": "TOKEN_IMAGE_URI",
    "metadata_uri": "TOKEN_METADATA_URI",
    "royalty": "TOKEN_ROYALTY_BPS",
    "secret_key": "SECRET_KEY",
    "rpc_url": "RPC_URL",
}


class ConfigSupplier:
    """Anything that can hand the launcher a raw configuration mapping."""

    def raw(self) -> Dict[str, Any]:
        raise NotImplementedError

    def load(self) -> MintConfig:
        return validate_config(self.raw())


class StaticConfigSupplier(ConfigSupplier):
    def __init__(self, values: Mapping[str, Any]):
        self.values = dict(values)

    def raw(self) -> Dict[str, Any]:
        merged = dict(DEFAULTS)
        merged.update(self.values)
        return merged


class EnvConfigSupplier(ConfigSupplier):
    """Reads the .env file and process environment, with optional overrides on top."""

    def __init__(self, overrides: Optional[Mapping[str, Any]] = None, dotenv_path: Optional[str] = None):
        self.overrides = {key: value for key, value in (overrides or {}).items() if value is not None}
        self.dotenv_path = dotenv_path

    def raw(self) -> Dict[str, Any]:
        load_dotenv(self.dotenv_path)
        values = {}
        for field, default in DEFAULTS.items():
            values[field] = os.getenv(ENV_VARS[field], default)
        values.update(self.overrides)
        return values
