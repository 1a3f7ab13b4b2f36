# network.py

from dataclasses import dataclass, replace
from typing import Optional

from solana.rpc.commitment import Commitment, Confirmed, Finalized

EXPLORER_BASE = "https://explorer.solana.com"

# Aliases the validator accepts for each supported network.
NETWORK_ALIASES = {
    "devnet": "devnet",
    "mainnet": "mainnet",
    "mainnet-beta": "mainnet",
}


@dataclass(frozen=True)
class NetworkProfile:
    name: str
    cluster_endpoint: str
    commitment: Commitment
    explorer_base: str
    display_symbol: str
    explorer_cluster: Optional[str] = None

    def _explorer_link(self, kind: str, value: str) -> str:
        url = f"{self.explorer_base}/{kind}/{value}"
        if self.explorer_cluster:
            url += f"?cluster={self.explorer_cluster}"
        return url

    def explorer_tx_url(self, signature) -> str:
        return self._explorer_link("tx", str(signature))

    def explorer_address_url(self, address) -> str:
        return self._explorer_link("address", str(address))


PROFILES = {
    "devnet": NetworkProfile(
        name="devnet",
        cluster_endpoint="https://api.devnet.solana.com",
        commitment=Confirmed,
        explorer_base=EXPLORER_BASE,
        display_symbol="SOL",
        explorer_cluster="devnet",
    ),
    "mainnet": NetworkProfile(
        name="mainnet",
        cluster_endpoint="https://api.mainnet-beta.solana.com",
        commitment=Finalized,
        explorer_base=EXPLORER_BASE,
        display_symbol="SOL",
    ),
}


def resolve_network(selection: str, rpc_url: Optional[str] = None) -> NetworkProfile:
    """Map a network selection to its profile.

    An unknown selection is a programmer error: user input is checked by the
    validator before it gets here.
    """
    try:
        profile = PROFILES[NETWORK_ALIASES[selection]]
    except KeyError:
        raise ValueError(f"Unknown network selection: {selection!r}") from None
    if rpc_url:
        return replace(profile, cluster_endpoint=rpc_url)
    return profile
