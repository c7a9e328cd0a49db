"""
Named XRPL networks.

TRUST MODEL: every ledger query flows through these endpoints; the library
trusts them implicitly. Review changes to this table carefully.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

# Debug printing control
DEBUG_NETWORKS = False

def _dbg(msg: str) -> None:
    if DEBUG_NETWORKS:
        print(f"[NET] {msg}")


@dataclass(frozen=True)
class Network:
    name: str
    rpc_url: str
    explorer_url: str
    faucet_url: Optional[str] = None


NETWORKS: Dict[str, Network] = {
    "testnet": Network(
        name="Testnet",
        rpc_url="https://s.altnet.rippletest.net:51234/",
        explorer_url="https://testnet.xrpl.org",
        faucet_url="https://faucet.altnet.rippletest.net",
    ),
    "devnet": Network(
        name="Devnet",
        rpc_url="https://s.devnet.rippletest.net:51234/",
        explorer_url="https://devnet.xrpl.org",
        faucet_url="https://faucet.devnet.rippletest.net",
    ),
    "mainnet": Network(
        name="Mainnet",
        rpc_url="https://xrplcluster.com/",
        explorer_url="https://livenet.xrpl.org",
    ),
}

DEFAULT_NETWORK: str = "testnet"


def resolve_network(name: Optional[str] = None) -> str:
    """Return a known network id; unknown or missing names fall back to the default."""
    if name and name in NETWORKS:
        return name
    if name:
        _dbg(f"unknown network {name!r}, falling back to {DEFAULT_NETWORK}")
    return DEFAULT_NETWORK


def rpc_url_for(name: Optional[str] = None) -> str:
    return NETWORKS[resolve_network(name)].rpc_url


__all__ = ["Network", "NETWORKS", "DEFAULT_NETWORK", "resolve_network", "rpc_url_for"]
