"""Supported EVM chains."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ChainInfo:
    """Static endpoints for one EVM network."""

    chain_id: int
    name: str
    explorer_url: str
    explorer_api_url: str
    rpc_url: str


CHAINS: dict[int, ChainInfo] = {
    1: ChainInfo(
        chain_id=1,
        name="Ethereum Mainnet",
        explorer_url="https://etherscan.io",
        explorer_api_url="https://api.etherscan.io/api",
        rpc_url="https://eth.llamarpc.com",
    ),
    56: ChainInfo(
        chain_id=56,
        name="BSC Mainnet",
        explorer_url="https://bscscan.com",
        explorer_api_url="https://api.bscscan.com/api",
        rpc_url="https://bsc-dataseed.binance.org",
    ),
    137: ChainInfo(
        chain_id=137,
        name="Polygon Mainnet",
        explorer_url="https://polygonscan.com",
        explorer_api_url="https://api.polygonscan.com/api",
        rpc_url="https://polygon-rpc.com",
    ),
    8453: ChainInfo(
        chain_id=8453,
        name="Base Mainnet",
        explorer_url="https://basescan.org",
        explorer_api_url="https://api.basescan.org/api",
        rpc_url="https://mainnet.base.org",
    ),
    10: ChainInfo(
        chain_id=10,
        name="Optimism",
        explorer_url="https://optimistic.etherscan.io",
        explorer_api_url="https://api-optimistic.etherscan.io/api",
        rpc_url="https://mainnet.optimism.io",
    ),
    42161: ChainInfo(
        chain_id=42161,
        name="Arbitrum One",
        explorer_url="https://arbiscan.io",
        explorer_api_url="https://api.arbiscan.io/api",
        rpc_url="https://arb1.arbitrum.io/rpc",
    ),
    43114: ChainInfo(
        chain_id=43114,
        name="Avalanche C-Chain",
        explorer_url="https://snowtrace.io",
        explorer_api_url="https://api.snowtrace.io/api",
        rpc_url="https://api.avax.network/ext/bc/C/rpc",
    ),
    250: ChainInfo(
        chain_id=250,
        name="Fantom",
        explorer_url="https://ftmscan.com",
        explorer_api_url="https://api.ftmscan.com/api",
        rpc_url="https://rpc.ftm.tools",
    ),
}


def get_chain(chain_id: int) -> Optional[ChainInfo]:
    return CHAINS.get(chain_id)


def is_supported(chain_id: int) -> bool:
    return chain_id in CHAINS


def chain_name(chain_id: int) -> str:
    """Display name, falling back to ``Chain <id>`` for unknown networks."""
    info = CHAINS.get(chain_id)
    return info.name if info else f"Chain {chain_id}"


def default_chain_ids() -> list[int]:
    return list(CHAINS)
