from __future__ import annotations

"""Static description of the single network and contract the client targets."""

from dataclasses import dataclass
from typing import Any, Dict

DEFAULT_CONTRACT_ADDRESS = "0xdf6a95ff02f2fb4f8aeeabcf0dfceddda5976465"


@dataclass(frozen=True)
class NetworkConfig:
    """Network definition handed to the wallet when switching or adding it."""

    chain_id: int = 20993
    chain_name: str = "Fluent Devnet"
    rpc_url: str = "https://rpc.dev.gblend.xyz/"
    currency_name: str = "ETH"
    currency_symbol: str = "ETH"
    currency_decimals: int = 18
    explorer_url: str = "https://blockscout.dev.gblend.xyz/"

    def __post_init__(self) -> None:
        if not isinstance(self.chain_id, int) or self.chain_id <= 0:
            raise ValueError("NetworkConfig.chain_id must be a positive integer.")

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    def to_add_chain_params(self) -> Dict[str, Any]:
        """Payload for ``wallet_addEthereumChain``."""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.chain_name,
            "rpcUrls": [self.rpc_url],
            "nativeCurrency": {
                "name": self.currency_name,
                "symbol": self.currency_symbol,
                "decimals": self.currency_decimals,
            },
            "blockExplorerUrls": [self.explorer_url] if self.explorer_url else [],
        }

    def explorer_tx_url(self, tx_hash: str) -> str:
        base = self.explorer_url.rstrip("/")
        return f"{base}/tx/{tx_hash}" if base else ""


FLUENT_DEVNET = NetworkConfig()


__all__ = ["DEFAULT_CONTRACT_ADDRESS", "FLUENT_DEVNET", "NetworkConfig"]
