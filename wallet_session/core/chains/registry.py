"""
Chain Registry

Static table of the EVM networks the wallet can switch to. Descriptors carry
exactly the parameters a provider needs for ``wallet_addEthereumChain``
(EIP-3085), keyed by lowercase hex chain id.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class NativeCurrency:
    """Native currency of a chain."""

    name: str
    symbol: str
    decimals: int = 18

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "symbol": self.symbol, "decimals": self.decimals}


@dataclass(frozen=True)
class ChainDescriptor:
    """Immutable description of a supported network."""

    chain_id: str
    chain_name: str
    native_currency: NativeCurrency
    rpc_urls: Tuple[str, ...]
    block_explorer_urls: Tuple[str, ...] = ()

    @property
    def numeric_id(self) -> int:
        return int(self.chain_id, 16)

    def to_add_chain_params(self) -> Dict[str, Any]:
        """Parameter object for ``wallet_addEthereumChain``."""
        return {
            "chainId": self.chain_id,
            "chainName": self.chain_name,
            "nativeCurrency": self.native_currency.to_dict(),
            "rpcUrls": list(self.rpc_urls),
            "blockExplorerUrls": list(self.block_explorer_urls),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_add_chain_params()
        data["numericId"] = self.numeric_id
        return data


def normalize_chain_id(chain_id: Any) -> str:
    """Collapse ints, decimal strings and mixed-case hex into ``0x``-prefixed lowercase hex.

    Raises:
        ValueError: If the value cannot be read as a chain id.
    """
    if isinstance(chain_id, bool):
        raise ValueError(f"Invalid chain id: {chain_id!r}")
    if isinstance(chain_id, int):
        if chain_id <= 0:
            raise ValueError(f"Invalid chain id: {chain_id!r}")
        return hex(chain_id)

    text = str(chain_id or "").strip().lower()
    if not text:
        raise ValueError("Chain id is empty")
    try:
        value = int(text, 16) if text.startswith("0x") else int(text, 10)
    except ValueError:
        raise ValueError(f"Invalid chain id: {chain_id!r}") from None
    if value <= 0:
        raise ValueError(f"Invalid chain id: {chain_id!r}")
    return hex(value)


_CHAINS: Dict[str, ChainDescriptor] = {
    # Ethereum Mainnet
    "0x1": ChainDescriptor(
        chain_id="0x1",
        chain_name="Ethereum Mainnet",
        native_currency=NativeCurrency(name="Ether", symbol="ETH", decimals=18),
        rpc_urls=("https://rpc.ankr.com/eth",),
        block_explorer_urls=("https://etherscan.io",),
    ),
    # Sepolia Testnet (11155111)
    "0xaa36a7": ChainDescriptor(
        chain_id="0xaa36a7",
        chain_name="Sepolia Testnet",
        native_currency=NativeCurrency(name="Sepolia Ether", symbol="ETH", decimals=18),
        rpc_urls=("https://rpc.sepolia.org",),
        block_explorer_urls=("https://sepolia.etherscan.io",),
    ),
}

CHAIN_REGISTRY: Mapping[str, ChainDescriptor] = MappingProxyType(_CHAINS)

DEFAULT_NATIVE_DECIMALS = 18


def get_chain(chain_id: str, registry: Mapping[str, ChainDescriptor] = CHAIN_REGISTRY) -> Optional[ChainDescriptor]:
    """Look up a descriptor; unknown or malformed ids return ``None``."""
    if not chain_id:
        return None
    try:
        return registry.get(normalize_chain_id(chain_id))
    except ValueError:
        return None


def get_chain_name(chain_id: str, registry: Mapping[str, ChainDescriptor] = CHAIN_REGISTRY) -> str:
    """Human-readable network name, falling back to the raw id."""
    descriptor = get_chain(chain_id, registry)
    return descriptor.chain_name if descriptor else chain_id


def native_decimals(chain_id: str, registry: Mapping[str, ChainDescriptor] = CHAIN_REGISTRY) -> int:
    descriptor = get_chain(chain_id, registry)
    return descriptor.native_currency.decimals if descriptor else DEFAULT_NATIVE_DECIMALS


def list_chains(registry: Mapping[str, ChainDescriptor] = CHAIN_REGISTRY) -> List[ChainDescriptor]:
    """Registry entries in declaration order, for network pickers."""
    return list(registry.values())
