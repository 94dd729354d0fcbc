"""
Chain Registry Module

Supported network descriptors and name/decimals lookups.
"""

from .registry import (
    CHAIN_REGISTRY,
    DEFAULT_NATIVE_DECIMALS,
    ChainDescriptor,
    NativeCurrency,
    get_chain,
    get_chain_name,
    list_chains,
    native_decimals,
    normalize_chain_id,
)

__all__ = [
    "CHAIN_REGISTRY",
    "DEFAULT_NATIVE_DECIMALS",
    "ChainDescriptor",
    "NativeCurrency",
    "get_chain",
    "get_chain_name",
    "list_chains",
    "native_decimals",
    "normalize_chain_id",
]
