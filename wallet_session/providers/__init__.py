from .base import (
    CHAIN_DISCONNECTED,
    DISCONNECTED,
    UNRECOGNIZED_CHAIN,
    USER_REJECTED_REQUEST,
    EventHandler,
    ProviderEventKind,
    ProviderRpcError,
    WalletProvider,
)
from .jsonrpc import JsonRpcWalletProvider, detect_provider

__all__ = [
    "CHAIN_DISCONNECTED",
    "DISCONNECTED",
    "UNRECOGNIZED_CHAIN",
    "USER_REJECTED_REQUEST",
    "EventHandler",
    "ProviderEventKind",
    "ProviderRpcError",
    "WalletProvider",
    "JsonRpcWalletProvider",
    "detect_provider",
]
