"""Build a session manager from settings."""

from typing import Optional

from ...config import Settings, settings as default_settings
from ...providers.base import WalletProvider
from ...providers.jsonrpc import detect_provider
from .state_machine import WalletSessionManager
from .store import SessionStore, file_session_store

_DETECT = object()


def create_session_manager(
    config: Optional[Settings] = None,
    provider: Optional[WalletProvider] = _DETECT,  # type: ignore[assignment]
    store: Optional[SessionStore] = None,
) -> WalletSessionManager:
    """
    Wire a WalletSessionManager from settings.

    Args:
        config: Settings to use (default: global settings)
        provider: Provider to inject; ``None`` means no provider is installed.
            When omitted, the provider is detected from ``provider_rpc_url``.
        store: Session store (default: JSON file at ``session_store_path``)
    """
    config = config or default_settings
    if provider is _DETECT:
        provider = detect_provider(config)

    return WalletSessionManager(
        provider=provider,
        store=store or file_session_store(config.session_store_path),
        status_ttl_seconds=config.status_ttl_seconds,
        balance_places=config.balance_display_decimals,
        event_queue_size=config.event_queue_size,
        auto_reconnect=config.auto_reconnect,
    )
