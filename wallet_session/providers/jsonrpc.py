"""
JSON-RPC wallet provider.

Carries EIP-1193 requests as JSON-RPC 2.0 over HTTP to a signing provider
bridge (a local wallet daemon or a node with managed accounts). Pushed events
are produced by polling ``eth_accounts`` and ``eth_chainId`` while anyone is
subscribed.
"""

import asyncio
import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings, settings as default_settings
from ..core.chains import ChainDescriptor, normalize_chain_id
from .base import (
    DISCONNECTED,
    EventHandler,
    ProviderEventKind,
    ProviderRpcError,
    WalletProvider,
)


logger = logging.getLogger(__name__)

# JSON-RPC internal error, used when the response body is unusable
INTERNAL_ERROR = -32603


class JsonRpcWalletProvider(WalletProvider):
    """EIP-1193 provider over HTTP JSON-RPC."""

    name = "jsonrpc"

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 30,
        poll_interval_s: float = 4.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s
        self.poll_interval_s = poll_interval_s
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None
        self._ids = itertools.count(1)
        self._handlers: Dict[ProviderEventKind, List[EventHandler]] = {
            kind: [] for kind in ProviderEventKind
        }
        self._poll_task: Optional[asyncio.Task] = None
        self._last_accounts: Optional[List[str]] = None
        self._last_chain_id: Optional[str] = None

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }

        try:
            response = await self._client.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_s,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderRpcError(DISCONNECTED, f"Provider unreachable: {e}") from e
        except ValueError as e:
            raise ProviderRpcError(INTERNAL_ERROR, f"Malformed provider response: {e}") from e

        if "error" in data:
            error = data["error"] or {}
            raise ProviderRpcError(
                int(error.get("code", INTERNAL_ERROR)),
                str(error.get("message") or f"{method} failed"),
                error.get("data"),
            )
        return data.get("result")

    async def request_accounts(self) -> List[str]:
        return list(await self.request("eth_requestAccounts") or [])

    async def get_accounts(self) -> List[str]:
        return list(await self.request("eth_accounts") or [])

    async def request_chain_id(self) -> str:
        result = await self.request("eth_chainId")
        try:
            return normalize_chain_id(result)
        except ValueError:
            raise ProviderRpcError(INTERNAL_ERROR, f"Unexpected chain id: {result!r}") from None

    async def switch_chain(self, chain_id: str) -> None:
        await self.request("wallet_switchEthereumChain", [{"chainId": chain_id}])

    async def add_chain(self, descriptor: ChainDescriptor) -> None:
        await self.request("wallet_addEthereumChain", [descriptor.to_add_chain_params()])

    async def get_balance(self, address: str) -> int:
        result = await self.request("eth_getBalance", [address, "latest"])
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise ProviderRpcError(INTERNAL_ERROR, f"Unexpected balance value: {result!r}") from None

    async def send_transaction(self, tx: Dict[str, Any]) -> Optional[str]:
        result = await self.request("eth_sendTransaction", [tx])
        return str(result) if result else None

    # ---------------------------
    # Events
    # ---------------------------
    def subscribe(self, event: ProviderEventKind, handler: EventHandler) -> None:
        self._handlers[ProviderEventKind(event)].append(handler)
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(self._poll_loop(), name="wallet-provider-poll")

    def unsubscribe(self, event: ProviderEventKind, handler: EventHandler) -> None:
        handlers = self._handlers[ProviderEventKind(event)]
        if handler in handlers:
            handlers.remove(handler)
        if not any(self._handlers.values()):
            self._stop_polling()

    def _emit(self, event: ProviderEventKind, payload: Any) -> None:
        for handler in list(self._handlers[event]):
            try:
                handler(payload)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Provider event handler for %s failed: %s", event.value, exc, exc_info=True)

    async def poll_once(self) -> None:
        """Compare the provider's accounts and chain with the last poll and emit differences."""
        accounts = await self.get_accounts()
        chain_id = await self.request_chain_id()

        if self._last_accounts is not None and accounts != self._last_accounts:
            self._emit(ProviderEventKind.ACCOUNTS_CHANGED, accounts)
        if self._last_chain_id is not None and chain_id != self._last_chain_id:
            self._emit(ProviderEventKind.CHAIN_CHANGED, chain_id)

        self._last_accounts = accounts
        self._last_chain_id = chain_id

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except ProviderRpcError as e:
                log = logger.debug if e.is_disconnected else logger.warning
                log("Provider poll failed (%s): %s", e.code, e.message)
            await asyncio.sleep(self.poll_interval_s)

    def _stop_polling(self) -> None:
        if self._poll_task and not self._poll_task.done():
            self._poll_task.cancel()
        self._poll_task = None
        self._last_accounts = None
        self._last_chain_id = None

    async def aclose(self) -> None:
        task = self._poll_task
        self._stop_polling()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._owns_client:
            await self._client.aclose()


def detect_provider(config: Optional[Settings] = None) -> Optional[WalletProvider]:
    """Return the configured provider, or ``None`` when none is installed."""
    config = config or default_settings
    if not config.has_provider:
        return None
    return JsonRpcWalletProvider(
        rpc_url=config.provider_rpc_url,
        timeout_s=config.provider_request_timeout_seconds,
        poll_interval_s=config.provider_poll_interval_seconds,
    )
