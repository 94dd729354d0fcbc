"""
Tests for the JSON-RPC wallet provider

Requests go through httpx.MockTransport, so no network is used.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List

import httpx
import pytest
import pytest_asyncio

from wallet_session.config import Settings
from wallet_session.core.chains import CHAIN_REGISTRY
from wallet_session.providers import (
    JsonRpcWalletProvider,
    ProviderEventKind,
    ProviderRpcError,
    detect_provider,
)

from tests.fakes import ALICE, BOB


RPC_URL = "http://wallet.test/rpc"


class ScriptedWallet:
    """JSON-RPC endpoint answering from a method -> result table."""

    def __init__(self):
        self.results: Dict[str, Any] = {
            "eth_accounts": [ALICE],
            "eth_requestAccounts": [ALICE, BOB],
            "eth_chainId": "0x1",
            "eth_getBalance": hex(10**18),
            "wallet_switchEthereumChain": None,
            "wallet_addEthereumChain": None,
            "eth_sendTransaction": "0xabc",
        }
        self.errors: Dict[str, Dict[str, Any]] = {}
        self.requests: List[Dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        method = body["method"]
        if method in self.errors:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": self.errors[method]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": self.results[method]})

    def last(self, method: str) -> Dict[str, Any]:
        return [r for r in self.requests if r["method"] == method][-1]


@pytest.fixture
def wallet() -> ScriptedWallet:
    return ScriptedWallet()


@pytest_asyncio.fixture
async def client(wallet):
    async with httpx.AsyncClient(transport=httpx.MockTransport(wallet)) as client:
        yield client


@pytest.fixture
def provider(client) -> JsonRpcWalletProvider:
    return JsonRpcWalletProvider(RPC_URL, poll_interval_s=0.01, client=client)


# =============================================================================
# Requests
# =============================================================================

class TestRequests:
    """Tests for request encoding and result decoding."""

    @pytest.mark.asyncio
    async def test_request_accounts(self, provider, wallet):
        assert await provider.request_accounts() == [ALICE, BOB]

        body = wallet.last("eth_requestAccounts")
        assert body["jsonrpc"] == "2.0"
        assert body["params"] == []

    @pytest.mark.asyncio
    async def test_chain_id_is_normalized(self, provider, wallet):
        wallet.results["eth_chainId"] = "0xAA36A7"

        assert await provider.request_chain_id() == "0xaa36a7"

    @pytest.mark.asyncio
    async def test_balance_is_decoded(self, provider, wallet):
        assert await provider.get_balance(ALICE) == 10**18
        assert wallet.last("eth_getBalance")["params"] == [ALICE, "latest"]

    @pytest.mark.asyncio
    async def test_switch_and_add_params(self, provider, wallet):
        sepolia = CHAIN_REGISTRY["0xaa36a7"]

        await provider.switch_chain("0xaa36a7")
        await provider.add_chain(sepolia)

        assert wallet.last("wallet_switchEthereumChain")["params"] == [{"chainId": "0xaa36a7"}]
        assert wallet.last("wallet_addEthereumChain")["params"] == [sepolia.to_add_chain_params()]

    @pytest.mark.asyncio
    async def test_send_transaction(self, provider, wallet):
        tx = {"from": ALICE, "to": BOB, "value": hex(10**16)}

        assert await provider.send_transaction(tx) == "0xabc"
        assert wallet.last("eth_sendTransaction")["params"] == [tx]

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, provider, wallet):
        await provider.get_accounts()
        await provider.get_accounts()

        assert [r["id"] for r in wallet.requests] == [1, 2]


# =============================================================================
# Errors
# =============================================================================

class TestErrors:
    """Tests for provider error mapping."""

    @pytest.mark.asyncio
    async def test_rpc_error_keeps_code_and_message(self, provider, wallet):
        wallet.errors["eth_requestAccounts"] = {"code": 4001, "message": "User rejected the request."}

        with pytest.raises(ProviderRpcError) as exc_info:
            await provider.request_accounts()

        assert exc_info.value.code == 4001
        assert exc_info.value.message == "User rejected the request."
        assert exc_info.value.is_user_rejection is True

    @pytest.mark.asyncio
    async def test_unrecognized_chain(self, provider, wallet):
        wallet.errors["wallet_switchEthereumChain"] = {"code": 4902, "message": "Unrecognized chain ID"}

        with pytest.raises(ProviderRpcError) as exc_info:
            await provider.switch_chain("0x89")

        assert exc_info.value.is_unrecognized_chain is True

    @pytest.mark.asyncio
    async def test_transport_failure_is_disconnected(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
            provider = JsonRpcWalletProvider(RPC_URL, client=client)
            with pytest.raises(ProviderRpcError) as exc_info:
                await provider.get_accounts()

        assert exc_info.value.code == 4900

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        def garbage(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"not json")

        async with httpx.AsyncClient(transport=httpx.MockTransport(garbage)) as client:
            provider = JsonRpcWalletProvider(RPC_URL, client=client)
            with pytest.raises(ProviderRpcError) as exc_info:
                await provider.get_accounts()

        assert exc_info.value.code == -32603

    @pytest.mark.asyncio
    async def test_unexpected_balance_value(self, provider, wallet):
        wallet.results["eth_getBalance"] = "lots"

        with pytest.raises(ProviderRpcError):
            await provider.get_balance(ALICE)

    @pytest.mark.parametrize("code, expected", [(4900, True), (4901, True), (4001, False), (-32603, False)])
    def test_is_disconnected(self, code, expected):
        assert ProviderRpcError(code, "x").is_disconnected is expected


    @pytest.mark.asyncio
    async def test_health_check(self, provider, wallet):
        assert await provider.health_check() == {"status": "healthy", "chainId": "0x1"}

        wallet.errors["eth_chainId"] = {"code": 4900, "message": "Disconnected"}
        health = await provider.health_check()
        assert health["status"] == "error"
        assert health["code"] == 4900


# =============================================================================
# Events
# =============================================================================

class TestEvents:
    """Tests for polling-based event emission."""

    @pytest.mark.asyncio
    async def test_poll_once_emits_differences(self, provider, wallet):
        seen = []
        provider._handlers[ProviderEventKind.ACCOUNTS_CHANGED].append(lambda p: seen.append(("accounts", p)))
        provider._handlers[ProviderEventKind.CHAIN_CHANGED].append(lambda p: seen.append(("chain", p)))

        await provider.poll_once()
        assert seen == []

        wallet.results["eth_accounts"] = [BOB]
        wallet.results["eth_chainId"] = "0xaa36a7"
        await provider.poll_once()

        assert seen == [("accounts", [BOB]), ("chain", "0xaa36a7")]

    @pytest.mark.asyncio
    async def test_subscription_starts_and_stops_polling(self, provider, wallet):
        seen = []

        def on_chain(chain_id):
            seen.append(chain_id)

        provider.subscribe(ProviderEventKind.CHAIN_CHANGED, on_chain)
        await asyncio.sleep(0.05)
        wallet.results["eth_chainId"] = "0xaa36a7"
        await asyncio.sleep(0.1)

        assert "0xaa36a7" in seen

        provider.unsubscribe(ProviderEventKind.CHAIN_CHANGED, on_chain)
        assert provider._poll_task is None
        await provider.aclose()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self, provider, wallet):
        seen = []

        def broken(_):
            raise RuntimeError("observer gone")

        provider._handlers[ProviderEventKind.CHAIN_CHANGED].extend([broken, seen.append])

        await provider.poll_once()
        wallet.results["eth_chainId"] = "0x5"
        await provider.poll_once()

        assert seen == ["0x5"]

    @pytest.mark.asyncio
    async def test_chain_disconnect_during_polling_is_quiet(self, provider, wallet, caplog):
        wallet.errors["eth_accounts"] = {"code": 4901, "message": "Chain disconnected"}
        caplog.set_level(logging.DEBUG, logger="wallet_session.providers.jsonrpc")

        provider.subscribe(ProviderEventKind.CHAIN_CHANGED, lambda _: None)
        await asyncio.sleep(0.05)
        await provider.aclose()

        polls = [r for r in caplog.records if "poll failed" in r.getMessage()]
        assert polls
        assert all(r.levelno == logging.DEBUG for r in polls)


def test_detect_provider_without_url():
    assert detect_provider(Settings(provider_rpc_url="")) is None


@pytest.mark.asyncio
async def test_detect_provider_with_url():
    provider = detect_provider(Settings(provider_rpc_url=RPC_URL, provider_poll_interval_seconds=2))

    assert isinstance(provider, JsonRpcWalletProvider)
    assert provider.rpc_url == RPC_URL
    assert provider.poll_interval_s == 2
    await provider.aclose()
