from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from ..config import settings
from ..core.chains import list_chains
from ..core.session import OperationResult, WalletSessionManager


router = APIRouter(prefix="/wallet")


def get_session_manager(request: Request) -> WalletSessionManager:
    return request.app.state.wallet_session


class SwitchNetworkRequest(BaseModel):
    chain_id: str = Field(description="Target chain id in hex (e.g. 0x1) or decimal")


class SendRequest(BaseModel):
    to: str = Field(description="Recipient address (0x…)")
    amount: str = Field(description="Amount in the native currency, as a decimal string")


class WalletActionResponse(BaseModel):
    result: Dict[str, Any]
    state: Dict[str, Any]


def _respond(manager: WalletSessionManager, result: OperationResult) -> WalletActionResponse:
    return WalletActionResponse(result=result.to_dict(), state=manager.state.to_dict())


@router.get("/state")
async def get_state(manager: WalletSessionManager = Depends(get_session_manager)) -> Dict[str, Any]:
    """Current session snapshot"""
    pending = manager.pending_transfer
    return {
        "state": manager.state.to_dict(),
        "providerAvailable": manager.provider_available,
        "pendingTransfer": pending.to_dict() if pending else None,
    }


@router.get("/chains")
async def get_chains(manager: WalletSessionManager = Depends(get_session_manager)) -> Dict[str, Any]:
    """Networks offered in the network picker"""
    return {
        "chains": [chain.to_dict() for chain in list_chains(manager.registry)],
        "selected": manager.state.chain_id or settings.default_chain_id,
    }


@router.get("/receive")
async def get_receive_address(manager: WalletSessionManager = Depends(get_session_manager)) -> Dict[str, Optional[str]]:
    address = manager.receive_address()
    return {"address": address or None}


@router.post("/connect")
async def post_connect(manager: WalletSessionManager = Depends(get_session_manager)) -> WalletActionResponse:
    return _respond(manager, await manager.connect())


@router.post("/network")
async def post_switch_network(
    req: SwitchNetworkRequest,
    manager: WalletSessionManager = Depends(get_session_manager),
) -> WalletActionResponse:
    return _respond(manager, await manager.switch_network(req.chain_id))


@router.post("/balance/refresh")
async def post_refresh_balance(manager: WalletSessionManager = Depends(get_session_manager)) -> WalletActionResponse:
    return _respond(manager, await manager.refresh_balance())


@router.post("/send")
async def post_send(
    req: SendRequest,
    manager: WalletSessionManager = Depends(get_session_manager),
) -> WalletActionResponse:
    return _respond(manager, await manager.send(req.to, req.amount))


@router.post("/send/reset")
async def post_reset_send(manager: WalletSessionManager = Depends(get_session_manager)) -> Dict[str, Any]:
    manager.reset_transfer()
    return {"pendingTransfer": None}
