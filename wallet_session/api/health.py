from fastapi import APIRouter, Depends
from typing import Dict, Any

from ..core.session import WalletSessionManager
from .wallet import get_session_manager

router = APIRouter()


@router.get("/healthz")
async def health_check(manager: WalletSessionManager = Depends(get_session_manager)) -> Dict[str, Any]:
    """Health check endpoint that verifies the signing provider"""

    if manager.provider is None:
        provider_status = {
            "status": "unavailable",
            "reason": "No signing provider configured",
        }
    else:
        provider_status = await manager.provider.health_check()

    return {
        "status": "healthy" if provider_status["status"] == "healthy" else "degraded",
        "provider": provider_status,
        "session": manager.state.status.value,
    }
