"""
Wallet Session Models

Statuses, state snapshots, provider events and operation results.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..chains import CHAIN_REGISTRY, ChainDescriptor, get_chain_name
from ..errors import WalletSessionError
from ...providers.base import ProviderEventKind


class SessionStatus(str, Enum):
    """Connection status of the wallet session."""

    DISCONNECTED = "disconnected"   # No account adopted
    CONNECTING = "connecting"       # Waiting for the provider to authorize
    CONNECTED = "connected"         # Account and chain adopted
    SWITCHING = "switching"         # Add-or-switch in flight


@dataclass
class SessionState:
    """The single mutable session record owned by the state machine."""

    account: str = ""
    chain_id: str = ""
    status: SessionStatus = SessionStatus.DISCONNECTED
    message: str = ""
    balance: str = "0"
    # Registry used for display names; the manager passes its own
    registry: Mapping[str, ChainDescriptor] = field(default_factory=lambda: CHAIN_REGISTRY, repr=False, compare=False)

    @property
    def is_connected(self) -> bool:
        return self.status in (SessionStatus.CONNECTED, SessionStatus.SWITCHING)

    @property
    def chain_name(self) -> str:
        return get_chain_name(self.chain_id, self.registry) if self.chain_id else ""

    def snapshot(self) -> "SessionState":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "chainId": self.chain_id,
            "chainName": self.chain_name,
            "status": self.status.value,
            "message": self.message,
            "balance": self.balance,
            "isConnected": self.is_connected,
        }


@dataclass(frozen=True)
class PersistedSession:
    """Last known session, as read from durable storage. A hint, never trusted."""

    account: str = ""
    chain_id: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.account


@dataclass
class PendingTransfer:
    """Transfer being composed in the send form."""

    to: str = ""
    amount: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"to": self.to, "amount": self.amount}


@dataclass(frozen=True)
class ProviderEvent:
    """A provider push waiting to be applied to the session."""

    kind: ProviderEventKind
    payload: Any = None

    @classmethod
    def accounts_changed(cls, accounts: List[str]) -> "ProviderEvent":
        return cls(ProviderEventKind.ACCOUNTS_CHANGED, list(accounts or []))

    @classmethod
    def chain_changed(cls, chain_id: str) -> "ProviderEvent":
        return cls(ProviderEventKind.CHAIN_CHANGED, chain_id)


@dataclass
class OperationResult:
    """Outcome of a session operation. Failures are reported here, never raised."""

    ok: bool
    message: str = ""
    error: Optional[WalletSessionError] = None
    refresh_balance: bool = False
    stale: bool = False
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, message: str = "", refresh_balance: bool = False, **data: Any) -> "OperationResult":
        return cls(ok=True, message=message, refresh_balance=refresh_balance, data=data)

    @classmethod
    def failure(cls, error: WalletSessionError) -> "OperationResult":
        return cls(ok=False, message=error.message, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "message": self.message,
            "error": self.error.to_dict() if self.error else None,
            "refreshBalance": self.refresh_balance,
            "stale": self.stale,
            "data": self.data,
        }
