from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..core.chains import ChainDescriptor


# EIP-1193 provider error codes
USER_REJECTED_REQUEST = 4001
DISCONNECTED = 4900
CHAIN_DISCONNECTED = 4901
# EIP-3326: the requested chain has not been added to the wallet
UNRECOGNIZED_CHAIN = 4902


class ProviderEventKind(str, Enum):
    """Events a signing provider pushes to subscribers."""

    ACCOUNTS_CHANGED = "accountsChanged"
    CHAIN_CHANGED = "chainChanged"


EventHandler = Callable[[Any], None]


class ProviderRpcError(Exception):
    """A provider request failed with an EIP-1193 style error."""

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)

    @property
    def is_user_rejection(self) -> bool:
        return self.code == USER_REJECTED_REQUEST

    @property
    def is_disconnected(self) -> bool:
        """The provider (or its link to the current chain) is down."""
        return self.code in (DISCONNECTED, CHAIN_DISCONNECTED)

    @property
    def is_unrecognized_chain(self) -> bool:
        return self.code == UNRECOGNIZED_CHAIN


class WalletProvider(ABC):
    """Capability surface of an external signing provider.

    Request methods raise ``ProviderRpcError`` on failure. Event handlers are
    plain callables invoked with the event payload; they must not block.
    """

    name: str
    timeout_s: float = 30

    @abstractmethod
    async def request_accounts(self) -> List[str]:
        """Ask for account access (may prompt the user)."""
        pass

    @abstractmethod
    async def get_accounts(self) -> List[str]:
        """Accounts already authorized for this app (never prompts)."""
        pass

    @abstractmethod
    async def request_chain_id(self) -> str:
        """Current chain id as a hex string."""
        pass

    @abstractmethod
    async def switch_chain(self, chain_id: str) -> None:
        pass

    @abstractmethod
    async def add_chain(self, descriptor: ChainDescriptor) -> None:
        pass

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Native balance in the smallest unit."""
        pass

    @abstractmethod
    async def send_transaction(self, tx: Dict[str, Any]) -> Optional[str]:
        """Submit a transaction; returns its hash when the provider reports one."""
        pass

    @abstractmethod
    def subscribe(self, event: ProviderEventKind, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, event: ProviderEventKind, handler: EventHandler) -> None:
        pass

    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        try:
            chain_id = await self.request_chain_id()
            return {"status": "healthy", "chainId": chain_id}
        except ProviderRpcError as e:
            return {"status": "error", "reason": e.message, "code": e.code}

    async def aclose(self) -> None:
        """Release transport resources."""
        return None
