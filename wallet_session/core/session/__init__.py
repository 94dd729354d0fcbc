"""
Wallet Session Module

Session state machine, persistence, transient status and transfer submission.
"""

from .models import (
    OperationResult,
    PendingTransfer,
    PersistedSession,
    ProviderEvent,
    SessionState,
    SessionStatus,
)
from .status import TransientStatus
from .store import (
    ACCOUNT_KEY,
    CHAIN_KEY,
    JsonFileBackend,
    KeyValueBackend,
    MemoryBackend,
    SessionStore,
    file_session_store,
    memory_session_store,
)
from .submitter import TransactionSubmitter
from .state_machine import WalletSessionManager
from .factory import create_session_manager

__all__ = [
    # State Machine
    "WalletSessionManager",
    "create_session_manager",
    # Models
    "SessionStatus",
    "SessionState",
    "PersistedSession",
    "PendingTransfer",
    "ProviderEvent",
    "OperationResult",
    # Status
    "TransientStatus",
    # Persistence
    "ACCOUNT_KEY",
    "CHAIN_KEY",
    "KeyValueBackend",
    "MemoryBackend",
    "JsonFileBackend",
    "SessionStore",
    "file_session_store",
    "memory_session_store",
    # Transfers
    "TransactionSubmitter",
]
