"""
Wallet Session State Machine

Owns the connected account, chain, status and balance. User actions and
provider pushes both end up here; every change of the session goes through
one of the transition methods below and is committed under a single lock.
Provider I/O runs outside the lock, so a commit re-checks that the context it
started from (status, epoch, request token) still holds before writing.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Dict, List, Mapping, Optional, Set

from ..chains import CHAIN_REGISTRY, ChainDescriptor, get_chain_name, native_decimals, normalize_chain_id
from ..errors import (
    BalanceFetchError,
    InvalidTransitionError,
    NetworkSwitchError,
    NoAccountsError,
    NotConnectedError,
    ProviderUnavailableError,
    UserRejectedError,
    WalletSessionError,
)
from ..network import switch_or_add_chain
from ...providers.base import ProviderEventKind, ProviderRpcError, WalletProvider
from ...services.address import find_address, same_address
from ...services.units import format_balance
from .models import (
    OperationResult,
    PendingTransfer,
    ProviderEvent,
    SessionState,
    SessionStatus,
)
from .status import TransientStatus
from .store import SessionStore
from .submitter import TransactionSubmitter


StateCallback = Callable[[SessionState], Coroutine[Any, Any, None]]


class WalletSessionManager:
    """
    Session state machine for a single signing provider.

    Features:
    - Validates transitions against the allowed transition map
    - Persists the session on connect, account change and chain change
    - Restores a previous session without prompting the user
    - Applies provider pushes from a bounded event queue
    - Discards provider responses that arrive after the session moved on
    - Clears status messages after a fixed window
    """

    TRANSITIONS: Dict[SessionStatus, Set[SessionStatus]] = {
        SessionStatus.DISCONNECTED: {
            SessionStatus.CONNECTING,
            SessionStatus.CONNECTED,  # Auto-reconnect
        },
        SessionStatus.CONNECTING: {
            SessionStatus.CONNECTED,
            SessionStatus.DISCONNECTED,
        },
        SessionStatus.CONNECTED: {
            SessionStatus.SWITCHING,
            SessionStatus.DISCONNECTED,
        },
        SessionStatus.SWITCHING: {
            SessionStatus.CONNECTED,
            SessionStatus.DISCONNECTED,
        },
    }

    def __init__(
        self,
        provider: Optional[WalletProvider],
        store: SessionStore,
        registry: Mapping[str, ChainDescriptor] = CHAIN_REGISTRY,
        status_ttl_seconds: float = 7.0,
        balance_places: int = 6,
        event_queue_size: int = 64,
        auto_reconnect: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the session manager.

        Args:
            provider: Signing provider, or None when no provider is installed
            store: Durable storage for the last session
            registry: Networks available for add-or-switch and name lookups
            status_ttl_seconds: How long a status message stays visible
            balance_places: Fractional digits kept when displaying balances
            event_queue_size: Capacity of the provider event queue
            auto_reconnect: Restore the persisted session in ``start()``
            logger: Optional logger
        """
        self.provider = provider
        self.store = store
        self.registry = registry
        self.balance_places = balance_places
        self.auto_reconnect = auto_reconnect
        self.logger = logger or logging.getLogger(__name__)

        self._state = SessionState(registry=registry)
        self._lock = asyncio.Lock()
        self._status_line = TransientStatus(status_ttl_seconds, on_expire=self._notify, logger=self.logger)
        self.submitter = TransactionSubmitter(self, logger=self.logger)

        self._events: asyncio.Queue[ProviderEvent] = asyncio.Queue(maxsize=event_queue_size)
        self._dispatch_task: Optional[asyncio.Task] = None
        self._state_callbacks: List[StateCallback] = []
        self._subscribed = False
        self._started = False
        self._closed = False

        # Bumped whenever the account or chain changes; in-flight reads compare against it
        self._epoch = 0
        # Monotonic token of the latest balance request
        self._balance_token = 0

    # ---------------------------
    # Read-only view
    # ---------------------------
    @property
    def state(self) -> SessionState:
        """Snapshot of the session for observers."""
        snapshot = self._state.snapshot()
        snapshot.message = self._status_line.message
        return snapshot

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def provider_available(self) -> bool:
        return self.provider is not None

    @property
    def pending_transfer(self) -> Optional[PendingTransfer]:
        return self.submitter.pending

    def receive_address(self) -> str:
        """Address to share for incoming transfers (empty when disconnected)."""
        return self._state.account if self._state.is_connected else ""

    def register_state_callback(self, callback: StateCallback) -> None:
        """Register a callback to be called with a snapshot after every change."""
        self._state_callbacks.append(callback)

    def can_transition_to(self, to_status: SessionStatus) -> bool:
        return to_status in self.TRANSITIONS.get(self._state.status, set())

    # ---------------------------
    # Status reporting
    # ---------------------------
    async def announce(self, message: str) -> None:
        """Show a transient status message and notify observers."""
        self._status_line.set(message)
        await self._notify()

    async def report_failure(self, error: WalletSessionError) -> OperationResult:
        """Turn a failure into a transient status message and a failed result."""
        self.logger.warning(f"Wallet session: {error.code}: {error.message}")
        await self.announce(error.message)
        return OperationResult.failure(error)

    async def _notify(self) -> None:
        snapshot = self.state
        for callback in self._state_callbacks:
            try:
                await callback(snapshot)
            except Exception as e:
                self.logger.error(f"State callback error: {e}")

    # ---------------------------
    # Transitions (call with the lock held)
    # ---------------------------
    def _transition(self, to_status: SessionStatus, reason: Optional[str] = None) -> None:
        from_status = self._state.status
        if not self.can_transition_to(to_status):
            raise InvalidTransitionError(from_status, to_status)
        self._state.status = to_status
        self.logger.info(
            f"Wallet session: {from_status.value} -> {to_status.value}"
            f"{f' ({reason})' if reason else ''}"
        )

    def _bump_epoch(self) -> None:
        self._epoch += 1

    def _adopt(self, account: str, chain_id: str) -> None:
        self._state.account = account
        self._state.chain_id = chain_id
        self._bump_epoch()
        self.store.save(account, chain_id)

    def _disconnect_locked(self, reason: str) -> None:
        if self._state.status != SessionStatus.DISCONNECTED:
            self._transition(SessionStatus.DISCONNECTED, reason)
        self._state.account = ""
        self._state.balance = "0"
        self._bump_epoch()
        self.store.clear()

    # ---------------------------
    # User actions
    # ---------------------------
    async def connect(self) -> OperationResult:
        """Request account access and adopt the first account and current chain."""
        provider = self.provider
        if provider is None:
            return await self.report_failure(ProviderUnavailableError())

        async with self._lock:
            current = self._state.status
            busy = current != SessionStatus.DISCONNECTED
            if not busy:
                self._transition(SessionStatus.CONNECTING, "connect requested")
        if busy:
            message = "Connection already in progress" if current == SessionStatus.CONNECTING else "Already connected"
            return await self.report_failure(InvalidTransitionError(current, SessionStatus.CONNECTING, message))
        await self._notify()

        error: Optional[WalletSessionError] = None
        account = chain_id = ""
        try:
            accounts = await provider.request_accounts()
            if not accounts:
                raise NoAccountsError()
            account = accounts[0]
            chain_id = normalize_chain_id(await provider.request_chain_id())
        except WalletSessionError as e:
            error = e
        except ProviderRpcError as e:
            if e.is_user_rejection:
                error = UserRejectedError(e.message or None, provider_code=e.code)
            else:
                error = ProviderUnavailableError(e.message or None, provider_code=e.code)
        except ValueError as e:
            error = ProviderUnavailableError(f"Provider returned an invalid chain id: {e}")

        async with self._lock:
            superseded = self._state.status != SessionStatus.CONNECTING
            if not superseded:
                if error:
                    self._transition(SessionStatus.DISCONNECTED, "connect failed")
                else:
                    self._adopt(account, chain_id)
                    self._transition(SessionStatus.CONNECTED, "connect approved")

        if superseded:
            self.logger.info("Wallet session: connect result discarded, session changed meanwhile")
            return OperationResult(ok=False, message="Connection superseded", stale=True)
        if error:
            return await self.report_failure(error)

        await self.announce("Connected")
        result = OperationResult.success("Connected", refresh_balance=True, account=account, chainId=chain_id)
        await self._follow_up(result)
        return result

    async def switch_network(self, chain_id: str) -> OperationResult:
        """Move the provider to ``chain_id`` via add-or-switch; never leaves the session in SWITCHING."""
        provider = self.provider
        if provider is None:
            return await self.report_failure(ProviderUnavailableError())
        try:
            target = normalize_chain_id(chain_id)
        except ValueError as e:
            return await self.report_failure(NetworkSwitchError(str(e)))

        error: Optional[WalletSessionError] = None
        async with self._lock:
            if self._state.status == SessionStatus.CONNECTED:
                self._transition(SessionStatus.SWITCHING, f"switch to {target}")
            elif self._state.status == SessionStatus.SWITCHING:
                error = InvalidTransitionError(
                    SessionStatus.SWITCHING, SessionStatus.SWITCHING, "Network switch already in progress"
                )
            else:
                error = NotConnectedError()
        if error:
            return await self.report_failure(error)

        await self.announce("Switching network…")

        failure: Optional[NetworkSwitchError] = None
        descriptor: Optional[ChainDescriptor] = None
        try:
            descriptor = await switch_or_add_chain(provider, target, self.registry)
        except NetworkSwitchError as e:
            failure = e

        async with self._lock:
            superseded = self._state.status != SessionStatus.SWITCHING
            if not superseded:
                self._transition(SessionStatus.CONNECTED, "switch failed" if failure else "switch done")
                if failure is None:
                    if self._state.chain_id != target:
                        self._state.chain_id = target
                        self._bump_epoch()
                    self.store.save(self._state.account, target)

        if superseded:
            self.logger.info("Wallet session: switch result discarded, session disconnected meanwhile")
            return OperationResult(ok=failure is None, message="Session changed during switch", stale=True)
        if failure:
            return await self.report_failure(failure)

        name = descriptor.chain_name if descriptor else get_chain_name(target, self.registry)
        message = f"Switched to {name}"
        await self.announce(message)
        result = OperationResult.success(message, refresh_balance=True, chainId=target)
        await self._follow_up(result)
        return result

    async def refresh_balance(self, account: Optional[str] = None) -> OperationResult:
        """Fetch and display the balance of the connected account, truncated to ``balance_places``."""
        provider = self.provider
        if provider is None:
            return await self.report_failure(ProviderUnavailableError())

        async with self._lock:
            current = self._state.account
            connected = self._state.is_connected and bool(current)
            mismatch = connected and bool(account) and not same_address(account, current)
            if connected and not mismatch:
                self._balance_token += 1
                token = self._balance_token
                epoch = self._epoch
                chain_id = self._state.chain_id
        if not connected:
            return await self.report_failure(NotConnectedError())
        if mismatch:
            self.logger.debug(f"Wallet session: balance refresh for {account} skipped, account changed")
            return OperationResult(ok=True, stale=True)

        try:
            raw = await provider.get_balance(current)
            balance = format_balance(raw, native_decimals(chain_id, self.registry), self.balance_places)
        except ProviderRpcError as e:
            return await self.report_failure(BalanceFetchError(provider_code=e.code, details={"reason": e.message}))
        except ValueError as e:
            return await self.report_failure(BalanceFetchError(details={"reason": str(e)}))

        async with self._lock:
            stale = (
                token != self._balance_token
                or epoch != self._epoch
                or not same_address(current, self._state.account)
            )
            if not stale:
                self._state.balance = balance

        if stale:
            self.logger.debug(f"Wallet session: discarded stale balance response (token {token})")
            return OperationResult(ok=True, stale=True)

        await self._notify()
        return OperationResult.success(balance=balance)

    async def send(self, to: str, amount: str) -> OperationResult:
        """Validate and submit a transfer from the connected account, then refresh the balance."""
        result = await self.submitter.send(to, amount)
        await self._follow_up(result)
        return result

    def reset_transfer(self) -> None:
        self.submitter.reset()

    async def _follow_up(self, result: OperationResult) -> None:
        if result.ok and result.refresh_balance and not result.stale:
            await self.refresh_balance()

    # ---------------------------
    # Provider-driven changes
    # ---------------------------
    async def reconcile_accounts_changed(self, accounts: List[str]) -> OperationResult:
        """Apply an ``accountsChanged`` push. Does not fetch the balance itself."""
        accounts = list(accounts or [])

        async with self._lock:
            if not accounts:
                self._disconnect_locked("provider reported no accounts")
                message = "Disconnected"
                changed = True
            elif not self._state.is_connected:
                changed = False
                message = ""
            elif same_address(accounts[0], self._state.account):
                changed = False
                message = ""
            else:
                self._adopt(accounts[0], self._state.chain_id)
                message = "Account changed"
                changed = True

        if not changed:
            self.logger.debug(f"Wallet session: accountsChanged ignored in {self._state.status.value}")
            return OperationResult.success()

        await self.announce(message)
        return OperationResult.success(message, refresh_balance=bool(accounts), account=self._state.account)

    async def reconcile_chain_changed(self, chain_id: str) -> OperationResult:
        """Apply a ``chainChanged`` push. Signals, but does not perform, a balance refresh."""
        try:
            chain_id = normalize_chain_id(chain_id)
        except ValueError as e:
            return await self.report_failure(WalletSessionError(f"Provider reported an invalid network: {e}"))

        async with self._lock:
            self._state.chain_id = chain_id
            self._bump_epoch()
            account = self._state.account
            if account:
                self.store.save(account, chain_id)

        self.logger.info(f"Wallet session: chain changed to {chain_id}")
        await self.announce("Network changed")
        return OperationResult.success("Network changed", refresh_balance=bool(account), chainId=chain_id)

    async def try_auto_reconnect(self) -> OperationResult:
        """Restore the persisted session if the provider still authorizes its account. Never prompts."""
        persisted = self.store.load()
        provider = self.provider
        if persisted.is_empty or provider is None:
            return OperationResult.success(restored=False)

        try:
            authorized = await provider.get_accounts()
            account = find_address(persisted.account, authorized)
            chain_id = ""
            if account:
                try:
                    chain_id = normalize_chain_id(persisted.chain_id)
                except ValueError:
                    chain_id = normalize_chain_id(await provider.request_chain_id())
        except ProviderRpcError as e:
            return await self.report_failure(
                ProviderUnavailableError("Failed to restore session", provider_code=e.code)
            )
        except ValueError as e:
            return await self.report_failure(ProviderUnavailableError(f"Failed to restore session: {e}"))

        if not account:
            self.logger.info(f"Wallet session: persisted account {persisted.account} no longer authorized")
            self.store.clear()
            return OperationResult.success(restored=False)

        async with self._lock:
            restorable = self._state.status == SessionStatus.DISCONNECTED
            if restorable:
                self._adopt(account, chain_id)
                self._transition(SessionStatus.CONNECTED, "session restored")
        if not restorable:
            return OperationResult(ok=True, stale=True, data={"restored": False})

        await self.announce("Reconnected")
        return OperationResult.success("Reconnected", refresh_balance=True, restored=True, account=account)

    async def apply(self, event: ProviderEvent) -> OperationResult:
        """Apply one provider push, then perform the balance refresh it asks for."""
        if event.kind == ProviderEventKind.ACCOUNTS_CHANGED:
            result = await self.reconcile_accounts_changed(event.payload)
        elif event.kind == ProviderEventKind.CHAIN_CHANGED:
            result = await self.reconcile_chain_changed(event.payload)
        else:
            raise ValueError(f"Unsupported provider event: {event.kind}")
        await self._follow_up(result)
        return result

    # ---------------------------
    # Event queue
    # ---------------------------
    def _enqueue(self, event: ProviderEvent) -> None:
        try:
            self._events.put_nowait(event)
        except asyncio.QueueFull:
            dropped = self._events.get_nowait()
            self._events.task_done()
            self.logger.warning(f"Provider event queue full, dropped {dropped.kind.value}")
            self._events.put_nowait(event)

    def _on_accounts_changed(self, accounts: List[str]) -> None:
        self._enqueue(ProviderEvent.accounts_changed(accounts))

    def _on_chain_changed(self, chain_id: str) -> None:
        self._enqueue(ProviderEvent.chain_changed(chain_id))

    async def _dispatch_loop(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self.apply(event)
            except Exception as exc:  # noqa: BLE001
                self.logger.error(f"Failed to apply provider event {event.kind.value}: {exc}", exc_info=True)
            finally:
                self._events.task_done()

    async def drain_events(self) -> None:
        """Wait until every queued provider event has been applied."""
        await self._events.join()

    # ---------------------------
    # Lifecycle
    # ---------------------------
    async def start(self) -> None:
        """Subscribe to provider events, start the dispatcher and restore the last session."""
        if self._started:
            return
        self._started = True

        if self.provider is not None:
            self.provider.subscribe(ProviderEventKind.ACCOUNTS_CHANGED, self._on_accounts_changed)
            self.provider.subscribe(ProviderEventKind.CHAIN_CHANGED, self._on_chain_changed)
            self._subscribed = True

        self._dispatch_task = asyncio.create_task(self._dispatch_loop(), name="wallet-session-events")

        if self.auto_reconnect:
            await self._follow_up(await self.try_auto_reconnect())

    async def close(self) -> None:
        """Release provider subscriptions, the dispatcher and the status timer."""
        if self._closed:
            return
        self._closed = True

        if self._subscribed and self.provider is not None:
            self.provider.unsubscribe(ProviderEventKind.ACCOUNTS_CHANGED, self._on_accounts_changed)
            self.provider.unsubscribe(ProviderEventKind.CHAIN_CHANGED, self._on_chain_changed)
            self._subscribed = False

        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
            self._dispatch_task = None

        self._status_line.close()
        self.logger.info("Wallet session closed")

    async def __aenter__(self) -> "WalletSessionManager":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
