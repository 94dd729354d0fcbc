"""
Transient Status

A status line that clears itself after a fixed window. Setting a new message
before the window ends restarts the window (debounced, not queued).
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional


ExpiryCallback = Callable[[], Coroutine[Any, Any, None]]


class TransientStatus:
    """Status message with a one-shot, restartable expiry timer."""

    def __init__(
        self,
        ttl_seconds: float = 7.0,
        on_expire: Optional[ExpiryCallback] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self._on_expire = on_expire
        self._message = ""
        self._timer_task: Optional[asyncio.Task] = None

    @property
    def message(self) -> str:
        return self._message

    @property
    def is_pending(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def set(self, message: str) -> None:
        """Show ``message`` and (re)start the expiry window. Must run inside the event loop."""
        self._cancel_timer()
        self._message = message
        if message:
            self._timer_task = asyncio.create_task(
                self._expire_after(self.ttl_seconds),
                name="wallet-status-expiry",
            )

    def clear(self) -> None:
        self._cancel_timer()
        self._message = ""

    def close(self) -> None:
        """Cancel the timer without touching the message."""
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        if self._timer_task and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = None

    async def _expire_after(self, seconds: float) -> None:
        try:
            await asyncio.sleep(seconds)
        except asyncio.CancelledError:
            return  # Superseded by a newer status

        self._message = ""
        self._timer_task = None
        if self._on_expire:
            try:
                await self._on_expire()
            except Exception as e:
                self.logger.error(f"Status expiry callback error: {e}")
