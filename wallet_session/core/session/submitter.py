"""
Transaction Submitter

Validates and dispatches a single native-currency transfer from the connected
account. Validation always completes before the provider is touched.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..chains import native_decimals
from ..errors import (
    InvalidAddressError,
    InvalidAmountError,
    NotConnectedError,
    ProviderUnavailableError,
    TransactionSubmitError,
    WalletSessionError,
)
from .models import OperationResult, PendingTransfer, SessionStatus
from ...providers.base import ProviderRpcError
from ...services.address import is_valid_evm_address
from ...services.units import to_smallest_unit

if TYPE_CHECKING:
    from .state_machine import WalletSessionManager


class TransactionSubmitter:
    """Owns the pending transfer and submits it through the session's provider."""

    def __init__(self, session: "WalletSessionManager", logger: Optional[logging.Logger] = None):
        self.session = session
        self.logger = logger or logging.getLogger(__name__)
        self.pending: Optional[PendingTransfer] = None

    def reset(self) -> None:
        """Discard the pending transfer (form cleared)."""
        self.pending = None

    def build_transfer(self, to: str, amount: str) -> Dict[str, Any]:
        """
        Validate a transfer and build the transaction request.

        Raises:
            InvalidAddressError: ``to`` is not a well-formed address
            InvalidAmountError: ``amount`` is not a finite decimal > 0
            NotConnectedError: No connected account to send from
        """
        to = (to or "").strip()
        if not is_valid_evm_address(to):
            raise InvalidAddressError(details={"to": to})

        state = self.session.state
        decimals = native_decimals(state.chain_id, self.session.registry)
        try:
            value = to_smallest_unit(amount, decimals)
        except ValueError as e:
            raise InvalidAmountError(details={"amount": amount, "reason": str(e)}) from e

        if state.status != SessionStatus.CONNECTED or not state.account:
            raise NotConnectedError()

        return {"from": state.account, "to": to, "value": hex(value)}

    async def send(self, to: str, amount: str) -> OperationResult:
        self.pending = PendingTransfer(to=to, amount=amount)

        try:
            tx = self.build_transfer(to, amount)
            provider = self.session.provider
            if provider is None:
                raise ProviderUnavailableError()
        except WalletSessionError as e:
            return await self.session.report_failure(e)

        await self.session.announce("Sending…")
        self.logger.info(f"Submitting transfer of {amount} from {tx['from']} to {tx['to']}")

        try:
            tx_hash = await provider.send_transaction(tx)
        except ProviderRpcError as e:
            return await self.session.report_failure(
                TransactionSubmitError(e.message or None, provider_code=e.code)
            )

        self.pending = None
        message = f"Sent! Tx: {tx_hash or '(pending)'}"
        await self.session.announce(message)
        return OperationResult.success(message, refresh_balance=True, tx_hash=tx_hash)
