"""
Wallet Session Errors

Every failure the session manager can hit has a type here. Operations convert
them into a transient status message, so the messages are written for display.
"""

from typing import Any, Dict, Optional


class WalletSessionError(Exception):
    """Base class for session manager failures."""

    code: str = "WALLET_ERROR"
    default_message: str = "Wallet operation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        provider_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.provider_code = provider_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "providerCode": self.provider_code,
            "details": self.details,
        }


class ProviderUnavailableError(WalletSessionError):
    """No signing provider is installed, or it cannot serve requests."""

    code = "PROVIDER_UNAVAILABLE"
    default_message = "Wallet provider not found. Please install one."


class UserRejectedError(WalletSessionError):
    """The provider declined an authorization prompt."""

    code = "USER_REJECTED"
    default_message = "Request rejected in wallet"


class NoAccountsError(WalletSessionError):
    """Authorization succeeded but the provider returned no accounts."""

    code = "NO_ACCOUNTS"
    default_message = "No accounts available in wallet"


class NetworkSwitchError(WalletSessionError):
    """The add-or-switch sequence was exhausted."""

    code = "NETWORK_SWITCH_FAILED"
    default_message = "Failed to switch network"


class InvalidAddressError(WalletSessionError):
    code = "INVALID_ADDRESS"
    default_message = "Invalid recipient address"


class InvalidAmountError(WalletSessionError):
    code = "INVALID_AMOUNT"
    default_message = "Enter a valid amount"


class NotConnectedError(WalletSessionError):
    code = "NOT_CONNECTED"
    default_message = "Connect wallet first"


class BalanceFetchError(WalletSessionError):
    code = "BALANCE_FETCH_FAILED"
    default_message = "Failed to fetch balance"


class TransactionSubmitError(WalletSessionError):
    code = "TRANSACTION_SUBMIT_FAILED"
    default_message = "Send failed"


class InvalidTransitionError(WalletSessionError):
    """Raised when a session transition is not allowed from the current status."""

    code = "INVALID_TRANSITION"
    default_message = "Operation not allowed right now"

    def __init__(self, from_status: Any, to_status: Any, message: Optional[str] = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message
            or f"Cannot transition from {getattr(from_status, 'value', from_status)} "
               f"to {getattr(to_status, 'value', to_status)}",
            details={
                "from": getattr(from_status, "value", from_status),
                "to": getattr(to_status, "value", to_status),
            },
        )
