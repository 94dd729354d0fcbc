"""Stateless helpers shared by the session manager, API and CLI."""

from .address import find_address, is_valid_evm_address, same_address, short_address
from .units import format_balance, parse_amount, to_smallest_unit

__all__ = [
    "find_address",
    "is_valid_evm_address",
    "same_address",
    "short_address",
    "format_balance",
    "parse_amount",
    "to_smallest_unit",
]
