"""Helpers for validating and comparing EVM wallet addresses."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Optional

from eth_utils import is_checksum_address, is_checksum_formatted_address

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


@lru_cache(maxsize=256)
def is_valid_evm_address(address: str) -> bool:
    """``0x`` + 40 hex digits; mixed-case input must carry a valid EIP-55 checksum."""

    if not isinstance(address, str) or not _EVM_ADDRESS_RE.match(address):
        return False
    if is_checksum_formatted_address(address):
        return is_checksum_address(address)
    return True


def same_address(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()


def find_address(address: str, candidates: Iterable[str]) -> Optional[str]:
    """Return the candidate spelling of ``address`` if present (case-insensitive)."""

    for candidate in candidates:
        if same_address(address, candidate):
            return candidate
    return None


def short_address(address: str, chars: int = 4) -> str:
    """Format address as 0x1234...5678"""

    if len(address) <= chars * 2 + 2:
        return address
    return f"{address[:chars + 2]}...{address[-chars:]}"
