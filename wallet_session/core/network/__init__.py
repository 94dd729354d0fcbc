"""
Network Switch Module

Add-or-switch protocol used by the session manager.
"""

from .switch import switch_or_add_chain

__all__ = [
    "switch_or_add_chain",
]
