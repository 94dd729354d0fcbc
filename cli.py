#!/usr/bin/env python3
"""Simple CLI for driving the wallet session locally"""

import argparse
import asyncio
import sys
from typing import Optional

from wallet_session.config import settings
from wallet_session.core.chains import list_chains
from wallet_session.core.session import OperationResult, WalletSessionManager, create_session_manager
from wallet_session.logging_config import setup_logging
from wallet_session.services import short_address


def print_state(manager: WalletSessionManager) -> None:
    """Pretty print the session"""
    state = manager.state
    print("\n👛 Wallet Session")
    print("=" * 50)
    print(f"Provider: {'available' if manager.provider_available else 'not found'}")
    print(f"Status:   {state.status.value}")
    if state.account:
        print(f"Account:  {state.account} ({short_address(state.account)})")
        print(f"Network:  {state.chain_name or '-'}")
        print(f"Balance:  {state.balance}")
    if state.message:
        print(f"Message:  {state.message}")


def print_result(result: OperationResult) -> None:
    if result.stale:
        print("⏭️  Superseded by a newer session change")
    elif result.ok:
        print(f"✅ {result.message or 'Done'}")
    else:
        print(f"❌ {result.message}")


def print_chains(selected: str) -> None:
    print("\n🌐 Networks")
    print("-" * 50)
    for chain in list_chains():
        marker = "*" if chain.chain_id == selected else " "
        print(f"{marker} {chain.chain_id:<12} {chain.chain_name} ({chain.native_currency.symbol})")


async def run_command(args: argparse.Namespace) -> int:
    manager = create_session_manager()
    try:
        async with manager:
            result: Optional[OperationResult] = None

            if args.command == "connect":
                result = await manager.connect()
            elif args.command == "switch":
                result = await manager.switch_network(args.chain_id)
            elif args.command == "balance":
                result = await manager.refresh_balance()
            elif args.command == "send":
                result = await manager.send(args.to, args.amount)
            elif args.command == "chains":
                print_chains(manager.state.chain_id or settings.default_chain_id)
                return 0
            elif args.command == "forget":
                manager.store.clear()
                print("🧹 Forgot the saved session")
                return 0

            if result is not None:
                print_result(result)
            print_state(manager)
            return 0 if result is None or result.ok else 1
    finally:
        if manager.provider is not None:
            await manager.provider.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Wallet session CLI")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show the restored session")
    sub.add_parser("connect", help="Request account access from the provider")
    sub.add_parser("chains", help="List supported networks")
    sub.add_parser("balance", help="Refresh the account balance")
    sub.add_parser("forget", help="Forget the saved session")

    switch = sub.add_parser("switch", help="Switch (or add) a network")
    switch.add_argument("chain_id", help="Chain id, e.g. 0x1 or 11155111")

    send = sub.add_parser("send", help="Send native currency")
    send.add_argument("to", help="Recipient address")
    send.add_argument("amount", help="Amount, e.g. 0.01")

    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json_logs=False)

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        return 130


if __name__ == "__main__":
    sys.exit(main())
