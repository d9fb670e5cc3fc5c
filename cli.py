#!/usr/bin/env python3
"""Read-only CLI for inspecting covault wallets on a live ledger"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any, List, Optional

from covault.config import settings
from covault.core import (
    CoordinationError,
    DailyLimit,
    DailyLimitCoordinator,
    PendingOperation,
    RecoveryCoordinator,
    RecoveryRequest,
    TransactionCoordinator,
    WalletConfig,
    WhitelistCoordinator,
    WhitelistEntry,
)
from covault.logging_config import setup_logging
from covault.providers import JsonRpcLedger


def format_timestamp(timestamp: int) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def print_wallet(config: WalletConfig) -> None:
    print(f"\n🔐 Wallet {config.address}")
    print("=" * 50)
    print(f"Threshold: {config.threshold} of {len(config.owners)}")
    print(f"Nonce: {config.nonce}")
    print("\nOwners:")
    for i, owner in enumerate(config.owners, 1):
        print(f"{i:2d}. {owner}")
    if config.modules:
        print("\nEnabled modules:")
        for module in config.modules:
            print(f" - {module}")


def print_operation(operation: PendingOperation) -> None:
    print(f"\n📄 {operation.hash}")
    print(f"   Status:    {operation.status.value}")
    print(f"   To:        {operation.to}")
    print(f"   Value:     {operation.value}")
    print(f"   Data:      {operation.data if len(operation.data) <= 74 else operation.data[:74] + '...'}")
    print(f"   Proposer:  {operation.proposer}")
    print(f"   Approvals: {operation.num_approvals}/{operation.threshold}")
    print(f"   Proposed:  {format_timestamp(operation.timestamp)}")
    approved = [owner for owner, flag in operation.approvals.items() if flag]
    if approved:
        print(f"   Approved by: {', '.join(approved)}")


def print_operations(title: str, operations: List[PendingOperation]) -> None:
    print(f"\n{title} ({len(operations)})")
    print("-" * 50)
    if not operations:
        print("None found in the recent block window")
    for operation in operations:
        print_operation(operation)


def print_recoveries(recoveries: List[RecoveryRequest]) -> None:
    print(f"\n🛟 Pending recoveries ({len(recoveries)})")
    print("-" * 50)
    if not recoveries:
        print("None found in the recent block window")
    for recovery in recoveries:
        print(f"\n{recovery.hash}")
        print(f"   New owners:    {', '.join(recovery.new_owners)}")
        print(f"   New threshold: {recovery.new_threshold}")
        print(f"   Approvals:     {recovery.approval_count}")
        print(f"   Executable at: {format_timestamp(recovery.execution_time)}")


def print_daily_limit(limit: DailyLimit, remaining: int, resets_in: int) -> None:
    print("\n💸 Daily limit")
    print("-" * 50)
    if not limit.is_configured:
        print("Not configured")
        return
    print(f"Limit:      {limit.limit} wei")
    print(f"Spent:      {limit.spent} wei")
    print(f"Remaining:  {remaining} wei")
    print(f"Last reset: {format_timestamp(limit.last_reset)}")
    print(f"Resets in:  {resets_in}s")


def print_whitelist(entries: List[WhitelistEntry]) -> None:
    print(f"\n📒 Whitelisted addresses ({len(entries)})")
    print("-" * 50)
    if not entries:
        print("None found in the recent block window")
    for entry in entries:
        limit = f"{entry.limit} wei" if entry.limit else "unlimited"
        print(f" - {entry.address} (per transaction: {limit})")


def print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


async def run_command(args: argparse.Namespace, ledger: JsonRpcLedger) -> None:
    command = args.command.lower()

    if command == "recoveries":
        recovery = RecoveryCoordinator(ledger, args.address, args.module)
        recoveries = await recovery.list_pending()
        if args.json:
            print_json([r.to_dict() for r in recoveries])
        else:
            print_recoveries(recoveries)
        return

    if command == "limits":
        daily = DailyLimitCoordinator(ledger, args.address, args.module)
        limit = await daily.get_daily_limit()
        remaining = await daily.get_remaining_limit()
        resets_in = await daily.get_time_until_reset()
        if args.json:
            print_json({**limit.to_dict(), "remaining": remaining, "resetsIn": resets_in})
        else:
            print_daily_limit(limit, remaining, resets_in)
        return

    if command == "whitelist":
        whitelist = WhitelistCoordinator(ledger, args.address, args.module)
        entries = await whitelist.get_whitelisted_addresses()
        if args.json:
            print_json([e.to_dict() for e in entries])
        else:
            print_whitelist(entries)
        return

    coordinator = TransactionCoordinator(ledger, args.address)

    if command == "wallet":
        config = await coordinator.get_wallet_config()
        if args.json:
            print_json(config.to_dict())
        else:
            print_wallet(config)

    elif command == "tx":
        operation = await coordinator.get_operation(args.hash)
        if operation is None:
            print(f"❌ Transaction {args.hash} does not exist")
            return
        if args.json:
            print_json(operation.to_dict())
        else:
            print_operation(operation)

    elif command == "pending":
        operations = await coordinator.list_pending()
        if args.json:
            print_json([op.to_dict() for op in operations])
        else:
            print_operations("⏳ Pending transactions", operations)

    elif command == "history":
        executed = await coordinator.list_executed()
        cancelled = await coordinator.list_cancelled()
        if args.json:
            print_json({
                "executed": [op.to_dict() for op in executed],
                "cancelled": [op.to_dict() for op in cancelled],
            })
        else:
            print_operations("✅ Executed transactions", executed)
            print_operations("🚫 Cancelled transactions", cancelled)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="covault wallet inspector")
    parser.add_argument("--rpc-url", help="JSON-RPC endpoint (default: RPC_URL from the environment)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument("--log-level", default=None, help="Log level (default: from settings)")
    subparsers = parser.add_subparsers(dest="command")

    wallet_parser = subparsers.add_parser("wallet", help="Owners, threshold and enabled modules")
    wallet_parser.add_argument("address", help="Wallet address")

    tx_parser = subparsers.add_parser("tx", help="Show one transaction with per-owner approvals")
    tx_parser.add_argument("address", help="Wallet address")
    tx_parser.add_argument("hash", help="Transaction hash")

    pending_parser = subparsers.add_parser("pending", help="List pending transactions")
    pending_parser.add_argument("address", help="Wallet address")

    history_parser = subparsers.add_parser("history", help="List executed and cancelled transactions")
    history_parser.add_argument("address", help="Wallet address")

    recoveries_parser = subparsers.add_parser("recoveries", help="List pending social recoveries")
    recoveries_parser.add_argument("address", help="Wallet address")
    recoveries_parser.add_argument("--module", help="Social recovery module address (default: from settings)")

    limits_parser = subparsers.add_parser("limits", help="Daily spending limit and what is left of it")
    limits_parser.add_argument("address", help="Wallet address")
    limits_parser.add_argument("--module", help="Daily limit module address (default: from settings)")

    whitelist_parser = subparsers.add_parser("whitelist", help="List whitelisted destinations")
    whitelist_parser.add_argument("address", help="Wallet address")
    whitelist_parser.add_argument("--module", help="Whitelist module address (default: from settings)")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)

    rpc_url = args.rpc_url or settings.rpc_url
    if not rpc_url:
        print("❌ No RPC URL: pass --rpc-url or set RPC_URL")
        return 1

    ledger = JsonRpcLedger(rpc_url)
    try:
        await run_command(args, ledger)
    except CoordinationError as e:
        print(f"❌ Error ({e.kind.value}): {e.message}")
        return 1
    finally:
        await ledger.close()
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
