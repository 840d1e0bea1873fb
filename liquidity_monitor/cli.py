"""Command-line interface for the Compound liquidity monitor."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .chains.evm import EvmClient, parse_uint256
from .config import DEFAULT_ADDRESSES_FILE, load_config, load_monitor_addresses
from .errors import MonitorError
from .logging_setup import configure_logging
from .notifications import WebhookNotifier
from .services import BalanceInspector, Monitor, TransactionExecutor
from .services.transactions import resolve_credential

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="compound-monitor",
        description="Monitor and interact with Compound Finance markets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--addresses",
        default=DEFAULT_ADDRESSES_FILE,
        help=f"Address list for batch balance checks (default: {DEFAULT_ADDRESSES_FILE})",
    )

    sub = parser.add_subparsers(dest="command")

    monitor_parser = sub.add_parser("monitor", help="Monitor liquidity (default mode)")
    monitor_parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Poll interval in seconds (overrides config)",
    )

    for name, help_text in (
        ("supply", "Deposit (supply) assets to Compound"),
        ("withdraw", "Withdraw assets from Compound"),
    ):
        tx_parser = sub.add_parser(name, help=help_text)
        tx_parser.add_argument(
            "-a",
            "--amount",
            required=True,
            help="Amount in base units, e.g. 1000000 = 1 USDC",
        )
        tx_parser.add_argument(
            "-k",
            "--private-key",
            default=None,
            help="Signing key (optional if wallet.private_key is set in config)",
        )

    balance_parser = sub.add_parser("balance", help="Check wallet and Compound balances")
    balance_parser.add_argument(
        "-a",
        "--address",
        default=None,
        help="Wallet address (default: every entry in the address list)",
    )

    return parser


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    config = load_config(args.config)
    command = args.command or "monitor"

    if command in ("supply", "withdraw"):
        executor = TransactionExecutor(config)
        amount = parse_uint256(args.amount)
        executor.ensure_supported()
        key = resolve_credential(args.private_key, config)
        if command == "supply":
            await executor.supply(amount, key)
        else:
            await executor.withdraw(amount, key)
        return

    ledger = EvmClient(config.chain)
    try:
        if command == "balance":
            inspector = BalanceInspector(config, ledger)
            if args.address:
                await inspector.check_balance(args.address)
            else:
                entries = load_monitor_addresses(args.addresses)
                await inspector.check_balance_batch(entries)
        else:
            monitor = Monitor(config, ledger, WebhookNotifier(config.notifications))
            await monitor.run_continuous(getattr(args, "interval", None))
    finally:
        await ledger.close()


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except (MonitorError, FileNotFoundError) as e:
        logger.error("%s", e)
        sys.exit(1)
