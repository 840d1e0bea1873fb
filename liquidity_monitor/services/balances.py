"""Wallet and protocol balance lookups for one or many addresses."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from ..chains.evm import COMET_ABI, ERC20_ABI, checksum_address
from ..config import AppConfig
from ..errors import ConfigurationError, InputError, ReadError
from ..interfaces.ledger import LedgerClient
from ..markets.formatting import decimals_divisor, format_balance
from ..models import (
    BalanceFailure,
    BalanceReport,
    BatchReport,
    MarketVersion,
    MonitorAddressEntry,
)

logger = logging.getLogger(__name__)


class BalanceInspector:
    """Report base-token balances held in wallets and deposited in the market."""

    def __init__(self, config: AppConfig, ledger: LedgerClient) -> None:
        self._config = config
        self._ledger = ledger

    def _require_v3(self) -> None:
        if self._config.market.version is not MarketVersion.V3:
            raise ConfigurationError(
                "Balance checks need a base-token market (market.version: v3)"
            )

    async def check_balance(
        self, address: str, display_name: str | None = None
    ) -> BalanceReport:
        self._require_v3()
        account = checksum_address(address)
        market = checksum_address(self._config.market.address)

        try:
            base_token = await self._ledger.call(market, COMET_ABI, "baseToken")
            symbol, decimals, wallet_balance, protocol_balance = await asyncio.gather(
                self._ledger.call(base_token, ERC20_ABI, "symbol"),
                self._ledger.call(base_token, ERC20_ABI, "decimals"),
                self._ledger.call(base_token, ERC20_ABI, "balanceOf", account),
                self._ledger.call(market, COMET_ABI, "balanceOf", account),
            )
        except Exception as e:
            raise ReadError(f"Balance read failed for {account}: {e}") from e

        divisor = decimals_divisor(int(decimals))
        report = BalanceReport(
            address=account,
            name=display_name,
            token_symbol=str(symbol),
            base_token=str(base_token),
            decimals=int(decimals),
            wallet_balance=int(wallet_balance),
            protocol_balance=int(protocol_balance),
            wallet_formatted=format_balance(int(wallet_balance), divisor),
            protocol_formatted=format_balance(int(protocol_balance), divisor),
        )

        for line in report.render():
            logger.info(line)
        return report

    async def check_balance_batch(
        self, entries: Iterable[MonitorAddressEntry]
    ) -> BatchReport:
        """Check every entry; one entry's failure never stops the others."""
        self._require_v3()
        entries = tuple(entries)

        if not entries:
            logger.info("No addresses found in the address list")
            return BatchReport()

        logger.info("Checking balances for %d addresses...", len(entries))

        reports: list[BalanceReport] = []
        failures: list[BalanceFailure] = []
        for entry in entries:
            try:
                reports.append(await self.check_balance(entry.address, entry.name))
            except (InputError, ReadError) as e:
                logger.error(
                    "Failed to check balance for %s (%s): %s",
                    entry.name, entry.address, e,
                )
                failures.append(BalanceFailure(entry=entry, error=str(e)))

        return BatchReport(reports=tuple(reports), failures=tuple(failures))
