"""Liquidity monitoring loop: periodic snapshot and threshold alerting."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..config import AppConfig
from ..errors import ConfigurationError, NotificationTransportError, ReadError
from ..interfaces.ledger import LedgerClient
from ..interfaces.notifier import Notifier
from ..markets.snapshot import read_snapshot
from ..models import (
    LiquidityAlert,
    LiquiditySnapshot,
    ReadFailed,
    SnapshotRead,
    TickResult,
)

logger = logging.getLogger(__name__)


class Monitor:
    """Polls one market and alerts when available liquidity drops below threshold."""

    def __init__(
        self, config: AppConfig, ledger: LedgerClient, notifier: Notifier
    ) -> None:
        self._config = config
        self._ledger = ledger
        self._notifier = notifier
        self._threshold = config.monitor.liquidity_threshold

    # ------------------------------------------------------------------
    # Alert construction
    # ------------------------------------------------------------------

    @staticmethod
    def _now_ts() -> int:
        return int(datetime.now(timezone.utc).timestamp())

    def _build_alert(self, snapshot: LiquiditySnapshot) -> LiquidityAlert:
        return LiquidityAlert(
            market_address=self._config.market.address,
            market_symbol=snapshot.symbol,
            available_liquidity=snapshot.available_liquidity,
            total_borrows=snapshot.total_borrows,
            total_reserves=snapshot.total_reserves,
            threshold=self._threshold,
            timestamp=self._now_ts(),
            message=(
                f"Available liquidity ({snapshot.available_liquidity}) "
                f"is below threshold ({self._threshold})"
            ),
        )

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def poll_once(self) -> TickResult:
        """Read the market once; read failures become a ReadFailed result."""
        market = self._config.market
        try:
            snapshot = await read_snapshot(
                self._ledger, market.version, market.address, market.name
            )
        except ReadError as e:
            return ReadFailed(error=e)
        return SnapshotRead(snapshot=snapshot)

    async def _dispatch(self, alert: LiquidityAlert) -> None:
        if not self._config.notifications.enabled:
            logger.info("Notification disabled, skipping alert")
            return
        try:
            await self._notifier.send_alert(alert)
        except NotificationTransportError as e:
            logger.error("Failed to send alert: %s", e)

    async def check_and_alert(self) -> LiquidityAlert | None:
        """Run one tick; returns the alert when liquidity was below threshold."""
        result = await self.poll_once()

        if isinstance(result, ReadFailed):
            logger.error("Failed to check liquidity: %s", result.error)
            return None

        snapshot = result.snapshot
        if snapshot.available_liquidity >= self._threshold:
            return None

        logger.warning(
            "Liquidity below threshold! Current: %s, Threshold: %s",
            snapshot.available_liquidity, self._threshold,
        )
        alert = self._build_alert(snapshot)
        await self._dispatch(alert)
        return alert

    def _log_startup(self, interval: int) -> None:
        market = self._config.market
        logger.info("Starting Compound %s liquidity monitor...", market.version.label)
        if market.name:
            logger.info("Market: %s (%s)", market.name, market.address)
        else:
            logger.info("Market: %s", market.address)
        logger.info("Threshold: %s", self._threshold)
        logger.info("Poll interval: %ss", interval)
        logger.info(
            "Notifications: %s",
            "enabled" if self._config.notifications.enabled else "disabled",
        )

    async def run_continuous(
        self, poll_interval_secs: int | None = None, max_ticks: int | None = None
    ) -> None:
        """Tick at a fixed period until cancelled (or ``max_ticks`` is reached).

        The first tick fires immediately. A tick that overruns the period
        delays the next one instead of skipping it, and the schedule restarts
        from that late tick.
        """
        interval = (
            self._config.monitor.poll_interval_secs
            if poll_interval_secs is None
            else poll_interval_secs
        )
        if interval <= 0:
            raise ConfigurationError(f"Poll interval must be positive, got {interval}")
        self._log_startup(interval)

        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        ticks = 0

        while max_ticks is None or ticks < max_ticks:
            delay = next_tick - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            else:
                next_tick = loop.time()

            await self.check_and_alert()
            ticks += 1
            next_tick += interval
