"""Integration tests for the Monitor service: full tick flow with a fake ledger."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from liquidity_monitor.errors import ConfigurationError, NotificationTransportError, ReadError
from liquidity_monitor.models import LiquidityAlert, MarketVersion, ReadFailed, SnapshotRead
from liquidity_monitor.services.monitor import Monitor
from tests.conftest import (
    MARKET,
    FakeLedger,
    make_config,
    v2_market_responses,
    v3_market_responses,
)


def _monitor(
    responses: dict,
    version: MarketVersion = MarketVersion.V3,
    threshold: int = 5_000_000,
    notifications_enabled: bool = True,
) -> tuple[Monitor, AsyncMock]:
    notifier = AsyncMock()
    notifier.send_alert.return_value = True
    config = make_config(
        version=version, threshold=threshold, notifications_enabled=notifications_enabled
    )
    return Monitor(config, FakeLedger(responses), notifier), notifier


class TestPollOnce:
    @pytest.mark.asyncio
    async def test_success(self) -> None:
        monitor, _ = _monitor(v3_market_responses())
        result = await monitor.poll_once()
        assert isinstance(result, SnapshotRead)
        assert result.snapshot.available_liquidity == 4_000_000

    @pytest.mark.asyncio
    async def test_failure_is_a_value(self) -> None:
        monitor, _ = _monitor({})
        result = await monitor.poll_once()
        assert isinstance(result, ReadFailed)
        assert isinstance(result.error, ReadError)


class TestCheckAndAlert:
    @pytest.mark.asyncio
    async def test_below_threshold_sends_alert(self) -> None:
        monitor, notifier = _monitor(v3_market_responses(contract_balance=4_000_000))

        alert = await monitor.check_and_alert()

        assert isinstance(alert, LiquidityAlert)
        assert alert.available_liquidity == 4_000_000
        assert alert.threshold == 5_000_000
        assert alert.market_address == MARKET
        assert alert.market_symbol == "cUSDCv3"
        assert alert.message == "Available liquidity (4000000) is below threshold (5000000)"
        notifier.send_alert.assert_awaited_once_with(alert)

    @pytest.mark.asyncio
    async def test_v2_market_below_threshold(self) -> None:
        monitor, notifier = _monitor(
            v2_market_responses(cash=100), version=MarketVersion.V2
        )

        alert = await monitor.check_and_alert()

        assert alert is not None
        assert alert.market_symbol == "cUSDC"
        assert alert.total_borrows == 9_000_000
        notifier.send_alert.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_equal_to_threshold_is_healthy(self) -> None:
        monitor, notifier = _monitor(v3_market_responses(contract_balance=5_000_000))

        assert await monitor.check_and_alert() is None
        notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_above_threshold_is_healthy(self) -> None:
        monitor, notifier = _monitor(v3_market_responses(contract_balance=9_000_000))

        assert await monitor.check_and_alert() is None
        notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_notifications_disabled_still_returns_alert(self) -> None:
        monitor, notifier = _monitor(
            v3_market_responses(contract_balance=1), notifications_enabled=False
        )

        alert = await monitor.check_and_alert()

        assert alert is not None
        notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_read_failure_is_logged_not_raised(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        monitor, notifier = _monitor({(MARKET, "baseToken"): ConnectionError("rpc down")})

        assert await monitor.check_and_alert() is None
        notifier.send_alert.assert_not_called()
        assert "Failed to check liquidity" in caplog.text

    @pytest.mark.asyncio
    async def test_transport_failure_is_logged_not_raised(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        monitor, notifier = _monitor(v3_market_responses(contract_balance=1))
        notifier.send_alert.side_effect = NotificationTransportError("connection refused")

        alert = await monitor.check_and_alert()

        assert alert is not None
        assert "Failed to send alert" in caplog.text

    @pytest.mark.asyncio
    async def test_non_success_status_is_not_retried(self) -> None:
        monitor, notifier = _monitor(v3_market_responses(contract_balance=1))
        notifier.send_alert.return_value = False

        await monitor.check_and_alert()

        notifier.send_alert.assert_awaited_once()


class _FakeClock:
    """Loop clock that only moves when a tick works or the loop sleeps."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@contextmanager
def _driven_by(clock: _FakeClock) -> Iterator[None]:
    with patch(
        "liquidity_monitor.services.monitor.asyncio.get_running_loop",
        return_value=MagicMock(time=clock.time),
    ), patch("liquidity_monitor.services.monitor.asyncio.sleep", new=clock.sleep):
        yield


def _timed_ticks(clock: _FakeClock, durations: list[float]):
    """Stand-in tick that takes ``durations[i]`` seconds and records its start time."""
    starts: list[float] = []
    remaining = iter(durations)

    async def tick() -> None:
        starts.append(clock.now)
        clock.now += next(remaining)

    return tick, starts


class TestRunContinuous:
    @pytest.mark.asyncio
    async def test_ticks_at_fixed_period(self) -> None:
        monitor, _ = _monitor(v3_market_responses())
        clock = _FakeClock()
        tick, starts = _timed_ticks(clock, [2, 2, 2])

        with _driven_by(clock), patch.object(monitor, "check_and_alert", new=tick):
            await monitor.run_continuous(max_ticks=3)

        assert starts == [1000, 1060, 1120]
        assert clock.sleeps == [pytest.approx(58), pytest.approx(58)]

    @pytest.mark.asyncio
    async def test_overrunning_tick_delays_next_and_reanchors(self) -> None:
        monitor, _ = _monitor(v3_market_responses())
        clock = _FakeClock()
        tick, starts = _timed_ticks(clock, [2, 75, 2, 2])

        with _driven_by(clock), patch.object(monitor, "check_and_alert", new=tick):
            await monitor.run_continuous(max_ticks=4)

        # The second tick ends at 1135, past its 1120 slot: the third starts at
        # once and the period is counted from there.
        assert starts == [1000, 1060, 1135, 1195]
        assert clock.sleeps == [pytest.approx(58), pytest.approx(58)]

    @pytest.mark.asyncio
    async def test_interval_override(self) -> None:
        monitor, _ = _monitor(v3_market_responses())
        clock = _FakeClock()
        tick, starts = _timed_ticks(clock, [1, 1])

        with _driven_by(clock), patch.object(monitor, "check_and_alert", new=tick):
            await monitor.run_continuous(poll_interval_secs=5, max_ticks=2)

        assert starts == [1000, 1005]
        assert clock.sleeps == [pytest.approx(4)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("interval", [0, -5])
    async def test_non_positive_interval_rejected(self, interval: int) -> None:
        monitor, _ = _monitor(v3_market_responses())
        tick = AsyncMock()

        with patch.object(monitor, "check_and_alert", new=tick):
            with pytest.raises(ConfigurationError, match="Poll interval"):
                await monitor.run_continuous(poll_interval_secs=interval, max_ticks=3)

        tick.assert_not_called()

    @pytest.mark.asyncio
    async def test_continues_after_failed_ticks(self) -> None:
        monitor, notifier = _monitor({})
        clock = _FakeClock()

        with _driven_by(clock):
            with patch.object(
                monitor, "check_and_alert", wraps=monitor.check_and_alert
            ) as spy:
                await monitor.run_continuous(max_ticks=3)

        assert spy.await_count == 3
        assert clock.sleeps == [60, 60]
        notifier.send_alert.assert_not_called()
