"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from liquidity_monitor.config import (
    AppConfig,
    ChainConfig,
    MarketConfig,
    MonitorConfig,
    NotificationsConfig,
    WalletConfig,
)
from liquidity_monitor.models import MarketVersion, TxReceipt

# Digit-only addresses are already in EIP-55 form.
MARKET = "0x" + "1" * 40
TOKEN = "0x" + "2" * 40
USER = "0x" + "3" * 40
USER_2 = "0x" + "4" * 40


# ---------------------------------------------------------------------------
# Ledger stand-ins
# ---------------------------------------------------------------------------


class FakeLedger:
    """In-memory ledger keyed by (address, function, *args).

    A stored exception is raised instead of returned.
    """

    def __init__(self, responses: dict[tuple, Any] | None = None) -> None:
        self.responses: dict[tuple, Any] = dict(responses or {})
        self.calls: list[tuple] = []

    async def call(self, address: str, abi, function: str, *args: Any) -> Any:
        key = (address, function, *args)
        self.calls.append(key)
        if key not in self.responses:
            raise RuntimeError(f"execution reverted: no response for {key}")
        value = self.responses[key]
        if isinstance(value, Exception):
            raise value
        return value

    def functions_called(self) -> list[str]:
        return [key[1] for key in self.calls]


class FakeSigner(FakeLedger):
    """FakeLedger that also records signed transactions."""

    def __init__(
        self,
        responses: dict[tuple, Any] | None = None,
        address: str = USER,
        receipt_status: int = 1,
    ) -> None:
        super().__init__(responses)
        self._address = address
        self.receipt_status = receipt_status
        self.transactions: list[tuple] = []
        self.waited: list[str] = []
        self.closed = False

    @property
    def address(self) -> str:
        return self._address

    async def transact(self, address: str, abi, function: str, *args: Any) -> str:
        self.transactions.append((address, function, *args))
        return f"0x{len(self.transactions):064x}"

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        self.waited.append(tx_hash)
        return TxReceipt(
            tx_hash=tx_hash, block_number=100, gas_used=21000, status=self.receipt_status
        )

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


def make_config(
    version: MarketVersion = MarketVersion.V3,
    threshold: int = 1_000_000,
    notifications_enabled: bool = True,
    market_name: str | None = None,
    private_key: str | None = None,
) -> AppConfig:
    return AppConfig(
        market=MarketConfig(version=version, address=MARKET, name=market_name),
        chain=ChainConfig(rpc_url="https://rpc.example.com", rpc_timeout=10),
        monitor=MonitorConfig(poll_interval_secs=60, liquidity_threshold=threshold),
        notifications=NotificationsConfig(
            enabled=notifications_enabled,
            webhook_url="https://hooks.example.com/alert",
            timeout=5,
        ),
        wallet=WalletConfig(private_key=private_key),
    )


@pytest.fixture()
def v3_config() -> AppConfig:
    return make_config(MarketVersion.V3)


@pytest.fixture()
def v2_config() -> AppConfig:
    return make_config(MarketVersion.V2)


# ---------------------------------------------------------------------------
# Sample on-chain data
# ---------------------------------------------------------------------------


def v2_market_responses(cash: int = 5_000_000) -> dict[tuple, Any]:
    return {
        (MARKET, "getCash"): cash,
        (MARKET, "totalBorrows"): 9_000_000,
        (MARKET, "totalReserves"): 120_000,
        (MARKET, "symbol"): "cUSDC",
    }


def v3_market_responses(
    contract_balance: int = 4_000_000,
    total_supply: int = 10_000_000,
    total_borrow: int = 3_000_000,
    reserves: int = 250_000,
    utilization: int = 300_000_000_000_000_000,
) -> dict[tuple, Any]:
    return {
        (MARKET, "baseToken"): TOKEN,
        (TOKEN, "balanceOf", MARKET): contract_balance,
        (MARKET, "totalSupply"): total_supply,
        (MARKET, "totalBorrow"): total_borrow,
        (MARKET, "getReserves"): reserves,
        (MARKET, "getUtilization"): utilization,
        (MARKET, "getSupplyRate", utilization): 1_000_000_000,
        (MARKET, "getBorrowRate", utilization): 2_000_000_000,
    }


@pytest.fixture()
def v2_ledger() -> FakeLedger:
    return FakeLedger(v2_market_responses())


@pytest.fixture()
def v3_ledger() -> FakeLedger:
    return FakeLedger(v3_market_responses())


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    market:
      version: v3
      address: "0x1111111111111111111111111111111111111111"
      name: cUSDCv3
    chain:
      rpc_url: "https://rpc.example.com"
      rpc_timeout: 10
      chain_id: 1
      receipt_timeout: 120
    monitor:
      poll_interval_secs: 30
      liquidity_threshold: "1000000000000"
    notifications:
      enabled: true
      webhook_url: "https://hooks.example.com/alert"
      timeout: 5
    wallet:
      private_key: "0xabc"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
