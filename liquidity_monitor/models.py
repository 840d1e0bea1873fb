"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class MarketVersion(Enum):
    """Compound market generation; selects the read algorithm and ABI."""

    V2 = "v2"
    V3 = "v3"

    @property
    def label(self) -> str:
        return "V2" if self is MarketVersion.V2 else "V3 (Comet)"


@dataclass(frozen=True)
class LiquiditySnapshot:
    """Point-in-time market state, in unscaled base units."""

    available_liquidity: int
    total_borrows: int
    total_reserves: int
    symbol: str


@dataclass(frozen=True)
class LiquidityAlert:
    """Alert record sent to the webhook when liquidity drops below threshold."""

    market_address: str
    market_symbol: str
    available_liquidity: int
    total_borrows: int
    total_reserves: int
    threshold: int
    timestamp: int
    message: str

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the webhook.

        256-bit amounts are sent as decimal strings; JSON numbers would lose
        precision in most consumers.
        """
        return {
            "market_address": self.market_address,
            "market_symbol": self.market_symbol,
            "available_liquidity": str(self.available_liquidity),
            "total_borrows": str(self.total_borrows),
            "total_reserves": str(self.total_reserves),
            "threshold": str(self.threshold),
            "timestamp": self.timestamp,
            "message": self.message,
        }


@dataclass(frozen=True)
class MonitorAddressEntry:
    name: str
    address: str


@dataclass(frozen=True)
class TxReceipt:
    """Confirmed transaction summary."""

    tx_hash: str
    block_number: int
    gas_used: int
    status: int

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class BalanceReport:
    """Wallet and protocol balances of one address in the market's base token."""

    address: str
    token_symbol: str
    base_token: str
    decimals: int
    wallet_balance: int
    protocol_balance: int
    wallet_formatted: str
    protocol_formatted: str
    name: str | None = None

    def render(self) -> list[str]:
        lines = ["═" * 51]
        if self.name:
            lines.append(f"Name: {self.name}")
        lines.extend(
            [
                f"Address: {self.address}",
                f"Token: {self.token_symbol} (base token: {self.base_token})",
                f"Decimals: {self.decimals}",
                "─" * 51,
                f"Wallet balance:   {self.wallet_formatted} {self.token_symbol} ({self.wallet_balance})",
                f"Compound balance: {self.protocol_formatted} {self.token_symbol} ({self.protocol_balance})",
                "═" * 51,
            ]
        )
        return lines


@dataclass(frozen=True)
class BalanceFailure:
    entry: MonitorAddressEntry
    error: str


@dataclass(frozen=True)
class BatchReport:
    """Outcome of a batch balance check; failures never hide successes."""

    reports: tuple[BalanceReport, ...] = ()
    failures: tuple[BalanceFailure, ...] = ()


@dataclass(frozen=True)
class SnapshotRead:
    """Tick outcome: the market was read successfully."""

    snapshot: LiquiditySnapshot


@dataclass(frozen=True)
class ReadFailed:
    """Tick outcome: the read failed; the loop logs it and waits for the next tick."""

    error: Exception


TickResult = Union[SnapshotRead, ReadFailed]
