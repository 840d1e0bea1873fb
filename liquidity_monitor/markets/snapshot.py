"""Version-specific market reads unified behind one liquidity snapshot.

Each market generation has its own reader coroutine; ``read_snapshot``
dispatches on the configured ``MarketVersion`` tag.

V2 (cToken): cash, borrows, reserves and symbol come straight from the market.

V3 (Comet): available liquidity is the base token balance actually held by
the Comet contract. ``totalSupply - totalBorrow`` is the protocol's
bookkeeping figure and can diverge from what is withdrawable, so it is only
logged. Reserves are signed in V3 and are floored at zero.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ..chains.evm import COMET_ABI, CTOKEN_ABI, ERC20_ABI, checksum_address
from ..config import DEFAULT_V3_MARKET_NAME
from ..errors import ReadError
from ..interfaces.ledger import LedgerClient
from ..models import LiquiditySnapshot, MarketVersion
from .formatting import apy

logger = logging.getLogger(__name__)

SnapshotReader = Callable[[LedgerClient, str, str | None], Awaitable[LiquiditySnapshot]]


async def _read_v2(
    ledger: LedgerClient, market: str, market_name: str | None
) -> LiquiditySnapshot:
    cash, borrows, reserves, symbol = await asyncio.gather(
        ledger.call(market, CTOKEN_ABI, "getCash"),
        ledger.call(market, CTOKEN_ABI, "totalBorrows"),
        ledger.call(market, CTOKEN_ABI, "totalReserves"),
        ledger.call(market, CTOKEN_ABI, "symbol"),
    )

    logger.info(
        "Market: %s | Available Liquidity: %s | Borrows: %s | Reserves: %s",
        symbol, cash, borrows, reserves,
    )

    return LiquiditySnapshot(
        available_liquidity=int(cash),
        total_borrows=int(borrows),
        total_reserves=int(reserves),
        symbol=str(symbol),
    )


async def _read_v3(
    ledger: LedgerClient, market: str, market_name: str | None
) -> LiquiditySnapshot:
    base_token = await ledger.call(market, COMET_ABI, "baseToken")

    (
        contract_balance,
        total_supply,
        total_borrow,
        raw_reserves,
        utilization,
    ) = await asyncio.gather(
        ledger.call(base_token, ERC20_ABI, "balanceOf", market),
        ledger.call(market, COMET_ABI, "totalSupply"),
        ledger.call(market, COMET_ABI, "totalBorrow"),
        ledger.call(market, COMET_ABI, "getReserves"),
        ledger.call(market, COMET_ABI, "getUtilization"),
    )

    raw_reserves = int(raw_reserves)
    if raw_reserves < 0:
        logger.warning(
            "Market reserves are negative (%d); reporting 0", raw_reserves
        )
    reserves = max(raw_reserves, 0)

    supply_rate, borrow_rate = await asyncio.gather(
        ledger.call(market, COMET_ABI, "getSupplyRate", utilization),
        ledger.call(market, COMET_ABI, "getBorrowRate", utilization),
    )

    symbol = market_name or DEFAULT_V3_MARKET_NAME

    logger.info(
        "Market: %s | Available Liquidity: %s | Total Supply: %s | Total Borrow: %s | Reserves: %s",
        symbol, contract_balance, total_supply, total_borrow, reserves,
    )
    logger.info(
        "Supply APY: %.2f%% | Borrow APY: %.2f%% | Utilization: %.2f%%",
        apy(int(supply_rate)),
        apy(int(borrow_rate)),
        int(utilization) / 1e16,
    )

    return LiquiditySnapshot(
        available_liquidity=int(contract_balance),
        total_borrows=int(total_borrow),
        total_reserves=reserves,
        symbol=symbol,
    )


_READERS: dict[MarketVersion, SnapshotReader] = {
    MarketVersion.V2: _read_v2,
    MarketVersion.V3: _read_v3,
}


async def read_snapshot(
    ledger: LedgerClient,
    version: MarketVersion,
    market_address: str,
    market_name: str | None = None,
) -> LiquiditySnapshot:
    """Read the market's current liquidity state.

    Raises:
        ReadError: the address is malformed or any contract read failed.
            Nothing is retried and no partial snapshot is returned.
    """
    reader = _READERS[version]
    try:
        market = checksum_address(market_address)
        return await reader(ledger, market, market_name)
    except Exception as e:
        raise ReadError(f"Snapshot read failed for {market_address}: {e}") from e
