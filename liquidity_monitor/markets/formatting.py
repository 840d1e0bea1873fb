"""Pure numeric helpers for balances and interest rates."""
from __future__ import annotations

import math

from ..errors import InputError

SECONDS_PER_YEAR = 365.25 * 24 * 60 * 60  # 31,557,600
RATE_SCALE = 1e18
MAX_UINT64 = 2**64 - 1


def format_balance(raw: int, divisor: int) -> str:
    """Render a raw token amount as a plain decimal string.

    Integer arithmetic only, so 256-bit amounts keep every digit.

    Examples:
        format_balance(1_500_000, 1_000_000) → "1.5"
        format_balance(2_000_000, 1_000_000) → "2"
        format_balance(42, 0) → "42"
    """
    if raw < 0 or divisor < 0:
        raise InputError(f"Balances must be non-negative: {raw} / {divisor}")

    if divisor == 0:
        return str(raw)

    whole, remainder = divmod(raw, divisor)
    if remainder == 0:
        return str(whole)

    width = len(str(divisor)) - 1
    fraction = str(remainder).zfill(width).rstrip("0")
    if not fraction:
        return str(whole)
    return f"{whole}.{fraction}"


def apy(rate_per_second: int, scale: float = RATE_SCALE) -> float:
    """Annualize a per-second rate as a percentage.

    apy = ((1 + rate / scale) ^ SECONDS_PER_YEAR - 1) * 100
    """
    if rate_per_second < 0 or rate_per_second > MAX_UINT64:
        raise InputError(f"Rate out of uint64 range: {rate_per_second}")

    rate = rate_per_second / scale
    return math.expm1(SECONDS_PER_YEAR * math.log1p(rate)) * 100


def decimals_divisor(decimals: int) -> int:
    """Base-unit divisor for a token with ``decimals`` decimal places."""
    return 10**decimals
