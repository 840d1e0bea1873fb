"""Notifier protocol — alert delivery abstraction."""
from typing import Protocol

from ..models import LiquidityAlert


class Notifier(Protocol):
    """Abstract interface for delivering liquidity alerts."""

    async def send_alert(self, alert: LiquidityAlert) -> bool: ...
