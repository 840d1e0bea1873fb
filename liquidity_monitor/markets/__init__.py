"""Market state reading and numeric helpers."""
from .formatting import apy, format_balance
from .snapshot import read_snapshot

__all__ = ["apy", "format_balance", "read_snapshot"]
