"""Compound market liquidity monitor."""

__version__ = "0.1.0"
