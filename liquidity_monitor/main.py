#!/usr/bin/env python3
"""
Compound Liquidity Monitor
Entry point for ``python -m liquidity_monitor.main``
"""
from .cli import main

if __name__ == "__main__":
    main()
