"""Service modules"""
from .balances import BalanceInspector
from .monitor import Monitor
from .transactions import TransactionExecutor

__all__ = ["BalanceInspector", "Monitor", "TransactionExecutor"]
