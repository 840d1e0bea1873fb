"""Protocol interfaces for the liquidity monitor."""
from .ledger import LedgerClient, SigningLedgerClient
from .notifier import Notifier

__all__ = ["LedgerClient", "Notifier", "SigningLedgerClient"]
