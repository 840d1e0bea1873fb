"""Ledger client protocols for contract reads and signed writes."""
from typing import Any, Protocol, Sequence

from ..models import TxReceipt


class LedgerClient(Protocol):
    """Read-only contract access, shared across components."""

    async def call(
        self, address: str, abi: Sequence[dict[str, Any]], function: str, *args: Any
    ) -> Any: ...


class SigningLedgerClient(LedgerClient, Protocol):
    """Contract access bound to one signing credential."""

    @property
    def address(self) -> str: ...

    async def transact(
        self, address: str, abi: Sequence[dict[str, Any]], function: str, *args: Any
    ) -> str: ...

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt: ...

    async def close(self) -> None: ...
