"""EVM ledger clients built on web3.py."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

import aiohttp
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3
from web3.contract import AsyncContract

from ...errors import InputError, TransactionError
from ...models import TxReceipt

if TYPE_CHECKING:
    from ...config import ChainConfig

logger = logging.getLogger(__name__)


class EvmClient:
    """Read-only contract access over a single JSON-RPC endpoint.

    Built once at startup and shared by every component that reads the chain.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.rpc_url = config.rpc_url
        self.timeout = config.rpc_timeout
        self._w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                self.rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=self.timeout)},
            )
        )

    def _contract(self, address: str, abi: Sequence[dict[str, Any]]) -> AsyncContract:
        return self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address), abi=list(abi)
        )

    async def call(
        self, address: str, abi: Sequence[dict[str, Any]], function: str, *args: Any
    ) -> Any:
        """Execute a view function and return its decoded result."""
        contract = self._contract(address, abi)
        result = await getattr(contract.functions, function)(*args).call()
        logger.debug("call %s.%s%s -> %s", address, function, args, result)
        return result

    async def close(self) -> None:
        await self._w3.provider.disconnect()


class EvmSigner(EvmClient):
    """Contract access bound to one local private key.

    Constructed per transactional operation; never shared between writers.
    """

    def __init__(self, config: ChainConfig, private_key: str) -> None:
        super().__init__(config)
        self.chain_id = config.chain_id
        self.receipt_timeout = config.receipt_timeout
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except Exception as e:
            raise InputError("Invalid private key") from e

    @property
    def address(self) -> str:
        return self._account.address

    async def transact(
        self, address: str, abi: Sequence[dict[str, Any]], function: str, *args: Any
    ) -> str:
        """Build, sign and broadcast a state-changing call; return the tx hash."""
        contract = self._contract(address, abi)
        nonce = await self._w3.eth.get_transaction_count(self.address, "pending")
        tx = await getattr(contract.functions, function)(*args).build_transaction(
            {
                "from": self.address,
                "nonce": nonce,
                "chainId": self.chain_id,
            }
        )
        signed = self._account.sign_transaction(tx)
        tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        hex_hash = AsyncWeb3.to_hex(tx_hash)
        logger.info("Submitted %s.%s as tx %s", address, function, hex_hash)
        return hex_hash

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Block until the transaction is mined or the receipt timeout expires."""
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            raise TransactionError(
                f"No confirmation for {tx_hash} within {self.receipt_timeout}s: {e}"
            ) from e

        return TxReceipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            status=int(receipt["status"]),
        )
