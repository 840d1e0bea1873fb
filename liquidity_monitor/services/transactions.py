"""Supply / withdraw against a Compound V3 market."""
from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from ..chains.evm import COMET_ABI, ERC20_ABI, MAX_UINT256, EvmSigner, checksum_address
from ..config import AppConfig
from ..errors import ConfigurationError, InputError, ReadError, TransactionError
from ..interfaces.ledger import SigningLedgerClient
from ..models import MarketVersion, TxReceipt

logger = logging.getLogger(__name__)

SignerFactory = Callable[[str], SigningLedgerClient]
ApprovalPolicy = Callable[[int], int]


def unlimited_approval(amount: int) -> int:
    """Approve once for the maximum allowance; later supplies skip approval."""
    return MAX_UINT256


def exact_approval(amount: int) -> int:
    """Approve only what this supply needs."""
    return amount


def resolve_credential(explicit: str | None, config: AppConfig) -> str:
    """Pick the signing key: CLI flag first, then config, else fail."""
    key = explicit or config.wallet.private_key
    if not key:
        raise ConfigurationError(
            "Private key not provided. Use --private-key or set wallet.private_key in config.yaml"
        )
    return key


class TransactionExecutor:
    """Signed supply and withdraw operations; V3 markets only.

    Every call blocks until the transaction is confirmed or fails. Nothing is
    retried or rolled back; callers re-invoke on failure.
    """

    def __init__(
        self,
        config: AppConfig,
        signer_factory: SignerFactory | None = None,
        approval_amount: ApprovalPolicy = unlimited_approval,
    ) -> None:
        self._config = config
        self._signer_factory = signer_factory or (
            lambda key: EvmSigner(config.chain, key)
        )
        self._approval_amount = approval_amount

    def ensure_supported(self) -> None:
        """Raise ConfigurationError unless the market accepts transactions."""
        if self._config.market.version is not MarketVersion.V3:
            raise ConfigurationError(
                "Supply/withdraw is only supported for Compound V3. "
                "Set market.version: v3 in config.yaml"
            )

    @staticmethod
    def _require_positive(amount: int) -> None:
        if amount <= 0 or amount > MAX_UINT256:
            raise InputError(f"Amount must be a positive uint256, got {amount}")

    async def _base_token(self, signer: SigningLedgerClient, market: str) -> str:
        try:
            return await signer.call(market, COMET_ABI, "baseToken")
        except Exception as e:
            raise ReadError(f"Failed to resolve base token of {market}: {e}") from e

    async def _submit_and_confirm(
        self,
        signer: SigningLedgerClient,
        label: str,
        address: str,
        abi: Sequence[dict[str, Any]],
        function: str,
        *args: Any,
    ) -> TxReceipt:
        try:
            tx_hash = await signer.transact(address, abi, function, *args)
        except Exception as e:
            raise TransactionError(f"{label} transaction submission failed: {e}") from e

        try:
            receipt = await signer.wait_for_receipt(tx_hash)
        except TransactionError:
            raise
        except Exception as e:
            raise TransactionError(f"{label} transaction {tx_hash} not confirmed: {e}") from e

        if not receipt.succeeded:
            raise TransactionError(f"{label} transaction {tx_hash} reverted")
        return receipt

    async def _ensure_allowance(
        self, signer: SigningLedgerClient, token: str, market: str, amount: int
    ) -> TxReceipt | None:
        """Approve the market to spend ``token`` if the current allowance is short."""
        try:
            allowance = await signer.call(
                token, ERC20_ABI, "allowance", signer.address, market
            )
        except Exception as e:
            raise ReadError(f"Failed to read allowance: {e}") from e

        if allowance >= amount:
            logger.debug("Allowance %s covers %s; no approval needed", allowance, amount)
            return None

        logger.info("Approving Compound to spend tokens...")
        receipt = await self._submit_and_confirm(
            signer, "Approve", token, ERC20_ABI, "approve",
            market, self._approval_amount(amount),
        )
        logger.info("Approved! Transaction hash: %s", receipt.tx_hash)
        return receipt

    async def supply(self, amount: int, credential: str) -> TxReceipt:
        """Supply ``amount`` base units of the market's base token."""
        self.ensure_supported()
        self._require_positive(amount)
        market = checksum_address(self._config.market.address)

        logger.info("Supplying %s to Compound V3...", amount)
        signer = self._signer_factory(credential)
        try:
            token = await self._base_token(signer, market)
            await self._ensure_allowance(signer, token, market, amount)

            logger.info("Sending supply transaction...")
            receipt = await self._submit_and_confirm(
                signer, "Supply", market, COMET_ABI, "supply", token, amount
            )
        finally:
            await signer.close()

        logger.info("✓ Supply successful!")
        logger.info("Transaction hash: %s", receipt.tx_hash)
        logger.info("Gas used: %s", receipt.gas_used)
        return receipt

    async def withdraw(self, amount: int, credential: str) -> TxReceipt:
        """Withdraw ``amount`` base units; no approval is involved."""
        self.ensure_supported()
        self._require_positive(amount)
        market = checksum_address(self._config.market.address)

        logger.info("Withdrawing %s from Compound V3...", amount)
        signer = self._signer_factory(credential)
        try:
            token = await self._base_token(signer, market)

            logger.info("Sending withdraw transaction...")
            receipt = await self._submit_and_confirm(
                signer, "Withdraw", market, COMET_ABI, "withdraw", token, amount
            )
        finally:
            await signer.close()

        logger.info("✓ Withdraw successful!")
        logger.info("Transaction hash: %s", receipt.tx_hash)
        logger.info("Gas used: %s", receipt.gas_used)
        return receipt
