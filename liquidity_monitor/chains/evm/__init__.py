"""EVM chain access."""
from .abis import COMET_ABI, CTOKEN_ABI, ERC20_ABI, MAX_UINT256
from .addresses import checksum_address, parse_uint256
from .client import EvmClient, EvmSigner

__all__ = [
    "COMET_ABI",
    "CTOKEN_ABI",
    "ERC20_ABI",
    "MAX_UINT256",
    "EvmClient",
    "EvmSigner",
    "checksum_address",
    "parse_uint256",
]
