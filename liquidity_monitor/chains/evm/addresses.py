"""Address and integer parsing for user-supplied strings."""
from __future__ import annotations

from web3 import Web3

from ...errors import InputError
from .abis import MAX_UINT256


def checksum_address(value: str) -> str:
    """Return the EIP-55 form of ``value`` or raise InputError."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise InputError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value)


def parse_uint256(value: str, field: str = "amount") -> int:
    """Parse a base-10 unsigned 256-bit integer string."""
    text = str(value).strip()
    if not (text.isascii() and text.isdecimal()):
        raise InputError(f"Invalid {field}: {value!r} (expected a base-unit integer)")
    number = int(text)
    if number > MAX_UINT256:
        raise InputError(f"Invalid {field}: {value!r} exceeds uint256")
    return number
