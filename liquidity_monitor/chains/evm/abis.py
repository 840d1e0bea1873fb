"""Minimal ABIs for Compound markets and ERC-20 tokens."""
from __future__ import annotations

from typing import Any


def _view(name: str, outputs: list[str], inputs: list[tuple[str, str]] | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": n, "type": t} for n, t in (inputs or [])],
        "outputs": [{"name": "", "type": t} for t in outputs],
    }


def _write(name: str, inputs: list[tuple[str, str]], outputs: list[str] | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t} for t in (outputs or [])],
    }


# Compound V2 cToken
CTOKEN_ABI: list[dict[str, Any]] = [
    _view("getCash", ["uint256"]),
    _view("totalBorrows", ["uint256"]),
    _view("totalReserves", ["uint256"]),
    _view("symbol", ["string"]),
]

# Compound V3 Comet
COMET_ABI: list[dict[str, Any]] = [
    _view("getReserves", ["int256"]),
    _view("totalSupply", ["uint256"]),
    _view("totalBorrow", ["uint256"]),
    _view("balanceOf", ["uint256"], [("account", "address")]),
    _view("getUtilization", ["uint256"]),
    _view("baseToken", ["address"]),
    _view("getSupplyRate", ["uint64"], [("utilization", "uint256")]),
    _view("getBorrowRate", ["uint64"], [("utilization", "uint256")]),
    _write("supply", [("asset", "address"), ("amount", "uint256")]),
    _write("withdraw", [("asset", "address"), ("amount", "uint256")]),
]

ERC20_ABI: list[dict[str, Any]] = [
    _view("balanceOf", ["uint256"], [("account", "address")]),
    _view("allowance", ["uint256"], [("owner", "address"), ("spender", "address")]),
    _view("symbol", ["string"]),
    _view("decimals", ["uint8"]),
    _write("approve", [("spender", "address"), ("amount", "uint256")], ["bool"]),
]

MAX_UINT256 = 2**256 - 1
