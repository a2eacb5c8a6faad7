"""ABI helpers for the handful of calls the diagnostics make"""

from typing import Sequence

from eth_abi import decode
from web3 import Web3

_w3 = Web3()


def function_abi(name: str, input_types: Sequence[str] = (), state_mutability: str = "nonpayable") -> dict:
    return {
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(input_types)],
        "name": name,
        "outputs": [],
        "stateMutability": state_mutability,
        "type": "function",
    }


def encode_call(name: str, input_types: Sequence[str] = (), args: Sequence = ()) -> str:
    """Encode call data for `name(input_types...)` as a 0x-prefixed hex string."""
    contract = _w3.eth.contract(abi=[function_abi(name, input_types)])
    return contract.encode_abi(name, args=list(args))


def decode_uint256(data: bytes) -> int:
    (value,) = decode(["uint256"], bytes(data))
    return value
