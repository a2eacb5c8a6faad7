"""
Chain RPC client

Thin wrapper over web3 so probes can be driven by a fake in tests.
"""

import logging

from web3 import Web3
from web3.exceptions import ContractLogicError

from .errors import ChainCallError, ErrorCategory

logger = logging.getLogger(__name__)


class ChainClient:
    """Read-only access to one EVM JSON-RPC endpoint"""

    def __init__(self, rpc_url: str, timeout: float = 30.0, w3: Web3 = None):
        self.rpc_url = rpc_url
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

    def is_connected(self) -> bool:
        return self.w3.is_connected()

    def chain_id(self) -> int:
        return self.w3.eth.chain_id

    def get_code(self, address: str) -> bytes:
        code = self.w3.eth.get_code(Web3.to_checksum_address(address))
        logger.debug(f"get_code {address}: {len(code)} bytes")
        return bytes(code)

    def get_balance(self, address: str) -> int:
        return self.w3.eth.get_balance(Web3.to_checksum_address(address))

    def call(self, address: str, data: str) -> bytes:
        """
        eth_call against `address`.

        Raises ChainCallError. A ContractLogicError from web3 is tagged REVERT directly;
        anything else is categorised from its message text.
        """
        tx = {"to": Web3.to_checksum_address(address), "data": data}
        try:
            result = self.w3.eth.call(tx)
        except ContractLogicError as e:
            logger.debug(f"eth_call {address} reverted: {e}")
            raise ChainCallError(str(e), ErrorCategory.REVERT) from e
        except Exception as e:
            logger.debug(f"eth_call {address} failed: {e}")
            raise ChainCallError(str(e)) from e
        return bytes(result)
