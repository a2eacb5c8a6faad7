"""
Gelato Relay client (REST API version)

Submits sponsoredCall, sponsoredCallERC2771 and callWithSyncFee requests through the
Gelato V2 REST API. ERC-2771 requests are signed locally with the operator key
(EIP-712), the same payload the relay SDK builds.
"""

import logging
import secrets
import time
from typing import Optional

import requests
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .abi import decode_uint256, encode_call
from .errors import ErrorCategory, RelayError
from .models import RelayRequest, RelayTaskHandle, TaskStatus

logger = logging.getLogger(__name__)

SPONSORED_CALL_PATH = "/relays/v2/sponsored-call"
SPONSORED_CALL_ERC2771_PATH = "/relays/v2/sponsored-call-erc2771"
CALL_WITH_SYNC_FEE_PATH = "/relays/v2/call-with-sync-fee"
TASK_STATUS_PATH = "/tasks/status/{task_id}"

USER_DEADLINE_SECONDS = 3600

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

# SponsoredCallERC2771(uint256 chainId,address target,bytes data,address user,uint256 userNonce,uint256 userDeadline)
SPONSORED_CALL_ERC2771_TYPE = [
    {"name": "chainId", "type": "uint256"},
    {"name": "target", "type": "address"},
    {"name": "data", "type": "bytes"},
    {"name": "user", "type": "address"},
    {"name": "userNonce", "type": "uint256"},
    {"name": "userDeadline", "type": "uint256"},
]

# SponsoredCallConcurrentERC2771(uint256 chainId,address target,bytes data,address user,bytes32 userSalt,uint256 userDeadline)
SPONSORED_CALL_CONCURRENT_ERC2771_TYPE = [
    {"name": "chainId", "type": "uint256"},
    {"name": "target", "type": "address"},
    {"name": "data", "type": "bytes"},
    {"name": "user", "type": "address"},
    {"name": "userSalt", "type": "bytes32"},
    {"name": "userDeadline", "type": "uint256"},
]

SEQUENTIAL_DOMAIN_NAME = "GelatoRelay1BalanceERC2771"
CONCURRENT_DOMAIN_NAME = "GelatoRelay1BalanceConcurrentERC2771"
DOMAIN_VERSION = "1"


def _hex_to_bytes(data: str) -> bytes:
    return bytes.fromhex(data[2:]) if data.startswith("0x") else bytes.fromhex(data)


def build_erc2771_typed_data(
    request: RelayRequest,
    forwarder: str,
    deadline: int,
    nonce: Optional[int] = None,
    salt: Optional[bytes] = None,
) -> dict:
    """
    EIP-712 structured data for a sponsoredCallERC2771 request.

    Sequential mode needs the forwarder's userNonce; concurrent mode a 32-byte salt.
    """
    if request.user is None:
        raise ValueError("ERC2771 request needs a user")

    message = {
        "chainId": request.chain_id,
        "target": Web3.to_checksum_address(request.target),
        "data": _hex_to_bytes(request.data),
        "user": Web3.to_checksum_address(request.user),
        "userDeadline": deadline,
    }
    if request.is_concurrent:
        if salt is None or len(salt) != 32:
            raise ValueError("concurrent ERC2771 request needs a 32-byte salt")
        primary_type = "SponsoredCallConcurrentERC2771"
        domain_name = CONCURRENT_DOMAIN_NAME
        message_type = SPONSORED_CALL_CONCURRENT_ERC2771_TYPE
        message["userSalt"] = salt
    else:
        if nonce is None:
            raise ValueError("sequential ERC2771 request needs a user nonce")
        primary_type = "SponsoredCallERC2771"
        domain_name = SEQUENTIAL_DOMAIN_NAME
        message_type = SPONSORED_CALL_ERC2771_TYPE
        message["userNonce"] = nonce

    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            primary_type: message_type,
        },
        "domain": {
            "name": domain_name,
            "version": DOMAIN_VERSION,
            "chainId": request.chain_id,
            "verifyingContract": Web3.to_checksum_address(forwarder),
        },
        "primaryType": primary_type,
        "message": message,
    }


class GelatoRelayClient:
    def __init__(self, base_url: str, session: requests.Session = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def tracking_url(self, task_id: str) -> str:
        return f"{self.base_url}{TASK_STATUS_PATH.format(task_id=task_id)}"

    def _post(self, path: str, payload: dict) -> RelayTaskHandle:
        url = f"{self.base_url}{path}"
        logged = {k: v for k, v in payload.items() if k not in ("sponsorApiKey", "userSignature")}
        logger.debug(f"POST {url} {logged}")

        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RelayError(f"Relay request failed: {e}", ErrorCategory.TRANSPORT) from e

        if resp.status_code != 200:
            logger.warning(f"Gelato error ({resp.status_code}) on {path}: {resp.text}")
            raise RelayError(_error_message(resp), status_code=resp.status_code, body=resp.text)

        try:
            result = resp.json()
        except ValueError as e:
            raise RelayError(f"Relay returned non-JSON body: {resp.text[:200]}", body=resp.text) from e

        task_id = result.get("taskId") if isinstance(result, dict) else None
        if not task_id:
            raise RelayError(f"Relay response has no taskId: {result}", body=resp.text)

        logger.info(f"Gelato task {task_id} created via {path}")
        return RelayTaskHandle(task_id=task_id, tracking_url=self.tracking_url(task_id))

    async def sponsored_call(self, request: RelayRequest, api_key: str) -> RelayTaskHandle:
        """Gas paid from the 1Balance account behind api_key."""
        payload = {
            "chainId": request.chain_id,
            "target": request.target,
            "data": request.data,
            "sponsorApiKey": api_key,
        }
        return self._post(SPONSORED_CALL_PATH, payload)

    async def sponsored_call_erc2771(
        self,
        request: RelayRequest,
        signer: LocalAccount,
        api_key: str,
        forwarder: str,
        chain=None,
    ) -> RelayTaskHandle:
        """
        Sign and submit a sponsoredCallERC2771 request.

        `forwarder` is the trusted forwarder the target contract trusts. In sequential
        mode the user nonce is read from it through `chain`.
        """
        deadline = int(time.time()) + USER_DEADLINE_SECONDS
        payload = request.to_payload()
        payload.pop("isRelayContext", None)
        payload.pop("feeToken", None)

        if request.is_concurrent:
            salt = secrets.token_bytes(32)
            typed_data = build_erc2771_typed_data(request, forwarder, deadline, salt=salt)
            payload["userSalt"] = Web3.to_hex(salt)
        else:
            nonce = self.get_user_nonce(chain, forwarder, request.user)
            typed_data = build_erc2771_typed_data(request, forwarder, deadline, nonce=nonce)
            payload["userNonce"] = nonce

        signed = signer.sign_message(encode_typed_data(full_message=typed_data))
        payload["userDeadline"] = deadline
        payload["userSignature"] = Web3.to_hex(bytes(signed.signature))
        payload["sponsorApiKey"] = api_key

        return self._post(SPONSORED_CALL_ERC2771_PATH, payload)

    async def call_with_sync_fee(self, request: RelayRequest, gas_limit: Optional[int] = None) -> RelayTaskHandle:
        """The target contract pays the relayer out of its own balance in fee_token."""
        if request.fee_token is None:
            raise ValueError("callWithSyncFee needs a fee token")
        payload = request.to_payload()
        payload.pop("user", None)
        payload["isRelayContext"] = request.is_relay_context
        if gas_limit is not None:
            payload["gasLimit"] = str(gas_limit)
        return self._post(CALL_WITH_SYNC_FEE_PATH, payload)

    async def get_task_status(self, task_id: str) -> TaskStatus:
        url = self.tracking_url(task_id)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RelayError(f"Status lookup failed: {e}", ErrorCategory.TRANSPORT) from e
        if resp.status_code != 200:
            raise RelayError(_error_message(resp), status_code=resp.status_code, body=resp.text)

        try:
            body = resp.json()
        except ValueError as e:
            raise RelayError(f"Relay returned non-JSON body: {resp.text[:200]}", body=resp.text) from e
        task = body.get("task", {}) if isinstance(body, dict) else None
        if not isinstance(task, dict):
            raise RelayError(f"Unexpected task status body: {resp.text[:200]}", body=resp.text)
        return TaskStatus(
            task_id=task_id,
            state=task.get("taskState", "Pending"),
            tx_hash=task.get("transactionHash"),
        )

    def get_user_nonce(self, chain, forwarder: str, user: str) -> int:
        """userNonce(user) from the forwarder; 0 when it cannot be read."""
        if chain is None:
            logger.warning("No chain client for userNonce lookup, using 0")
            return 0
        try:
            data = encode_call("userNonce", ["address"], [user])
            return decode_uint256(chain.call(forwarder, data))
        except Exception as e:
            logger.warning(f"Failed to get userNonce from {forwarder}, using 0. Error: {e}")
            return 0


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or resp.text
    return resp.text
