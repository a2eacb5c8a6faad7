"""
Relay trials

Each trial submits real relay requests against the configured network and prints a
transcript. sponsoredCall and sponsoredCallERC2771 are fail-fast; the callWithSyncFee
sweep keeps going past individual failures.
"""

import logging
from typing import Dict, Iterable, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .abi import encode_call
from .config import Credentials, NetworkConfig
from .errors import ConfigurationError, ErrorCategory, RelayError, classify_error, matches_category
from .models import RelayRequest, RelayTaskHandle, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_SYNC_FEE_FUNCTIONS = (
    "increment",
    "incrementCounter",
    "incrementContext",
    "incrementWithRelay",
    "execute",
)

SYNC_FEE_GAS_LIMIT = 500_000


def load_signer(credentials: Credentials) -> LocalAccount:
    try:
        return Account.from_key(credentials.private_key)
    except Exception as e:
        raise ConfigurationError(f"PRIVATE_KEY is not a valid private key: {type(e).__name__}") from None


def _require_api_key(credentials: Credentials) -> str:
    if not credentials.api_key:
        raise ConfigurationError("GELATO_API_KEY not found in environment or .env file")
    return credentials.api_key


def _category(error: Exception) -> ErrorCategory:
    if isinstance(error, RelayError):
        return error.category
    return classify_error(str(error))


def _print_success(handle: RelayTaskHandle, banner: str = "✅ SUCCESS!"):
    print(banner)
    print(f"Task ID: {handle.task_id}")
    print(f"Track status: {handle.tracking_url}")
    print("")


async def run_sponsored_call(
    relay,
    config: NetworkConfig,
    credentials: Credentials,
    function_name: str = "increment",
) -> RelayTaskHandle:
    """sponsoredCall: the relay pays gas from the API key's balance, no sender attached."""
    api_key = _require_api_key(credentials)
    target = config.target(config.sponsored_target)

    print(f"Target Contract: {target.address}")
    print(f"Chain ID: {config.chain_id}")
    print("")
    print("1️⃣  Testing sponsoredCall")
    print("-" * 24)

    request = RelayRequest(
        chain_id=config.chain_id,
        target=target.address,
        data=encode_call(function_name),
    )

    try:
        print("Sending sponsoredCall request...")
        handle = await relay.sponsored_call(request, api_key)
    except Exception as e:
        print("❌ FAILED!")
        print(f"Error: {e}")
        print("")
        raise

    _print_success(handle)
    return handle


async def run_sponsored_call_erc2771(
    relay,
    config: NetworkConfig,
    credentials: Credentials,
    chain=None,
    signer: Optional[LocalAccount] = None,
    function_name: str = "increment",
) -> RelayTaskHandle:
    """
    sponsoredCallERC2771 through the 1Balance forwarder.

    A nonce failure gets exactly one retry in concurrent mode through the concurrent
    forwarder. Any other failure means missing infrastructure and is not retried.
    """
    api_key = _require_api_key(credentials)
    signer = signer or load_signer(credentials)
    target = config.target(config.erc2771_target)
    forwarder = config.forwarder("relay1BalanceERC2771")

    print(f"ERC2771 Counter Contract: {target.address}")
    print(f"Trusted Forwarder: {forwarder}")
    print(f"Chain ID: {config.chain_id}")
    print("")
    print("2️⃣  Testing sponsoredCallERC2771")
    print("-" * 31)
    print(f"Signer address: {signer.address}")

    request = RelayRequest(
        chain_id=config.chain_id,
        target=target.address,
        data=encode_call(function_name),
        user=signer.address,
    )

    try:
        print("Sending sponsoredCallERC2771 request...")
        handle = await relay.sponsored_call_erc2771(request, signer, api_key, forwarder, chain=chain)
    except Exception as e:
        print("❌ FAILED!")
        print(f"Error: {e}")
        print("")
        if _category(e) is not ErrorCategory.NONCE:
            print(f"💡 ERC2771 forwarder contracts may be missing on {config.name}")
            raise
        print("💡 Nonce conflict, trying concurrent mode...")
        return await _run_concurrent_erc2771(relay, config, request, signer, api_key, chain)

    _print_success(handle)
    return handle


async def _run_concurrent_erc2771(
    relay,
    config: NetworkConfig,
    request: RelayRequest,
    signer: LocalAccount,
    api_key: str,
    chain,
) -> RelayTaskHandle:
    print("\n🔄 Trying concurrent mode...")
    forwarder = config.forwarder("relay1BalanceConcurrentERC2771")
    concurrent = RelayRequest(
        chain_id=request.chain_id,
        target=request.target,
        data=request.data,
        user=request.user,
        is_concurrent=True,
    )

    try:
        handle = await relay.sponsored_call_erc2771(concurrent, signer, api_key, forwarder, chain=chain)
    except Exception as e:
        print("❌ Concurrent mode also failed")
        print(f"Error: {e}")
        print(f"This confirms: ERC2771 forwarders are not deployed on {config.name}")
        raise

    _print_success(handle, banner="✅ CONCURRENT MODE SUCCESS!")
    return handle


async def run_call_with_sync_fee(
    relay,
    chain,
    config: NetworkConfig,
    credentials: Credentials,
    function_names: Iterable[str] = DEFAULT_SYNC_FEE_FUNCTIONS,
    gas_limit: int = SYNC_FEE_GAS_LIMIT,
    signer: Optional[LocalAccount] = None,
) -> Dict[str, Optional[RelayTaskHandle]]:
    """
    Try callWithSyncFee against the relay-context counter with each candidate function.

    Returns function name -> task handle, None where the attempt failed.
    """
    signer = signer or load_signer(credentials)
    target = config.target(config.sync_fee_target)

    print(f"Counter Relay Context: {target.address}")
    print(f"Fee Token: {config.fee_token}")
    print(f"Chain ID: {config.chain_id}")
    print("")

    print(f"Wallet: {signer.address}")
    try:
        balance = chain.get_balance(signer.address)
        print(f"Balance: {Web3.from_wei(balance, 'ether')} ETH")
    except Exception as e:
        logger.warning(f"Balance lookup for {signer.address} failed: {e}")
        print(f"Balance: unavailable ({e})")
    print("")

    results = {}
    for name in function_names:
        print(f"3️⃣  Testing callWithSyncFee with {name}()")
        print("─" * 50)

        request = RelayRequest(
            chain_id=config.chain_id,
            target=target.address,
            data=encode_call(name),
            fee_token=config.fee_token,
            is_relay_context=True,
        )
        try:
            print(f"Sending callWithSyncFee with {name}()...")
            handle = await relay.call_with_sync_fee(request, gas_limit=gas_limit)
        except Exception as e:
            logger.debug(f"callWithSyncFee {name}() failed", exc_info=True)
            print("❌ FAILED!")
            if matches_category(e, ErrorCategory.FUNCTION_MISMATCH):
                print(f"   └── Function {name}() doesn't exist or wrong signature")
            else:
                print(f"   └── Error: {str(e)[:100]}...")
            print("")
            results[name] = None
            continue

        _print_success(handle)
        results[name] = handle

    return results


async def run_task_status(relay, task_id: str) -> TaskStatus:
    status = await relay.get_task_status(task_id)
    print(f"📊 Task {status.task_id}")
    print(f"   Status: {status.state}")
    print(f"   TX Hash: {status.tx_hash or 'pending'}")
    return status
