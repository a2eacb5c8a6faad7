"""
Contract probes

Best-effort sweeps: a failure on one address is reported and the sweep moves on.
"""

import logging
from typing import Iterable, List

from .abi import encode_call
from .errors import ErrorCategory, matches_category
from .models import ProbeResult, ProbeStatus, TargetAddress

logger = logging.getLogger(__name__)


def check_contracts(chain, targets: Iterable[TargetAddress], probe_functions: bool = True) -> List[ProbeResult]:
    """Check every target for deployed code. Counter-like contracts also get an increment() trial."""
    results = []
    for target in targets:
        result = check_contract(chain, target)
        results.append(result)
        if probe_functions and result.status is ProbeStatus.CONTRACT_FOUND and target.looks_like_counter:
            results.append(try_function_call(chain, target))
        print("")
    return results


def check_contract(chain, target: TargetAddress) -> ProbeResult:
    try:
        code = chain.get_code(target.address)
    except Exception as e:
        logger.debug(f"get_code failed for {target.label}", exc_info=True)
        print(f"❌ {target.label}: {target.address}")
        print(f"   └── Error: {e}")
        return ProbeResult.call_failed(target, str(e))

    if not code:
        print(f"❌ {target.label}: {target.address}")
        print("   └── No contract code found (EOA or non-existent)")
        return ProbeResult.no_contract(target)

    print(f"✅ {target.label}: {target.address}")
    print(f"   └── Contract exists ({len(code)} bytes)")
    return ProbeResult.contract_found(target, len(code))


def try_function_call(chain, target: TargetAddress, function_name: str = "increment") -> ProbeResult:
    """
    Call a zero-argument function as if it were a view.

    A revert is read as "the function exists but mutates state". Reverts happen for
    plenty of other reasons too, so treat the answer as a hint.
    """
    signature = f"{function_name}()"
    try:
        return_data = chain.call(target.address, encode_call(function_name))
    except Exception as e:
        if matches_category(e, ErrorCategory.REVERT):
            print(f"   └── {signature} exists but reverted (normal for non-view function)")
            return ProbeResult.call_reverted(target, str(e))
        print(f"   └── {signature} function not found or incompatible")
        return ProbeResult.call_failed(target, str(e))

    print(f"   └── {signature} function exists")
    return ProbeResult.call_succeeded(target, return_data)
