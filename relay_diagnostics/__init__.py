"""
Relay Diagnostics

Probes for contract deployments and Gelato relay support on an EVM test network.
"""

from .chain import ChainClient
from .config import Credentials, NetworkConfig, THRIVE_TESTNET, load_config, load_credentials
from .errors import ChainCallError, ConfigurationError, DiagnosticsError, ErrorCategory, RelayError, classify_error, matches_category
from .gelato_relay import GelatoRelayClient
from .models import ProbeResult, ProbeStatus, RelayRequest, RelayTaskHandle, TargetAddress, TaskStatus
from .probes import check_contract, check_contracts, try_function_call
from .relay_trials import (
    run_call_with_sync_fee,
    run_sponsored_call,
    run_sponsored_call_erc2771,
    run_task_status,
)

__version__ = "0.1.0"
