"""
Relay Diagnostics - Network Config

Network endpoints, the address table and credentials. Everything here is passed
explicitly into the probes and trials; nothing reads these constants behind their back.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional

from .errors import ConfigurationError
from .models import TargetAddress, to_checksum

# Env var names
ENV_PRIVATE_KEY = "PRIVATE_KEY"
ENV_API_KEY = "GELATO_API_KEY"
ENV_RPC_URL = "THRIVE_RPC_URL"
ENV_CHAIN_ID = "THRIVE_CHAIN_ID"
ENV_RELAY_URL = "GELATO_RELAY_URL"
ENV_RPC_TIMEOUT = "RPC_TIMEOUT"

GELATO_RELAY_URL = "https://relay.gelato.digital"
NATIVE_TOKEN = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Thrive testnet deployments
THRIVE_ADDRESSES = {
    "feeToken": NATIVE_TOKEN,
    "simpleCounter": "0xE27C1359cf02B49acC6474311Bd79d1f10b1f8De",
    "counterERC2771": "0xF9B1b52f94dfB39B2E2Efac268474855E05A5f9d",
    "gelatoRelayERC2771": "0x8aCE64CEA52b409F930f60B516F65197faD4B056",
    "counterRelayContext": "0x317c56D44be1444302983c640532B20FBC0A3996",
    "counterRelayContextERC2771": "0x9A51492cd20802c11F27816E47935C7643f66805",
    "gelatoRelay1BalanceERC2771": "0x61F2976610970AFeDc1d83229e1E21bdc3D5cbE4",
    "gelatoRelayConcurrentERC2771": "0xc7739c195618D314C08E8626C98f8573E4E43634",
    "gelatoRelay1BalanceConcurrentERC2771": "0x2e8235caa6a16E64D7F73b8DBC257369FBF2972D",
}

# Trusted forwarders, keyed the way the Gelato relay SDK names its contract config
THRIVE_FORWARDERS = {
    "relay1BalanceERC2771": THRIVE_ADDRESSES["gelatoRelay1BalanceERC2771"],
    "relay1BalanceConcurrentERC2771": THRIVE_ADDRESSES["gelatoRelay1BalanceConcurrentERC2771"],
}


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    rpc_url: str
    chain_id: int
    relay_url: str = GELATO_RELAY_URL
    addresses: Dict[str, str] = field(default_factory=dict)
    forwarders: Dict[str, str] = field(default_factory=dict)
    fee_token: str = NATIVE_TOKEN
    rpc_timeout: float = 30.0
    # Probe targets for the sponsored and ERC-2771 trials
    sponsored_target: str = "simpleCounter"
    erc2771_target: str = "counterERC2771"
    sync_fee_target: str = "counterRelayContext"

    def targets(self) -> List[TargetAddress]:
        return [TargetAddress(label, address) for label, address in self.addresses.items()]

    def target(self, label: str) -> TargetAddress:
        try:
            return TargetAddress(label, self.addresses[label])
        except KeyError:
            raise ConfigurationError(f"No address configured for {label!r} on {self.name}") from None

    def forwarder(self, key: str) -> str:
        try:
            return to_checksum(self.forwarders[key])
        except KeyError:
            raise ConfigurationError(f"No {key} forwarder configured on {self.name}") from None

    def tracking_url(self, task_id: str) -> str:
        return f"{self.relay_url.rstrip('/')}/tasks/status/{task_id}"


THRIVE_TESTNET = NetworkConfig(
    name="thrive-testnet",
    rpc_url="https://rpc.thrive-testnet.t.raas.gelato.cloud",
    chain_id=1991,
    addresses=dict(THRIVE_ADDRESSES),
    forwarders=dict(THRIVE_FORWARDERS),
)


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    base: NetworkConfig = THRIVE_TESTNET,
) -> NetworkConfig:
    """Apply environment overrides on top of the built-in network config."""
    env = os.environ if environ is None else environ
    overrides = {}

    if env.get(ENV_RPC_URL):
        overrides["rpc_url"] = env[ENV_RPC_URL]
    if env.get(ENV_RELAY_URL):
        overrides["relay_url"] = env[ENV_RELAY_URL]
    if env.get(ENV_CHAIN_ID):
        try:
            overrides["chain_id"] = int(env[ENV_CHAIN_ID])
        except ValueError:
            raise ConfigurationError(f"{ENV_CHAIN_ID} must be an integer, got {env[ENV_CHAIN_ID]!r}") from None
    if env.get(ENV_RPC_TIMEOUT):
        try:
            overrides["rpc_timeout"] = float(env[ENV_RPC_TIMEOUT])
        except ValueError:
            raise ConfigurationError(f"{ENV_RPC_TIMEOUT} must be a number, got {env[ENV_RPC_TIMEOUT]!r}") from None

    return replace(base, **overrides) if overrides else base


@dataclass(frozen=True)
class Credentials:
    private_key: str
    api_key: Optional[str] = None

    def __repr__(self) -> str:
        # Keep secrets out of tracebacks and logs
        api = f"{self.api_key[:6]}..." if self.api_key else None
        return f"Credentials(private_key=<hidden>, api_key={api!r})"


def load_credentials(
    environ: Optional[Mapping[str, str]] = None,
    require_api_key: bool = True,
) -> Credentials:
    """
    Read the signing key and relay API key.

    Raises ConfigurationError naming the first missing variable. The API key is
    checked first.
    """
    env = os.environ if environ is None else environ
    api_key = env.get(ENV_API_KEY) or None
    private_key = env.get(ENV_PRIVATE_KEY) or None

    if require_api_key and not api_key:
        raise ConfigurationError(f"{ENV_API_KEY} not found in environment or .env file")
    if not private_key:
        raise ConfigurationError(f"{ENV_PRIVATE_KEY} not found in environment or .env file")

    return Credentials(private_key=private_key, api_key=api_key)
