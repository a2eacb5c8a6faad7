"""
Data types passed between probes, relay trials and the CLI
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from web3 import Web3

from .errors import ConfigurationError


def to_checksum(address: str) -> str:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid address {address!r}: {e}") from e


@dataclass(frozen=True)
class TargetAddress:
    """A labelled chain address from the address table"""
    label: str
    address: str

    def __post_init__(self):
        object.__setattr__(self, "address", to_checksum(self.address))

    @property
    def looks_like_counter(self) -> bool:
        return "counter" in self.label.lower()


class ProbeStatus(Enum):
    CONTRACT_FOUND = "contract_found"
    NO_CONTRACT = "no_contract"
    CALL_SUCCEEDED = "call_succeeded"
    CALL_REVERTED = "call_reverted"
    CALL_FAILED = "call_failed"


@dataclass(frozen=True)
class ProbeResult:
    target: TargetAddress
    status: ProbeStatus
    byte_length: Optional[int] = None
    return_data: Optional[bytes] = None
    detail: Optional[str] = None

    @classmethod
    def contract_found(cls, target: TargetAddress, byte_length: int) -> "ProbeResult":
        return cls(target, ProbeStatus.CONTRACT_FOUND, byte_length=byte_length)

    @classmethod
    def no_contract(cls, target: TargetAddress) -> "ProbeResult":
        return cls(target, ProbeStatus.NO_CONTRACT)

    @classmethod
    def call_succeeded(cls, target: TargetAddress, return_data: bytes) -> "ProbeResult":
        return cls(target, ProbeStatus.CALL_SUCCEEDED, return_data=return_data)

    @classmethod
    def call_reverted(cls, target: TargetAddress, reason: str) -> "ProbeResult":
        return cls(target, ProbeStatus.CALL_REVERTED, detail=reason)

    @classmethod
    def call_failed(cls, target: TargetAddress, message: str) -> "ProbeResult":
        return cls(target, ProbeStatus.CALL_FAILED, detail=message)


@dataclass(frozen=True)
class RelayRequest:
    """
    One relay submission. Built fresh per attempt.

    chain_id has to match the network the RPC client points at. The relay service
    rejects a mismatch; nothing checks it locally.
    """
    chain_id: int
    target: str
    data: str
    fee_token: Optional[str] = None
    user: Optional[str] = None
    is_concurrent: bool = False
    is_relay_context: bool = False

    def to_payload(self) -> dict:
        payload = {
            "chainId": self.chain_id,
            "target": self.target,
            "data": self.data,
        }
        if self.fee_token is not None:
            payload["feeToken"] = self.fee_token
        if self.user is not None:
            payload["user"] = self.user
        if self.is_concurrent:
            payload["isConcurrent"] = True
        if self.is_relay_context:
            payload["isRelayContext"] = True
        return payload


@dataclass(frozen=True)
class RelayTaskHandle:
    task_id: str
    tracking_url: str


@dataclass(frozen=True)
class TaskStatus:
    task_id: str
    state: str
    tx_hash: Optional[str] = None
