"""
Shared fakes for the relay diagnostics tests. Nothing here touches the network.
"""

import sys
import os

import pytest
from eth_account import Account

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from relay_diagnostics.config import Credentials, THRIVE_TESTNET
from relay_diagnostics.errors import ChainCallError
from relay_diagnostics.models import RelayTaskHandle, TaskStatus

# Hardhat's first dev account, never funded anywhere real
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeChain:
    """Stands in for ChainClient. `codes` maps address -> bytecode, `call_results` address -> bytes or exception."""

    def __init__(self, codes=None, call_results=None, balance=0, code_errors=None):
        self.codes = {k.lower(): v for k, v in (codes or {}).items()}
        self.call_results = {k.lower(): v for k, v in (call_results or {}).items()}
        self.code_errors = {k.lower(): v for k, v in (code_errors or {}).items()}
        self.balance = balance
        self.calls = []
        self.code_requests = []

    def get_code(self, address):
        self.code_requests.append(address)
        if address.lower() in self.code_errors:
            raise self.code_errors[address.lower()]
        return self.codes.get(address.lower(), b"")

    def call(self, address, data):
        self.calls.append((address, data))
        result = self.call_results.get(address.lower(), ChainCallError("execution reverted"))
        if isinstance(result, Exception):
            raise result
        return result

    def get_balance(self, address):
        return self.balance

    def chain_id(self):
        return THRIVE_TESTNET.chain_id


class FakeRelay:
    """
    Scripted relay client. Each entry in `outcomes` is either a task id (success)
    or an exception to raise, consumed in call order.
    """

    def __init__(self, *outcomes, base_url="https://relay.test"):
        self.outcomes = list(outcomes)
        self.base_url = base_url
        self.calls = []

    def _next(self, method, request, **kwargs):
        self.calls.append((method, request, kwargs))
        if not self.outcomes:
            raise AssertionError(f"unexpected extra relay call: {method}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return RelayTaskHandle(task_id=outcome, tracking_url=f"{self.base_url}/tasks/status/{outcome}")

    async def sponsored_call(self, request, api_key):
        return self._next("sponsored_call", request, api_key=api_key)

    async def sponsored_call_erc2771(self, request, signer, api_key, forwarder, chain=None):
        return self._next("sponsored_call_erc2771", request, api_key=api_key, forwarder=forwarder, signer=signer)

    async def call_with_sync_fee(self, request, gas_limit=None):
        return self._next("call_with_sync_fee", request, gas_limit=gas_limit)

    async def get_task_status(self, task_id):
        self.calls.append(("get_task_status", task_id, {}))
        return TaskStatus(task_id=task_id, state="ExecSuccess", tx_hash="0xabc")


class FakeResponse:
    def __init__(self, status_code=200, json_body=None, text=None):
        self.status_code = status_code
        self._json = json_body
        self.text = text if text is not None else ("" if json_body is None else str(json_body))

    def json(self):
        if self._json is None:
            raise ValueError("no json")
        return self._json


class FakeSession:
    """Minimal requests.Session double that records what was sent."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.posts = []
        self.gets = []

    def _next(self):
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json))
        return self._next()

    def get(self, url, timeout=None):
        self.gets.append(url)
        return self._next()


@pytest.fixture
def config():
    return THRIVE_TESTNET


@pytest.fixture
def credentials():
    return Credentials(private_key=TEST_PRIVATE_KEY, api_key="test-api-key")


@pytest.fixture
def signer():
    return Account.from_key(TEST_PRIVATE_KEY)
