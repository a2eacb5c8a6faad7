"""
CLI exit codes and the no-network-before-credentials rule
"""

import pytest

from conftest import FakeChain, FakeRelay, TEST_PRIVATE_KEY
from relay_diagnostics import cli
from relay_diagnostics.errors import RelayError


class ExplodingClient:
    def __init__(self, *args, **kwargs):
        raise AssertionError("client must not be constructed")


@pytest.fixture
def no_network(monkeypatch):
    monkeypatch.setattr(cli, "ChainClient", ExplodingClient)
    monkeypatch.setattr(cli, "GelatoRelayClient", ExplodingClient)


@pytest.mark.parametrize("command", ["sponsored", "erc2771", "sync-fee"])
def test_missing_private_key_exits_1_before_any_network_call(no_network, command, capsys):
    code = cli.main([command], environ={"GELATO_API_KEY": "k"})
    assert code == 1
    assert "PRIVATE_KEY not found" in capsys.readouterr().err


def test_missing_api_key_exits_1(no_network, capsys):
    code = cli.main(["sponsored"], environ={"PRIVATE_KEY": TEST_PRIVATE_KEY})
    assert code == 1
    assert "GELATO_API_KEY not found" in capsys.readouterr().err


def test_contracts_sweep_exits_0(monkeypatch, capsys):
    chain = FakeChain(codes={"0xE27C1359cf02B49acC6474311Bd79d1f10b1f8De": b"\x60\x80"})
    monkeypatch.setattr(cli, "ChainClient", lambda *args, **kwargs: chain)

    code = cli.main(["contracts"], environ={})

    assert code == 0
    out = capsys.readouterr().out
    assert "✅ simpleCounter" in out
    assert "❌ feeToken" in out
    assert "Contract debugging completed" in out


def test_sponsored_success_exits_0(monkeypatch):
    relay = FakeRelay("0xtask")
    monkeypatch.setattr(cli, "GelatoRelayClient", lambda *args, **kwargs: relay)

    code = cli.main(["sponsored"], environ={"PRIVATE_KEY": TEST_PRIVATE_KEY, "GELATO_API_KEY": "k"})

    assert code == 0
    assert relay.calls[0][0] == "sponsored_call"


def test_erc2771_double_failure_exits_1(monkeypatch, capsys):
    relay = FakeRelay(RelayError("nonce expired"), RelayError("forwarder missing"))
    monkeypatch.setattr(cli, "GelatoRelayClient", lambda *args, **kwargs: relay)
    monkeypatch.setattr(cli, "ChainClient", lambda *args, **kwargs: FakeChain())

    code = cli.main(["erc2771"], environ={"PRIVATE_KEY": TEST_PRIVATE_KEY, "GELATO_API_KEY": "k"})

    assert code == 1
    assert len(relay.calls) == 2
    assert "erc2771 failed" in capsys.readouterr().err


def test_relay_url_flag_is_passed_to_client(monkeypatch):
    seen = {}

    def factory(base_url, *args, **kwargs):
        seen["base_url"] = base_url
        return FakeRelay()

    monkeypatch.setattr(cli, "GelatoRelayClient", factory)
    code = cli.main(["--relay-url", "https://relay.local", "status", "0xtask"], environ={})

    assert code == 0
    assert seen["base_url"] == "https://relay.local"
