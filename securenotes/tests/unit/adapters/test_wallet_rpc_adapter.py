from __future__ import annotations

import json

import pytest
import requests
from eth_utils import to_hex

from securenotes.adapters.rpc_errors import RpcError, RpcHttpError, RpcTimeoutError
from securenotes.adapters.wallet_rpc import WalletRpcAdapter

URL = "http://127.0.0.1:1248"
ACCOUNT_A = "0x52908400098527886E0F7030069857D2E4169EE7"
ACCOUNT_B = "0x8617E340B3D01FA5F11F306F4090FD50E238070D"


class _ResponseStub:
    def __init__(self, payload, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


class _FakeSession:
    """Replays queued JSON-RPC results and records every POST."""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = []

    def post(self, url, *, data=None, headers=None, timeout=None):
        body = json.loads(data)
        self.calls.append({"url": url, "body": body, "timeout": timeout})
        item = self.results.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, _ResponseStub):
            return item
        return _ResponseStub({"jsonrpc": "2.0", "id": body["id"], **item})


def _adapter(*results) -> tuple[WalletRpcAdapter, _FakeSession]:
    adapter = WalletRpcAdapter(URL, request_timeout_s=7, retries=1)
    fake = _FakeSession(*results)
    adapter.session.session = fake
    return adapter, fake


def test_sign_message_is_interactive_and_hex_encodes_text() -> None:
    adapter, fake = _adapter({"result": "0xsig"})

    signature = adapter.sign_message(ACCOUNT_A, "hello")

    assert signature == "0xsig"
    call = fake.calls[0]
    assert call["body"]["method"] == "personal_sign"
    assert call["body"]["params"] == [to_hex(text="hello"), ACCOUNT_A]
    assert call["timeout"] is None


def test_reads_use_configured_timeout_and_latest_block() -> None:
    adapter, fake = _adapter({"result": "0x01"})

    assert adapter.call({"to": ACCOUNT_B, "data": "0x"}) == "0x01"
    assert fake.calls[0]["timeout"] == 7
    assert fake.calls[0]["body"]["params"][1] == "latest"


def test_json_rpc_error_keeps_code_and_revert_reason() -> None:
    adapter, _ = _adapter(
        {"error": {"code": 3, "message": "execution reverted", "data": {"reason": "note does not exist"}}}
    )

    with pytest.raises(RpcError) as excinfo:
        adapter.call({"to": ACCOUNT_B, "data": "0x"})

    assert excinfo.value.code == 3
    assert "note does not exist" in str(excinfo.value)


def test_user_rejection_is_flagged() -> None:
    adapter, _ = _adapter({"error": {"code": 4001, "message": "User rejected the request."}})

    with pytest.raises(RpcError) as excinfo:
        adapter.send_transaction({"from": ACCOUNT_A})

    assert excinfo.value.user_rejected


def test_switch_network_unknown_chain_surfaces_4902() -> None:
    adapter, fake = _adapter({"error": {"code": 4902, "message": "Unrecognized chain ID"}})

    with pytest.raises(RpcError) as excinfo:
        adapter.switch_network(20993)

    assert excinfo.value.code == 4902
    assert fake.calls[0]["body"]["params"] == [{"chainId": "0x5201"}]


def test_http_error_status_raises_http_error() -> None:
    adapter, _ = _adapter(_ResponseStub({"message": "bad gateway"}, status_code=502))

    with pytest.raises(RpcHttpError) as excinfo:
        adapter.accounts()

    assert excinfo.value.status == 502


def test_reads_retry_then_raise_timeout() -> None:
    adapter, fake = _adapter(requests.ConnectionError("down"), requests.Timeout("slow"))

    with pytest.raises(RpcTimeoutError):
        adapter.accounts()
    assert len(fake.calls) == 2


def test_is_available_false_when_unreachable_true_on_rpc_error() -> None:
    down, _ = _adapter(requests.ConnectionError("down"), requests.ConnectionError("down"))
    picky, _ = _adapter({"error": {"code": -32601, "message": "method not found"}})

    assert down.is_available() is False
    assert picky.is_available() is True


def test_poll_account_changes_notifies_only_on_change() -> None:
    adapter, _ = _adapter(
        {"result": [ACCOUNT_A]},
        {"result": [ACCOUNT_A.lower()]},
        {"result": [ACCOUNT_B]},
    )
    seen = []
    adapter.subscribe_accounts_changed(seen.append)

    adapter.poll_account_changes()
    adapter.poll_account_changes()
    adapter.poll_account_changes()

    assert seen == [[ACCOUNT_B]]
