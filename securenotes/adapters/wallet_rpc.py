"""EIP-1193 style wallet provider reached over local JSON-RPC/HTTP.

Desktop wallets that expose a provider endpoint (for example on
``http://127.0.0.1:1248``) accept the same request methods a browser
extension does. This adapter speaks that protocol and implements
``WalletPort``.

HTTP has no push channel, so "accounts changed" notifications are produced by
``poll_account_changes``; ``securenotes.app.account_watcher.AccountWatcher``
calls it on a timer.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Mapping, Optional

from eth_utils import to_hex

from securenotes.domain.ports import AccountsListener, WalletPort

from .http_client import HttpConfig, RetryingSession
from .rpc_errors import (
    RpcError,
    RpcHttpError,
    RpcTimeoutError,
    error_from_rpc,
    first_string,
    parse_error_payload,
)


class WalletRpcAdapter(WalletPort):
    """JSON-RPC implementation of the wallet capability provider."""

    def __init__(
        self,
        provider_url: str,
        *,
        request_timeout_s: int = 10,
        retries: int = 2,
    ) -> None:
        if not provider_url:
            raise ValueError("WalletRpcAdapter requires a provider URL")
        self._log = logging.getLogger(__name__)
        self.provider_url = provider_url
        self.session = RetryingSession(
            HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        )
        self._ids = itertools.count(1)
        self._listeners: List[AccountsListener] = []
        self._last_accounts: Optional[List[str]] = None

    # ---------- WalletPort ----------

    def is_available(self) -> bool:
        try:
            self._request("eth_chainId", [])
        except (RpcTimeoutError, RpcHttpError) as exc:
            self._log.info("Wallet provider not reachable at %s: %s", self.provider_url, exc)
            return False
        except RpcError:
            # A JSON-RPC error still proves something is answering.
            return True
        return True

    def accounts(self) -> List[str]:
        return self._as_accounts(self._request("eth_accounts", []))

    def request_accounts(self) -> List[str]:
        accounts = self._as_accounts(
            self._request("eth_requestAccounts", [], interactive=True)
        )
        self._last_accounts = list(accounts)
        return accounts

    def sign_message(self, account: str, message: str) -> str:
        result = self._request(
            "personal_sign", [to_hex(text=message), account], interactive=True
        )
        return str(result)

    def switch_network(self, chain_id: int) -> None:
        self._request(
            "wallet_switchEthereumChain",
            [{"chainId": hex(chain_id)}],
            interactive=True,
        )

    def add_network(self, params: Mapping[str, Any]) -> None:
        self._request("wallet_addEthereumChain", [dict(params)], interactive=True)

    def call(self, tx: Mapping[str, Any]) -> str:
        return str(self._request("eth_call", [dict(tx), "latest"]))

    def send_transaction(self, tx: Mapping[str, Any]) -> str:
        return str(self._request("eth_sendTransaction", [dict(tx)], interactive=True))

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        result = self._request("eth_getTransactionReceipt", [tx_hash])
        return result if isinstance(result, dict) else None

    def subscribe_accounts_changed(self, listener: AccountsListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe_accounts_changed(self, listener: AccountsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def poll_account_changes(self) -> None:
        """Compare ``eth_accounts`` with the last seen list and notify on change.

        The first successful poll only primes the cache.
        """
        current = self.accounts()
        previous = self._last_accounts
        self._last_accounts = list(current)
        if previous is None:
            return
        if [a.lower() for a in previous] == [a.lower() for a in current]:
            return
        self._log.info("Wallet accounts changed: %s", current)
        for listener in list(self._listeners):
            listener(list(current))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _request(self, method: str, params: List[Any], *, interactive: bool = False) -> Any:
        context = f"{method} @ {self.provider_url}"
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        self._log.debug("RPC -> %s", method)
        resp = self.session.post(self.provider_url, json_body=body, interactive=interactive)
        payload = parse_error_payload(resp)
        if resp.status_code >= 400:
            detail = first_string(payload) or f"HTTP {resp.status_code}"
            raise RpcHttpError(
                f"{method}: {detail}", status=resp.status_code, data=payload, context=context
            )
        if not isinstance(payload, dict):
            raise RpcError(f"{method}: malformed JSON-RPC response", data=payload, context=context)
        if payload.get("error") is not None:
            raise error_from_rpc(payload["error"], context=context)
        return payload.get("result")

    @staticmethod
    def _as_accounts(result: Any) -> List[str]:
        if not isinstance(result, list):
            return []
        return [str(item) for item in result if isinstance(item, str) and item.strip()]


__all__ = ["WalletRpcAdapter"]
