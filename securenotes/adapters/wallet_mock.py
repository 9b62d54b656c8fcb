from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct
from eth_utils import keccak, to_hex

from securenotes.domain.ports import AccountsListener, WalletPort

from .rpc_errors import RpcError, UNRECOGNIZED_CHAIN, USER_REJECTED

# Well-known development keys; never hold value.
DEV_KEYS = (
    "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318",
    "0x8da4ef21b864d2cc526dbdb2a120bd2874c36c9d0a1fb7f8c63d7f7a8b41de8f",
    "0x2f7e4f4d3d5a7e0a6f5cbb5c1d0b8a4b5e9d0f1c2b3a4958677a8b9cadbecf01",
)


class WalletMock(WalletPort):
    """Offline wallet with real local keys and scriptable user decisions.

    Signatures are genuine EIP-191 signatures, so recovery on the client side
    behaves exactly as with a real wallet. Flags simulate the user declining
    each prompt.
    """

    def __init__(
        self,
        keys: Sequence[str] = DEV_KEYS[:2],
        *,
        known_chains: Optional[Set[int]] = None,
        available: bool = True,
    ) -> None:
        self._accounts = [EthAccount.from_key(key) for key in keys]
        self._active = 0
        self.available = available
        self.known_chains: Set[int] = set(known_chains or ())
        self.current_chain: Optional[int] = None
        self.reject_accounts = False
        self.reject_sign = False
        self.reject_switch = False
        self.reject_add = False
        self.reject_send = False
        self.substitute_signer: Optional[int] = None
        self.sign_requests: List[str] = []
        self.sent: List[Dict[str, Any]] = []
        self._receipts: Dict[str, Dict[str, Any]] = {}
        self._listeners: List[AccountsListener] = []
        self.on_sign = None

    @property
    def addresses(self) -> List[str]:
        return [acct.address for acct in self._accounts]

    @property
    def active_address(self) -> str:
        return self._accounts[self._active].address

    # ---------- WalletPort ----------

    def is_available(self) -> bool:
        return self.available

    def accounts(self) -> List[str]:
        return [self.active_address]

    def request_accounts(self) -> List[str]:
        if self.reject_accounts:
            raise RpcError("User rejected the request.", code=USER_REJECTED)
        return self.accounts()

    def sign_message(self, account: str, message: str) -> str:
        self.sign_requests.append(message)
        if self.on_sign is not None:
            self.on_sign(account, message)
        if self.reject_sign:
            raise RpcError("User denied message signature.", code=USER_REJECTED)
        idx = self.substitute_signer if self.substitute_signer is not None else self._active
        signed = EthAccount.sign_message(
            encode_defunct(text=message), private_key=self._accounts[idx].key
        )
        return to_hex(signed.signature)

    def switch_network(self, chain_id: int) -> None:
        if self.reject_switch:
            raise RpcError("User rejected the request.", code=USER_REJECTED)
        if chain_id not in self.known_chains:
            raise RpcError(f"Unrecognized chain ID {hex(chain_id)}.", code=UNRECOGNIZED_CHAIN)
        self.current_chain = chain_id

    def add_network(self, params: Mapping[str, Any]) -> None:
        if self.reject_add:
            raise RpcError("User rejected the request.", code=USER_REJECTED)
        chain_id = int(str(params["chainId"]), 16)
        self.known_chains.add(chain_id)
        self.current_chain = chain_id

    def call(self, tx: Mapping[str, Any]) -> str:
        raise RpcError("eth_call is not scripted on WalletMock", code=-32601)

    def send_transaction(self, tx: Mapping[str, Any]) -> str:
        if self.reject_send:
            raise RpcError("User denied transaction signature.", code=USER_REJECTED)
        self.sent.append(dict(tx))
        tx_hash = to_hex(keccak(text=f"{len(self.sent)}:{tx.get('data')}"))
        self._receipts[tx_hash] = {"transactionHash": tx_hash, "status": "0x1", "logs": []}
        return tx_hash

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self._receipts.get(tx_hash)

    def subscribe_accounts_changed(self, listener: AccountsListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe_accounts_changed(self, listener: AccountsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def poll_account_changes(self) -> None:
        return None

    # ---------- scripting ----------

    def switch_account(self, index: int) -> None:
        """Simulate the user picking another account inside the wallet."""
        self._active = index
        self.emit_accounts_changed([self.active_address])

    def emit_accounts_changed(self, accounts: Sequence[str]) -> None:
        for listener in list(self._listeners):
            listener(list(accounts))


__all__ = ["DEV_KEYS", "WalletMock"]
