from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from .entities import Record, RecordSummary, TxReceipt

Address = str
TxHash = str
AccountsListener = Callable[[List[Address]], None]


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str, *, meta: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.meta = dict(meta or {})


# ---- Ports (Hexagonal boundaries) ----
class WalletPort(Protocol):
    """Capability provider: accounts, signing, network switching and dispatch.

    Interactive methods (``request_accounts``, ``sign_message``,
    ``switch_network``, ``add_network``, ``send_transaction``) may wait on the
    user for an unbounded time and raise ``RpcError`` with code 4001 when the
    user declines.
    """

    def is_available(self) -> bool: ...
    def accounts(self) -> List[Address]: ...
    def request_accounts(self) -> List[Address]: ...
    def sign_message(self, account: Address, message: str) -> str: ...  # hex signature
    def switch_network(self, chain_id: int) -> None: ...  # RpcError 4902 when unknown
    def add_network(self, params: Mapping[str, Any]) -> None: ...
    def call(self, tx: Mapping[str, Any]) -> str: ...  # hex return data
    def send_transaction(self, tx: Mapping[str, Any]) -> TxHash: ...
    def get_transaction_receipt(self, tx_hash: TxHash) -> Optional[Dict[str, Any]]: ...
    def subscribe_accounts_changed(self, listener: AccountsListener) -> None: ...
    def unsubscribe_accounts_changed(self, listener: AccountsListener) -> None: ...
    def poll_account_changes(self) -> None: ...  # no-op for push-capable providers


class NotesContractPort(Protocol):
    """Typed facade over the notes contract. ``sender`` pins the caller identity."""

    @property
    def address(self) -> Address: ...

    def create_note(self, sender: Address, title: str, content: str, *, gas: int) -> TxHash: ...
    def update_note(
        self, sender: Address, note_id: int, title: str, content: str, *, gas: int
    ) -> TxHash: ...
    def delete_note(self, sender: Address, note_id: int, *, gas: int) -> TxHash: ...
    def get_note(self, sender: Address, note_id: int) -> Record: ...
    def get_notes_list(self, sender: Address) -> Sequence[RecordSummary]: ...
    def get_note_count(self, sender: Address) -> int: ...
    def encrypt_note(self, sender: Address, content: str) -> bytes: ...
    def get_encryption_contract_address(self, sender: Address) -> Address: ...
    def get_receipt(self, tx_hash: TxHash) -> Optional[TxReceipt]: ...
    def created_note_id(self, receipt: TxReceipt) -> Optional[int]: ...


class StoragePort(Protocol):
    """Persistence for user preferences."""

    def save_user_prefs(self, prefs: Dict) -> None: ...
    def load_user_prefs(self) -> Dict: ...
