from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from eth_utils import keccak, to_hex

from securenotes.domain.entities import LogEntry, Record, RecordSummary, TxReceipt
from securenotes.domain.network import DEFAULT_CONTRACT_ADDRESS
from securenotes.domain.ports import NotesContractPort

from .notes_contract import NOTE_CREATED_TOPIC, parse_created_note_id
from .rpc_errors import EXECUTION_ERROR, RpcError, USER_REJECTED


@dataclass
class _StoredNote:
    owner: str
    title: str
    content: str
    timestamp: int
    hidden_reads: int = 0


@dataclass
class _QueuedTx:
    sender: str
    action: str
    note_id: Optional[int]
    title: str = ""
    content: str = ""
    polls: int = 0
    receipt: Optional[TxReceipt] = None


@dataclass
class NotesContractMock(NotesContractPort):
    """Offline substitute for ``NotesContractAdapter`` with deterministic state.

    Writes take effect when their receipt is first observed, after
    ``confirm_after_polls`` pending polls. ``list_lag_reads`` keeps freshly
    written notes out of ``get_notes_list`` for that many reads.
    """

    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    confirm_after_polls: int = 0
    list_lag_reads: int = 0
    emit_created_events: bool = True
    start_timestamp: int = 1_700_000_000

    def __post_init__(self) -> None:
        self._notes: Dict[int, _StoredNote] = {}
        self._next_id = 0
        self._clock = self.start_timestamp
        self._txs: Dict[str, _QueuedTx] = {}
        self.dispatch_error: Optional[RpcError] = None
        self.revert_next = False
        self.broken_reads: Set[str] = set()
        self.dispatched: List[Dict[str, object]] = []

    @property
    def address(self) -> str:
        return self.contract_address

    # ---------- writes ----------

    def create_note(self, sender: str, title: str, content: str, *, gas: int) -> str:
        return self._queue(sender, "create", None, gas, title=title, content=content)

    def update_note(self, sender: str, note_id: int, title: str, content: str, *, gas: int) -> str:
        return self._queue(sender, "update", note_id, gas, title=title, content=content)

    def delete_note(self, sender: str, note_id: int, *, gas: int) -> str:
        return self._queue(sender, "delete", note_id, gas)

    # ---------- reads ----------

    def get_note(self, sender: str, note_id: int) -> Record:
        self._check_read("getNote")
        note = self._owned(sender, note_id)
        return Record(id=note_id, title=note.title, body=note.content, timestamp=note.timestamp)

    def get_notes_list(self, sender: str) -> List[RecordSummary]:
        self._check_read("getNotesList")
        out: List[RecordSummary] = []
        for note_id, note in self._notes.items():
            if note.owner.lower() != sender.lower():
                continue
            if note.hidden_reads > 0:
                note.hidden_reads -= 1
                continue
            out.append(RecordSummary(id=note_id, title=note.title, timestamp=note.timestamp))
        return out

    def get_note_count(self, sender: str) -> int:
        self._check_read("getNoteCount")
        return sum(1 for note in self._notes.values() if note.owner.lower() == sender.lower())

    def encrypt_note(self, sender: str, content: str) -> bytes:
        self._check_read("encryptNote")
        return keccak(text=f"{sender.lower()}:{content}")

    def get_encryption_contract_address(self, sender: str) -> str:
        self._check_read("getEncryptionContractAddress")
        return self.contract_address

    # ---------- confirmation ----------

    def get_receipt(self, tx_hash: str) -> Optional[TxReceipt]:
        queued = self._txs.get(tx_hash)
        if queued is None:
            return None
        if queued.receipt is not None:
            return queued.receipt
        if queued.polls < self.confirm_after_polls:
            queued.polls += 1
            return None
        queued.receipt = self._execute(tx_hash, queued)
        return queued.receipt

    def created_note_id(self, receipt: TxReceipt) -> Optional[int]:
        return parse_created_note_id(receipt, self.contract_address)

    # ---------- scripting ----------

    def seed_note(self, owner: str, title: str, content: str, *, timestamp: Optional[int] = None) -> int:
        """Store a note directly, as if confirmed earlier; returns its id."""
        note_id = self._next_id
        self._next_id += 1
        if timestamp is None:
            self._clock += 12
            timestamp = self._clock
        self._notes[note_id] = _StoredNote(owner=owner, title=title, content=content, timestamp=timestamp)
        return note_id

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _queue(self, sender: str, action: str, note_id: Optional[int], gas: int, **fields: str) -> str:
        if self.dispatch_error is not None:
            err, self.dispatch_error = self.dispatch_error, None
            raise err
        self.dispatched.append({"from": sender, "action": action, "note_id": note_id, "gas": gas})
        tx_hash = to_hex(keccak(text=f"{action}:{len(self.dispatched)}:{sender}"))
        self._txs[tx_hash] = _QueuedTx(sender=sender, action=action, note_id=note_id, **fields)
        return tx_hash

    def _execute(self, tx_hash: str, tx: _QueuedTx) -> TxReceipt:
        self._clock += 12
        if self.revert_next:
            self.revert_next = False
            return TxReceipt(tx_hash=tx_hash, status=0)
        logs: tuple = ()
        if tx.action == "create":
            note_id = self._next_id
            self._next_id += 1
            self._notes[note_id] = _StoredNote(
                owner=tx.sender,
                title=tx.title,
                content=tx.content,
                timestamp=self._clock,
                hidden_reads=self.list_lag_reads,
            )
            if self.emit_created_events:
                logs = (
                    LogEntry(
                        address=self.contract_address,
                        topics=(NOTE_CREATED_TOPIC, _topic(int(tx.sender, 16)), _topic(note_id)),
                    ),
                )
        else:
            try:
                note = self._owned(tx.sender, tx.note_id)
            except RpcError:
                return TxReceipt(tx_hash=tx_hash, status=0)
            if tx.action == "update":
                note.title = tx.title
                note.content = tx.content
                note.timestamp = self._clock
                note.hidden_reads = self.list_lag_reads
            else:
                del self._notes[tx.note_id]
        return TxReceipt(tx_hash=tx_hash, status=1, logs=logs)

    def _owned(self, sender: str, note_id: Optional[int]) -> _StoredNote:
        note = self._notes.get(note_id) if note_id is not None else None
        if note is None or note.owner.lower() != sender.lower():
            raise RpcError("execution reverted: note does not exist", code=EXECUTION_ERROR)
        return note

    def _check_read(self, name: str) -> None:
        if name in self.broken_reads:
            raise RpcError(f"{name}: contract returned no data (no code at address?)")

    @staticmethod
    def rejected_by_user() -> RpcError:
        """Convenience error for scripting ``dispatch_error``."""
        return RpcError("User denied transaction signature.", code=USER_REJECTED)


def _topic(value: int) -> str:
    return "0x" + format(value, "064x")


__all__ = ["NotesContractMock"]
