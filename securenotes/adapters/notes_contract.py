"""ABI codec for the notes contract, layered on a ``WalletPort``.

Calls are encoded with ``eth-abi`` and 4-byte selectors from ``eth-utils``;
reads go through ``eth_call`` and writes through ``eth_sendTransaction`` on the
wallet so the user signs every mutation.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import (
    decode_hex,
    function_signature_to_4byte_selector,
    is_address,
    keccak,
    to_checksum_address,
    to_hex,
)

from securenotes.domain.entities import LogEntry, Record, RecordSummary, TxReceipt
from securenotes.domain.ports import NotesContractPort, WalletPort

from .rpc_errors import RpcError

# The deployed contract emits a precomputed topic; accept the canonical one too.
NOTE_CREATED_TOPIC = "0xa56376160d28d2b90a0746c49caba732b47670e9d51bc39e431f4a6d861a0f9d"
NOTE_CREATED_TOPICS = frozenset(
    {
        NOTE_CREATED_TOPIC,
        to_hex(keccak(text="NoteCreated(address,uint256,string)")),
    }
)

DIAG_READ_GAS = 100_000
DIAG_ENCRYPT_GAS = 150_000


def _selector(signature: str) -> bytes:
    return function_signature_to_4byte_selector(signature)


def encode_call(signature: str, arg_types: Sequence[str], args: Sequence[Any]) -> str:
    """Return hex calldata for ``signature`` applied to ``args``."""
    payload = _selector(signature) + (encode(list(arg_types), list(args)) if arg_types else b"")
    return to_hex(payload)


def receipt_from_rpc(payload: Optional[Mapping[str, Any]]) -> Optional[TxReceipt]:
    """Normalize an ``eth_getTransactionReceipt`` result; ``None`` while pending."""
    if not payload:
        return None
    logs: List[LogEntry] = []
    for raw in payload.get("logs") or []:
        if not isinstance(raw, Mapping):
            continue
        logs.append(
            LogEntry(
                address=str(raw.get("address") or ""),
                topics=tuple(str(t) for t in raw.get("topics") or ()),
                data=str(raw.get("data") or "0x"),
            )
        )
    return TxReceipt(
        tx_hash=str(payload.get("transactionHash") or ""),
        status=_as_int(payload.get("status"), default=0),
        logs=tuple(logs),
        block_number=_as_int(payload.get("blockNumber"), default=None),
    )


def parse_created_note_id(receipt: TxReceipt, contract_address: Optional[str] = None) -> Optional[int]:
    """Recover the note id from a ``NoteCreated`` log, or ``None`` if absent."""
    wanted = (contract_address or "").lower()
    for log in receipt.logs:
        if len(log.topics) < 3 or log.topics[0].lower() not in NOTE_CREATED_TOPICS:
            continue
        if wanted and log.address and log.address.lower() != wanted:
            continue
        try:
            return int(log.topics[2], 16)
        except (TypeError, ValueError):
            continue
    return None


def _as_int(value: Any, *, default: Optional[int]) -> Optional[int]:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 16) if str(value).startswith("0x") else int(str(value))
    except ValueError:
        return default


class NotesContractAdapter(NotesContractPort):
    """Contract-level operations over a wallet provider."""

    def __init__(self, wallet: WalletPort, address: str) -> None:
        self._log = logging.getLogger(__name__)
        self.wallet = wallet
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    # ---------- writes ----------

    def create_note(self, sender: str, title: str, content: str, *, gas: int) -> str:
        data = encode_call("createNote(string,string)", ["string", "string"], [title, content])
        return self._send(sender, data, gas)

    def update_note(self, sender: str, note_id: int, title: str, content: str, *, gas: int) -> str:
        data = encode_call(
            "updateNote(uint256,string,string)",
            ["uint256", "string", "string"],
            [note_id, title, content],
        )
        return self._send(sender, data, gas)

    def delete_note(self, sender: str, note_id: int, *, gas: int) -> str:
        data = encode_call("deleteNote(uint256)", ["uint256"], [note_id])
        return self._send(sender, data, gas)

    # ---------- reads ----------

    def get_note(self, sender: str, note_id: int) -> Record:
        title, content, timestamp = self._call(
            sender,
            encode_call("getNote(uint256)", ["uint256"], [note_id]),
            ["string", "string", "uint256"],
            context="getNote",
        )
        return Record(id=note_id, title=title, body=content, timestamp=int(timestamp))

    def get_notes_list(self, sender: str) -> List[RecordSummary]:
        ids, titles, timestamps = self._call(
            sender,
            encode_call("getNotesList()", [], []),
            ["uint256[]", "string[]", "uint256[]"],
            context="getNotesList",
        )
        if not (len(ids) == len(titles) == len(timestamps)):
            raise RpcError(
                "getNotesList returned arrays of unequal length "
                f"({len(ids)}/{len(titles)}/{len(timestamps)})"
            )
        return [
            RecordSummary(id=int(i), title=t, timestamp=int(ts))
            for i, t, ts in zip(ids, titles, timestamps)
        ]

    def get_note_count(self, sender: str) -> int:
        (count,) = self._call(
            sender,
            encode_call("getNoteCount()", [], []),
            ["uint256"],
            context="getNoteCount",
            gas=DIAG_READ_GAS,
        )
        return int(count)

    def encrypt_note(self, sender: str, content: str) -> bytes:
        (encrypted,) = self._call(
            sender,
            encode_call("encryptNote(string)", ["string"], [content]),
            ["bytes"],
            context="encryptNote",
            gas=DIAG_ENCRYPT_GAS,
        )
        return bytes(encrypted)

    def get_encryption_contract_address(self, sender: str) -> str:
        (addr,) = self._call(
            sender,
            encode_call("getEncryptionContractAddress()", [], []),
            ["address"],
            context="getEncryptionContractAddress",
            gas=DIAG_READ_GAS,
        )
        return to_checksum_address(addr)

    # ---------- confirmation ----------

    def get_receipt(self, tx_hash: str) -> Optional[TxReceipt]:
        return receipt_from_rpc(self.wallet.get_transaction_receipt(tx_hash))

    def created_note_id(self, receipt: TxReceipt) -> Optional[int]:
        return parse_created_note_id(receipt, self._address)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _tx(self, sender: str, data: str, gas: Optional[int]) -> Dict[str, Any]:
        if not is_address(self._address):
            raise RpcError(f"Contract address is invalid: {self._address!r}")
        tx: Dict[str, Any] = {"from": sender, "to": self._address, "data": data}
        if gas:
            tx["gas"] = hex(gas)
        return tx

    def _send(self, sender: str, data: str, gas: int) -> str:
        tx_hash = self.wallet.send_transaction(self._tx(sender, data, gas))
        self._log.info("Transaction sent: %s", tx_hash)
        return tx_hash

    def _call(
        self,
        sender: str,
        data: str,
        out_types: Sequence[str],
        *,
        context: str,
        gas: Optional[int] = None,
    ) -> tuple:
        raw = self.wallet.call(self._tx(sender, data, gas))
        payload = decode_hex(raw) if raw else b""
        if not payload:
            raise RpcError(f"{context}: contract returned no data (no code at address?)")
        try:
            return tuple(decode(list(out_types), payload))
        except DecodingError as exc:
            raise RpcError(f"{context}: could not decode contract response: {exc}") from exc


__all__ = [
    "NOTE_CREATED_TOPIC",
    "NOTE_CREATED_TOPICS",
    "NotesContractAdapter",
    "encode_call",
    "parse_created_note_id",
    "receipt_from_rpc",
]
