from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from securenotes.adapters.notes_contract_mock import NotesContractMock
from securenotes.adapters.rpc_errors import RpcError, RpcTimeoutError
from securenotes.domain.entities import RecordSummary
from securenotes.domain.errors import ContractUnreachable, ReadFailed, Unauthenticated
from securenotes.domain.network import FLUENT_DEVNET
from securenotes.usecases.fetch_notes import FetchNote, FetchNotesList
from securenotes.usecases.wallet_session import WalletSession
from securenotes.tests.unit.helpers import connected_session, make_wallet


def test_list_is_most_recent_first_and_owner_scoped() -> None:
    wallet = make_wallet()
    session = connected_session(wallet)
    me, other = wallet.addresses
    contract = NotesContractMock()
    contract.seed_note(me, "old", "", timestamp=100)
    contract.seed_note(other, "theirs", "", timestamp=500)
    contract.seed_note(me, "new", "", timestamp=300)
    contract.seed_note(me, "tie", "", timestamp=300)

    titles = [rec.title for rec in FetchNotesList(session, contract)()]

    assert titles == ["tie", "new", "old"]


def test_list_sorts_whatever_the_contract_returns() -> None:
    contract = MagicMock()
    contract.get_notes_list.return_value = [
        RecordSummary(id=1, title="a", timestamp=10),
        RecordSummary(id=2, title="b", timestamp=20),
    ]

    result = FetchNotesList(connected_session(), contract)()

    assert [rec.id for rec in result] == [2, 1]


def test_list_error_maps_to_read_failure() -> None:
    contract = MagicMock()
    contract.get_notes_list.side_effect = RpcTimeoutError("Timeout contacting provider")

    with pytest.raises(ReadFailed):
        FetchNotesList(connected_session(), contract)()


def test_list_without_contract_code_is_unreachable() -> None:
    contract = NotesContractMock()
    contract.broken_reads = {"getNotesList"}

    with pytest.raises(ContractUnreachable):
        FetchNotesList(connected_session(), contract)()


def test_fetch_of_foreign_note_fails() -> None:
    wallet = make_wallet()
    contract = NotesContractMock()
    note_id = contract.seed_note(wallet.addresses[1], "theirs", "secret")

    with pytest.raises(ReadFailed) as excinfo:
        FetchNote(connected_session(wallet), contract)(note_id)

    assert "permission" in excinfo.value.message


def test_fetch_generic_error_keeps_detail() -> None:
    contract = MagicMock()
    contract.get_note.side_effect = RpcError("boom")

    with pytest.raises(ReadFailed) as excinfo:
        FetchNote(connected_session(), contract)(3)

    assert excinfo.value.message == "Failed to load note. (boom)"


def test_reads_require_session() -> None:
    session = WalletSession(make_wallet(), FLUENT_DEVNET)
    contract = NotesContractMock()

    with pytest.raises(Unauthenticated):
        FetchNotesList(session, contract)()
    with pytest.raises(Unauthenticated):
        FetchNote(session, contract)(0)
