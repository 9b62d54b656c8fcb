from __future__ import annotations

from dataclasses import dataclass
from typing import List

from securenotes.domain.entities import Record, RecordSummary, sort_records
from securenotes.domain.errors import Unauthenticated
from securenotes.domain.ports import NotesContractPort

from .error_mapping import map_read_error
from .wallet_session import WalletSession


def _sender(session: WalletSession) -> str:
    current = session.current
    if current is None:
        raise Unauthenticated()
    return current.account.value


@dataclass
class FetchNotesList:
    """Read the caller's note summaries, most recent first."""

    session: WalletSession
    contract: NotesContractPort

    def __call__(self) -> List[RecordSummary]:
        sender = _sender(self.session)
        try:
            summaries = self.contract.get_notes_list(sender)
        except Exception as exc:
            raise map_read_error(exc) from exc
        return sort_records(summaries)


@dataclass
class FetchNote:
    session: WalletSession
    contract: NotesContractPort

    def __call__(self, note_id: int) -> Record:
        sender = _sender(self.session)
        try:
            return self.contract.get_note(sender, int(note_id))
        except Exception as exc:
            raise map_read_error(exc, default_message="Failed to load note.") from exc
