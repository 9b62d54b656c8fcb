"""Notes list projection for the sidebar.

Call context:
    ``NotesPresenter`` pushes fetch results, read errors and refresh signals
    into ``NotesListVM``; the view reads ``rows``, ``loading``, ``error`` and
    ``notice`` and wires its retry button to ``on_retry``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from securenotes.domain.entities import RecordSummary, sort_records
from securenotes.domain.ports import UseCaseError

NOT_YET_VISIBLE = (
    "Your note was saved on the blockchain but does not appear in the list yet. "
    "It can take a little longer to show up; try refreshing in a moment."
)


@dataclass
class NoteRow:
    """Display row model consumed by the notes list widget."""

    note_id: int
    title: str
    updated_at: str


def format_timestamp(seconds: int) -> str:
    if not seconds:
        return "-"
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


class NotesListVM:
    """Cached, possibly stale projection of the caller's notes.

    Reads replace the cache wholesale; the most recently completed read wins.
    """

    def __init__(self, *, on_retry: Optional[Callable[[], None]] = None) -> None:
        self.on_retry = on_retry
        self.records: List[RecordSummary] = []
        self.loading = False
        self.error: Optional[str] = None
        self.notice: Optional[str] = None
        self.awaited_id: Optional[int] = None

    @property
    def rows(self) -> List[NoteRow]:
        return [
            NoteRow(note_id=rec.id, title=rec.title, updated_at=format_timestamp(rec.timestamp))
            for rec in self.records
        ]

    @property
    def is_empty(self) -> bool:
        return not self.records and not self.loading and self.error is None

    def contains(self, note_id: Optional[int]) -> bool:
        return note_id is not None and any(rec.id == note_id for rec in self.records)

    def begin_load(self) -> None:
        self.loading = True
        self.error = None

    def apply_records(self, records: Sequence[RecordSummary], *, final_refresh: bool = False) -> None:
        """Replace the cache with a completed read.

        Args:
            records: Summaries from the read, in any order.
            final_refresh: ``True`` when this read was the last scheduled
                re-read after a confirmed write.
        """
        self.records = sort_records(records)
        self.loading = False
        self.error = None
        if self.awaited_id is not None and self.contains(self.awaited_id):
            self.awaited_id = None
            self.notice = None
        elif final_refresh and self.awaited_id is not None:
            self.notice = NOT_YET_VISIBLE

    def apply_error(self, error: UseCaseError) -> None:
        """Degrade to an explicit error state; cached rows are kept."""
        self.loading = False
        self.error = error.message

    def expect(self, note_id: Optional[int]) -> None:
        """Track a freshly written note until a read shows it."""
        self.awaited_id = note_id
        self.notice = None

    def forget(self, note_id: int) -> None:
        """Drop a deleted note from the cache until the next read."""
        self.records = [rec for rec in self.records if rec.id != note_id]
        if self.awaited_id == note_id:
            self.awaited_id = None
            self.notice = None

    def clear(self) -> None:
        self.records = []
        self.loading = False
        self.error = None
        self.notice = None
        self.awaited_id = None

    def cmd_retry(self) -> None:
        if self.on_retry:
            self.on_retry()


__all__ = ["NOT_YET_VISIBLE", "NoteRow", "NotesListVM", "format_timestamp"]
