from __future__ import annotations

from unittest.mock import MagicMock

from securenotes.domain.entities import RecordSummary
from securenotes.domain.errors import ReadFailed
from securenotes.viewmodels.notes_list_vm import NOT_YET_VISIBLE, NotesListVM, format_timestamp


def _rec(note_id: int, ts: int, title: str = "t") -> RecordSummary:
    return RecordSummary(id=note_id, title=title, timestamp=ts)


def test_format_timestamp_utc_minutes() -> None:
    assert format_timestamp(1_700_000_000) == "2023-11-14 22:13"
    assert format_timestamp(0) == "-"


def test_apply_records_sorts_and_builds_rows() -> None:
    vm = NotesListVM()
    vm.begin_load()
    assert vm.loading

    vm.apply_records([_rec(1, 100, "a"), _rec(2, 200, "b")])

    assert not vm.loading
    assert [row.note_id for row in vm.rows] == [2, 1]
    assert vm.rows[0].title == "b"
    assert not vm.is_empty


def test_empty_list_is_distinct_from_error() -> None:
    vm = NotesListVM()
    vm.apply_records([])
    assert vm.is_empty

    vm.apply_error(ReadFailed())
    assert not vm.is_empty
    assert vm.error == "Failed to load notes. Please try refreshing."


def test_error_keeps_cached_rows() -> None:
    vm = NotesListVM()
    vm.apply_records([_rec(1, 100)])
    vm.begin_load()

    vm.apply_error(ReadFailed())

    assert vm.contains(1)
    assert not vm.loading


def test_awaited_note_clears_once_visible() -> None:
    vm = NotesListVM()
    vm.expect(5)

    vm.apply_records([_rec(1, 100)])
    assert vm.awaited_id == 5
    assert vm.notice is None

    vm.apply_records([_rec(1, 100), _rec(5, 200)])
    assert vm.awaited_id is None
    assert vm.notice is None


def test_final_refresh_without_note_sets_notice() -> None:
    vm = NotesListVM()
    vm.expect(5)

    vm.apply_records([_rec(1, 100)], final_refresh=True)

    assert vm.notice == NOT_YET_VISIBLE


def test_unknown_created_id_never_raises_notice() -> None:
    vm = NotesListVM()
    vm.expect(None)

    vm.apply_records([], final_refresh=True)

    assert vm.notice is None


def test_forget_and_clear() -> None:
    vm = NotesListVM()
    vm.apply_records([_rec(1, 100), _rec(2, 200)])
    vm.expect(2)

    vm.forget(2)
    assert [rec.id for rec in vm.records] == [1]
    assert vm.awaited_id is None

    vm.clear()
    assert vm.records == []
    assert vm.error is None


def test_retry_invokes_callback() -> None:
    retry = MagicMock()
    vm = NotesListVM(on_retry=retry)

    vm.cmd_retry()

    retry.assert_called_once_with()
