from __future__ import annotations

from securenotes.viewmodels.record_view_vm import RecordViewStateMachine, ViewMode, ViewState


def _browsing() -> RecordViewStateMachine:
    sm = RecordViewStateMachine()
    sm.on_authenticated()
    return sm


def test_starts_without_session_and_refuses_commands() -> None:
    sm = RecordViewStateMachine()

    assert sm.mode is ViewMode.NO_SESSION
    assert not sm.select(1)
    assert not sm.request_create()
    assert not sm.request_edit()
    assert sm.state == ViewState()


def test_authentication_lands_on_browsing() -> None:
    sm = _browsing()

    assert sm.mode is ViewMode.BROWSING
    assert sm.selected_id is None
    assert not sm.on_authenticated()


def test_select_and_reselect() -> None:
    sm = _browsing()

    assert sm.select(4)
    assert str(sm.state) == "Viewing(4)"
    assert not sm.select(4)
    assert sm.select(5)
    assert sm.selected_id == 5


def test_edit_only_from_viewing_and_cancel_returns_to_record() -> None:
    sm = _browsing()
    assert not sm.request_edit()

    sm.select(2)
    assert sm.request_edit()
    assert sm.state.in_editor
    assert sm.state.record_id == 2

    assert sm.cancel()
    assert (sm.mode, sm.selected_id) == (ViewMode.VIEWING, 2)


def test_creating_never_becomes_editing() -> None:
    sm = _browsing()
    sm.request_create()

    assert not sm.request_edit()
    assert not sm.select(3)
    assert sm.mode is ViewMode.CREATING
    assert sm.cancel()
    assert sm.mode is ViewMode.BROWSING


def test_confirmed_create_opens_new_record_or_falls_back() -> None:
    sm = _browsing()
    sm.request_create()
    assert sm.save_succeeded(9)
    assert (sm.mode, sm.selected_id) == (ViewMode.VIEWING, 9)

    sm.request_create()
    assert sm.save_succeeded(None)
    assert sm.mode is ViewMode.BROWSING


def test_confirmed_edit_returns_to_viewing_same_record() -> None:
    sm = _browsing()
    sm.select(1)
    sm.request_edit()

    assert sm.save_succeeded(1, edit_token=sm.state.edit_token)
    assert (sm.mode, sm.selected_id) == (ViewMode.VIEWING, 1)


def test_stale_confirmation_is_refused() -> None:
    sm = _browsing()
    sm.request_create()
    stale = sm.state.edit_token
    sm.cancel()
    sm.request_create()

    assert not sm.save_succeeded(7, edit_token=stale)
    assert sm.mode is ViewMode.CREATING
    assert sm.save_succeeded(7, edit_token=sm.state.edit_token)


def test_confirmation_outside_editor_is_refused() -> None:
    sm = _browsing()

    assert not sm.save_succeeded(1)
    assert sm.mode is ViewMode.BROWSING


def test_session_loss_while_editing_then_reconnect_browses() -> None:
    sm = _browsing()
    sm.select(3)
    sm.request_edit()

    assert sm.on_session_lost()
    assert sm.state.record_id is None
    assert not sm.on_session_lost()
    assert sm.on_authenticated()
    assert (sm.mode, sm.selected_id) == (ViewMode.BROWSING, None)


def test_delete_of_viewed_record_returns_to_list() -> None:
    sm = _browsing()
    sm.select(3)

    assert not sm.deleted(4)
    assert sm.deleted(3)
    assert sm.mode is ViewMode.BROWSING


def test_observers_see_every_change() -> None:
    sm = RecordViewStateMachine()
    seen = []
    sm.add_observer(lambda state: seen.append(str(state)))

    sm.on_authenticated()
    sm.select(1)
    sm.select(1)
    sm.request_edit()

    assert seen == ["Browsing", "Viewing(1)", "Editing(1)"]
