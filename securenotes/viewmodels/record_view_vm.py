"""Selection and create/edit/view mode state for the notes panel.

Call context:
    ``NotesPresenter`` forwards session changes, list selections, editor
    commands and confirmed write outcomes into ``RecordViewStateMachine`` and
    re-renders whenever an observer fires.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional


class ViewMode(str, Enum):
    NO_SESSION = "NoSession"
    BROWSING = "Browsing"
    VIEWING = "Viewing"
    CREATING = "Creating"
    EDITING = "Editing"


@dataclass(frozen=True)
class ViewState:
    """Immutable snapshot of the view mode.

    Attributes:
        mode: Current mode.
        record_id: Selected record for ``Viewing``/``Editing``, otherwise ``None``.
        edit_token: Increments each time an editor session (create or edit)
            opens, so a late save confirmation can be matched to the editor
            session that issued it.
    """

    mode: ViewMode = ViewMode.NO_SESSION
    record_id: Optional[int] = None
    edit_token: int = 0

    @property
    def in_editor(self) -> bool:
        return self.mode in (ViewMode.CREATING, ViewMode.EDITING)

    def __str__(self) -> str:
        if self.record_id is None:
            return self.mode.value
        return f"{self.mode.value}({self.record_id})"


StateObserver = Callable[[ViewState], None]


class RecordViewStateMachine:
    """Governs which record is selected and which editor operation is legal.

    Every request method returns ``True`` when it changed the state and
    ``False`` when the request was illegal in the current state; illegal
    requests leave the state untouched.
    """

    def __init__(self) -> None:
        self._log = logging.getLogger(__name__)
        self._state = ViewState()
        self._observers: List[StateObserver] = []

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def mode(self) -> ViewMode:
        return self._state.mode

    @property
    def selected_id(self) -> Optional[int]:
        return self._state.record_id

    def add_observer(self, observer: StateObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: StateObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def on_authenticated(self) -> bool:
        """A verified session was installed; always start from the list."""
        if self.mode is not ViewMode.NO_SESSION:
            return self._refuse("authenticate")
        return self._set(ViewMode.BROWSING, None)

    def on_session_lost(self) -> bool:
        if self.mode is ViewMode.NO_SESSION:
            return False
        return self._set(ViewMode.NO_SESSION, None)

    # ------------------------------------------------------------------
    # User commands
    # ------------------------------------------------------------------
    def select(self, record_id: int) -> bool:
        if self.mode not in (ViewMode.BROWSING, ViewMode.VIEWING):
            return self._refuse("select")
        if self.mode is ViewMode.VIEWING and self.selected_id == record_id:
            return False
        return self._set(ViewMode.VIEWING, int(record_id))

    def request_create(self) -> bool:
        if self.mode not in (ViewMode.BROWSING, ViewMode.VIEWING):
            return self._refuse("create")
        return self._set(ViewMode.CREATING, None, new_editor=True)

    def request_edit(self) -> bool:
        if self.mode is not ViewMode.VIEWING:
            return self._refuse("edit")
        return self._set(ViewMode.EDITING, self.selected_id, new_editor=True)

    def cancel(self) -> bool:
        if self.mode is ViewMode.CREATING:
            return self._set(ViewMode.BROWSING, None)
        if self.mode is ViewMode.EDITING:
            return self._set(ViewMode.VIEWING, self.selected_id)
        return self._refuse("cancel")

    # ------------------------------------------------------------------
    # Write outcomes
    # ------------------------------------------------------------------
    def save_succeeded(self, record_id: Optional[int], *, edit_token: Optional[int] = None) -> bool:
        """Leave the editor after a confirmed save.

        A create with no recovered id falls back to ``Browsing``. When
        ``edit_token`` is given it must match the open editor session.
        """
        if not self._state.in_editor:
            return self._refuse("save_succeeded")
        if edit_token is not None and edit_token != self._state.edit_token:
            return self._refuse("save_succeeded (stale editor)")
        if self.mode is ViewMode.CREATING:
            if record_id is None:
                return self._set(ViewMode.BROWSING, None)
            return self._set(ViewMode.VIEWING, int(record_id))
        return self._set(ViewMode.VIEWING, self.selected_id)

    def deleted(self, record_id: int) -> bool:
        if self.mode is ViewMode.VIEWING and self.selected_id == record_id:
            return self._set(ViewMode.BROWSING, None)
        return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _set(self, mode: ViewMode, record_id: Optional[int], *, new_editor: bool = False) -> bool:
        token = self._state.edit_token + 1 if new_editor else self._state.edit_token
        previous = self._state
        self._state = replace(previous, mode=mode, record_id=record_id, edit_token=token)
        self._log.debug("View state %s -> %s", previous, self._state)
        for observer in list(self._observers):
            observer(self._state)
        return True

    def _refuse(self, request: str) -> bool:
        self._log.debug("Ignoring %s in state %s", request, self._state)
        return False


__all__ = ["RecordViewStateMachine", "ViewMode", "ViewState"]
