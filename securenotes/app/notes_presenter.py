"""UI-facing presenter that routes session, editor and transaction events.

The presenter never renders anything. Views bind to ``state`` and
``notes_vm`` and receive one-shot events (errors, loaded notes, outcomes,
diagnostics reports) through callbacks.
"""

from __future__ import annotations


import logging
from typing import Callable, Dict, Optional

from securenotes.domain.entities import DiagnosticReport, Record, Session, WriteOutcome
from securenotes.domain.ports import UseCaseError
from securenotes.usecases.transaction_coordinator import RefreshSignal, TxHandle, TxHooks
from securenotes.viewmodels.notes_list_vm import NotesListVM
from securenotes.viewmodels.record_view_vm import RecordViewStateMachine, ViewMode

from .controller import AppController


def _noop(*_: object, **__: object) -> None:
    """Default no-op callback used for view events."""


class NotesPresenter:
    """Coordinates connect/list/open/save/delete/diagnostics flows."""

    def __init__(
        self,
        *,
        controller: AppController,
        state: Optional[RecordViewStateMachine] = None,
        notes_vm: Optional[NotesListVM] = None,
        on_error: Callable[[UseCaseError], None] = _noop,
        on_note_loaded: Callable[[Optional[Record]], None] = _noop,
        on_outcome: Callable[[WriteOutcome], None] = _noop,
        on_diagnostics: Callable[[DiagnosticReport], None] = _noop,
    ) -> None:
        self._log = logging.getLogger(__name__)
        if not controller.ensure_ready():
            raise ValueError("Settings are incomplete: provider URL and contract address are required.")
        self.controller = controller
        self.state = state or RecordViewStateMachine()
        self.notes_vm = notes_vm or NotesListVM()
        self.notes_vm.on_retry = self.refresh_list
        self._on_error = on_error
        self._on_note_loaded = on_note_loaded
        self._on_outcome = on_outcome
        self._on_diagnostics = on_diagnostics
        self.current_note: Optional[Record] = None
        self.note_error: Optional[str] = None
        self._editor_tokens: Dict[str, int] = {}

        self.session = controller.session
        self.coordinator = controller.coordinator
        self.session.add_listener(self._on_session_changed)
        self.coordinator.hooks = TxHooks(
            on_outcome=self._on_tx_outcome,
            on_refresh=self._on_refresh,
        )
        controller.account_watcher.start()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def connect(self) -> Optional[Session]:
        try:
            return self.session.connect()
        except UseCaseError as err:
            self._log.warning("Connect failed: %s", err.message)
            self._on_error(err)
            return None

    def disconnect(self) -> None:
        self.session.disconnect()

    def _on_session_changed(self, session: Optional[Session]) -> None:
        if session is None:
            self.current_note = None
            self.note_error = None
            self._editor_tokens.clear()
            self.notes_vm.clear()
            self.state.on_session_lost()
            return
        self.state.on_authenticated()
        self.refresh_list()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def refresh_list(self, *, final_refresh: bool = False) -> None:
        if self.session.current is None:
            return
        self.notes_vm.begin_load()
        try:
            records = self.controller.uc_fetch_list()
        except UseCaseError as err:
            self._log.warning("Failed to load notes: %s", err.message)
            self.notes_vm.apply_error(err)
            return
        self.notes_vm.apply_records(records, final_refresh=final_refresh)

    def open_note(self, note_id: int) -> Optional[Record]:
        already_open = self.state.mode is ViewMode.VIEWING and self.state.selected_id == note_id
        if not already_open and not self.state.select(note_id):
            return None
        self.current_note = None
        try:
            record = self.controller.uc_fetch_note(note_id)
        except UseCaseError as err:
            self._log.warning("Failed to load note %s: %s", note_id, err.message)
            self.note_error = err.message
            self._on_error(err)
            return None
        self.note_error = None
        self.current_note = record
        self._on_note_loaded(record)
        return record

    def retry_note(self) -> Optional[Record]:
        """Re-read the selected note after a failed load."""
        if self.state.mode is not ViewMode.VIEWING or self.state.selected_id is None:
            return None
        return self.open_note(self.state.selected_id)

    # ------------------------------------------------------------------
    # Editor commands
    # ------------------------------------------------------------------
    def create(self) -> bool:
        if self.session.current is None:
            return False
        if self.state.request_create():
            self.current_note = None
            return True
        return False

    def edit(self) -> bool:
        # Only a loaded note can seed the editor.
        note = self.current_note
        if note is None or note.id != self.state.selected_id:
            return False
        return self.state.request_edit()

    def cancel(self) -> bool:
        return self.state.cancel()

    def save(self, title: str, body: str) -> Optional[TxHandle]:
        """Dispatch the open editor's content; the state changes only on confirmation."""
        mode = self.state.mode
        try:
            if mode is ViewMode.CREATING:
                handle = self.coordinator.submit_create(title, body)
            elif mode is ViewMode.EDITING and self.state.selected_id is not None:
                handle = self.coordinator.submit_update(self.state.selected_id, title, body)
            else:
                return None
        except UseCaseError as err:
            self._on_error(err)
            return None
        self._editor_tokens[handle.tx_hash] = self.state.state.edit_token
        return handle

    def delete(self) -> Optional[TxHandle]:
        if self.state.mode is not ViewMode.VIEWING or self.state.selected_id is None:
            return None
        try:
            return self.coordinator.submit_delete(self.state.selected_id)
        except UseCaseError as err:
            self._on_error(err)
            return None

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def run_diagnostics(self) -> Optional[DiagnosticReport]:
        try:
            report = self.controller.uc_diagnostics()
        except UseCaseError as err:
            self._on_error(err)
            return None
        self._on_diagnostics(report)
        return report

    def close(self) -> None:
        self.session.remove_listener(self._on_session_changed)
        self.controller.reset()

    # ------------------------------------------------------------------
    # Transaction hooks
    # ------------------------------------------------------------------
    def _on_tx_outcome(self, outcome: WriteOutcome) -> None:
        token = self._editor_tokens.pop(outcome.tx_hash or "", None)
        if not outcome.ok:
            self._on_error(
                UseCaseError(
                    outcome.failure or "UNKNOWN",
                    outcome.message,
                    meta={"suggestions": outcome.suggestions, "tx_hash": outcome.tx_hash},
                )
            )
        elif self._is_current_account(outcome.sender):
            self._apply_success(outcome, token)
        self._on_outcome(outcome)

    def _apply_success(self, outcome: WriteOutcome, token: Optional[int]) -> None:
        if outcome.operation == "delete":
            if outcome.record_id is not None:
                self.notes_vm.forget(outcome.record_id)
                if self.state.deleted(outcome.record_id):
                    self.current_note = None
            return
        self.notes_vm.expect(outcome.record_id)
        if token is None or not self.state.save_succeeded(outcome.record_id, edit_token=token):
            return
        if self.state.mode is ViewMode.VIEWING and self.state.selected_id is not None:
            self.open_note(self.state.selected_id)
        else:
            self.current_note = None

    def _on_refresh(self, signal: RefreshSignal) -> None:
        self._log.debug("Refresh %s after %s (%s)", signal.attempt, signal.operation, signal.tx_hash)
        if not self._is_current_account(signal.sender):
            return
        self.refresh_list(final_refresh=signal.final)

    def _is_current_account(self, sender: Optional[str]) -> bool:
        session = self.session.current
        if session is None:
            return False
        return sender is None or session.account.matches(sender)


__all__ = ["NotesPresenter"]
