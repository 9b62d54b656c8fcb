"""Headless runtime orchestration for the notes client.

This module composes settings, persistence, the adapter controller and the
presenter so a host (CLI, GUI shell, tests) only supplies a timer loop.
"""

from __future__ import annotations

import logging
import os
import sched
import time
from typing import Any, Callable, Dict, Mapping, Optional

from securenotes.adapters.storage_local import StorageLocal
from securenotes.domain.ports import NotesContractPort, StoragePort, WalletPort
from securenotes.utils import logging as logging_utils
from securenotes.viewmodels.settings_vm import SettingsVM

from .controller import AppController
from .notes_presenter import NotesPresenter
from .polling_scheduler import PollingScheduler

STORAGE_ROOT_ENV = "SECURENOTES_STORAGE_ROOT"


class BlockingLoop:
    """``after``/``after_cancel`` host built on :mod:`sched` for non-GUI runs."""

    def __init__(self) -> None:
        self._sched = sched.scheduler(time.monotonic, time.sleep)

    def after(self, delay_ms: int, callback: Callable[[], None]) -> sched.Event:
        return self._sched.enter(delay_ms / 1000.0, 0, callback)

    def after_cancel(self, event: sched.Event) -> None:
        self._sched.cancel(event)

    def run_until(self, done: Callable[[], bool], *, idle_s: float = 0.05) -> None:
        """Fire due timers until ``done()`` holds; never gives up on its own."""
        while not done():
            next_due = self._sched.run(blocking=False)
            time.sleep(min(next_due, idle_s) if next_due is not None else idle_s)


class NotesRuntime:
    """Settings, storage, controller and presenter for one client instance."""

    def __init__(
        self,
        *,
        schedule: Callable[[int, Callable[[], None]], Any],
        cancel: Callable[[Any], None],
        storage: Optional[StoragePort] = None,
        wallet: Optional[WalletPort] = None,
        contract: Optional[NotesContractPort] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.status_message = "Ready."
        self.storage = storage or StorageLocal(root_dir=os.environ.get(STORAGE_ROOT_ENV) or ".")
        self.settings_vm = SettingsVM(on_save=self.storage.save_user_prefs)
        self.scheduler = PollingScheduler(schedule, cancel)
        self.controller = AppController(
            self.settings_vm, scheduler=self.scheduler, wallet=wallet, contract=contract
        )
        self._presenter: Optional[NotesPresenter] = None
        self._presenter_kwargs: Dict[str, Any] = {}
        self._load_settings()

    # ------------------------------------------------------------------
    # Settings workflows
    # ------------------------------------------------------------------
    def _load_settings(self) -> None:
        try:
            payload = self.storage.load_user_prefs()
        except (OSError, ValueError) as exc:
            self._log.warning("Could not load settings: %s", exc)
            self.status_message = f"Could not load settings: {exc}"
            payload = {}
        if payload:
            try:
                self.settings_vm.apply_dict(payload)
            except ValueError as exc:
                self._log.warning("Ignoring stored settings: %s", exc)
                self.status_message = str(exc)
        self._apply_logging_preferences()

    def _apply_logging_preferences(self) -> None:
        level = logging_utils.apply_debug_preference(self.settings_vm.debug_logging)
        self._log.debug("Effective log level: %s", logging.getLevelName(level))

    def settings_payload(self) -> Dict[str, Any]:
        return self.settings_vm.to_dict()

    def apply_settings_payload(self, payload: Mapping[str, Any], *, persist: bool = True) -> None:
        """Validate, optionally persist, and rewire adapters from new settings."""
        self.settings_vm.apply_dict(payload)
        if persist:
            self.settings_vm.cmd_save()
        self._apply_logging_preferences()
        self.close()
        self.status_message = "Settings applied."

    # ------------------------------------------------------------------
    # Presenter lifecycle
    # ------------------------------------------------------------------
    def presenter(self, **callbacks: Any) -> NotesPresenter:
        """Return the live presenter, building it on first use.

        Callbacks are remembered so a rebuild after a settings change keeps
        the same view bindings.
        """
        if callbacks:
            self._presenter_kwargs = dict(callbacks)
        if self._presenter is None:
            self._presenter = NotesPresenter(controller=self.controller, **self._presenter_kwargs)
        return self._presenter

    def close(self) -> None:
        if self._presenter is not None:
            self._presenter.close()
            self._presenter = None
        else:
            self.controller.reset()


__all__ = ["BlockingLoop", "NotesRuntime", "STORAGE_ROOT_ENV"]
