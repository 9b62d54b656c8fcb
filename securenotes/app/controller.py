"""Adapter and use-case wiring for the notes client runtime.

This module owns lazy construction of the wallet provider, the contract
facade and the use cases that depend on values in
:class:`securenotes.viewmodels.settings_vm.SettingsVM`. Presenters call
``ensure_ready`` before any wallet or contract action.
"""

from __future__ import annotations

import logging
from typing import Optional

from eth_utils import is_address

from ..adapters.notes_contract import NotesContractAdapter
from ..adapters.wallet_rpc import WalletRpcAdapter
from ..domain.ports import NotesContractPort, WalletPort
from ..usecases.diagnostics_probe import DiagnosticsProbe
from ..usecases.fetch_notes import FetchNote, FetchNotesList
from ..usecases.transaction_coordinator import TransactionCoordinator
from ..usecases.wallet_session import WalletSession
from ..viewmodels.settings_vm import SettingsVM
from .account_watcher import AccountWatcher
from .polling_scheduler import PollingScheduler


class AppController:
    """Create and cache runtime adapters/use-cases from settings state.

    ``wallet`` and ``contract`` may be injected (mocks, tests, offline runs);
    otherwise they are built from ``settings_vm`` on first use.
    """

    def __init__(
        self,
        settings_vm: SettingsVM,
        *,
        scheduler: PollingScheduler,
        wallet: Optional[WalletPort] = None,
        contract: Optional[NotesContractPort] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.settings_vm = settings_vm
        self.scheduler = scheduler
        self._injected_wallet = wallet
        self._injected_contract = contract
        self._wallet: Optional[WalletPort] = None
        self._contract: Optional[NotesContractPort] = None
        self.session: Optional[WalletSession] = None
        self.coordinator: Optional[TransactionCoordinator] = None
        self.account_watcher: Optional[AccountWatcher] = None
        self.uc_fetch_list: Optional[FetchNotesList] = None
        self.uc_fetch_note: Optional[FetchNote] = None
        self.uc_diagnostics: Optional[DiagnosticsProbe] = None

    @property
    def wallet(self) -> Optional[WalletPort]:
        return self._wallet

    @property
    def contract(self) -> Optional[NotesContractPort]:
        return self._contract

    def reset(self) -> None:
        """Tear down timers and subscriptions, then drop cached objects.

        The next ``ensure_ready`` call rebuilds everything from current settings.
        """
        if self.account_watcher is not None:
            self.account_watcher.stop()
        if self.coordinator is not None:
            self.coordinator.stop()
        if self.session is not None:
            self.session.detach()
        self.scheduler.cancel_all()
        self._wallet = None
        self._contract = None
        self.session = None
        self.coordinator = None
        self.account_watcher = None
        self.uc_fetch_list = None
        self.uc_fetch_note = None
        self.uc_diagnostics = None

    def ensure_ready(self) -> bool:
        """Ensure adapters/use-cases are available.

        Returns:
            ``True`` when everything is wired, ``False`` when settings lack a
            provider URL or the contract address is malformed.
        """
        if self.session is not None and self.coordinator is not None:
            return True

        cfg = self.settings_vm.config
        if self._wallet is None:
            if self._injected_wallet is not None:
                self._wallet = self._injected_wallet
            elif cfg.provider_url:
                self._wallet = WalletRpcAdapter(
                    cfg.provider_url,
                    request_timeout_s=cfg.request_timeout_s,
                    retries=2,
                )
            else:
                self._log.warning("No wallet provider URL configured")
                return False

        if self._contract is None:
            if self._injected_contract is not None:
                self._contract = self._injected_contract
            elif is_address(cfg.contract_address):
                self._contract = NotesContractAdapter(self._wallet, cfg.contract_address)
            else:
                self._log.warning("Configured contract address is invalid: %r", cfg.contract_address)
                return False

        self.session = WalletSession(self._wallet, cfg.network)
        self.session.attach()
        self.coordinator = TransactionCoordinator(
            self.session,
            self._contract,
            scheduler=self.scheduler,
            gas_limit=cfg.dispatch_gas_limit,
            receipt_poll_ms=cfg.receipt_poll_ms,
            refresh_delays_ms=cfg.refresh_delays_ms,
        )
        self.account_watcher = AccountWatcher(
            self._wallet, self.scheduler, interval_ms=cfg.account_poll_ms
        )
        self.uc_fetch_list = FetchNotesList(self.session, self._contract)
        self.uc_fetch_note = FetchNote(self.session, self._contract)
        self.uc_diagnostics = DiagnosticsProbe(self.session, self._contract)
        return True


__all__ = ["AppController"]
