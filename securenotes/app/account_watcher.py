"""Periodic ``eth_accounts`` poll standing in for the provider's push event.

HTTP wallet providers cannot push "accounts changed" notifications, so the
watcher asks the ``WalletPort`` to compare its account list on a timer. The
wallet then calls its subscribers, which includes ``WalletSession``.
"""

from __future__ import annotations

import logging

from securenotes.adapters.rpc_errors import RpcError
from securenotes.domain.ports import WalletPort

from .polling_scheduler import PollingScheduler

WATCH_KEY = "accounts"


class AccountWatcher:
    def __init__(self, wallet: WalletPort, scheduler: PollingScheduler, *, interval_ms: int = 1500) -> None:
        self._log = logging.getLogger(__name__)
        self.wallet = wallet
        self.scheduler = scheduler
        self.interval_ms = max(1, int(interval_ms))
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.scheduler.schedule(WATCH_KEY, self.interval_ms, self._tick)

    def stop(self) -> None:
        self._running = False
        self.scheduler.cancel(WATCH_KEY)

    def _tick(self) -> None:
        if not self._running:
            return
        try:
            self.wallet.poll_account_changes()
        except RpcError as exc:
            self._log.debug("Account poll failed: %s", exc)
        if self._running:
            self.scheduler.schedule(WATCH_KEY, self.interval_ms, self._tick)


__all__ = ["AccountWatcher", "WATCH_KEY"]
