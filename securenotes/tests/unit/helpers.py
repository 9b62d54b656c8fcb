from __future__ import annotations

import itertools
from typing import Callable, Dict, List, Optional, Tuple

from securenotes.adapters.wallet_mock import WalletMock
from securenotes.app.polling_scheduler import PollingScheduler
from securenotes.domain.network import FLUENT_DEVNET
from securenotes.usecases.wallet_session import WalletSession

FIXED_NOW_MS = 1_700_000_000_000


class FakeLoop:
    """Manual stand-in for Tk ``after``/``after_cancel`` with a virtual clock."""

    def __init__(self) -> None:
        self.now = 0
        self._seq = itertools.count(1)
        self._timers: Dict[str, Tuple[int, int, Callable[[], None]]] = {}

    def after(self, delay_ms: int, callback: Callable[[], None]) -> str:
        seq = next(self._seq)
        token = f"after#{seq}"
        self._timers[token] = (self.now + int(delay_ms), seq, callback)
        return token

    def after_cancel(self, token: str) -> None:
        self._timers.pop(token, None)

    @property
    def pending(self) -> List[int]:
        return sorted(due for due, _, _ in self._timers.values())

    def advance(self, ms: int) -> None:
        target = self.now + int(ms)
        while True:
            due = [(d, s, t) for t, (d, s, _) in self._timers.items() if d <= target]
            if not due:
                break
            d, _, token = min(due)
            _, _, callback = self._timers.pop(token)
            self.now = d
            callback()
        self.now = target

    def run_until_idle(self, max_steps: int = 200) -> None:
        for _ in range(max_steps):
            if not self._timers:
                return
            self.advance(self.pending[0] - self.now)
        raise AssertionError("timers still pending after max_steps")


def make_scheduler() -> Tuple[FakeLoop, PollingScheduler]:
    loop = FakeLoop()
    return loop, PollingScheduler(loop.after, loop.after_cancel)


def make_wallet(**kwargs) -> WalletMock:
    kwargs.setdefault("known_chains", {FLUENT_DEVNET.chain_id})
    return WalletMock(**kwargs)


def connected_session(wallet: Optional[WalletMock] = None) -> WalletSession:
    wallet = wallet or make_wallet()
    session = WalletSession(wallet, FLUENT_DEVNET, clock_ms=lambda: FIXED_NOW_MS)
    session.attach()
    session.connect()
    return session


__all__ = ["FIXED_NOW_MS", "FakeLoop", "connected_session", "make_scheduler", "make_wallet"]
