"""Keyed timer registry for receipt polls, staggered re-reads and account polling.

The host passes a UI loop's ``after`` and ``after_cancel`` callables (for
example Tk's) into this class, so every outstanding timer is tracked under one
key and can be cancelled when a session ends or the app closes.
"""

from __future__ import annotations


import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


ScheduleFn = Callable[[int, Callable[[], None]], Any]
CancelFn = Callable[[Any], None]


@dataclass
class PollHandle:
    """Timer token associated with one key.

    Attributes:
        key: Channel key such as ``tx:<hash>``, ``refresh:<hash>`` or ``accounts``.
        token: Token returned by the host scheduler.
    """
    key: str
    token: Any


class PollingScheduler:
    """At most one pending timer per key; rescheduling a key replaces its timer."""

    def __init__(self, schedule: ScheduleFn, cancel: CancelFn) -> None:
        """Store host schedule/cancel functions.

        Args:
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function compatible with ``after_cancel(token)``.
        """
        self._log = logging.getLogger(__name__)
        self._schedule = schedule
        self._cancel = cancel
        self._handles: Dict[str, PollHandle] = {}

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None:
        delay = max(1, int(delay_ms))
        self.cancel(key)
        handle = PollHandle(key=key, token=None)

        def fire() -> None:
            # A callback may reschedule its own key; only drop the handle we own.
            if self._handles.get(key) is handle:
                del self._handles[key]
            callback()

        handle.token = self._schedule(delay, fire)
        self._handles[key] = handle

    def cancel(self, key: str) -> None:
        handle = self._handles.pop(key, None)
        if not handle:
            return
        try:
            self._cancel(handle.token)
        except Exception as exc:
            # Host timers that already fired or were torn down refuse cancellation.
            self._log.debug("Cancel of %s ignored: %s", key, exc)

    def cancel_all(self) -> None:
        for key in list(self._handles.keys()):
            self.cancel(key)

    def handle_for(self, key: str) -> Optional[PollHandle]:
        return self._handles.get(key)

    @property
    def pending_keys(self) -> tuple:
        return tuple(self._handles.keys())


__all__ = ["PollHandle", "PollingScheduler"]
