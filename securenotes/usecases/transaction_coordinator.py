from __future__ import annotations

"""Coordinator for mutating note transactions, free of UI concerns."""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol, Sequence, Tuple

from securenotes.adapters.rpc_errors import RpcTimeoutError
from securenotes.domain.entities import PendingWrite, Session, TxReceipt, WriteOperation, WriteOutcome
from securenotes.domain.errors import InvalidNote, NotesError, Unauthenticated, WriteInProgress
from securenotes.domain.ports import NotesContractPort

from .error_mapping import classify_failure
from .wallet_session import WalletSession

DEFAULT_GAS_LIMIT = 500_000
DEFAULT_REFRESH_DELAYS_MS: Tuple[int, ...] = (2000, 4000)
RESOLVED_HISTORY_LIMIT = 64


class Scheduler(Protocol):
    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> None: ...
    def cancel(self, key: str) -> None: ...


def _noop(*_: object, **__: object) -> None:
    """Default no-op callback used for hooks."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TxHandle:
    """Reference to a dispatched write, returned as soon as the wallet accepts it."""

    tx_hash: str
    operation: WriteOperation
    target_id: Optional[int]
    """Record id being written; ``None`` for a create."""
    sender: str
    """Account the transaction was pinned to."""


@dataclass(frozen=True)
class ConfirmationTick:
    """Result of one non-blocking receipt check."""

    event: str
    """``pending``, ``confirmed`` or ``failed``."""
    outcome: Optional[WriteOutcome] = None
    next_delay_ms: Optional[int] = None


@dataclass(frozen=True)
class RefreshSignal:
    """Staggered list re-read trigger emitted after a confirmed write."""

    tx_hash: str
    operation: WriteOperation
    record_id: Optional[int]
    attempt: int
    """1-based index of the re-read."""
    final: bool
    sender: Optional[str] = None


@dataclass
class TxHooks:
    """Optional callbacks triggered on transaction lifecycle events."""

    on_submitted: Callable[[TxHandle], None] = _noop
    on_outcome: Callable[[WriteOutcome], None] = _noop
    on_refresh: Callable[[RefreshSignal], None] = _noop

    def __post_init__(self) -> None:
        self.on_submitted = self.on_submitted or _noop
        self.on_outcome = self.on_outcome or _noop
        self.on_refresh = self.on_refresh or _noop


class TransactionCoordinator:
    """Dispatch writes, watch for confirmation and schedule list re-reads.

    Confirmation is never awaited in a blocking loop. After dispatch the
    coordinator schedules ``poll_confirmation`` through the injected
    scheduler under the key ``tx:<hash>`` until the provider resolves the
    transaction. The client applies no timeout of its own.
    """

    def __init__(
        self,
        session: WalletSession,
        contract: NotesContractPort,
        *,
        scheduler: Scheduler,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        receipt_poll_ms: int = 1000,
        refresh_delays_ms: Sequence[int] = DEFAULT_REFRESH_DELAYS_MS,
        hooks: Optional[TxHooks] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.session = session
        self.contract = contract
        self.scheduler = scheduler
        self.gas_limit = int(gas_limit)
        self.receipt_poll_ms = max(1, int(receipt_poll_ms))
        self.refresh_delays_ms: Tuple[int, ...] = tuple(int(d) for d in refresh_delays_ms)
        self.hooks = hooks or TxHooks()
        self._clock = clock
        self._pending: Dict[Optional[int], PendingWrite] = {}
        self._handles: Dict[str, TxHandle] = {}
        self.resolved_limit = RESOLVED_HISTORY_LIMIT
        self._resolved: "OrderedDict[str, WriteOutcome]" = OrderedDict()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def pending_writes(self) -> Tuple[PendingWrite, ...]:
        return tuple(self._pending.values())

    def is_pending(self, target_id: Optional[int]) -> bool:
        return target_id in self._pending

    def outcome_for(self, tx_hash: str) -> Optional[WriteOutcome]:
        return self._resolved.get(tx_hash)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def submit_create(self, title: str, body: str) -> TxHandle:
        return self._submit(
            "create",
            None,
            lambda sender: self.contract.create_note(sender, title, body, gas=self.gas_limit),
            title=title,
        )

    def submit_update(self, note_id: int, title: str, body: str) -> TxHandle:
        return self._submit(
            "update",
            int(note_id),
            lambda sender: self.contract.update_note(
                sender, int(note_id), title, body, gas=self.gas_limit
            ),
            title=title,
        )

    def submit_delete(self, note_id: int) -> TxHandle:
        return self._submit(
            "delete",
            int(note_id),
            lambda sender: self.contract.delete_note(sender, int(note_id), gas=self.gas_limit),
        )

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------
    def poll_confirmation(self, handle: TxHandle) -> ConfirmationTick:
        """Check the receipt once and resolve the write when it is final."""
        done = self._resolved.get(handle.tx_hash)
        if done is not None:
            return ConfirmationTick(event="confirmed" if done.ok else "failed", outcome=done)

        try:
            receipt = self.contract.get_receipt(handle.tx_hash)
        except RpcTimeoutError as exc:
            self._log.debug("Receipt poll for %s timed out: %s", handle.tx_hash, exc)
            return ConfirmationTick(event="pending", next_delay_ms=self.receipt_poll_ms)
        except Exception as exc:
            self._log.warning("Receipt poll for %s failed: %s", handle.tx_hash, exc)
            return self._resolve_failure(handle, classify_failure(exc))

        if receipt is None:
            return ConfirmationTick(event="pending", next_delay_ms=self.receipt_poll_ms)
        if not receipt.succeeded:
            self._log.warning("Transaction %s mined with status 0", handle.tx_hash)
            return self._resolve_failure(handle, classify_failure(receipt=receipt))

        record_id = handle.target_id
        if handle.operation == "create":
            record_id = self._recover_created_id(receipt)
        outcome = WriteOutcome(
            operation=handle.operation,
            ok=True,
            tx_hash=handle.tx_hash,
            record_id=record_id,
            message=_SUCCESS_MESSAGES[handle.operation],
            sender=handle.sender,
        )
        self._finish(handle, outcome)
        self._schedule_refresh(outcome, 0)
        return ConfirmationTick(event="confirmed", outcome=outcome)

    def stop(self) -> None:
        """Cancel scheduled receipt polls; dispatched transactions are unaffected."""
        for tx_hash in list(self._handles):
            self.scheduler.cancel(f"tx:{tx_hash}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _submit(
        self,
        operation: WriteOperation,
        target_id: Optional[int],
        dispatch: Callable[[str], str],
        *,
        title: Optional[str] = None,
    ) -> TxHandle:
        session = self._require_session()
        if title is not None and not title.strip():
            raise InvalidNote()
        if target_id in self._pending:
            raise WriteInProgress()
        sender = session.account.value
        self._pending[target_id] = PendingWrite(
            operation=operation, submitted_at=self._clock(), target_id=target_id
        )
        try:
            tx_hash = dispatch(sender)
        except Exception as exc:
            self._pending.pop(target_id, None)
            failure = classify_failure(exc)
            self._log.warning("Dispatch of %s failed: %s", operation, failure.message)
            raise failure from exc

        self._pending[target_id] = PendingWrite(
            operation=operation,
            submitted_at=self._pending[target_id].submitted_at,
            target_id=target_id,
            tx_hash=tx_hash,
        )
        handle = TxHandle(tx_hash=tx_hash, operation=operation, target_id=target_id, sender=sender)
        self._handles[tx_hash] = handle
        self._log.info("Submitted %s (target=%s) as %s", operation, target_id, tx_hash)
        self.hooks.on_submitted(handle)
        self.scheduler.schedule(f"tx:{tx_hash}", self.receipt_poll_ms, lambda: self._poll_tick(handle))
        return handle

    def _poll_tick(self, handle: TxHandle) -> None:
        tick = self.poll_confirmation(handle)
        if tick.event == "pending":
            self.scheduler.schedule(
                f"tx:{handle.tx_hash}",
                tick.next_delay_ms or self.receipt_poll_ms,
                lambda: self._poll_tick(handle),
            )

    def _resolve_failure(self, handle: TxHandle, failure: NotesError) -> ConfirmationTick:
        outcome = WriteOutcome(
            operation=handle.operation,
            ok=False,
            tx_hash=handle.tx_hash,
            record_id=handle.target_id,
            failure=failure.code,
            message=failure.message,
            suggestions=failure.suggestions,
            sender=handle.sender,
        )
        self._finish(handle, outcome)
        return ConfirmationTick(event="failed", outcome=outcome)

    def _finish(self, handle: TxHandle, outcome: WriteOutcome) -> None:
        pending = self._pending.get(handle.target_id)
        if pending is not None and pending.tx_hash == handle.tx_hash:
            del self._pending[handle.target_id]
        self._handles.pop(handle.tx_hash, None)
        self._resolved[handle.tx_hash] = outcome
        while len(self._resolved) > self.resolved_limit:
            self._resolved.popitem(last=False)
        self._log.info(
            "Transaction %s resolved: ok=%s failure=%s", handle.tx_hash, outcome.ok, outcome.failure
        )
        self.hooks.on_outcome(outcome)

    def _recover_created_id(self, receipt: TxReceipt) -> Optional[int]:
        try:
            note_id = self.contract.created_note_id(receipt)
        except Exception as exc:
            self._log.warning("Could not extract note id from receipt %s: %s", receipt.tx_hash, exc)
            return None
        if note_id is None:
            self._log.info("No NoteCreated event in receipt %s", receipt.tx_hash)
        return note_id

    def _schedule_refresh(self, outcome: WriteOutcome, index: int) -> None:
        if index >= len(self.refresh_delays_ms):
            return
        signal = RefreshSignal(
            tx_hash=outcome.tx_hash or "",
            operation=outcome.operation,
            record_id=outcome.record_id,
            attempt=index + 1,
            final=index == len(self.refresh_delays_ms) - 1,
            sender=outcome.sender,
        )

        def fire() -> None:
            self.hooks.on_refresh(signal)
            self._schedule_refresh(outcome, index + 1)

        self.scheduler.schedule(f"refresh:{outcome.tx_hash}", self.refresh_delays_ms[index], fire)

    def _require_session(self) -> Session:
        current = self.session.current
        if current is None or not current.authenticated:
            raise Unauthenticated()
        return current


_SUCCESS_MESSAGES: Dict[str, str] = {
    "create": "Note created successfully!",
    "update": "Note updated successfully!",
    "delete": "Note deleted successfully!",
}


__all__ = [
    "ConfirmationTick",
    "DEFAULT_GAS_LIMIT",
    "DEFAULT_REFRESH_DELAYS_MS",
    "RefreshSignal",
    "Scheduler",
    "TransactionCoordinator",
    "TxHandle",
    "TxHooks",
]
