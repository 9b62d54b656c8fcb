from __future__ import annotations

"""Domain value objects shared across adapters, use-cases, and view models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from eth_utils import is_address, to_checksum_address

WriteOperation = Literal["create", "update", "delete"]


@dataclass(frozen=True)
class Account:
    """Externally controlled wallet address, normalized to checksum form."""

    value: str
    """EIP-55 checksummed address string."""

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not is_address(self.value):
            raise ValueError(f"Account must be a valid address, got {self.value!r}.")
        object.__setattr__(self, "value", to_checksum_address(self.value))

    def matches(self, other: Optional[str]) -> bool:
        """Compare against a raw address string ignoring checksum casing."""
        if not other:
            return False
        return self.value.lower() == str(other).strip().lower()

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Session:
    """Authenticated binding between this client and one wallet account."""

    account: Account
    """Account whose signature over the challenge was verified."""
    network_id: int
    """Chain id the provider was switched to before authentication."""
    authenticated: bool = True
    """Always ``True`` for installed sessions; kept for snapshot consumers."""
    capability_handle: Any = field(default=None, compare=False, repr=False)
    """Opaque provider object the session was established through."""


@dataclass(frozen=True)
class Record:
    """A note as returned by ``getNote``; ``id`` is ``None`` before confirmation."""

    id: Optional[int]
    title: str
    body: str
    timestamp: int
    """Block timestamp (seconds) of creation or last update."""

    def __post_init__(self) -> None:
        if self.id is not None and (not isinstance(self.id, int) or self.id < 0):
            raise ValueError("Record id must be a non-negative integer or None.")

    @property
    def updated_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


@dataclass(frozen=True)
class RecordSummary:
    """List entry projected from ``getNotesList``."""

    id: int
    title: str
    timestamp: int

    @property
    def updated_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)


def sort_records(records: Iterable[RecordSummary]) -> List[RecordSummary]:
    """Most recent first; equal timestamps fall back to the higher id."""
    return sorted(records, key=lambda rec: (rec.timestamp, rec.id), reverse=True)


@dataclass(frozen=True)
class PendingWrite:
    """Mutating call that has been dispatched but not yet confirmed."""

    operation: WriteOperation
    submitted_at: datetime
    target_id: Optional[int]
    """Record id being written, ``None`` for the synthetic create marker."""
    tx_hash: Optional[str] = None
    """Filled once the wallet accepted the dispatch."""


@dataclass(frozen=True)
class LogEntry:
    """One event log from a transaction receipt."""

    address: str
    topics: Tuple[str, ...]
    data: str = "0x"


@dataclass(frozen=True)
class TxReceipt:
    """Normalized confirmation receipt."""

    tx_hash: str
    status: int
    logs: Tuple[LogEntry, ...] = ()
    block_number: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class WriteOutcome:
    """Final result of a confirmed (or failed) mutating operation."""

    operation: WriteOperation
    ok: bool
    tx_hash: Optional[str]
    record_id: Optional[int] = None
    """Created or updated record id; ``None`` when it could not be recovered."""
    failure: Optional[str] = None
    """Failure classification code, exactly one per failed outcome."""
    message: str = ""
    suggestions: Tuple[str, ...] = ()
    sender: Optional[str] = None
    """Account the transaction was dispatched from."""


@dataclass(frozen=True)
class DiagnosticReport:
    """Outcome of one full diagnostics probe run."""

    contract_address: str
    address_ok: bool
    reachable: bool
    capability_ok: bool
    read_ok: bool
    errors: Dict[str, str] = field(default_factory=dict)
    """Check name -> diagnostic message, only for failed checks."""

    @property
    def all_ok(self) -> bool:
        return self.address_ok and self.reachable and self.capability_ok and self.read_ok

    @property
    def recommendations(self) -> List[str]:
        """Human-readable advice derived only from the check outcomes."""
        recs: List[str] = []
        if not self.address_ok:
            recs.append(
                "The configured contract address is not a valid address: "
                + self.contract_address
            )
        if not self.reachable:
            recs.append(
                "Check that the contract is properly deployed at address: "
                + self.contract_address
            )
        if self.reachable and not self.capability_ok:
            recs.append(
                "The contract exists but encryption functionality isn't working. "
                "This may indicate a problem with the contract deployment."
            )
        if self.reachable and not self.read_ok:
            recs.append(
                "The contract exists but note storage isn't responding. "
                "You may need to register your wallet first."
            )
        if not recs:
            recs.append(
                "The contract appears to be working correctly. If you're still "
                "experiencing issues, try reconnecting your wallet."
            )
        return recs


__all__ = [
    "Account",
    "DiagnosticReport",
    "LogEntry",
    "PendingWrite",
    "Record",
    "RecordSummary",
    "Session",
    "TxReceipt",
    "WriteOperation",
    "WriteOutcome",
    "sort_records",
]
