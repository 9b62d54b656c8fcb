"""Domain package exports for value objects, ports and the error taxonomy."""

from .entities import (
    Account,
    DiagnosticReport,
    LogEntry,
    PendingWrite,
    Record,
    RecordSummary,
    Session,
    TxReceipt,
    WriteOutcome,
    sort_records,
)
from .network import DEFAULT_CONTRACT_ADDRESS, FLUENT_DEVNET, NetworkConfig
from .ports import UseCaseError

__all__ = [
    "Account",
    "DEFAULT_CONTRACT_ADDRESS",
    "DiagnosticReport",
    "FLUENT_DEVNET",
    "LogEntry",
    "NetworkConfig",
    "PendingWrite",
    "Record",
    "RecordSummary",
    "Session",
    "TxReceipt",
    "UseCaseError",
    "WriteOutcome",
    "sort_records",
]
