"""Domain-level error taxonomy shared by use cases and view models.

Each class pins a stable ``code`` so views can branch on it without leaking
JSON-RPC or transport details. Transaction failures carry fix suggestions in
``meta["suggestions"]``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from .ports import UseCaseError


class NotesError(UseCaseError):
    CODE = "UNKNOWN"
    DEFAULT_MESSAGE = "Unknown error occurred."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        suggestions: Sequence[str] = (),
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload = dict(meta or {})
        if suggestions:
            payload["suggestions"] = tuple(suggestions)
        super().__init__(self.CODE, message or self.DEFAULT_MESSAGE, meta=payload)

    @property
    def suggestions(self) -> tuple:
        return tuple(self.meta.get("suggestions") or ())


# ---- Authentication ----
class NoProviderDetected(NotesError):
    CODE = "NO_PROVIDER"
    DEFAULT_MESSAGE = "No Ethereum wallet detected. Please install a wallet provider."


class NetworkSwitchRejected(NotesError):
    CODE = "NETWORK_SWITCH_REJECTED"
    DEFAULT_MESSAGE = "Failed to switch the wallet to the supported network."


class SignatureRejected(NotesError):
    CODE = "SIGNATURE_REJECTED"
    DEFAULT_MESSAGE = "You must sign the message to authenticate with the app."


class SignatureMismatch(NotesError):
    CODE = "SIGNATURE_MISMATCH"
    DEFAULT_MESSAGE = "Signature verification failed. Please try connecting again."


class Unauthenticated(NotesError):
    CODE = "UNAUTHENTICATED"
    DEFAULT_MESSAGE = "Please connect your wallet first."


# ---- Transactions ----
class DispatchRejected(NotesError):
    CODE = "DISPATCH_REJECTED"
    DEFAULT_MESSAGE = "Transaction was rejected in your wallet."


class ExecutionReverted(NotesError):
    CODE = "EXECUTION_REVERTED"
    DEFAULT_MESSAGE = "Transaction was sent to the blockchain but failed during execution."


class InsufficientFunds(NotesError):
    CODE = "INSUFFICIENT_FUNDS"
    DEFAULT_MESSAGE = "Your wallet doesn't have enough funds to pay for this transaction."


class ContractUnreachable(NotesError):
    CODE = "CONTRACT_UNREACHABLE"
    DEFAULT_MESSAGE = (
        "The contract is not responding. The contract address may be incorrect."
    )


class UnknownFailure(NotesError):
    CODE = "UNKNOWN"
    DEFAULT_MESSAGE = "Unknown error occurred."


# ---- Local guards ----
class WriteInProgress(NotesError):
    CODE = "WRITE_IN_PROGRESS"
    DEFAULT_MESSAGE = "A save for this note is still waiting for confirmation."


class InvalidNote(NotesError):
    CODE = "INVALID_NOTE"
    DEFAULT_MESSAGE = "Please enter a title for your note."


class ReadFailed(NotesError):
    CODE = "READ_FAILED"
    DEFAULT_MESSAGE = "Failed to load notes. Please try refreshing."


__all__ = [
    "ContractUnreachable",
    "DispatchRejected",
    "ExecutionReverted",
    "InsufficientFunds",
    "InvalidNote",
    "NetworkSwitchRejected",
    "NotesError",
    "NoProviderDetected",
    "ReadFailed",
    "SignatureMismatch",
    "SignatureRejected",
    "Unauthenticated",
    "UnknownFailure",
    "WriteInProgress",
]
