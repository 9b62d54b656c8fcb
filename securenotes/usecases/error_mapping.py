"""Translate adapter errors and receipts into the domain error taxonomy."""

from __future__ import annotations


from typing import Optional, Tuple, Type

from securenotes.adapters.rpc_errors import RpcError, RpcTimeoutError
from securenotes.domain.entities import TxReceipt
from securenotes.domain.errors import (
    ContractUnreachable,
    DispatchRejected,
    ExecutionReverted,
    InsufficientFunds,
    NotesError,
    ReadFailed,
    UnknownFailure,
)
from securenotes.domain.ports import UseCaseError

_REJECTION_MARKERS = ("user rejected", "user denied", "action_rejected")

_GENERAL_SUGGESTIONS: Tuple[str, ...] = (
    "Check the configured contract address.",
    "Make sure the notes contract is properly deployed on the network.",
    "Verify that your wallet has enough ETH for transaction fees.",
)

# Ordered: the first matching pattern wins.
_MESSAGE_PATTERNS: Tuple[Tuple[str, Type[NotesError], str], ...] = (
    (
        "note does not exist",
        ExecutionReverted,
        "Note does not exist or you don't have permission to edit it.",
    ),
    (
        "registered",
        ExecutionReverted,
        "Your wallet isn't correctly registered with the contract.",
    ),
    (
        "execution reverted",
        ExecutionReverted,
        "Transaction was rejected by the smart contract.",
    ),
    (
        "insufficient funds",
        InsufficientFunds,
        "Your wallet doesn't have enough ETH to pay for this transaction.",
    ),
    (
        "unpredictable_gas_limit",
        ContractUnreachable,
        "Gas estimation failed. The contract or function may not exist at the specified address.",
    ),
    (
        "contract not responding",
        ContractUnreachable,
        "The contract is not responding. The contract address may be incorrect.",
    ),
    (
        "contract address is invalid",
        ContractUnreachable,
        "The contract address is in an invalid format. Please check configuration.",
    ),
    (
        "no code at address",
        ContractUnreachable,
        "No contract code was found at the configured address.",
    ),
)


def is_user_rejection(exc: Optional[BaseException]) -> bool:
    """Return True when ``exc`` signals that the user declined a wallet prompt."""
    if exc is None:
        return False
    if isinstance(exc, RpcError) and exc.user_rejected:
        return True
    text = str(exc).lower()
    return any(marker in text for marker in _REJECTION_MARKERS)


def classify_failure(
    exc: Optional[BaseException] = None,
    *,
    receipt: Optional[TxReceipt] = None,
) -> NotesError:
    """Classify a failed write into exactly one taxonomy error.

    Precedence: user rejection, then a mined receipt with status 0, then
    message patterns, then unknown.
    """
    if isinstance(exc, NotesError):
        return exc
    if is_user_rejection(exc):
        return DispatchRejected(suggestions=("Approve the transaction in your wallet to save.",))
    if receipt is not None and not receipt.succeeded:
        message = (
            "Transaction was sent to the blockchain but failed during execution. "
            "This is likely due to a problem with the contract setup."
        )
        if receipt.tx_hash:
            message += f" Transaction hash: {receipt.tx_hash}"
        return ExecutionReverted(message, suggestions=_GENERAL_SUGGESTIONS)
    text = str(exc or "")
    lowered = text.lower()
    for pattern, cls, message in _MESSAGE_PATTERNS:
        if pattern in lowered:
            return cls(message, suggestions=_GENERAL_SUGGESTIONS)
    if text.strip():
        return UnknownFailure(text.strip(), suggestions=_GENERAL_SUGGESTIONS)
    return UnknownFailure(suggestions=_GENERAL_SUGGESTIONS)


def map_read_error(exc: Exception, *, default_message: Optional[str] = None) -> UseCaseError:
    """Map a failed read (list/fetch) onto ``ReadFailed`` or ``ContractUnreachable``."""
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, RpcTimeoutError):
        return ReadFailed("Request timed out. Check your connection and try again.")
    lowered = str(exc).lower()
    for pattern, cls, message in _MESSAGE_PATTERNS:
        if cls is ContractUnreachable and pattern in lowered:
            return ContractUnreachable(message)
    if "note does not exist" in lowered:
        return ReadFailed("Note does not exist or you don't have permission to view it.")
    base = default_message or ReadFailed.DEFAULT_MESSAGE
    detail = str(exc).strip()
    return ReadFailed(f"{base} ({detail})" if detail else base)


__all__ = ["classify_failure", "is_user_rejection", "map_read_error"]
