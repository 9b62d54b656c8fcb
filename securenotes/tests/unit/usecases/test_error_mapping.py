from __future__ import annotations

import pytest

from securenotes.adapters.rpc_errors import RpcError, RpcTimeoutError, USER_REJECTED
from securenotes.domain.entities import TxReceipt
from securenotes.domain.errors import (
    ContractUnreachable,
    DispatchRejected,
    ExecutionReverted,
    InsufficientFunds,
    InvalidNote,
    ReadFailed,
    UnknownFailure,
)
from securenotes.usecases.error_mapping import classify_failure, is_user_rejection, map_read_error


def test_rejection_wins_over_reverted_receipt() -> None:
    exc = RpcError("execution reverted", code=USER_REJECTED)
    failure = classify_failure(exc, receipt=TxReceipt(tx_hash="0xabc", status=0))

    assert isinstance(failure, DispatchRejected)
    assert failure.suggestions == ("Approve the transaction in your wallet to save.",)


def test_status_zero_receipt_wins_over_message_pattern() -> None:
    failure = classify_failure(RuntimeError("insufficient funds"), receipt=TxReceipt(tx_hash="0xabc", status=0))

    assert isinstance(failure, ExecutionReverted)
    assert "0xabc" in failure.message
    assert len(failure.suggestions) == 3


@pytest.mark.parametrize(
    "text, expected",
    [
        ("execution reverted: note does not exist", ExecutionReverted),
        ("execution reverted: user not registered", ExecutionReverted),
        ("err: insufficient funds for gas * price + value", InsufficientFunds),
        ("UNPREDICTABLE_GAS_LIMIT", ContractUnreachable),
        ("getNote: contract returned no data (no code at address?)", ContractUnreachable),
    ],
)
def test_message_patterns(text: str, expected: type) -> None:
    failure = classify_failure(RpcError(text))

    assert isinstance(failure, expected)
    assert failure.code == expected.CODE


def test_note_missing_pattern_is_checked_before_generic_revert() -> None:
    failure = classify_failure(RpcError("execution reverted: note does not exist"))

    assert failure.message == "Note does not exist or you don't have permission to edit it."


def test_registration_pattern_is_checked_before_generic_revert() -> None:
    failure = classify_failure(RpcError("execution reverted: user not registered"))

    assert failure.message == "Your wallet isn't correctly registered with the contract."


def test_unmatched_text_is_unknown_with_original_message() -> None:
    failure = classify_failure(RuntimeError("nonce too low"))

    assert isinstance(failure, UnknownFailure)
    assert failure.code == "UNKNOWN"
    assert failure.message == "nonce too low"


def test_already_classified_error_passes_through() -> None:
    original = InvalidNote()

    assert classify_failure(original) is original


def test_rejection_detected_from_text_without_code() -> None:
    assert is_user_rejection(RuntimeError("MetaMask Tx Signature: User denied transaction signature."))
    assert not is_user_rejection(RuntimeError("execution reverted"))
    assert not is_user_rejection(None)


def test_read_timeout_maps_to_read_failed() -> None:
    err = map_read_error(RpcTimeoutError("Timeout contacting http://x"))

    assert isinstance(err, ReadFailed)
    assert err.message.startswith("Request timed out")


def test_read_without_contract_code_is_unreachable() -> None:
    err = map_read_error(RpcError("getNotesList: contract returned no data (no code at address?)"))

    assert isinstance(err, ContractUnreachable)


def test_read_fallback_keeps_detail() -> None:
    err = map_read_error(RpcError("boom"), default_message="Failed to load note.")

    assert isinstance(err, ReadFailed)
    assert err.message == "Failed to load note. (boom)"
