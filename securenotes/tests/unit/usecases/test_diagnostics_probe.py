from __future__ import annotations

import pytest

from securenotes.adapters.notes_contract_mock import NotesContractMock
from securenotes.domain.errors import Unauthenticated
from securenotes.domain.network import FLUENT_DEVNET
from securenotes.usecases.diagnostics_probe import DiagnosticsProbe
from securenotes.usecases.wallet_session import WalletSession
from securenotes.tests.unit.helpers import connected_session, make_wallet


def test_healthy_contract_passes_every_check() -> None:
    probe = DiagnosticsProbe(connected_session(), NotesContractMock())

    report = probe()

    assert report.all_ok
    assert report.errors == {}
    assert report.recommendations[0].startswith("The contract appears to be working correctly.")


def test_checks_run_independently() -> None:
    contract = NotesContractMock()
    contract.broken_reads = {"encryptNote"}

    report = DiagnosticsProbe(connected_session(), contract)()

    assert report.reachable
    assert not report.capability_ok
    assert report.read_ok
    assert set(report.errors) == {"encryption"}
    assert report.errors["encryption"].startswith("Failed to encrypt test data: encryptNote")
    assert any("encryption functionality" in rec for rec in report.recommendations)


def test_unreachable_contract_still_runs_later_checks() -> None:
    contract = NotesContractMock()
    contract.broken_reads = {"getEncryptionContractAddress", "getNoteCount"}

    report = DiagnosticsProbe(connected_session(), contract)()

    assert not report.reachable
    assert report.capability_ok
    assert not report.read_ok
    assert set(report.errors) == {"contract", "note_count"}
    assert report.recommendations == [
        "Check that the contract is properly deployed at address: " + contract.address
    ]


def test_malformed_address_is_reported() -> None:
    contract = NotesContractMock(contract_address="0x1234")

    report = DiagnosticsProbe(connected_session(), contract)()

    assert not report.address_ok
    assert report.errors["address"] == "Invalid contract address format"
    assert "not a valid address" in report.recommendations[0]


def test_each_run_builds_a_fresh_report() -> None:
    contract = NotesContractMock()
    probe = DiagnosticsProbe(connected_session(), contract)
    contract.broken_reads = {"getNoteCount"}
    first = probe()

    contract.broken_reads = set()
    second = probe()

    assert not first.read_ok
    assert second.all_ok
    assert first is not second


def test_probe_requires_session() -> None:
    probe = DiagnosticsProbe(WalletSession(make_wallet(), FLUENT_DEVNET), NotesContractMock())

    with pytest.raises(Unauthenticated):
        probe()
