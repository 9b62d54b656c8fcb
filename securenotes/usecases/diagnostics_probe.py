from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict

from eth_utils import is_address

from securenotes.domain.entities import DiagnosticReport
from securenotes.domain.errors import Unauthenticated
from securenotes.domain.ports import NotesContractPort

from .wallet_session import WalletSession

PROBE_CONTENT = "Test content"

CHECK_ADDRESS = "address"
CHECK_CONTRACT = "contract"
CHECK_ENCRYPTION = "encryption"
CHECK_NOTE_COUNT = "note_count"


@dataclass
class DiagnosticsProbe:
    """Run the ordered read-only health checks against the notes contract.

    Each check is attempted regardless of how the others went, and every run
    builds a fresh ``DiagnosticReport``.
    """

    session: WalletSession
    contract: NotesContractPort
    _log: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._log = logging.getLogger(__name__)

    def __call__(self) -> DiagnosticReport:
        current = self.session.current
        if current is None:
            raise Unauthenticated("Connect your wallet before running diagnostics.")
        sender = current.account.value
        address = self.contract.address
        errors: Dict[str, str] = {}

        address_ok = bool(address) and is_address(address)
        if not address_ok:
            errors[CHECK_ADDRESS] = "Invalid contract address format"

        reachable = self._check(
            errors,
            CHECK_CONTRACT,
            "Contract exists but view function failed",
            lambda: self.contract.get_encryption_contract_address(sender),
        )
        capability_ok = self._check(
            errors,
            CHECK_ENCRYPTION,
            "Failed to encrypt test data",
            lambda: self.contract.encrypt_note(sender, PROBE_CONTENT),
        )
        read_ok = self._check(
            errors,
            CHECK_NOTE_COUNT,
            "Failed to check note count",
            lambda: self.contract.get_note_count(sender),
        )

        report = DiagnosticReport(
            contract_address=address,
            address_ok=address_ok,
            reachable=reachable,
            capability_ok=capability_ok,
            read_ok=read_ok,
            errors=errors,
        )
        self._log.info(
            "Diagnostics for %s: address=%s reachable=%s encryption=%s notes=%s",
            address,
            address_ok,
            reachable,
            capability_ok,
            read_ok,
        )
        return report

    def _check(
        self,
        errors: Dict[str, str],
        name: str,
        label: str,
        probe: Callable[[], object],
    ) -> bool:
        try:
            result = probe()
        except Exception as exc:
            self._log.warning("Diagnostic check %s failed: %s", name, exc)
            errors[name] = f"{label}: {exc or 'Unknown error'}"
            return False
        self._log.debug("Diagnostic check %s succeeded: %r", name, result)
        return True
