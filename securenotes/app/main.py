"""Command-line entrypoint for the notes client runtime."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional, Sequence

from securenotes.adapters.notes_contract_mock import NotesContractMock
from securenotes.adapters.wallet_mock import WalletMock
from securenotes.domain.entities import DiagnosticReport, WriteOutcome
from securenotes.domain.ports import UseCaseError
from securenotes.utils import logging as logging_utils

from .runtime import BlockingLoop, NotesRuntime


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI args for one client command."""
    parser = argparse.ArgumentParser(description="Wallet-authenticated notes client.")
    parser.add_argument("--provider-url", help="Wallet provider JSON-RPC endpoint.")
    parser.add_argument("--contract", help="Notes contract address.")
    parser.add_argument(
        "--mock", action="store_true", help="Use the in-memory wallet and contract."
    )
    parser.add_argument(
        "--save-settings", action="store_true", help="Persist --provider-url/--contract."
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("settings", help="Print the effective settings.")
    sub.add_parser("diagnose", help="Run the contract health checks.")
    sub.add_parser("list", help="List your notes.")
    show = sub.add_parser("show", help="Print one note.")
    show.add_argument("note_id", type=int)
    create = sub.add_parser("create", help="Create a note and wait for confirmation.")
    create.add_argument("title")
    create.add_argument("body", nargs="?", default="")
    update = sub.add_parser("update", help="Update a note and wait for confirmation.")
    update.add_argument("note_id", type=int)
    update.add_argument("title")
    update.add_argument("body", nargs="?", default="")
    delete = sub.add_parser("delete", help="Delete a note and wait for confirmation.")
    delete.add_argument("note_id", type=int)
    return parser.parse_args(argv)


def _print_report(report: DiagnosticReport) -> None:
    print(f"Contract: {report.contract_address}")
    for label, ok in (
        ("address", report.address_ok),
        ("contract", report.reachable),
        ("encryption", report.capability_ok),
        ("note_count", report.read_ok),
    ):
        line = f"  {label:<11} {'ok' if ok else 'FAILED'}"
        if label in report.errors:
            line += f"  {report.errors[label]}"
        print(line)
    for rec in report.recommendations:
        print(f"- {rec}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging_utils.configure_root()
    args = _parse_args(argv)

    loop = BlockingLoop()
    doubles: Dict[str, Any] = {}
    if args.mock:
        doubles = {"wallet": WalletMock(), "contract": NotesContractMock()}
    runtime = NotesRuntime(schedule=loop.after, cancel=loop.after_cancel, **doubles)

    overrides: Dict[str, Any] = {}
    if args.provider_url:
        overrides["provider_url"] = args.provider_url
    if args.contract:
        overrides["contract_address"] = args.contract
    if overrides:
        try:
            runtime.apply_settings_payload(overrides, persist=args.save_settings)
        except ValueError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 2

    if args.command == "settings":
        print(json.dumps(runtime.settings_payload(), indent=2, sort_keys=True))
        return 0

    errors: List[UseCaseError] = []
    outcomes: List[WriteOutcome] = []

    def on_error(err: UseCaseError) -> None:
        errors.append(err)
        print(f"error [{err.code}]: {err.message}", file=sys.stderr)
        for hint in err.meta.get("suggestions") or ():
            print(f"  - {hint}", file=sys.stderr)

    try:
        presenter = runtime.presenter(on_error=on_error, on_outcome=outcomes.append)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        if presenter.connect() is None:
            return 1
        if args.command == "diagnose":
            report = presenter.run_diagnostics()
            if report is None:
                return 1
            _print_report(report)
            return 0 if report.all_ok else 1
        if args.command == "list":
            vm = presenter.notes_vm
            if vm.error:
                print(f"error: {vm.error}", file=sys.stderr)
                return 1
            for row in vm.rows:
                print(f"{row.note_id:>6}  {row.updated_at}  {row.title}")
            return 0
        if args.command == "show":
            record = presenter.open_note(args.note_id)
            if record is None:
                return 1
            print(record.title)
            print(record.body)
            return 0

        if args.command == "create":
            presenter.create()
            handle = presenter.save(args.title, args.body)
        else:
            if presenter.open_note(args.note_id) is None:
                return 1
            if args.command == "update":
                presenter.edit()
                handle = presenter.save(args.title, args.body)
            else:
                handle = presenter.delete()
        if handle is None:
            return 1
        print(f"Submitted {handle.operation}: {handle.tx_hash}")
        explorer = runtime.settings_vm.network.explorer_tx_url(handle.tx_hash)
        if explorer:
            print(f"  {explorer}")
        loop.run_until(lambda: bool(outcomes))
        outcome = outcomes[-1]
        if outcome.ok:
            suffix = f" (note {outcome.record_id})" if outcome.record_id is not None else ""
            print(outcome.message + suffix)
            return 0
        return 1
    finally:
        runtime.close()


if __name__ == "__main__":
    sys.exit(main())
