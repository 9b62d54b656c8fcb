from __future__ import annotations

from pathlib import Path

import pytest

from securenotes.adapters.storage_local import StorageLocal
from securenotes.viewmodels.settings_vm import SettingsConfig, SettingsVM, default_settings_payload


def test_defaults_are_valid() -> None:
    vm = SettingsVM()

    assert vm.is_valid()
    assert vm.provider_url == "http://127.0.0.1:1248"
    assert vm.refresh_delays_ms == (2000, 4000)
    assert vm.network.chain_id == 20993


def test_default_payload_is_json_friendly() -> None:
    payload = default_settings_payload()

    assert payload["refresh_delays_ms"] == [2000, 4000]
    assert payload["network"]["chain_id"] == 20993
    assert payload["debug_logging"] in (True, False)


def test_apply_dict_coerces_values() -> None:
    vm = SettingsVM()

    vm.apply_dict(
        {
            "receipt_poll_ms": "750",
            "refresh_delays_ms": ["1000", 3000],
            "network": {"chain_id": "0x539", "chain_name": "Local"},
            "debug_logging": "yes",
        }
    )

    assert vm.receipt_poll_ms == 750
    assert vm.refresh_delays_ms == (1000, 3000)
    assert vm.network.chain_id == 1337
    assert vm.network.chain_name == "Local"
    assert vm.network.rpc_url == "https://rpc.dev.gblend.xyz/"
    assert vm.debug_logging is True


@pytest.mark.parametrize(
    "payload",
    [
        {"unknown": 1},
        {"receipt_poll_ms": -1},
        {"receipt_poll_ms": True},
        {"refresh_delays_ms": "2000"},
        {"network": {"chainid": 1}},
        {"network": ["not", "a", "mapping"]},
    ],
)
def test_apply_dict_rejects_bad_input(payload: dict) -> None:
    vm = SettingsVM()

    with pytest.raises(ValueError):
        vm.apply_dict(payload)

    assert vm.config == SettingsConfig()


def test_save_requires_valid_contract_address() -> None:
    saved = []
    vm = SettingsVM(on_save=saved.append)
    vm.contract_address = "not-an-address"

    assert not vm.is_valid()
    with pytest.raises(ValueError):
        vm.cmd_save()
    assert saved == []


def test_settings_survive_storage_round_trip(tmp_path: Path) -> None:
    storage = StorageLocal(root_dir=str(tmp_path))
    vm = SettingsVM(on_save=storage.save_user_prefs)
    vm.provider_url = "  http://localhost:8545 "
    vm.request_timeout_s = 30
    vm.cmd_save()

    restored = SettingsVM()
    restored.apply_dict(storage.load_user_prefs())

    assert restored.config == vm.config
    assert restored.provider_url == "http://localhost:8545"


def test_run_diagnostics_command_delegates() -> None:
    calls = []
    vm = SettingsVM(on_run_diagnostics=lambda: calls.append("run"))

    vm.cmd_run_diagnostics()

    assert calls == ["run"]
