from __future__ import annotations

import json
from pathlib import Path

from securenotes.adapters.storage_local import StorageLocal
from securenotes.viewmodels.settings_vm import SettingsVM


def test_missing_prefs_file_loads_empty(tmp_path: Path) -> None:
    storage = StorageLocal(root_dir=str(tmp_path))

    assert storage.load_user_prefs() == {}
    assert not (tmp_path / "user_prefs.json").exists()


def test_prefs_round_trip_leaves_no_temp_files(tmp_path: Path) -> None:
    storage = StorageLocal(root_dir=str(tmp_path))
    vm = SettingsVM()
    vm.apply_dict({"receipt_poll_ms": 750, "refresh_delays_ms": [1000, 3000]})

    storage.save_user_prefs(vm.to_dict())

    assert list(tmp_path.glob("user_prefs_*.tmp")) == []
    with (tmp_path / "user_prefs.json").open("r", encoding="utf-8") as fh:
        assert json.load(fh) == vm.to_dict()
    assert storage.load_user_prefs() == vm.to_dict()
