from __future__ import annotations
import json, os, tempfile
from typing import Dict

from securenotes.domain.ports import StoragePort

PREFS_FILENAME = "user_prefs.json"


class StorageLocal(StoragePort):
    """Local filesystem storage for user prefs (flat JSON)."""

    def __init__(self, root_dir: str = ".") -> None:
        self.root = root_dir

    @property
    def prefs_path(self) -> str:
        return os.path.join(self.root, PREFS_FILENAME)

    def save_user_prefs(self, prefs: Dict) -> None:
        os.makedirs(self.root, exist_ok=True)
        # write next to the target and swap, so a crash never leaves half a file
        fd, tmp_path = tempfile.mkstemp(prefix="user_prefs_", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(prefs, f, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_path, self.prefs_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def load_user_prefs(self) -> Dict:
        path = self.prefs_path
        if not os.path.exists(path):
            return {}
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} does not contain a JSON object.")
        return data
