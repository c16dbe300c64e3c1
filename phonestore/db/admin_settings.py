from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from phonestore.db.json_file import JsonFile


def _default() -> Dict[str, Any]:
    return {"id": "default", "updatedAt": datetime.now(timezone.utc).isoformat()}


class AdminSettingsStore:
    """Single settings record (id="default")."""

    def __init__(self, path: str):
        self.file = JsonFile(path, default=_default)
        self._settings: Dict[str, Any] = self.file.load_or_init()

    def get(self) -> Dict[str, Any]:
        with self.file.lock:
            return dict(self._settings)

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        with self.file.lock:
            merged = dict(self._settings)
            merged.update({k: v for k, v in changes.items() if k not in ("id", "updatedAt")})
            merged["id"] = "default"
            merged["updatedAt"] = datetime.now(timezone.utc).isoformat()
            self.file.write(merged)
            self._settings = merged
            return dict(merged)
