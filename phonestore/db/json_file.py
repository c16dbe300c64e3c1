from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)


class JsonFile:
    """
    One JSON document on disk.

    Reads return a fresh copy every time. Writes go to a temp file in the same
    directory and are renamed over the target, so readers never see a half
    written document. The lock is shared by the store that owns the file so a
    read-modify-write can hold it for the whole sequence.
    """

    def __init__(self, path: str | Path, default: Callable[[], Any]):
        self.path = Path(path)
        self.default = default
        self.lock = threading.RLock()

    def read(self) -> Any:
        with self.lock:
            if not self.path.exists():
                return self.default()
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)

    def write(self, data: Any) -> None:
        with self.lock:
            os.makedirs(self.path.parent, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", delete=False, encoding="utf-8", dir=str(self.path.parent), suffix=".tmp"
            ) as tmp:
                json.dump(data, tmp, indent=2, ensure_ascii=False)
                tmp_path = Path(tmp.name)
            tmp_path.replace(self.path)

    def load_or_init(self) -> Any:
        """Reads the file, creating it from the default when missing or unreadable."""
        with self.lock:
            try:
                if self.path.exists():
                    return self.read()
            except (OSError, ValueError) as e:
                logger.error("Could not read %s, starting empty: %s", self.path, e)
            data = self.default()
            self.write(data)
            return data
