from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from phonestore.db.json_file import JsonFile


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CartStore:
    def __init__(self, path: str):
        self.file = JsonFile(path, default=list)
        self._items: Dict[str, Dict[str, Any]] = {}
        for row in self.file.load_or_init():
            self._items[row["id"]] = row

    def _save(self) -> None:
        self.file.write(list(self._items.values()))

    def list(self) -> List[Dict[str, Any]]:
        with self.file.lock:
            return [dict(i) for i in self._items.values()]

    def get(self, item_id: str) -> Optional[Dict[str, Any]]:
        with self.file.lock:
            item = self._items.get(item_id)
            return dict(item) if item else None

    def add(self, product_id: str, storage: str, color: Optional[str] = None, quantity: int = 1) -> Dict[str, Any]:
        with self.file.lock:
            for item in self._items.values():
                if (
                    item["productId"] == product_id
                    and item["storage"] == storage
                    and item.get("color") == color
                ):
                    before = item["quantity"]
                    item["quantity"] += quantity
                    try:
                        self._save()
                    except Exception:
                        item["quantity"] = before
                        raise
                    return dict(item)

            item = {
                "id": str(uuid.uuid4()),
                "productId": product_id,
                "storage": storage,
                "quantity": quantity,
                "addedAt": _now(),
            }
            if color is not None:
                item["color"] = color
            self._items[item["id"]] = item
            try:
                self._save()
            except Exception:
                del self._items[item["id"]]
                raise
            return dict(item)

    def update_quantity(self, item_id: str, quantity: int) -> Optional[Dict[str, Any]]:
        with self.file.lock:
            item = self._items.get(item_id)
            if not item:
                return None
            before = item["quantity"]
            item["quantity"] = quantity
            try:
                self._save()
            except Exception:
                item["quantity"] = before
                raise
            return dict(item)

    def remove(self, item_id: str) -> bool:
        with self.file.lock:
            if item_id not in self._items:
                return False
            item = self._items.pop(item_id)
            try:
                self._save()
            except Exception:
                self._items[item_id] = item
                raise
            return True

    def clear(self) -> None:
        with self.file.lock:
            before = dict(self._items)
            self._items.clear()
            try:
                self._save()
            except Exception:
                self._items.update(before)
                raise
