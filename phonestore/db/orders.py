from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from phonestore.db.json_file import JsonFile

logger = logging.getLogger(__name__)


class OrderStore:
    """Orders are append-only: there is no update or delete."""

    def __init__(self, path: str):
        self.file = JsonFile(path, default=list)
        self._orders: Dict[str, Dict[str, Any]] = {}
        for row in self.file.load_or_init():
            self._orders[row["id"]] = row

    def _save(self) -> None:
        self.file.write(list(self._orders.values()))

    def _stamp(self, order_data: Dict[str, Any]) -> Dict[str, Any]:
        order = dict(order_data)
        order["id"] = str(uuid.uuid4())
        order["createdAt"] = datetime.now(timezone.utc).isoformat()
        self._orders[order["id"]] = order
        return order

    def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        with self.file.lock:
            order = self._orders.get(order_id)
            return dict(order) if order else None

    def list(self) -> List[Dict[str, Any]]:
        with self.file.lock:
            return [dict(o) for o in self._orders.values()]

    def create(self, order_data: Dict[str, Any]) -> Dict[str, Any]:
        with self.file.lock:
            order = self._stamp(order_data)
            try:
                self._save()
            except Exception:
                del self._orders[order["id"]]
                raise
        logger.info("Order created: %s (%s %s)", order["id"], order.get("productId"), order.get("storage"))
        return dict(order)

    def create_batch(self, order_data_list: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Creates every order or none of them.

        Orders are stamped into the map one by one; if any of them fails, or
        the single write at the end fails, the ones added by this batch are
        taken out of the map again and the error is re-raised.
        """
        created: List[Dict[str, Any]] = []
        with self.file.lock:
            try:
                for data in order_data_list:
                    created.append(self._stamp(data))
                self._save()
            except Exception:
                for order in created:
                    self._orders.pop(order["id"], None)
                raise
        logger.info("Batch of %d orders created", len(created))
        return [dict(o) for o in created]
