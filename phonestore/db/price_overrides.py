from __future__ import annotations

from typing import Any, Dict, List, Optional

from phonestore.db.json_file import JsonFile


class PriceOverrideStore:
    """Admin price overrides keyed by (productId, storage)."""

    def __init__(self, path: str):
        self.file = JsonFile(path, default=list)
        self._overrides: Dict[tuple, Dict[str, Any]] = {}
        for row in self.file.load_or_init():
            self._overrides[(row["productId"], row["storage"])] = row

    def _save(self) -> None:
        self.file.write(list(self._overrides.values()))

    def list(self) -> List[Dict[str, Any]]:
        with self.file.lock:
            return [dict(o) for o in self._overrides.values()]

    def get(self, product_id: str, storage: str) -> Optional[Dict[str, Any]]:
        with self.file.lock:
            row = self._overrides.get((product_id, storage))
            return dict(row) if row else None

    def set(
        self,
        product_id: str,
        storage: str,
        price: int,
        original_price: Optional[int] = None,
        discount: Optional[float] = None,
    ) -> Dict[str, Any]:
        row: Dict[str, Any] = {"productId": product_id, "storage": storage, "price": price}
        if original_price is not None:
            row["originalPrice"] = original_price
        if discount is not None:
            row["discount"] = discount
        with self.file.lock:
            self._overrides[(product_id, storage)] = row
            self._save()
        return dict(row)

    def remove(self, product_id: str, storage: str) -> bool:
        with self.file.lock:
            if (product_id, storage) not in self._overrides:
                return False
            del self._overrides[(product_id, storage)]
            self._save()
            return True

    def remove_product(self, product_id: str) -> int:
        with self.file.lock:
            keys = [k for k in self._overrides if k[0] == product_id]
            for k in keys:
                del self._overrides[k]
            if keys:
                self._save()
            return len(keys)

    def apply(self, products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Returns the products with every matching storage option overridden."""
        with self.file.lock:
            overrides = dict(self._overrides)
        if not overrides:
            return products
        for p in products:
            for opt in p.get("storageOptions", []):
                o = overrides.get((p.get("id"), opt.get("capacity")))
                if not o:
                    continue
                opt["price"] = o["price"]
                if "originalPrice" in o:
                    opt["originalPrice"] = o["originalPrice"]
                if "discount" in o:
                    opt["discount"] = o["discount"]
        return products
