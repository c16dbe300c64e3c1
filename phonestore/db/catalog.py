from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

from phonestore.constants import QR_SERVICE_URL
from phonestore.db.json_file import JsonFile
from phonestore.db.price_overrides import PriceOverrideStore
from phonestore.services.pricing import find_product, find_storage_option, with_derived_prices

logger = logging.getLogger(__name__)


def default_config(advance: int) -> Dict[str, Any]:
    return {
        "products": [],
        "paymentConfig": {
            "upiId": "",
            "qrCodeUrl": "",
            "defaultAdvancePayment": advance,
        },
    }


def slugify(text: str) -> str:
    s = re.sub(r"\s+", "-", text.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", s)


def upi_qr_url(upi_id: str, payee_name: str) -> str:
    upi_uri = f"upi://pay?pa={upi_id}&pn={payee_name}&cu=INR"
    return QR_SERVICE_URL.format(data=quote(upi_uri, safe=""))


class CatalogStore:
    """
    Product catalog + payment config in config/store-config.json.

    The file is re-read on every call. Admin overrides live in their own
    table and are merged into read_config() only.
    """

    def __init__(self, path: str, overrides: PriceOverrideStore, store_name: str = "", default_advance: int = 550):
        self.file = JsonFile(path, default=lambda: default_config(default_advance))
        self.overrides = overrides
        self.store_name = store_name
        self.default_advance = default_advance

    def read_raw_config(self) -> Dict[str, Any]:
        return self.file.read()

    def read_config(self) -> Dict[str, Any]:
        config = self.read_raw_config()
        config["products"] = self.overrides.apply(config.get("products", []))
        # older config files have no advance amount
        payment = config.setdefault("paymentConfig", {})
        if payment.get("defaultAdvancePayment") is None:
            payment["defaultAdvancePayment"] = self.default_advance
        return config

    def write_config(self, config: Dict[str, Any]) -> None:
        self.file.write(config)

    def list_products(self):
        return self.read_config()["products"]

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return find_product(self.read_config(), product_id)

    # ---------------- prices ----------------

    def apply_price_override(
        self,
        product_id: str,
        storage: str,
        price: int,
        original_price: Optional[int] = None,
        discount: Optional[float] = None,
    ) -> Dict[str, Any]:
        find_storage_option(self.read_raw_config(), product_id, storage)
        row = self.overrides.set(product_id, storage, price, original_price, discount)
        logger.info("Price override %s/%s -> %s", product_id, storage, price)
        return row

    def remove_price_override(self, product_id: str, storage: str) -> bool:
        return self.overrides.remove(product_id, storage)

    def list_price_overrides(self):
        return self.overrides.list()

    # ---------------- payment ----------------

    def set_upi_id(self, upi_id: str) -> Dict[str, Any]:
        with self.file.lock:
            config = self.read_raw_config()
            payment = config.setdefault("paymentConfig", {})
            payment["upiId"] = upi_id
            payment["qrCodeUrl"] = upi_qr_url(upi_id, self.store_name)
            self.write_config(config)
        logger.info("UPI id updated")
        return payment

    def set_qr_code_url(self, url: str) -> Dict[str, Any]:
        with self.file.lock:
            config = self.read_raw_config()
            payment = config.setdefault("paymentConfig", {})
            payment["qrCodeUrl"] = url
            self.write_config(config)
        return payment

    # ---------------- products ----------------

    def _unique_id(self, products, base: str) -> str:
        taken = {p.get("id") for p in products}
        base = base or "product"
        pid = base
        n = 2
        while pid in taken:
            pid = f"{base}-{n}"
            n += 1
        return pid

    def add_product(self, data: Dict[str, Any], image_path: Optional[str] = None) -> Dict[str, Any]:
        with self.file.lock:
            config = self.read_raw_config()
            products = config.setdefault("products", [])

            product = dict(data)
            product["id"] = self._unique_id(products, slugify(data["deviceName"]))
            product["storageOptions"] = with_derived_prices(data["storageOptions"])
            product.setdefault("specs", [])
            if image_path:
                product["imagePath"] = image_path

            products.append(product)
            self.write_config(config)
        logger.info("Product added: %s", product["id"])
        return product

    def update_product(
        self, product_id: str, updates: Dict[str, Any], image_path: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        with self.file.lock:
            config = self.read_raw_config()
            for product in config.get("products", []):
                if product.get("id") == product_id:
                    break
            else:
                return None

            changes = dict(updates)
            changes.pop("id", None)
            if "storageOptions" in changes:
                changes["storageOptions"] = with_derived_prices(changes["storageOptions"])
            product.update(changes)
            if image_path:
                product["imagePath"] = image_path
            self.write_config(config)

        if "storageOptions" in changes:
            # explicit edit supersedes older overrides for this product
            self.overrides.remove_product(product_id)
        logger.info("Product updated: %s", product_id)
        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> bool:
        with self.file.lock:
            config = self.read_raw_config()
            products = config.get("products", [])
            kept = [p for p in products if p.get("id") != product_id]
            if len(kept) == len(products):
                return False
            config["products"] = kept
            self.write_config(config)
        self.overrides.remove_product(product_id)
        logger.info("Product deleted: %s", product_id)
        return True
