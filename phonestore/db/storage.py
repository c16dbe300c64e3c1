from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass

from phonestore.config import Settings
from phonestore.constants import (
    ADMIN_SETTINGS_FILE,
    CART_FILE,
    ORDERS_FILE,
    PRODUCT_PRICES_FILE,
    UPLOAD_SUBDIRS,
)
from phonestore.db.admin_settings import AdminSettingsStore
from phonestore.db.cart import CartStore
from phonestore.db.catalog import CatalogStore, default_config
from phonestore.db.orders import OrderStore
from phonestore.db.price_overrides import PriceOverrideStore

logger = logging.getLogger(__name__)


@dataclass
class Storage:
    catalog: CatalogStore
    cart: CartStore
    orders: OrderStore
    admin_settings: AdminSettingsStore


def init_directories(settings: Settings) -> None:
    dirs = [os.path.join(settings.uploads_dir, d) for d in UPLOAD_SUBDIRS]
    dirs += [os.path.dirname(settings.config_path), settings.data_dir, settings.export_dir]

    for d in dirs:
        try:
            os.makedirs(d, exist_ok=True)
            probe = os.path.join(d, ".write-test")
            with open(probe, "w", encoding="utf-8") as f:
                f.write("test")
            os.remove(probe)
        except OSError as e:
            logger.error("Failed to create/access directory %s: %s", d, e)
            raise RuntimeError(f"Directory initialization failed for {d}. Please check permissions.") from e
        logger.debug("Directory ready: %s", d)

    if not os.path.exists(settings.config_path):
        logger.info("Creating default %s", settings.config_path)
        with open(settings.config_path, "w", encoding="utf-8") as f:
            json.dump(default_config(settings.default_advance_payment), f, indent=2)


def open_storage(settings: Settings) -> Storage:
    overrides = PriceOverrideStore(os.path.join(settings.data_dir, PRODUCT_PRICES_FILE))
    return Storage(
        catalog=CatalogStore(
            settings.config_path,
            overrides,
            store_name=settings.store_name,
            default_advance=settings.default_advance_payment,
        ),
        cart=CartStore(os.path.join(settings.data_dir, CART_FILE)),
        orders=OrderStore(os.path.join(settings.data_dir, ORDERS_FILE)),
        admin_settings=AdminSettingsStore(os.path.join(settings.data_dir, ADMIN_SETTINGS_FILE)),
    )
