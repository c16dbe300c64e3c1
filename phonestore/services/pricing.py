from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from phonestore.constants import PAYMENT_FULL


class PricingError(LookupError):
    """Product or storage option missing from the catalog."""


def discounted_price(original_price: float, discount: Optional[float]) -> int:
    # half-up, 0.5 always goes up
    return int(math.floor(original_price * (1 - (discount or 0) / 100) + 0.5))


def with_derived_prices(storage_options: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for opt in storage_options:
        row = {
            "capacity": opt["capacity"],
            "originalPrice": opt["originalPrice"],
            "price": discounted_price(opt["originalPrice"], opt.get("discount")),
        }
        if opt.get("discount") is not None:
            row["discount"] = opt["discount"]
        out.append(row)
    return out


def find_product(config: Dict[str, Any], product_id: str) -> Dict[str, Any]:
    for p in config.get("products", []):
        if p.get("id") == product_id:
            return p
    raise PricingError(f"Product {product_id} not found")


def find_storage_option(config: Dict[str, Any], product_id: str, storage: str) -> tuple[Dict[str, Any], Dict[str, Any]]:
    product = find_product(config, product_id)
    for opt in product.get("storageOptions", []):
        if opt.get("capacity") == storage:
            return product, opt
    raise PricingError(f"Storage option {storage} not found for product {product_id}")


def resolve_order_pricing(
    config: Dict[str, Any],
    product_id: str,
    storage: str,
    payment_type: str,
) -> Dict[str, Any]:
    product, opt = find_storage_option(config, product_id, storage)

    full_price = opt["price"]
    if payment_type == PAYMENT_FULL:
        paid = full_price
    else:
        advance = config.get("paymentConfig", {}).get("defaultAdvancePayment", 0)
        paid = min(advance, full_price)

    return {
        "productName": product["displayName"],
        "fullPrice": full_price,
        "paidAmount": paid,
        "remainingBalance": full_price - paid,
    }
