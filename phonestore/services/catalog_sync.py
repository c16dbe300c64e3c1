"""
Rebuilds the product list in store-config.json from MobileAPI.dev.

    phonestore-sync-catalog

Needs MOBILEAPI_DEV_KEY. Payment config is kept, products are replaced.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import random
import re
import sys
from typing import Any, Dict, List, Optional

import aiohttp

from phonestore.config import Settings, settings
from phonestore.db.catalog import slugify
from phonestore.db.json_file import JsonFile
from phonestore.db.storage import init_directories

logger = logging.getLogger(__name__)

SEARCH_URL = "https://mobileapi.dev/devices/search/"

IPHONE_MODELS = [
    "iPhone 13",
    "iPhone 13 Pro",
    "iPhone 13 Pro Max",
    "iPhone 14",
    "iPhone 14 Pro",
    "iPhone 14 Pro Max",
    "iPhone 15",
    "iPhone 15 Pro",
    "iPhone 15 Pro Max",
    "iPhone 16",
    "iPhone 16 Pro",
    "iPhone 16 Pro Max",
]

DEFAULT_SPECS = ["Advanced features", "Premium build quality"]
DEFAULT_STORAGES = ["128GB", "256GB", "512GB"]


async def fetch_phone(session: aiohttp.ClientSession, model_name: str, api_key: str) -> Optional[Dict[str, Any]]:
    try:
        async with session.get(
            SEARCH_URL,
            params={"name": model_name},
            headers={"Authorization": f"Token {api_key}", "Accept": "application/json"},
        ) as resp:
            if resp.status != 200:
                logger.error("API error for %s: %s", model_name, resp.status)
                return None
            return await resp.json()
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.error("Failed to fetch %s: %s", model_name, e)
        return None


def extract_specs(description: str) -> List[str]:
    specs: List[str] = []
    parts = re.split(r"Features|Announced", description)
    if len(parts) > 1:
        features = [f.strip() for f in parts[1].split(",")[:4]]
        specs = [f for f in features if 0 < len(f) < 100]
    return specs or list(DEFAULT_SPECS)


def _discount() -> int:
    return random.randint(25, 29)


def extract_storage_options(description: str) -> List[Dict[str, Any]]:
    options: List[Dict[str, Any]] = []
    seen = set()
    for m in re.finditer(r"(\d+)\s*GB storage", description, flags=re.IGNORECASE):
        capacity = m.group(1)
        if capacity in seen:
            continue
        seen.add(capacity)
        price = 40000 + int(capacity) * 200
        options.append({
            "capacity": f"{capacity}GB",
            "price": price,
            "originalPrice": price + 20000,
            "discount": _discount(),
        })

    if not options:
        for i, capacity in enumerate(DEFAULT_STORAGES):
            price = 50000 + i * 15000
            options.append({
                "capacity": capacity,
                "price": price,
                "originalPrice": price + 20000,
                "discount": _discount(),
            })
    return options


def release_date(description: str) -> Optional[str]:
    m = re.search(r"Announced\s+([A-Za-z]+\s+\d{4})", description)
    return m.group(1) if m else None


def save_image(image_b64: str, path: str) -> bool:
    try:
        raw = image_b64.split(",", 1)[1] if "," in image_b64 else image_b64
        with open(path, "wb") as f:
            f.write(base64.b64decode(raw))
        return True
    except (ValueError, OSError) as e:
        logger.error("Failed to save image %s: %s", path, e)
        return False


def build_product(phone: Dict[str, Any], slug: str, image_path: str) -> Dict[str, Any]:
    description = phone.get("description") or ""
    product = {
        "id": slug,
        "deviceName": phone["name"],
        "displayName": f"Buy Apple {phone['name']}",
        "model": f"A{random.randint(2000, 2999)}",
        "storageOptions": extract_storage_options(description),
        "rating": round(random.uniform(4.0, 4.8), 1),
        "specs": extract_specs(description)[:4],
        "imagePath": image_path,
    }
    released = release_date(description)
    if released:
        product["releaseDate"] = released
    return product


async def sync_catalog(cfg: Settings, delay: float = 0.5) -> int:
    if not cfg.mobileapi_key:
        raise RuntimeError("MOBILEAPI_DEV_KEY is empty. Set MOBILEAPI_DEV_KEY in .env")

    init_directories(cfg)
    products: List[Dict[str, Any]] = []
    processed = set()

    logger.info("Fetching %d iPhone models from MobileAPI.dev", len(IPHONE_MODELS))
    async with aiohttp.ClientSession() as session:
        for model_name in IPHONE_MODELS:
            phone = await fetch_phone(session, model_name, cfg.mobileapi_key)
            if not phone or not phone.get("name"):
                logger.warning("Skipped: %s", model_name)
                continue

            slug = slugify(phone["name"])
            if slug in processed:
                logger.warning("Skipped duplicate: %s", phone["name"])
                continue
            processed.add(slug)

            image_name = f"{slug}.jpg"
            if phone.get("image_b64"):
                save_image(phone["image_b64"], os.path.join(cfg.product_images_dir, image_name))

            products.append(build_product(phone, slug, f"/uploads/product-images/{image_name}"))
            await asyncio.sleep(delay)

    store_file = JsonFile(cfg.config_path, default=dict)
    with store_file.lock:
        config = store_file.read()
        store_file.write({"products": products, "paymentConfig": config.get("paymentConfig", {})})

    logger.info("Saved %d products to %s", len(products), cfg.config_path)
    return len(products)


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    try:
        asyncio.run(sync_catalog(settings))
    except RuntimeError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
