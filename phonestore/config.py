from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]  # .../phonestore repo root
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int | None = None) -> int | None:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


def _get_path(*keys: str, default: str) -> str:
    v = _get_env(*keys, default=default)
    return str(v)


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    config_path: str
    data_dir: str
    uploads_dir: str
    export_dir: str
    telegram_bot_token: str
    telegram_chat_id: str
    admin_pin: str
    admin_session_hours: int
    default_advance_payment: int
    store_name: str
    mobileapi_key: str
    log_level: str

    @property
    def screenshots_dir(self) -> str:
        return os.path.join(self.uploads_dir, "payment-screenshots")

    @property
    def qr_codes_dir(self) -> str:
        return os.path.join(self.uploads_dir, "qr-codes")

    @property
    def product_images_dir(self) -> str:
        return os.path.join(self.uploads_dir, "product-images")


settings = Settings(
    host=_get_env("HOST", default="0.0.0.0") or "0.0.0.0",
    port=_get_int("PORT", default=5000) or 5000,
    config_path=_get_path("CONFIG_PATH", "STORE_CONFIG_PATH", default=str(ROOT_DIR / "config" / "store-config.json")),
    data_dir=_get_path("DATA_DIR", default=str(ROOT_DIR / "data")),
    uploads_dir=_get_path("UPLOADS_DIR", default=str(ROOT_DIR / "uploads")),
    export_dir=_get_path("EXPORT_DIR", default=str(ROOT_DIR / "exports")),
    telegram_bot_token=_get_env("TELEGRAM_BOT_TOKEN", "BOT_TOKEN", default="") or "",
    telegram_chat_id=_get_env("TELEGRAM_CHAT_ID", "CHAT_ID", default="") or "",
    admin_pin=_get_env("ADMIN_PIN", default="1161") or "1161",
    admin_session_hours=_get_int("ADMIN_SESSION_HOURS", default=12) or 12,
    default_advance_payment=_get_int("DEFAULT_ADVANCE_PAYMENT", default=550) or 550,
    store_name=_get_env("STORE_NAME", default="Refurbished iPhone Store") or "Refurbished iPhone Store",
    mobileapi_key=_get_env("MOBILEAPI_DEV_KEY", "MOBILEAPI_KEY", default="") or "",
    log_level=(_get_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
)
