import json
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from phonestore.config import settings
from phonestore.web.main import create_app

CATALOG = {
    "products": [
        {
            "id": "p1",
            "deviceName": "iPhone 13",
            "displayName": "Buy Apple iPhone 13",
            "model": "A2482",
            "colorOptions": ["Midnight", "Blue"],
            "storageOptions": [
                {"capacity": "128GB", "price": 50000, "originalPrice": 70000, "discount": 29},
                {"capacity": "256GB", "price": 60000, "originalPrice": 80000, "discount": 25},
            ],
            "rating": 4.5,
            "specs": ["A15 Bionic", "6.1-inch display"],
        },
        {
            "id": "p2",
            "deviceName": "iPhone 14 Pro",
            "displayName": "Buy Apple iPhone 14 Pro",
            "model": "A2650",
            "storageOptions": [
                {"capacity": "128GB", "price": 75000},
            ],
            "specs": [],
        },
    ],
    "paymentConfig": {
        "upiId": "store@upi",
        "qrCodeUrl": "",
        "defaultAdvancePayment": 550,
    },
}

CUSTOMER = {
    "customerName": "Asha Verma",
    "phone": "9876543210",
    "address": "12 MG Road, Indiranagar, Bengaluru",
    "pinCode": "560038",
}

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def screenshot(name="payment.png", content_type="image/png"):
    return {"screenshot": (name, PNG, content_type)}


@pytest.fixture
def cfg(tmp_path):
    config_path = tmp_path / "config" / "store-config.json"
    config_path.parent.mkdir()
    config_path.write_text(json.dumps(CATALOG), encoding="utf-8")
    return replace(
        settings,
        config_path=str(config_path),
        data_dir=str(tmp_path / "data"),
        uploads_dir=str(tmp_path / "uploads"),
        export_dir=str(tmp_path / "exports"),
        telegram_bot_token="",
        telegram_chat_id="",
        admin_pin="1161",
        default_advance_payment=550,
        store_name="Test Store",
    )


@pytest.fixture
def app(cfg):
    return create_app(cfg)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    r = client.post("/api/admin/verify-pin", json={"pin": "1161"})
    assert r.status_code == 200
    return {"X-Admin-Token": r.json()["token"]}
