import json
import os

from conftest import CUSTOMER, screenshot


def _order_form(**overrides):
    form = {**CUSTOMER, "productId": "p1", "storage": "128GB", "paymentType": "advance"}
    form.update(overrides)
    return form


def _screenshots(cfg):
    return os.listdir(cfg.screenshots_dir)


def test_advance_order_pricing(client):
    r = client.post("/api/orders", data=_order_form(), files=screenshot())
    assert r.status_code == 201

    order = r.json()
    assert order["fullPrice"] == 50000
    assert order["paidAmount"] == 550
    assert order["remainingBalance"] == 49450
    assert order["productName"] == "Buy Apple iPhone 13"
    assert order["paymentScreenshot"].startswith("payment-")
    assert order["paymentScreenshot"].endswith(".png")
    assert order["id"] and order["createdAt"]


def test_full_payment_leaves_no_balance(client):
    r = client.post("/api/orders", data=_order_form(storage="256GB", paymentType="full", color="Blue"), files=screenshot())
    assert r.status_code == 201

    order = r.json()
    assert order["paidAmount"] == order["fullPrice"] == 60000
    assert order["remainingBalance"] == 0
    assert order["color"] == "Blue"


def test_order_can_be_fetched_and_listed(client):
    created = client.post("/api/orders", data=_order_form(), files=screenshot()).json()

    r = client.get(f"/api/orders/{created['id']}")
    assert r.status_code == 200
    assert r.json() == created

    assert [o["id"] for o in client.get("/api/orders").json()] == [created["id"]]


def test_unknown_order_is_not_found(client):
    r = client.get("/api/orders/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"error": "Order not found"}


def test_screenshot_is_required(client, cfg):
    r = client.post("/api/orders", data=_order_form())
    assert r.status_code == 400
    assert r.json()["error"] == "Payment screenshot is required"
    assert client.get("/api/orders").json() == []


def test_screenshot_must_be_an_image(client, cfg):
    r = client.post("/api/orders", data=_order_form(), files={"screenshot": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 400
    assert _screenshots(cfg) == []


def test_invalid_customer_fields(client, cfg):
    r = client.post("/api/orders", data=_order_form(phone="12345", pinCode="abc"), files=screenshot())
    assert r.status_code == 400

    body = r.json()
    assert body["error"] == "Invalid order data"
    fields = {d["field"] for d in body["details"]}
    assert {"phone", "pinCode"} <= fields
    assert _screenshots(cfg) == []


def test_unknown_product_deletes_screenshot(client, cfg):
    r = client.post("/api/orders", data=_order_form(productId="ghost"), files=screenshot())
    assert r.status_code == 404
    assert _screenshots(cfg) == []
    assert client.get("/api/orders").json() == []


def test_unknown_storage_deletes_screenshot(client, cfg):
    r = client.post("/api/orders", data=_order_form(storage="2TB"), files=screenshot())
    assert r.status_code == 404
    assert _screenshots(cfg) == []


def test_uploaded_screenshot_is_served(client):
    order = client.post("/api/orders", data=_order_form(), files=screenshot()).json()

    r = client.get(f"/uploads/payment-screenshots/{order['paymentScreenshot']}")
    assert r.status_code == 200
    assert r.content.startswith(b"\x89PNG")


def test_orders_survive_restart(client, cfg):
    from phonestore.db.orders import OrderStore

    created = client.post("/api/orders", data=_order_form(), files=screenshot()).json()

    reopened = OrderStore(os.path.join(cfg.data_dir, "orders.json"))
    assert reopened.get(created["id"]) == created


def test_price_override_is_used_for_new_orders(client, admin_headers):
    client.post(
        "/api/admin/product-prices",
        json={"productId": "p1", "storage": "128GB", "price": 45000},
        headers=admin_headers,
    )

    order = client.post("/api/orders", data=_order_form(paymentType="full"), files=screenshot()).json()
    assert order["fullPrice"] == 45000
    assert order["remainingBalance"] == 0


def test_advance_falls_back_when_config_has_no_amount(client, cfg):
    with open(cfg.config_path, encoding="utf-8") as f:
        config = json.load(f)
    del config["paymentConfig"]["defaultAdvancePayment"]
    with open(cfg.config_path, "w", encoding="utf-8") as f:
        json.dump(config, f)

    order = client.post("/api/orders", data=_order_form(), files=screenshot()).json()
    assert order["paidAmount"] == 550
    assert order["remainingBalance"] == 49450
    assert client.get("/api/config").json()["paymentConfig"]["defaultAdvancePayment"] == 550


def test_oversized_screenshot_is_rejected(client, cfg, monkeypatch):
    monkeypatch.setattr("phonestore.web.main.MAX_SCREENSHOT_BYTES", 16)

    r = client.post("/api/orders", data=_order_form(), files=screenshot())
    assert r.status_code == 400
    assert r.json()["error"].startswith("File too large")
    assert _screenshots(cfg) == []
    assert client.get("/api/orders").json() == []


# ---------------- batch ----------------

def _batch_form(items, **overrides):
    form = {**CUSTOMER, "paymentType": "advance", "items": json.dumps(items)}
    form.update(overrides)
    return form


def test_batch_creates_one_order_per_line(client, cfg):
    items = [
        {"id": "c1", "productId": "p1", "storage": "128GB", "color": "Blue", "quantity": 1},
        {"id": "c2", "productId": "p1", "storage": "256GB", "quantity": 1},
        {"id": "c3", "productId": "p2", "storage": "128GB", "quantity": 2},
    ]
    r = client.post("/api/orders/batch", data=_batch_form(items), files=screenshot())
    assert r.status_code == 201

    orders = r.json()
    assert len(orders) == 3
    assert [o["fullPrice"] for o in orders] == [50000, 60000, 75000]
    for o in orders:
        assert o["customerName"] == CUSTOMER["customerName"]
        assert o["pinCode"] == CUSTOMER["pinCode"]
        assert o["paidAmount"] == 550
        assert o["remainingBalance"] == o["fullPrice"] - 550
        assert o["paymentScreenshot"] == orders[0]["paymentScreenshot"]
    assert orders[0]["color"] == "Blue"
    assert "color" not in orders[1]

    assert len(client.get("/api/orders").json()) == 3
    with open(os.path.join(cfg.data_dir, "orders.json"), encoding="utf-8") as f:
        assert len(json.load(f)) == 3


def test_batch_with_unknown_product_creates_nothing(client, cfg):
    items = [
        {"productId": "p1", "storage": "128GB"},
        {"productId": "ghost", "storage": "128GB"},
    ]
    r = client.post("/api/orders/batch", data=_batch_form(items), files=screenshot())
    assert r.status_code == 404
    assert "ghost" in r.json()["error"]
    assert client.get("/api/orders").json() == []
    assert _screenshots(cfg) == []


def test_batch_items_validation(client):
    r = client.post("/api/orders/batch", data=_batch_form([]), files=screenshot())
    assert r.status_code == 400
    assert r.json()["error"] == "Items must be a non-empty array"

    form = _batch_form([])
    form["items"] = "{not json"
    r = client.post("/api/orders/batch", data=form, files=screenshot())
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid items format"

    form.pop("items")
    r = client.post("/api/orders/batch", data=form, files=screenshot())
    assert r.status_code == 400
    assert r.json()["error"] == "Items are required"


def test_batch_requires_screenshot(client):
    r = client.post("/api/orders/batch", data=_batch_form([{"productId": "p1", "storage": "128GB"}]))
    assert r.status_code == 400
    assert r.json()["error"] == "Payment screenshot is required"


def test_batch_full_payment(client):
    items = [{"productId": "p1", "storage": "128GB"}, {"productId": "p2", "storage": "128GB"}]
    orders = client.post("/api/orders/batch", data=_batch_form(items, paymentType="full"), files=screenshot()).json()

    assert [o["paidAmount"] for o in orders] == [50000, 75000]
    assert all(o["remainingBalance"] == 0 for o in orders)


# ---------------- invoice ----------------

def test_invoice_pdf(client):
    order = client.post("/api/orders", data=_order_form(), files=screenshot()).json()

    r = client.get(f"/api/orders/{order['id']}/invoice")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")


def test_invoice_for_unknown_order(client):
    assert client.get("/api/orders/nope/invoice").status_code == 404


# ---------------- notifications ----------------

def _telegram_settings(client, admin_headers):
    client.post(
        "/api/admin/settings",
        json={"telegramBotToken": "123:abc", "telegramChatId": "-100"},
        headers=admin_headers,
    )


def test_order_schedules_notification(client, cfg, admin_headers, monkeypatch):
    from phonestore.services.notifications import TelegramTarget

    calls = []

    async def fake_notify(order, target, screenshot_path=None):
        calls.append((order, target, screenshot_path))
        return True

    monkeypatch.setattr("phonestore.web.main.notify_order", fake_notify)
    _telegram_settings(client, admin_headers)

    order = client.post("/api/orders", data=_order_form(), files=screenshot()).json()

    assert len(calls) == 1
    sent, target, path = calls[0]
    assert sent["id"] == order["id"]
    assert target == TelegramTarget(bot_token="123:abc", chat_id="-100")
    assert path == os.path.join(cfg.screenshots_dir, order["paymentScreenshot"])


def test_batch_schedules_one_notification(client, cfg, monkeypatch):
    calls = []

    async def fake_notify(orders, target, screenshot_path=None):
        calls.append((orders, target, screenshot_path))
        return True

    monkeypatch.setattr("phonestore.web.main.notify_orders", fake_notify)
    items = [{"productId": "p1", "storage": "128GB"}, {"productId": "p2", "storage": "128GB"}]
    orders = client.post("/api/orders/batch", data=_batch_form(items), files=screenshot()).json()

    assert len(calls) == 1
    sent, target, path = calls[0]
    assert [o["id"] for o in sent] == [o["id"] for o in orders]
    assert target is None  # no credentials in the test settings
    assert os.path.basename(path) == orders[0]["paymentScreenshot"]


def test_failed_telegram_send_keeps_the_order(client, admin_headers, monkeypatch):
    async def failing_send(*args, **kwargs):
        raise RuntimeError("telegram is down")

    monkeypatch.setattr("phonestore.services.notifications._send", failing_send)
    _telegram_settings(client, admin_headers)

    r = client.post("/api/orders", data=_order_form(), files=screenshot())
    assert r.status_code == 201
    assert [o["id"] for o in client.get("/api/orders").json()] == [r.json()["id"]]
