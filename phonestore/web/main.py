from __future__ import annotations

import json
import logging
import os
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from phonestore.config import Settings, settings as default_settings
from phonestore.constants import MAX_SCREENSHOT_BYTES
from phonestore.db.storage import Storage, init_directories, open_storage
from phonestore.schemas import BatchItemIn, CartItemIn, CartQuantityIn, CustomerIn, OrderIn
from phonestore.services.admin_auth import AdminSessions
from phonestore.services.invoice_pdf import generate_order_invoice_pdf
from phonestore.services.notifications import notify_order, notify_orders, resolve_target
from phonestore.services.pricing import PricingError, find_storage_option, resolve_order_pricing
from phonestore.services.uploads import UploadError, check_image, delete_upload, save_image, unique_name
from phonestore.web import admin
from phonestore.web.deps import error_details, get_settings, get_storage, validation_error

logger = logging.getLogger(__name__)


def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings
    init_directories(cfg)

    app = FastAPI(title="Phone Store API")
    app.state.settings = cfg
    app.state.storage = open_storage(cfg)
    app.state.admin_sessions = AdminSessions(cfg.admin_pin, cfg.admin_session_hours)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    app.include_router(admin.router)
    _register_routes(app)

    app.mount("/uploads", StaticFiles(directory=cfg.uploads_dir), name="uploads")
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request data", "details": error_details(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def _telegram_target(storage: Storage, cfg: Settings):
    return resolve_target(storage.admin_settings.get(), cfg.telegram_bot_token, cfg.telegram_chat_id)


def _register_routes(app: FastAPI) -> None:

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ---------------- catalog ----------------

    @app.get("/api/config")
    def get_config(storage: Storage = Depends(get_storage)):
        return storage.catalog.read_config()

    @app.get("/api/products")
    def get_products(storage: Storage = Depends(get_storage)):
        return storage.catalog.list_products()

    @app.get("/api/products/{product_id}")
    def get_product(product_id: str, storage: Storage = Depends(get_storage)):
        try:
            return storage.catalog.get_product(product_id)
        except PricingError:
            raise HTTPException(status_code=404, detail="Product not found")

    # ---------------- cart ----------------

    @app.get("/api/cart")
    def get_cart(storage: Storage = Depends(get_storage)):
        return storage.cart.list()

    @app.post("/api/cart", status_code=201)
    def add_to_cart(item: CartItemIn, storage: Storage = Depends(get_storage)):
        try:
            find_storage_option(storage.catalog.read_config(), item.product_id, item.storage)
        except PricingError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return storage.cart.add(item.product_id, item.storage, item.color, item.quantity)

    @app.patch("/api/cart/{item_id}")
    def update_cart_item(item_id: str, body: CartQuantityIn, storage: Storage = Depends(get_storage)):
        item = storage.cart.update_quantity(item_id, body.quantity)
        if not item:
            raise HTTPException(status_code=404, detail="Cart item not found")
        return item

    @app.delete("/api/cart/{item_id}", status_code=204)
    def remove_cart_item(item_id: str, storage: Storage = Depends(get_storage)):
        if not storage.cart.remove(item_id):
            raise HTTPException(status_code=404, detail="Cart item not found")
        return Response(status_code=204)

    @app.delete("/api/cart", status_code=204)
    def clear_cart(storage: Storage = Depends(get_storage)):
        storage.cart.clear()
        return Response(status_code=204)

    # ---------------- orders ----------------

    @app.post("/api/orders", status_code=201)
    async def create_order(
        background_tasks: BackgroundTasks,
        customerName: Optional[str] = Form(None),
        phone: Optional[str] = Form(None),
        address: Optional[str] = Form(None),
        pinCode: Optional[str] = Form(None),
        productId: Optional[str] = Form(None),
        storage_capacity: Optional[str] = Form(None, alias="storage"),
        color: Optional[str] = Form(None),
        paymentType: Optional[str] = Form(None),
        screenshot: Optional[UploadFile] = File(None),
        store: Storage = Depends(get_storage),
        cfg: Settings = Depends(get_settings),
    ):
        try:
            check_image(screenshot, "Payment screenshot is required")
        except UploadError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            data = OrderIn(
                customerName=customerName,
                phone=phone,
                address=address,
                pinCode=pinCode,
                productId=productId,
                storage=storage_capacity,
                color=color or None,
                paymentType=paymentType,
            )
        except ValidationError as e:
            return validation_error("Invalid order data", e.errors())

        filename = unique_name("payment", screenshot.filename)
        try:
            path = await save_image(screenshot, cfg.screenshots_dir, filename, MAX_SCREENSHOT_BYTES)
        except UploadError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            pricing = resolve_order_pricing(
                store.catalog.read_config(), data.product_id, data.storage, data.payment_type
            )
            order = await run_in_threadpool(
                store.orders.create, {**data.dump(), **pricing, "paymentScreenshot": filename}
            )
        except PricingError as e:
            delete_upload(path)
            raise HTTPException(status_code=404, detail=str(e))
        except Exception:
            logger.exception("Error creating order")
            delete_upload(path)
            raise HTTPException(status_code=500, detail="Failed to create order")

        background_tasks.add_task(notify_order, order, _telegram_target(store, cfg), path)
        return order

    @app.post("/api/orders/batch", status_code=201)
    async def create_batch_orders(
        background_tasks: BackgroundTasks,
        items: Optional[str] = Form(None),
        customerName: Optional[str] = Form(None),
        phone: Optional[str] = Form(None),
        address: Optional[str] = Form(None),
        pinCode: Optional[str] = Form(None),
        paymentType: Optional[str] = Form(None),
        screenshot: Optional[UploadFile] = File(None),
        storage: Storage = Depends(get_storage),
        cfg: Settings = Depends(get_settings),
    ):
        try:
            check_image(screenshot, "Payment screenshot is required")
        except UploadError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if not items:
            raise HTTPException(status_code=400, detail="Items are required")
        try:
            raw_items = json.loads(items)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid items format")
        if not isinstance(raw_items, list) or not raw_items:
            raise HTTPException(status_code=400, detail="Items must be a non-empty array")

        try:
            customer = CustomerIn(
                customerName=customerName,
                phone=phone,
                address=address,
                pinCode=pinCode,
                paymentType=paymentType,
            )
            lines = [BatchItemIn.model_validate(it) for it in raw_items]
        except ValidationError as e:
            return validation_error("Invalid order data", e.errors())

        filename = unique_name("payment", screenshot.filename)
        try:
            path = await save_image(screenshot, cfg.screenshots_dir, filename, MAX_SCREENSHOT_BYTES)
        except UploadError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            config = storage.catalog.read_config()
            shared = {**customer.dump(), "paymentScreenshot": filename}
            orders_data = []
            for line in lines:
                pricing = resolve_order_pricing(config, line.product_id, line.storage, customer.payment_type)
                orders_data.append({**shared, **line.dump(), **pricing})
            orders = await run_in_threadpool(storage.orders.create_batch, orders_data)
        except PricingError as e:
            delete_upload(path)
            raise HTTPException(status_code=404, detail=str(e))
        except Exception:
            logger.exception("Error creating batch orders")
            delete_upload(path)
            raise HTTPException(status_code=500, detail="Failed to create orders")

        background_tasks.add_task(notify_orders, orders, _telegram_target(storage, cfg), path)
        return orders

    @app.get("/api/orders")
    def list_orders(storage: Storage = Depends(get_storage)):
        return storage.orders.list()

    @app.get("/api/orders/{order_id}")
    def get_order(order_id: str, storage: Storage = Depends(get_storage)):
        order = storage.orders.get(order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    @app.get("/api/orders/{order_id}/invoice", response_class=FileResponse)
    def get_order_invoice(
        order_id: str,
        storage: Storage = Depends(get_storage),
        cfg: Settings = Depends(get_settings),
    ):
        order = storage.orders.get(order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        path = generate_order_invoice_pdf(order, cfg.export_dir, cfg.store_name)
        return FileResponse(path, media_type="application/pdf", filename=os.path.basename(path))
