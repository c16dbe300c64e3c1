from __future__ import annotations

import json
import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from phonestore.config import Settings
from phonestore.constants import MAX_PRODUCT_IMAGE_BYTES, MAX_QR_BYTES
from phonestore.db.storage import Storage
from phonestore.schemas import AdminSettingsIn, PinIn, PriceOverrideIn, ProductIn, ProductUpdateIn
from phonestore.services.admin_auth import AdminSessions
from phonestore.services.pricing import PricingError
from phonestore.services.uploads import UploadError, check_image, delete_upload, save_image, unique_name
from phonestore.web.deps import get_admin_sessions, get_settings, get_storage, require_admin, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")


def _parse_product_data(raw: Optional[str]):
    if not raw:
        raise HTTPException(status_code=400, detail="productData is required")
    try:
        return json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid productData format")


async def _save_product_image(image: Optional[UploadFile], cfg: Settings) -> tuple[Optional[str], Optional[str]]:
    """Returns (disk path, public path), both None when no image was sent."""
    if image is None or not image.filename:
        return None, None
    try:
        check_image(image, "Image is required")
        name = unique_name("product", image.filename)
        path = await save_image(image, cfg.product_images_dir, name, MAX_PRODUCT_IMAGE_BYTES)
    except UploadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return path, f"/uploads/product-images/{name}"


# ---------------- auth ----------------

@router.post("/verify-pin")
def verify_pin(body: PinIn, sessions: AdminSessions = Depends(get_admin_sessions)):
    if not sessions.verify_pin(body.pin):
        logger.warning("Admin PIN rejected")
        return JSONResponse(status_code=401, content={"success": False, "error": "Invalid PIN"})
    return {"success": True, "token": sessions.issue()}


@router.post("/logout", status_code=204)
def logout(token: str = Depends(require_admin), sessions: AdminSessions = Depends(get_admin_sessions)):
    sessions.revoke(token)
    return Response(status_code=204)


# ---------------- settings ----------------

@router.get("/settings", dependencies=[Depends(require_admin)])
def get_admin_settings(storage: Storage = Depends(get_storage)):
    return storage.admin_settings.get()


@router.post("/settings", dependencies=[Depends(require_admin)])
def update_admin_settings(body: AdminSettingsIn, storage: Storage = Depends(get_storage)):
    changes = body.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    if body.upi_id:
        storage.catalog.set_upi_id(body.upi_id)
    result = storage.admin_settings.update(changes)
    logger.info("Admin settings updated: %s", ", ".join(sorted(changes)) or "-")
    return result


@router.post("/qr-upload", dependencies=[Depends(require_admin)])
async def upload_qr(
    qrCode: Optional[UploadFile] = File(None),
    storage: Storage = Depends(get_storage),
    cfg: Settings = Depends(get_settings),
):
    try:
        check_image(qrCode, "QR code image is required")
        name = "upi-qr" + os.path.splitext(qrCode.filename)[1].lower()
        await save_image(qrCode, cfg.qr_codes_dir, name, MAX_QR_BYTES)
    except UploadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    public_path = f"/uploads/qr-codes/{name}"
    storage.admin_settings.update({"upiQrImage": public_path})
    storage.catalog.set_qr_code_url(public_path)
    return {"success": True, "upiQrImage": public_path}


# ---------------- prices ----------------

@router.get("/product-prices", dependencies=[Depends(require_admin)])
def list_product_prices(storage: Storage = Depends(get_storage)):
    return storage.catalog.list_price_overrides()


@router.post("/product-prices", dependencies=[Depends(require_admin)])
def set_product_price(body: PriceOverrideIn, storage: Storage = Depends(get_storage)):
    try:
        row = storage.catalog.apply_price_override(
            body.product_id, body.storage, body.price, body.original_price, body.discount
        )
    except PricingError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, **row}


@router.delete("/product-prices/{product_id}/{storage_capacity}", status_code=204, dependencies=[Depends(require_admin)])
def delete_product_price(product_id: str, storage_capacity: str, storage: Storage = Depends(get_storage)):
    if not storage.catalog.remove_price_override(product_id, storage_capacity):
        raise HTTPException(status_code=404, detail="Price override not found")
    return Response(status_code=204)


# ---------------- products ----------------

@router.post("/products", status_code=201, dependencies=[Depends(require_admin)])
async def add_product(
    productData: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    storage: Storage = Depends(get_storage),
    cfg: Settings = Depends(get_settings),
):
    raw = _parse_product_data(productData)
    try:
        data = ProductIn.model_validate(raw)
    except ValidationError as e:
        return validation_error("Invalid product data", e.errors())

    path, public_path = await _save_product_image(image, cfg)
    try:
        return storage.catalog.add_product(data.dump(), public_path)
    except Exception:
        delete_upload(path)
        raise


@router.put("/products/{product_id}", dependencies=[Depends(require_admin)])
async def update_product(
    product_id: str,
    productData: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    storage: Storage = Depends(get_storage),
    cfg: Settings = Depends(get_settings),
):
    raw = _parse_product_data(productData)
    try:
        updates = ProductUpdateIn.model_validate(raw)
    except ValidationError as e:
        return validation_error("Invalid product data", e.errors())

    path, public_path = await _save_product_image(image, cfg)
    try:
        product = storage.catalog.update_product(
            product_id,
            updates.model_dump(by_alias=True, exclude_unset=True, exclude_none=True),
            public_path,
        )
    except Exception:
        delete_upload(path)
        raise
    if product is None:
        delete_upload(path)
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.delete("/products/{product_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_product(product_id: str, storage: Storage = Depends(get_storage)):
    if not storage.catalog.delete_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return Response(status_code=204)
