"""
Request schemas.

Wire and disk format is camelCase; models take either the camelCase alias or
the python field name and dump back to camelCase with `model_dump(by_alias=True)`.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from phonestore.utils.validators import require_indian_mobile, require_pin_code


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, **kwargs)


class CartItemIn(CamelModel):
    product_id: str
    storage: str
    color: Optional[str] = None
    quantity: int = Field(1, ge=1)


class CartQuantityIn(CamelModel):
    quantity: int = Field(..., ge=1)


class CustomerIn(CamelModel):
    customer_name: str = Field(..., min_length=2, description="Name must be at least 2 characters")
    phone: str
    address: str = Field(..., min_length=10, description="Please provide a complete delivery address")
    pin_code: str
    payment_type: Literal["full", "advance"]

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return require_indian_mobile(v)

    @field_validator("pin_code")
    @classmethod
    def _pin_code(cls, v: str) -> str:
        return require_pin_code(v)


class OrderIn(CustomerIn):
    product_id: str
    storage: str
    color: Optional[str] = None


class BatchItemIn(CamelModel):
    """One cart line as sent by the checkout page; extra cart fields are ignored."""

    product_id: str
    storage: str
    color: Optional[str] = None


class StorageOptionIn(CamelModel):
    capacity: str
    original_price: int = Field(..., ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)


class ProductIn(CamelModel):
    device_name: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    model: str
    color_options: Optional[List[str]] = None
    storage_options: List[StorageOptionIn] = Field(..., min_length=1)
    rating: Optional[float] = Field(None, ge=0, le=5)
    specs: List[str] = Field(default_factory=list)
    release_date: Optional[str] = None


class ProductUpdateIn(CamelModel):
    device_name: Optional[str] = Field(None, min_length=1)
    display_name: Optional[str] = Field(None, min_length=1)
    model: Optional[str] = None
    color_options: Optional[List[str]] = None
    storage_options: Optional[List[StorageOptionIn]] = Field(None, min_length=1)
    rating: Optional[float] = Field(None, ge=0, le=5)
    specs: Optional[List[str]] = None
    release_date: Optional[str] = None


class PriceOverrideIn(CamelModel):
    product_id: str
    storage: str
    price: int = Field(..., ge=0, description="Price must be positive")
    original_price: Optional[int] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)


class AdminSettingsIn(CamelModel):
    upi_id: Optional[str] = None
    upi_qr_image: Optional[str] = None
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    whatsapp_number: Optional[str] = Field(None, pattern=r"^\d{10,15}$")


class PinIn(BaseModel):
    pin: str
