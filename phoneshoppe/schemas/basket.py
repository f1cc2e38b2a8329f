from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.scancodes import ScanSource
from .catalog import CatalogItem


class BasketLineOut(BaseModel):
    index: int
    item: CatalogItem
    quantity: int
    subtotal: Decimal


class BasketSessionOut(BaseModel):
    session_id: str
    state: str
    editing_record_id: Optional[str] = None
    customer_name: str = ""
    lines: list[BasketLineOut] = Field(default_factory=list)
    total: Decimal
    catalog_size: int


class ScanRequest(BaseModel):
    payload: str
    source: ScanSource = ScanSource.CODE_128


class ScanResultOut(BaseModel):
    outcome: str
    key: str
    item: Optional[CatalogItem] = None
    cue: Optional[str] = None
    message: Optional[str] = None
    basket: BasketSessionOut


class AddItemRequest(BaseModel):
    item_id: str


class QuantityUpdate(BaseModel):
    quantity: int


class SaveBasketRequest(BaseModel):
    customer_name: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None


class SaveBasketOut(BaseModel):
    record_id: str
    updated: bool
    basket: BasketSessionOut


class SavedBasketItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    serial_number: Optional[str] = None
    quantity: int
    unit_price: float
    subtotal: float
    available_stock: int


class SavedBasketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    basket_number: int
    customer_name: str
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    status: str
    total: float
    item_count: int
    created_at: str
    updated_at: str
    items: list[SavedBasketItemOut] = Field(default_factory=list)
