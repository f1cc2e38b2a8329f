from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_decimal(value: object) -> Decimal:
    """Coerce stored prices (floats, strings, ``None``) into exact decimals."""

    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        # ``str`` first so 19.99 stays 19.99 rather than its binary expansion.
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = value.strip().replace(",", "")
        try:
            return Decimal(cleaned)
        except InvalidOperation as exc:
            raise ValueError(f"invalid price: {value!r}") from exc
    raise ValueError(f"invalid price: {value!r}")


class CatalogItem(BaseModel):
    """Read-only snapshot of an inventory item used by the matcher and basket."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: Optional[str] = None
    category: str = "other"
    serial_number: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    model_number: Optional[str] = None
    unit_price: Decimal = Decimal("0")
    quantity: int = Field(default=0, ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("unit_price", mode="before")
    @classmethod
    def _coerce_price(cls, value: object) -> Decimal:
        return _to_decimal(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _clamp_quantity(cls, value: object) -> int:
        # Oversold items come back negative from storage; treat them as empty.
        return max(int(value or 0), 0)

    def match_fields(self) -> tuple[Optional[str], Optional[str], Optional[str], Optional[str]]:
        return (self.serial_number, self.sku, self.barcode, self.name)


class CatalogItemCreate(BaseModel):
    name: str = Field(min_length=1)
    category: str = "other"
    brand: Optional[str] = None
    sku: Optional[str] = None
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    model_number: Optional[str] = None
    description: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    unit_cost: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    reorder_level: Optional[int] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class CatalogItemUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    sku: Optional[str] = None
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    model_number: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    unit_cost: Optional[float] = Field(default=None, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    reorder_level: Optional[int] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class CatalogItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    name: str
    brand: Optional[str] = None
    sku: Optional[str] = None
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    model_number: Optional[str] = None
    description: Optional[str] = None
    quantity: int
    unit_cost: Optional[float] = None
    selling_price: Optional[float] = None
    reorder_level: Optional[int] = None
    supplier: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    stock_status: str
    created_at: str
    updated_at: str


class StockAdjustment(BaseModel):
    action: Literal["add", "remove", "set"]
    quantity: int = Field(ge=0)
    reason: Optional[str] = None
    note: Optional[str] = None


class StockMovementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    item_name: Optional[str] = None
    change: int
    previous_quantity: int
    new_quantity: int
    reason: str
    note: Optional[str] = None
    created_at: str


class NextSkuOut(BaseModel):
    sku: str
