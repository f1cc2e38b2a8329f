from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

CustomerStatus = Literal["Active", "Inactive", "Pending"]


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    serial_number: str = Field(min_length=1)
    cca_number: Optional[str] = None
    box_number: Optional[str] = None
    account_number: Optional[str] = None
    plan: Optional[str] = None
    status: CustomerStatus = "Active"
    address: Optional[str] = None
    date_of_activation: Optional[str] = None
    date_of_purchase: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    serial_number: Optional[str] = None
    cca_number: Optional[str] = None
    box_number: Optional[str] = None
    account_number: Optional[str] = None
    plan: Optional[str] = None
    status: Optional[CustomerStatus] = None
    address: Optional[str] = None
    date_of_activation: Optional[str] = None
    date_of_purchase: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    serial_number: Optional[str] = None
    cca_number: Optional[str] = None
    box_number: Optional[str] = None
    account_number: Optional[str] = None
    plan: Optional[str] = None
    status: str
    address: Optional[str] = None
    date_of_activation: Optional[str] = None
    date_of_purchase: Optional[str] = None
    price: Optional[float] = None
    supplier: Optional[str] = None
    created_at: str
    updated_at: str


class CustomerLookupRequest(BaseModel):
    payload: str


class CustomerLookupOut(BaseModel):
    key: str
    found: bool
    customer: Optional[CustomerOut] = None
    cue: Optional[str] = None


class ActivationCreate(BaseModel):
    serial_number: str = Field(min_length=1)
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    contact_number: str = Field(min_length=1)
    dealer: str = Field(min_length=1)


class ActivationUpdate(BaseModel):
    serial_number: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    dealer: Optional[str] = None


class ActivationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    serial_number: str
    name: str
    address: str
    contact_number: str
    dealer: str
    created_at: str


class OcrRequest(BaseModel):
    text: str
    inventory_mode: bool = False


class OcrFieldsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    serial_number: Optional[str] = None
    cca_number: Optional[str] = None
    box_number: Optional[str] = None
    name: Optional[str] = None
    account_number: Optional[str] = None
    address: Optional[str] = None
    pin: Optional[str] = None
    has_any_data: bool = False
