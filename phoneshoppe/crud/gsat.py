"""GSAT customer and activation CRUD helpers."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..models.gsat import GsatActivation, GsatCustomer
from ..services.scanning import resolve_scan

CUSTOMER_STATUSES = ("Active", "Inactive", "Pending")
# Identifiers a second customer may not reuse.
_UNIQUE_FIELDS = ("serial_number", "cca_number", "account_number")
_ACTIVATION_FIELDS = ("serial_number", "name", "address", "contact_number", "dealer")


class DuplicateCustomerError(ValueError):
    def __init__(self, field: str, value: str, existing: GsatCustomer) -> None:
        label = field.replace("_", " ")
        super().__init__(f"A customer with {label} {value} already exists: {existing.name}")
        self.field = field
        self.existing = existing


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _clean(payload: dict) -> dict:
    data = {}
    for key, value in payload.items():
        if isinstance(value, str):
            value = value.strip() or None
        data[key] = value
    return data


def list_customers(db: Session, *, status: str | None = None) -> list[GsatCustomer]:
    stmt = select(GsatCustomer).order_by(func.lower(GsatCustomer.name), GsatCustomer.id)
    if status:
        stmt = stmt.where(GsatCustomer.status == status)
    return list(db.execute(stmt).scalars().all())


def get_customer(db: Session, customer_id: int) -> GsatCustomer | None:
    return db.get(GsatCustomer, customer_id)


def find_customer(db: Session, field: str, value: str, *, exclude_id: int | None = None) -> GsatCustomer | None:
    stmt = select(GsatCustomer).where(getattr(GsatCustomer, field) == value)
    if exclude_id is not None:
        stmt = stmt.where(GsatCustomer.id != exclude_id)
    return db.execute(stmt).scalars().first()


def _ensure_unique(db: Session, data: dict, exclude_id: int | None = None) -> None:
    for field in _UNIQUE_FIELDS:
        value = data.get(field)
        if not value:
            continue
        existing = find_customer(db, field, value, exclude_id=exclude_id)
        if existing:
            raise DuplicateCustomerError(field, value, existing)


def _check_status(data: dict) -> None:
    status = data.get("status")
    if status is not None and status not in CUSTOMER_STATUSES:
        raise ValueError(f"status must be one of {', '.join(CUSTOMER_STATUSES)}")


def add_customer(db: Session, payload: dict) -> GsatCustomer:
    data = _clean(payload)
    if not data.get("name") or not data.get("serial_number"):
        raise ValueError("name and serial number are required for customers")
    data["status"] = data.get("status") or "Active"
    _check_status(data)
    _ensure_unique(db, data)
    timestamp = _now()
    customer = GsatCustomer(**data, created_at=timestamp, updated_at=timestamp)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def update_customer(db: Session, customer: GsatCustomer, payload: dict) -> GsatCustomer:
    data = _clean(payload)
    for field in ("name", "serial_number"):
        if field in data and not data[field]:
            raise ValueError(f"{field} is required for customers")
    _check_status(data)
    _ensure_unique(db, data, exclude_id=customer.id)
    for key, value in data.items():
        if hasattr(customer, key) and key not in ("id", "created_at"):
            setattr(customer, key, value)
    customer.updated_at = _now()
    db.commit()
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer: GsatCustomer) -> None:
    db.delete(customer)
    db.commit()


def lookup_customer(db: Session, raw: str) -> GsatCustomer | None:
    """Find the customer a scanned serial/account/box code belongs to."""

    return resolve_scan(raw, list_customers(db))


def add_activation(db: Session, payload: dict) -> GsatActivation:
    data = _clean(payload)
    missing = [field for field in _ACTIVATION_FIELDS if not data.get(field)]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")
    activation = GsatActivation(**{field: data[field] for field in _ACTIVATION_FIELDS}, created_at=_now())
    db.add(activation)
    db.commit()
    db.refresh(activation)
    return activation


def list_activations(db: Session) -> list[GsatActivation]:
    stmt = select(GsatActivation).order_by(desc(GsatActivation.created_at), desc(GsatActivation.id))
    return list(db.execute(stmt).scalars().all())


def get_activation(db: Session, activation_id: int) -> GsatActivation | None:
    return db.get(GsatActivation, activation_id)


def update_activation(db: Session, activation: GsatActivation, payload: dict) -> GsatActivation:
    data = _clean(payload)
    for field in _ACTIVATION_FIELDS:
        if field in data:
            if not data[field]:
                raise ValueError(f"{field} is required")
            setattr(activation, field, data[field])
    db.commit()
    db.refresh(activation)
    return activation


def delete_activation(db: Session, activation: GsatActivation) -> None:
    db.delete(activation)
    db.commit()
