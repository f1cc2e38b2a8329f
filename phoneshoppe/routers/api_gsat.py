from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.ocr import extract_ocr_fields
from ..core.scancodes import normalize_scan_code
from ..crud.gsat import (
    DuplicateCustomerError,
    add_activation,
    add_customer,
    delete_activation,
    delete_customer,
    get_activation,
    get_customer,
    list_activations,
    list_customers,
    lookup_customer,
    update_activation,
    update_customer,
)
from ..db.session import get_db
from ..schemas.gsat import (
    ActivationCreate,
    ActivationOut,
    ActivationUpdate,
    CustomerCreate,
    CustomerLookupOut,
    CustomerLookupRequest,
    CustomerOut,
    CustomerUpdate,
    OcrFieldsOut,
    OcrRequest,
)

router = APIRouter(prefix="/api/v1/gsat", tags=["gsat"])


def _customer_or_404(db: Session, customer_id: int):
    customer = get_customer(db, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


def _activation_or_404(db: Session, activation_id: int):
    activation = get_activation(db, activation_id)
    if not activation:
        raise HTTPException(status_code=404, detail="Activation not found")
    return activation


def _duplicate(exc: DuplicateCustomerError) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={"message": str(exc), "field": exc.field, "existing_customer_id": exc.existing.id},
    )


@router.get("/customers", response_model=list[CustomerOut])
def api_list_customers(status: str | None = None, db: Session = Depends(get_db)):
    return list_customers(db, status=status)


@router.post("/customers", response_model=CustomerOut, status_code=201)
def api_add_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    try:
        return add_customer(db, payload.model_dump(exclude_none=True))
    except DuplicateCustomerError as exc:
        raise _duplicate(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/customers/lookup", response_model=CustomerLookupOut)
def api_lookup_customer(payload: CustomerLookupRequest, db: Session = Depends(get_db)):
    customer = lookup_customer(db, payload.payload)
    return CustomerLookupOut(
        key=normalize_scan_code(payload.payload),
        found=customer is not None,
        customer=CustomerOut.model_validate(customer) if customer is not None else None,
        cue=settings.SCAN_CUE if customer is not None else None,
    )


@router.get("/customers/{customer_id}", response_model=CustomerOut)
def api_get_customer(customer_id: int, db: Session = Depends(get_db)):
    return _customer_or_404(db, customer_id)


@router.patch("/customers/{customer_id}", response_model=CustomerOut)
def api_update_customer(customer_id: int, payload: CustomerUpdate, db: Session = Depends(get_db)):
    customer = _customer_or_404(db, customer_id)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        return customer
    try:
        return update_customer(db, customer, data)
    except DuplicateCustomerError as exc:
        raise _duplicate(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/customers/{customer_id}")
def api_delete_customer(customer_id: int, db: Session = Depends(get_db)):
    delete_customer(db, _customer_or_404(db, customer_id))
    return {"status": "deleted"}


@router.post("/ocr", response_model=OcrFieldsOut)
def api_extract_ocr(payload: OcrRequest):
    fields = extract_ocr_fields(payload.text, inventory_mode=payload.inventory_mode)
    return OcrFieldsOut(**fields.to_dict(), has_any_data=fields.has_any_data)


@router.get("/activations", response_model=list[ActivationOut])
def api_list_activations(db: Session = Depends(get_db)):
    return list_activations(db)


@router.post("/activations", response_model=ActivationOut, status_code=201)
def api_add_activation(payload: ActivationCreate, db: Session = Depends(get_db)):
    try:
        return add_activation(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/activations/{activation_id}", response_model=ActivationOut)
def api_update_activation(activation_id: int, payload: ActivationUpdate, db: Session = Depends(get_db)):
    activation = _activation_or_404(db, activation_id)
    try:
        return update_activation(db, activation, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/activations/{activation_id}")
def api_delete_activation(activation_id: int, db: Session = Depends(get_db)):
    delete_activation(db, _activation_or_404(db, activation_id))
    return {"status": "deleted"}
