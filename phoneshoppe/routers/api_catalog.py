from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..crud.catalog import (
    DuplicateCodeError,
    adjust_stock,
    create_item,
    delete_item,
    generate_next_sku,
    get_item,
    list_items,
    list_movements,
    update_item,
)
from ..db.session import get_db
from ..schemas.catalog import (
    CatalogItemCreate,
    CatalogItemOut,
    CatalogItemUpdate,
    NextSkuOut,
    StockAdjustment,
    StockMovementOut,
)

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


def _get_or_404(db: Session, item_id: int):
    item = get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    return item


@router.get("", response_model=list[CatalogItemOut])
def api_list_items(
    q: str | None = None,
    category: str | None = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return list_items(db, search=q, category=category, limit=limit, offset=offset)


@router.get("/next-sku", response_model=NextSkuOut)
def api_next_sku(db: Session = Depends(get_db)):
    return {"sku": generate_next_sku(db)}


@router.get("/movements", response_model=list[StockMovementOut])
def api_list_movements(item_id: int | None = None, limit: int = 50, offset: int = 0, db: Session = Depends(get_db)):
    return list_movements(db, item_id=item_id, limit=limit, offset=offset)


@router.get("/{item_id}", response_model=CatalogItemOut)
def api_get_item(item_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, item_id)


@router.post("", response_model=CatalogItemOut, status_code=201)
def api_create_item(payload: CatalogItemCreate, db: Session = Depends(get_db)):
    try:
        return create_item(db, payload.model_dump(exclude_none=True))
    except DuplicateCodeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/{item_id}", response_model=CatalogItemOut)
def api_update_item(item_id: int, payload: CatalogItemUpdate, db: Session = Depends(get_db)):
    item = _get_or_404(db, item_id)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        return item
    try:
        return update_item(db, item, data)
    except DuplicateCodeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{item_id}")
def api_delete_item(item_id: int, db: Session = Depends(get_db)):
    delete_item(db, _get_or_404(db, item_id))
    return {"status": "deleted"}


@router.post("/{item_id}/stock", response_model=StockMovementOut, status_code=201)
def api_adjust_stock(item_id: int, payload: StockAdjustment, db: Session = Depends(get_db)):
    item = _get_or_404(db, item_id)
    try:
        return adjust_stock(
            db,
            item,
            action=payload.action,
            quantity=payload.quantity,
            reason=payload.reason,
            note=payload.note,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
