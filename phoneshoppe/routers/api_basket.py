"""Basket session endpoints used by the POS and basket screens.

Each screen opens a session, which snapshots the catalog. Scans, manual adds
and quantity edits work purely against that snapshot; only ``save`` and
``load`` touch the database.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.scancodes import ScanEvent
from ..crud.baskets import SqlBasketStore, basket_lines, delete_basket, get_basket, list_baskets
from ..crud.catalog import fetch_all_items
from ..db.session import get_db
from ..schemas.basket import (
    AddItemRequest,
    BasketLineOut,
    BasketSessionOut,
    QuantityUpdate,
    SaveBasketRequest,
    SaveBasketOut,
    SavedBasketOut,
    ScanRequest,
    ScanResultOut,
)
from ..schemas.catalog import CatalogItem
from ..services.basket import (
    BasketError,
    BasketMetadata,
    BasketSession,
    EmptyBasketError,
    PersistenceError,
)
from ..services.scanning import ScanProcessor
from ..services.sessions import BasketSessionRegistry

router = APIRouter(prefix="/api/v1", tags=["basket"])


def get_registry(request: Request) -> BasketSessionRegistry:
    return request.app.state.basket_sessions


def _get_session(session_id: str, registry: BasketSessionRegistry) -> BasketSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Basket session not found")
    return session


def _view(session: BasketSession) -> BasketSessionOut:
    return BasketSessionOut(
        session_id=session.id,
        state=session.state.value,
        editing_record_id=session.editing_record_id,
        customer_name=session.customer_name,
        lines=[
            BasketLineOut(index=index, item=line.item, quantity=line.quantity, subtotal=line.subtotal)
            for index, line in enumerate(session.basket.lines)
        ],
        total=session.basket.total(),
        catalog_size=len(session.catalog),
    )


def _line_or_404(session: BasketSession, index: int) -> None:
    if index < 0 or index >= len(session.basket):
        raise HTTPException(status_code=404, detail="Basket line not found")


@router.post("/basket/sessions", response_model=BasketSessionOut, status_code=201)
def api_open_session(
    registry: BasketSessionRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
):
    return _view(registry.open(fetch_all_items(db)))


@router.get("/basket/sessions/{session_id}", response_model=BasketSessionOut)
def api_get_session(session_id: str, registry: BasketSessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, registry)
    with session.lock:
        return _view(session)


@router.delete("/basket/sessions/{session_id}")
def api_close_session(session_id: str, registry: BasketSessionRegistry = Depends(get_registry)):
    if not registry.close(session_id):
        raise HTTPException(status_code=404, detail="Basket session not found")
    return {"status": "closed"}


@router.post("/basket/sessions/{session_id}/refresh", response_model=BasketSessionOut)
def api_refresh_catalog(
    session_id: str,
    registry: BasketSessionRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
):
    session = _get_session(session_id, registry)
    items = fetch_all_items(db)
    with session.lock:
        session.refresh_catalog(items)
        return _view(session)


@router.post("/basket/sessions/{session_id}/scan", response_model=ScanResultOut)
def api_scan(session_id: str, payload: ScanRequest, registry: BasketSessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, registry)
    cues: list[CatalogItem] = []
    with session.lock:
        outcome = ScanProcessor(session, cue=cues.append).handle(ScanEvent(payload.payload, payload.source))
        basket = _view(session)
    return ScanResultOut(
        outcome=outcome.kind.value,
        key=outcome.key,
        item=outcome.item,
        cue=settings.SCAN_CUE if cues else None,
        message=outcome.message,
        basket=basket,
    )


@router.post("/basket/sessions/{session_id}/items", response_model=BasketSessionOut)
def api_add_item(session_id: str, payload: AddItemRequest, registry: BasketSessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, registry)
    item = session.find_item(payload.item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    with session.lock:
        try:
            session.basket.add_item(item)
        except BasketError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _view(session)


@router.patch("/basket/sessions/{session_id}/lines/{index}", response_model=BasketSessionOut)
def api_set_quantity(
    session_id: str,
    index: int,
    payload: QuantityUpdate,
    registry: BasketSessionRegistry = Depends(get_registry),
):
    session = _get_session(session_id, registry)
    with session.lock:
        _line_or_404(session, index)
        try:
            session.basket.set_quantity(index, payload.quantity)
        except BasketError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _view(session)


@router.delete("/basket/sessions/{session_id}/lines/{index}", response_model=BasketSessionOut)
def api_remove_line(session_id: str, index: int, registry: BasketSessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, registry)
    with session.lock:
        _line_or_404(session, index)
        session.basket.remove_line(index)
        return _view(session)


@router.post("/basket/sessions/{session_id}/clear", response_model=BasketSessionOut)
def api_clear(session_id: str, registry: BasketSessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, registry)
    with session.lock:
        session.clear()
        return _view(session)


@router.post("/basket/sessions/{session_id}/load/{basket_id}", response_model=BasketSessionOut)
def api_load_basket(
    session_id: str,
    basket_id: int,
    registry: BasketSessionRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
):
    session = _get_session(session_id, registry)
    saved = get_basket(db, basket_id)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved basket not found")
    with session.lock:
        session.load_record(str(saved.id), basket_lines(saved), saved.customer_name)
        return _view(session)


@router.post("/basket/sessions/{session_id}/save", response_model=SaveBasketOut)
def api_save_basket(
    session_id: str,
    payload: SaveBasketRequest,
    registry: BasketSessionRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
):
    session = _get_session(session_id, registry)
    metadata = BasketMetadata(
        customer_name=(payload.customer_name or "").strip(),
        user_email=payload.user_email,
        user_name=payload.user_name,
    )
    with session.lock:
        updating = session.editing_record_id is not None
        try:
            record_id = session.save(SqlBasketStore(db), metadata)
        except EmptyBasketError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except PersistenceError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return SaveBasketOut(record_id=record_id, updated=updating, basket=_view(session))


@router.get("/baskets", response_model=list[SavedBasketOut])
def api_list_baskets(user_email: str | None = None, limit: int = 100, offset: int = 0, db: Session = Depends(get_db)):
    return list_baskets(db, user_email=user_email, limit=limit, offset=offset)


@router.get("/baskets/{basket_id}", response_model=SavedBasketOut)
def api_get_basket(basket_id: int, db: Session = Depends(get_db)):
    saved = get_basket(db, basket_id)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved basket not found")
    return saved


@router.delete("/baskets/{basket_id}")
def api_delete_basket(
    basket_id: int,
    registry: BasketSessionRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
):
    saved = get_basket(db, basket_id)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved basket not found")
    delete_basket(db, saved)
    # A screen still editing the deleted record starts over with an empty basket.
    registry.release_record(str(basket_id))
    return {"status": "deleted"}
