"""Application factory and top-level wiring for the Phone Shoppe POS service.

This module brings together configuration, database setup, the API routers,
the basket session registry and error handling so a newcomer can see at a
glance which pieces exist and when they are initialised.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import http_exception_handler, validation_exception_handler
from .db.session import Base, engine
from .middlewares import RequestIdMiddleware

# Importing the models registers their tables with ``Base.metadata``.
from .models import basket as _basket  # noqa: F401
from .models import catalog as _catalog  # noqa: F401
from .models import gsat as _gsat  # noqa: F401
from .routers import api_basket, api_catalog, api_gsat
from .services.sessions import BasketSessionRegistry


def create_app(*, create_tables: bool = True) -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)

    if create_tables:
        Base.metadata.create_all(bind=engine)

    # One registry per process; every POS screen opens its own session in it.
    app.state.basket_sessions = BasketSessionRegistry(idle_seconds=settings.BASKET_SESSION_IDLE_SECONDS)

    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_catalog.router)
    app.include_router(api_basket.router)
    app.include_router(api_gsat.router)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    return app


__all__ = ["create_app"]
