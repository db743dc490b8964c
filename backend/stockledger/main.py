"""
Pharmacy stock ledger backend.

ARCHITECTURE:
- Record store: keyed collections (inventory, categories, suppliers,
  purchases, batches) with live full-snapshot subscriptions
- Batch ledger: stock is never stored, always summed from batches
- Purchase processor: one purchase fans out into K batches (saga with
  compensation, reconciliation sweep for anything left pending)
- FastAPI: back-office endpoints, every router behind the session gate
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockledger.api.deps import require_session
from stockledger.api.routes import batches, categories, inventory, purchases, suppliers
from stockledger.core.config import settings
from stockledger.core.exceptions import EXCEPTION_HANDLERS, LedgerError
from stockledger.core.logging_config import setup_logging
from stockledger.db.store import RecordStore
from stockledger.services.live_views import LedgerView
from stockledger.services.reconciliation import (
    start_reconciler,
    stop_reconciler,
    sweep_pending_purchases,
)

logger = logging.getLogger(__name__)


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup:
        1. Open the record store (creates tables)
        2. Resolve purchases left pending by a previous run
        3. Subscribe the live ledger view
        4. Start the periodic reconciliation sweep

        Shutdown: stop the sweep, release subscriptions.
        """
        setup_logging()
        app.state.store = store or RecordStore.from_url(settings.DATABASE_URL)
        logger.info("Record store ready")
        try:
            sweep_pending_purchases(app.state.store)
        except LedgerError as e:
            logger.error(f"Startup reconciliation failed: {e}")
        app.state.ledger_view = LedgerView(app.state.store)
        reconciler = start_reconciler(app.state.store)

        yield

        await stop_reconciler(reconciler)
        app.state.ledger_view.close()
        logger.info("Ledger view closed")

    app = FastAPI(
        title="Pharmacy Stock Ledger API",
        description="Inventory catalog, suppliers and batch-based purchase ledger.",
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
        max_age=600,
        expose_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    gated = [Depends(require_session)]
    app.include_router(inventory.router, prefix="/inventory", tags=["inventory"], dependencies=gated)
    app.include_router(batches.router, prefix="/batches", tags=["batches"], dependencies=gated)
    app.include_router(purchases.router, prefix="/purchases", tags=["purchases"], dependencies=gated)
    app.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"], dependencies=gated)
    app.include_router(categories.router, prefix="/categories", tags=["categories"], dependencies=gated)

    @app.get("/health")
    def health():
        return {"status": "ok", "reconciler": "enabled"}

    return app


app = create_app()
