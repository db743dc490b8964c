"""FastAPI dependencies: record store, live ledger view, session gate.

Every router is mounted behind require_session: no read or write reaches the
store without a usable session (Authorization: Bearer <ACCESS_TOKEN>).
"""
import secrets
from datetime import date
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from stockledger.core.config import settings
from stockledger.core.exceptions import BusinessError
from stockledger.db.store import RecordStore
from stockledger.services.live_views import LedgerView

security = HTTPBearer(auto_error=False)


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_ledger_view(request: Request) -> LedgerView:
    return request.app.state.ledger_view


def get_today() -> date:
    """Calendar date used for expiry classification. Overridden in tests."""
    return date.today()


def require_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    if credentials is None:
        raise BusinessError.unauthorized("missing bearer token")
    if not secrets.compare_digest(credentials.credentials, settings.ACCESS_TOKEN):
        raise BusinessError.unauthorized("invalid bearer token")
