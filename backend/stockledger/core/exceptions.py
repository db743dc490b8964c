"""
Domain exceptions and safe HTTP error translation.

Services raise the domain exceptions below. The API layer translates them
into HTTP responses; store-level details are logged internally, never
returned to the caller.
"""
from typing import List, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for every error raised by the stock ledger core."""


class PurchaseValidationError(LedgerError):
    """Purchase request rejected before any write. Carries every problem found."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class CatalogValidationError(LedgerError):
    """Inventory item / supplier / category input rejected before any write."""


class ReferenceNotFoundError(LedgerError):
    """A referenced supplier, inventory item or record no longer exists."""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record '{record_id}' not found")


class PartialWriteError(LedgerError):
    """
    A multi-record operation failed after some records were written.

    compensated=True means the records already written were removed again;
    False means they are still present and left for the reconciliation sweep.
    """

    def __init__(self, purchase_id: str, written: int, expected: int, compensated: bool):
        self.purchase_id = purchase_id
        self.written = written
        self.expected = expected
        self.compensated = compensated
        super().__init__(
            f"purchase {purchase_id}: {written}/{expected} batches written "
            f"({'rolled back' if compensated else 'left pending'})"
        )


class StoreUnavailableError(LedgerError):
    """The backing store rejected a read or write."""


class SessionRequiredError(LedgerError):
    """No usable authenticated session; reads and writes are gated."""


class BusinessError:
    """HTTP exceptions with safe (non-leaky) messages."""

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """Same response for a missing and a wrong token."""
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _error_response(status_code: int, detail, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


async def purchase_validation_handler(request: Request, exc: PurchaseValidationError):
    logger.info(f"Purchase rejected: {exc.errors}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc.errors)


async def catalog_validation_handler(request: Request, exc: CatalogValidationError):
    logger.info(f"Bad request: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def reference_not_found_handler(request: Request, exc: ReferenceNotFoundError):
    logger.warning(f"Reference error on {request.url.path}: {exc}")
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc))


async def partial_write_handler(request: Request, exc: PartialWriteError):
    logger.error(f"Partial write on {request.url.path}: {exc}")
    return _error_response(
        status.HTTP_502_BAD_GATEWAY,
        "The purchase could not be saved completely. Please retry the submission.",
    )


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable on {request.url.path}: {exc}")
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "The record store is unavailable. Please try again later.",
    )


async def session_required_handler(request: Request, exc: SessionRequiredError):
    logger.warning(f"Session required on {request.url.path}")
    return _error_response(
        status.HTTP_401_UNAUTHORIZED,
        "Authentication failed",
        headers={"WWW-Authenticate": "Bearer"},
    )


EXCEPTION_HANDLERS = {
    PurchaseValidationError: purchase_validation_handler,
    CatalogValidationError: catalog_validation_handler,
    ReferenceNotFoundError: reference_not_found_handler,
    PartialWriteError: partial_write_handler,
    StoreUnavailableError: store_unavailable_handler,
    SessionRequiredError: session_required_handler,
}
