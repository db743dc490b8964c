"""Supplier directory. Purchases snapshot the supplier name, so edits and
deletes here never touch existing purchases."""
import logging
from typing import List, Mapping, Optional

from stockledger.core.audit import AuditLog
from stockledger.core.exceptions import CatalogValidationError, ReferenceNotFoundError
from stockledger.db.store import RecordStore, utcnow

logger = logging.getLogger(__name__)

_REQUIRED = ("name", "address", "email")
_OPTIONAL = ("company_name", "phone_number", "note")


def _clean(fields: Mapping, partial: bool) -> dict:
    clean = {}
    for name in _REQUIRED:
        if name in fields or not partial:
            value = (fields.get(name) or "").strip()
            if not value:
                raise CatalogValidationError(f"Supplier {name.replace('_', ' ')} is required")
            clean[name] = value
    for name in _OPTIONAL:
        if name in fields or not partial:
            clean[name] = (fields.get(name) or "").strip() or None
    return clean


def create_supplier(store: RecordStore, fields: Mapping) -> dict:
    values = _clean(fields, partial=False)
    now = utcnow()
    values["created_at"] = now
    values["updated_at"] = now
    supplier = store.create("suppliers", values)
    AuditLog.log_action("create", "supplier", supplier["id"], changes={"name": supplier["name"]})
    return supplier


def update_supplier(store: RecordStore, supplier_id: str, changes: Mapping) -> dict:
    if store.get("suppliers", supplier_id) is None:
        raise ReferenceNotFoundError("suppliers", supplier_id)
    values = _clean(changes, partial=True)
    values["updated_at"] = utcnow()
    supplier = store.update("suppliers", supplier_id, values)
    AuditLog.log_action("update", "supplier", supplier_id, changes=values)
    return supplier


def delete_supplier(store: RecordStore, supplier_id: str) -> None:
    if not store.delete("suppliers", supplier_id):
        raise ReferenceNotFoundError("suppliers", supplier_id)
    logger.info(f"Deleted supplier {supplier_id}")
    AuditLog.log_action("delete", "supplier", supplier_id)


def list_suppliers(store: RecordStore, search: Optional[str] = None) -> List[dict]:
    suppliers = store.snapshot("suppliers")
    if search:
        query = search.strip().lower()
        suppliers = [
            s for s in suppliers
            if any(query in (s.get(f) or "").lower() for f in ("name", "company_name", "email", "phone_number"))
        ]
    return sorted(suppliers, key=lambda s: s["name"].lower())
