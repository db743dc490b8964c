"""Categories. Deleting one leaves item references dangling (shown as "-")."""
import logging
from typing import List, Mapping

from stockledger.core.audit import AuditLog
from stockledger.core.exceptions import CatalogValidationError, ReferenceNotFoundError
from stockledger.db.store import RecordStore, utcnow

logger = logging.getLogger(__name__)


def create_category(store: RecordStore, fields: Mapping) -> dict:
    name = (fields.get("name") or "").strip()
    if not name:
        raise CatalogValidationError("Category name is required")
    category = store.create(
        "categories",
        {
            "name": name,
            "description": (fields.get("description") or "").strip() or None,
            "created_at": utcnow(),
        },
    )
    AuditLog.log_action("create", "category", category["id"], changes={"name": name})
    return category


def delete_category(store: RecordStore, category_id: str) -> None:
    if not store.delete("categories", category_id):
        raise ReferenceNotFoundError("categories", category_id)
    logger.info(f"Deleted category {category_id}; item references left as-is")
    AuditLog.log_action("delete", "category", category_id)


def list_categories(store: RecordStore) -> List[dict]:
    return sorted(store.snapshot("categories"), key=lambda c: c["name"].lower())
