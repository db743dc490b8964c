"""Inventory catalog: item master data and stock status badges.

Status combines aggregated batch stock with the item's minimum_stock:

    OUT_OF_STOCK   stock == 0
    LOW_STOCK      0 < stock <= minimum_stock
    IN_STOCK       stock >  minimum_stock
"""
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from stockledger.core.audit import AuditLog
from stockledger.core.exceptions import CatalogValidationError, ReferenceNotFoundError
from stockledger.core.money import parse_decimal, parse_quantity
from stockledger.db.store import RecordStore, utcnow
from stockledger.services.batch_service import record_initial_stock
from stockledger.services.expiry_classifier import DateLike, item_expiry_flags
from stockledger.services.stock_aggregator import aggregate_stock, stock_for

logger = logging.getLogger(__name__)

MISSING_CATEGORY = "-"

_OPTIONAL_TEXT_FIELDS = ("generic_name", "brand_name", "notes")
_EDITABLE_FIELDS = {
    "trade_name", "generic_name", "brand_name", "category", "cost_price", "selling_price",
    "current_stock", "minimum_stock", "discount_prevented", "notes",
}


class StockStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


def derive_status(stock, minimum_stock) -> StockStatus:
    stock = Decimal(str(stock))
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= Decimal(str(minimum_stock or 0)):
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def resolve_category_name(categories_by_id: Mapping[str, Mapping], category_id: Optional[str]) -> str:
    """Dangling or absent category references render as "-"."""
    if not category_id:
        return MISSING_CATEGORY
    category = categories_by_id.get(category_id)
    return category["name"] if category else MISSING_CATEGORY


# ----------------------------------------------------------------------
# validation
# ----------------------------------------------------------------------

def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _price(value, label: str) -> Decimal:
    parsed = parse_decimal(value)
    if parsed is None or parsed < 0:
        raise CatalogValidationError(f"{label} must be a number >= 0")
    return parsed.quantize(Decimal("0.01"))


def _count(value, label: str) -> int:
    parsed = parse_decimal(value)
    if parsed is None or parsed < 0 or parsed != parsed.to_integral_value():
        raise CatalogValidationError(f"{label} must be a whole number >= 0")
    return int(parsed)


def _validate_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - _EDITABLE_FIELDS
    if unknown:
        raise CatalogValidationError(f"Unknown inventory fields: {sorted(unknown)}")

    clean: Dict[str, Any] = {}
    if "trade_name" in fields:
        trade_name = _clean_text(fields["trade_name"])
        if not trade_name:
            raise CatalogValidationError("Trade name cannot be empty")
        clean["trade_name"] = trade_name
    for name in _OPTIONAL_TEXT_FIELDS:
        if name in fields:
            clean[name] = _clean_text(fields[name])
    if "category" in fields:
        clean["category"] = _clean_text(fields["category"])
    if "cost_price" in fields:
        clean["cost_price"] = _price(fields["cost_price"], "Cost price")
    if "selling_price" in fields:
        clean["selling_price"] = _price(fields["selling_price"], "Selling price")
    if "current_stock" in fields:
        clean["current_stock"] = _count(fields["current_stock"], "Current stock")
    if "minimum_stock" in fields:
        clean["minimum_stock"] = _count(fields["minimum_stock"], "Minimum stock")
    if "discount_prevented" in fields:
        clean["discount_prevented"] = bool(fields["discount_prevented"])
    return clean


# ----------------------------------------------------------------------
# writes
# ----------------------------------------------------------------------

def create_item(
    store: RecordStore,
    fields: Mapping[str, Any],
    initial_stock=None,
    initial_expiry_date: Optional[DateLike] = None,
) -> dict:
    """
    Add an item to the catalog.

    A positive initial_stock also seeds one initial-stock batch at the item's
    prices; its expiry date is optional.
    """
    if "trade_name" not in fields:
        raise CatalogValidationError("Trade name cannot be empty")
    values = {
        "generic_name": None,
        "brand_name": None,
        "category": None,
        "cost_price": Decimal("0.00"),
        "selling_price": Decimal("0.00"),
        "current_stock": 0,
        "minimum_stock": 0,
        "discount_prevented": False,
        "notes": None,
    }
    values.update(_validate_fields(fields))

    seed_quantity = parse_quantity(initial_stock) if initial_stock not in (None, "") else None
    if initial_stock not in (None, "") and (seed_quantity is None or seed_quantity < 0):
        raise CatalogValidationError("Initial stock must be a number >= 0 with at most 2 decimal places")

    now = utcnow()
    values["created_at"] = now
    values["updated_at"] = now
    item = store.create("inventory", values)
    logger.info(f"Added {item['trade_name']} to inventory ({item['id']})")
    AuditLog.log_action("create", "inventory", item["id"], changes={"trade_name": item["trade_name"]})

    if seed_quantity is not None and seed_quantity > 0:
        record_initial_stock(store, item["id"], seed_quantity, expiry_date=initial_expiry_date)
    return item


def update_item(store: RecordStore, item_id: str, changes: Mapping[str, Any]) -> dict:
    """Partial update; created_at is preserved, updated_at refreshed."""
    if store.get("inventory", item_id) is None:
        raise ReferenceNotFoundError("inventory", item_id)
    clean = _validate_fields(changes)
    clean["updated_at"] = utcnow()
    item = store.update("inventory", item_id, clean)
    AuditLog.log_action(
        "update", "inventory", item_id,
        changes={k: v for k, v in clean.items() if k != "updated_at"},
    )
    return item


def get_item(store: RecordStore, item_id: str) -> dict:
    item = store.get("inventory", item_id)
    if item is None:
        raise ReferenceNotFoundError("inventory", item_id)
    return item


# ----------------------------------------------------------------------
# derived catalog view
# ----------------------------------------------------------------------

def _matches(item: Mapping, search: Optional[str]) -> bool:
    if not search:
        return True
    query = search.strip().lower()
    return any(
        query in (item.get(name) or "").lower()
        for name in ("trade_name", "generic_name", "brand_name")
    )


def catalog_rows(
    items: Iterable[Mapping],
    batches: List[Mapping],
    categories: Iterable[Mapping],
    today: DateLike,
    search: Optional[str] = None,
    status: Optional[StockStatus] = None,
    category: Optional[str] = None,
    stock_map: Optional[Mapping[str, Decimal]] = None,
) -> List[dict]:
    """Items with aggregated stock, status badge, category name and expiry flags."""
    if stock_map is None:
        stock_map = aggregate_stock(batches)
    categories_by_id = {c["id"]: c for c in categories}
    batches_by_item: Dict[str, List[Mapping]] = {}
    for batch in batches:
        batches_by_item.setdefault(batch["item_id"], []).append(batch)

    rows = []
    for item in items:
        if not _matches(item, search):
            continue
        if category and item.get("category") != category:
            continue
        stock = stock_for(stock_map, item["id"])
        item_status = derive_status(stock, item.get("minimum_stock"))
        if status and item_status != status:
            continue
        row = dict(item)
        row["stock"] = stock
        row["status"] = item_status
        row["category_name"] = resolve_category_name(categories_by_id, item.get("category"))
        row.update(item_expiry_flags(batches_by_item.get(item["id"], []), item["id"], today))
        rows.append(row)

    rows.sort(key=lambda r: r["trade_name"].lower())
    return rows


def catalog_summary(rows: Iterable[Mapping]) -> dict:
    rows = list(rows)
    return {
        "total_items": len(rows),
        "in_stock": sum(1 for r in rows if r["status"] == StockStatus.IN_STOCK),
        "low_stock": sum(1 for r in rows if r["status"] == StockStatus.LOW_STOCK),
        "out_of_stock": sum(1 for r in rows if r["status"] == StockStatus.OUT_OF_STOCK),
    }


def list_catalog(store: RecordStore, today: DateLike, **filters) -> List[dict]:
    """One-shot catalog read straight from store snapshots."""
    return catalog_rows(
        store.snapshot("inventory"),
        store.snapshot("batches"),
        store.snapshot("categories"),
        today,
        **filters,
    )
