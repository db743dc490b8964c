"""Batch ledger reads and the initial-stock seed path.

Batches are append-only. The only way stock changes is by adding lots: a
purchase (see purchase_processor) or an initial-stock seed (below). The
initial-stock path is the only one that may omit an expiry date.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional

from stockledger.core.audit import AuditLog
from stockledger.core.exceptions import CatalogValidationError, ReferenceNotFoundError
from stockledger.core.money import parse_decimal, parse_quantity, to_minor_units
from stockledger.db.store import RecordStore, utcnow
from stockledger.models.batch import INITIAL_STOCK_PURCHASE_ID
from stockledger.services.expiry_classifier import (
    DateLike,
    ExpiryState,
    as_date,
    classify_batch,
    days_until_expiry,
)

logger = logging.getLogger(__name__)


def is_initial_stock(batch: Mapping) -> bool:
    return bool(batch.get("is_initial_stock")) or batch.get("purchase_id") == INITIAL_STOCK_PURCHASE_ID


def sort_by_expiry(batches: Iterable[Mapping]) -> List[Mapping]:
    """Earliest expiry first; lots without expiry go last."""
    return sorted(
        batches,
        key=lambda b: (
            b.get("expiry_date") is None,
            as_date(b.get("expiry_date")) or date.max,
            b.get("created_at") or datetime.min,
        ),
    )


def batch_summary(batches: List[Mapping], today: DateLike) -> dict:
    """Totals for one item's lots. average_cost_price is in major units."""
    total_quantity = sum((Decimal(str(b["quantity"])) for b in batches), Decimal("0"))
    total_cost_minor = sum(
        (Decimal(str(b["quantity"])) * Decimal(b["cost_price"]) for b in batches), Decimal("0")
    )
    if total_quantity > 0:
        average_cost = (total_cost_minor / total_quantity / 100).quantize(Decimal("0.01"))
    else:
        average_cost = Decimal("0.00")

    states = [classify_batch(b, today) for b in batches]
    return {
        "total_batches": len(batches),
        "total_quantity": total_quantity,
        "average_cost_price": average_cost,
        "expired_count": states.count(ExpiryState.EXPIRED),
        "expiring_soon_count": states.count(ExpiryState.EXPIRING_SOON),
    }


def annotate_batch(batch: Mapping, today: DateLike) -> dict:
    row = dict(batch)
    row["expiry_state"] = classify_batch(batch, today)
    row["days_until_expiry"] = days_until_expiry(batch.get("expiry_date"), today)
    row["is_initial_stock"] = is_initial_stock(batch)
    return row


def item_batch_report(batches: Iterable[Mapping], item: Mapping, today: DateLike) -> dict:
    """Every lot of one item, classified, plus the summary line."""
    own = sort_by_expiry(b for b in batches if b["item_id"] == item["id"])
    return {
        "item_id": item["id"],
        "item_name": item["trade_name"],
        "batches": [annotate_batch(b, today) for b in own],
        "summary": batch_summary(own, today),
    }


def record_initial_stock(
    store: RecordStore,
    item_id: str,
    quantity,
    expiry_date: Optional[DateLike] = None,
    cost_price=None,
    selling_price=None,
) -> dict:
    """
    Seed stock for an item outside the purchasing flow.

    Prices default to the item's catalog prices (major units) and are stored
    on the batch in minor units. expiry_date may be omitted (no-expiry lot).
    """
    item = store.get("inventory", item_id)
    if item is None:
        raise ReferenceNotFoundError("inventory", item_id)

    qty = parse_quantity(quantity)
    if qty is None or qty <= 0:
        raise CatalogValidationError(
            "Initial stock quantity must be a number greater than 0 with at most 2 decimal places"
        )

    cost = parse_decimal(item["cost_price"] if cost_price is None else cost_price)
    selling = parse_decimal(item["selling_price"] if selling_price is None else selling_price)
    if cost is None or cost < 0 or selling is None or selling < 0:
        raise CatalogValidationError("Initial stock prices must be numbers >= 0")

    batch = store.create(
        "batches",
        {
            "item_id": item_id,
            "purchase_id": INITIAL_STOCK_PURCHASE_ID,
            "quantity": qty,
            "cost_price": to_minor_units(cost),
            "selling_price": to_minor_units(selling),
            "expiry_date": as_date(expiry_date),
            "created_at": utcnow(),
            "is_initial_stock": True,
        },
    )
    logger.info(f"Initial stock batch {batch['id']} for item {item_id}: {qty} units")
    AuditLog.log_initial_stock(item_id, batch["id"], qty)
    return batch
