"""
Purchase order processor: validate, persist, fan out into batches.

FLOW:
1. Resolve the supplier (reference error if it is gone).
2. Validate every line and batch entry; collect all problems, write nothing.
3. Resolve every inventory item (reference error if one is gone).
4. Saga:
   a. write the purchase as "pending" with expected_batches = K
   b. write the K batches one by one
   c. flip the purchase to "committed"
   If (b) fails, the batches already written and the pending purchase are
   deleted again (compensation) and PartialWriteError is raised. Whatever
   compensation could not remove stays pending for the reconciliation sweep.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from stockledger.core.audit import AuditLog
from stockledger.core.exceptions import (
    PartialWriteError,
    PurchaseValidationError,
    ReferenceNotFoundError,
    StoreUnavailableError,
)
from stockledger.core.money import (
    MINOR_UNITS_PER_MAJOR,
    parse_decimal,
    parse_quantity,
    to_minor_units,
)
from stockledger.db.store import RecordStore, utcnow
from stockledger.models.purchase import PURCHASE_COMMITTED, PURCHASE_PENDING
from stockledger.schemas.purchase import PurchaseCreate
from stockledger.services.expiry_classifier import as_date

logger = logging.getLogger(__name__)


@dataclass
class ValidatedBatch:
    item_id: str
    quantity: Decimal
    expiry_date: date
    cost_price: int  # minor units
    selling_price: int  # minor units


@dataclass
class ValidatedPurchase:
    supplier_id: str
    supplier_name: str
    purchase_date: date
    total_items: int
    total_quantity: Decimal
    total_cost: int  # minor units
    batches: List[ValidatedBatch] = field(default_factory=list)


def supplier_display_name(supplier: dict) -> str:
    """Company name when present, otherwise the contact name."""
    return supplier.get("company_name") or supplier["name"]


def _parse_expiry(value: Optional[str]) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    try:
        return as_date(str(value))
    except ValueError:
        return None


def validate_purchase(store: RecordStore, request: PurchaseCreate) -> ValidatedPurchase:
    """Every check that can reject the submission. Reads only."""
    if not request.supplier_id or not request.supplier_id.strip():
        raise PurchaseValidationError(["Please select a supplier"])
    supplier = store.get("suppliers", request.supplier_id)
    if supplier is None:
        raise ReferenceNotFoundError("suppliers", request.supplier_id)

    errors: List[str] = []
    if not request.items:
        raise PurchaseValidationError(["Please add at least one item to the purchase order"])

    seen_items = set()
    total_cost_major = Decimal("0")
    total_quantity = Decimal("0")
    batches: List[ValidatedBatch] = []

    for index, line in enumerate(request.items, start=1):
        label = f"item {index} ({line.item_id})"
        if line.item_id in seen_items:
            errors.append(f"{label}: this item is already added to the purchase order")
        seen_items.add(line.item_id)

        cost = parse_decimal(line.cost_price)
        selling = parse_decimal(line.selling_price)
        if cost is None or cost < 0:
            errors.append(f"{label}: enter a valid cost price")
        if selling is None or selling < 0:
            errors.append(f"{label}: enter a valid selling price")
        if not line.batches:
            errors.append(f"{label}: add at least one batch")

        for batch_index, entry in enumerate(line.batches, start=1):
            batch_label = f"{label}, batch {batch_index}"
            quantity = parse_quantity(entry.quantity)
            expiry = _parse_expiry(entry.expiry_date)
            if quantity is None or quantity <= 0:
                errors.append(f"{batch_label}: enter a valid quantity (greater than 0, at most 2 decimal places)")
            if expiry is None:
                errors.append(f"{batch_label}: enter a valid expiry date (YYYY-MM-DD)")
            if errors:
                continue
            total_quantity += quantity
            total_cost_major += quantity * cost
            batches.append(
                ValidatedBatch(
                    item_id=line.item_id,
                    quantity=quantity,
                    expiry_date=expiry,
                    cost_price=to_minor_units(cost),
                    selling_price=to_minor_units(selling),
                )
            )

    if errors:
        raise PurchaseValidationError(errors)

    for item_id in seen_items:
        if store.get("inventory", item_id) is None:
            raise ReferenceNotFoundError("inventory", item_id)

    total_cost = int(
        (total_cost_major * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )
    return ValidatedPurchase(
        supplier_id=supplier["id"],
        supplier_name=supplier_display_name(supplier),
        purchase_date=request.purchase_date,
        total_items=len(seen_items),
        total_quantity=total_quantity,
        total_cost=total_cost,
        batches=batches,
    )


def roll_back_purchase(store: RecordStore, purchase_id: str, batch_ids: List[str], reason: str) -> bool:
    """
    Compensation: delete the purchase's batches, then the purchase.

    Batches are looked up by purchase_id as well as taken from batch_ids, so a
    batch committed without its id reaching the caller is removed too.
    Returns False when anything could not be removed; the purchase then stays
    pending and the reconciliation sweep retries later.
    """
    removed = []
    targets = list(batch_ids)
    try:
        for batch in store.find("batches", purchase_id=purchase_id):
            if batch["id"] not in targets:
                targets.append(batch["id"])
        for batch_id in targets:
            if store.delete("batches", batch_id):
                removed.append(batch_id)
        store.delete("purchases", purchase_id)
    except StoreUnavailableError as e:
        logger.error(
            f"Compensation for purchase {purchase_id} incomplete "
            f"({len(removed)}/{len(targets)} batches removed): {e}"
        )
        return False
    AuditLog.log_purchase_rolled_back(purchase_id, removed, reason)
    return True


def submit_purchase(store: RecordStore, request: PurchaseCreate) -> dict:
    """Validate and persist one purchase with all of its batches. Returns the purchase."""
    validated = validate_purchase(store, request)

    purchase = store.create(
        "purchases",
        {
            "supplier_id": validated.supplier_id,
            "supplier_name": validated.supplier_name,
            "purchase_date": validated.purchase_date,
            "total_items": validated.total_items,
            "total_quantity": validated.total_quantity,
            "total_cost": validated.total_cost,
            "status": PURCHASE_PENDING,
            "expected_batches": len(validated.batches),
            "created_at": utcnow(),
        },
    )
    purchase_id = purchase["id"]
    logger.info(
        f"Purchase {purchase_id} pending: supplier={validated.supplier_name}, "
        f"{len(validated.batches)} batches, total_cost={validated.total_cost}"
    )

    written: List[str] = []
    try:
        for entry in validated.batches:
            batch = store.create(
                "batches",
                {
                    "item_id": entry.item_id,
                    "purchase_id": purchase_id,
                    "quantity": entry.quantity,
                    "cost_price": entry.cost_price,
                    "selling_price": entry.selling_price,
                    "expiry_date": entry.expiry_date,
                    "created_at": utcnow(),
                    "is_initial_stock": False,
                },
            )
            written.append(batch["id"])
    except StoreUnavailableError as e:
        logger.error(
            f"Purchase {purchase_id}: batch write failed after "
            f"{len(written)}/{len(validated.batches)} batches: {e}"
        )
        compensated = roll_back_purchase(store, purchase_id, written, reason=f"batch write failed: {e}")
        raise PartialWriteError(purchase_id, len(written), len(validated.batches), compensated) from e

    try:
        purchase = store.update(
            "purchases", purchase_id, {"status": PURCHASE_COMMITTED, "committed_at": utcnow()}
        )
    except StoreUnavailableError as e:
        # All batches exist; the sweep commits it once the timeout passes
        logger.warning(f"Purchase {purchase_id} written but left pending: {e}")
        return purchase

    logger.info(f"Purchase {purchase_id} committed with {len(written)} batches")
    AuditLog.log_purchase_committed(
        purchase_id, validated.supplier_id, written, validated.total_quantity, validated.total_cost
    )
    return purchase


def list_purchases(store: RecordStore, search: Optional[str] = None) -> List[dict]:
    """Committed purchases, newest purchase date first. Search matches supplier name or id."""
    purchases = [p for p in store.snapshot("purchases") if p["status"] == PURCHASE_COMMITTED]
    if search:
        query = search.strip().lower()
        purchases = [
            p for p in purchases
            if query in p["supplier_name"].lower() or query in p["id"].lower()
        ]
    purchases.sort(key=lambda p: (p["purchase_date"], p["created_at"]), reverse=True)
    return purchases


def purchase_summary(purchases: List[dict]) -> dict:
    return {
        "total_purchases": len(purchases),
        "total_items": sum(p["total_items"] for p in purchases),
        "total_quantity": sum((Decimal(str(p["total_quantity"])) for p in purchases), Decimal("0")),
        "total_cost": sum(p["total_cost"] for p in purchases),
    }


def get_purchase_detail(store: RecordStore, purchase_id: str) -> dict:
    purchase = store.get("purchases", purchase_id)
    if purchase is None:
        raise ReferenceNotFoundError("purchases", purchase_id)
    detail = dict(purchase)
    detail["batches"] = sorted(
        store.find("batches", purchase_id=purchase_id), key=lambda b: b["created_at"]
    )
    return detail
