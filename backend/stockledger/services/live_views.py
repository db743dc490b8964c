"""
Live ledger view kept current through record store subscriptions.

Each notification carries the full collection, so every derived value is
recomputed from scratch: the stock map on every batches snapshot. Expiry
state is never cached; it is classified per query against the caller's today.
"""
import logging
import threading
from decimal import Decimal
from typing import Dict, List, Optional

from stockledger.core.exceptions import ReferenceNotFoundError
from stockledger.db.store import RecordStore, Subscription
from stockledger.services.batch_service import item_batch_report
from stockledger.services.expiry_classifier import DateLike
from stockledger.services.inventory_catalog import (
    StockStatus,
    catalog_rows,
    catalog_summary,
    derive_status,
)
from stockledger.services.stock_aggregator import aggregate_stock, stock_for

logger = logging.getLogger(__name__)


class LedgerView:
    """Subscribes to batches, inventory and categories until close() is called."""

    def __init__(self, store: RecordStore):
        self._lock = threading.Lock()
        self._batches: List[dict] = []
        self._items: Dict[str, dict] = {}
        self._categories: List[dict] = []
        self._stock: Dict[str, Decimal] = {}
        self.refresh_count = 0
        self._subscriptions: List[Subscription] = []
        try:
            self._subscriptions.append(store.subscribe("batches", self._on_batches))
            self._subscriptions.append(store.subscribe("inventory", self._on_inventory))
            self._subscriptions.append(store.subscribe("categories", self._on_categories))
        except Exception:
            self.close()
            raise

    # -- subscription callbacks ------------------------------------------

    def _on_batches(self, snapshot: List[dict]) -> None:
        stock = aggregate_stock(snapshot)
        with self._lock:
            self._batches = snapshot
            self._stock = stock
            self.refresh_count += 1
        logger.debug(f"Ledger view refreshed: {len(snapshot)} batches, {len(stock)} stocked items")

    def _on_inventory(self, snapshot: List[dict]) -> None:
        with self._lock:
            self._items = {item["id"]: item for item in snapshot}

    def _on_categories(self, snapshot: List[dict]) -> None:
        with self._lock:
            self._categories = snapshot

    # -- queries -----------------------------------------------------------

    def stock_levels(self) -> Dict[str, Decimal]:
        with self._lock:
            return dict(self._stock)

    def stock(self, item_id: str) -> Decimal:
        with self._lock:
            return stock_for(self._stock, item_id)

    def status(self, item_id: str) -> StockStatus:
        with self._lock:
            item = self._items.get(item_id)
            stock = stock_for(self._stock, item_id)
        if item is None:
            raise ReferenceNotFoundError("inventory", item_id)
        return derive_status(stock, item.get("minimum_stock"))

    def catalog(
        self,
        today: DateLike,
        search: Optional[str] = None,
        status: Optional[StockStatus] = None,
        category: Optional[str] = None,
    ) -> dict:
        with self._lock:
            items = list(self._items.values())
            batches = list(self._batches)
            categories = list(self._categories)
            stock = dict(self._stock)
        rows = catalog_rows(
            items, batches, categories, today,
            search=search, status=status, category=category, stock_map=stock,
        )
        # Summary counts cover the whole catalog, not just the filtered rows
        if search or status or category:
            summary = catalog_summary(catalog_rows(items, batches, categories, today, stock_map=stock))
        else:
            summary = catalog_summary(rows)
        return {"items": rows, "summary": summary}

    def item_batches(self, item_id: str, today: DateLike) -> dict:
        with self._lock:
            item = self._items.get(item_id)
            batches = list(self._batches)
        if item is None:
            raise ReferenceNotFoundError("inventory", item_id)
        return item_batch_report(batches, item, today)

    # -- lifecycle ---------------------------------------------------------

    @property
    def closed(self) -> bool:
        return not any(s.active for s in self._subscriptions)

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        logger.debug("Ledger view subscriptions released")

    def __enter__(self) -> "LedgerView":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
