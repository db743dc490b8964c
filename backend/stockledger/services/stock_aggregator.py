"""On-hand stock per item, derived from the batches ledger.

Stock is the plain sum of every lot's quantity. Expired and no-expiry lots
count too: expiry is a display classification, not a consumption event.
Recomputed from the whole ledger on every change; never kept as a counter.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, Mapping

ZERO = Decimal("0")


def aggregate_stock(batches: Iterable[Mapping]) -> Dict[str, Decimal]:
    """Map item_id -> total quantity over all batches for that item."""
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for batch in batches:
        totals[batch["item_id"]] += Decimal(str(batch["quantity"]))
    return dict(totals)


def stock_for(stock_map: Mapping[str, Decimal], item_id: str) -> Decimal:
    """Items with no batches have zero stock."""
    return stock_map.get(item_id, ZERO)
