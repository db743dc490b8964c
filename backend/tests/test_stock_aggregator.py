from decimal import Decimal

from stockledger.services.stock_aggregator import ZERO, aggregate_stock, stock_for


def test_sums_every_batch_per_item():
    batches = [
        {"item_id": "a", "quantity": 10},
        {"item_id": "a", "quantity": Decimal("2.5")},
        {"item_id": "b", "quantity": 7},
    ]
    stock = aggregate_stock(batches)
    assert stock == {"a": Decimal("12.5"), "b": Decimal("7")}


def test_item_without_batches_has_zero_stock():
    stock = aggregate_stock([{"item_id": "a", "quantity": 3}])
    assert stock_for(stock, "missing") == ZERO
    assert aggregate_stock([]) == {}


def test_expired_lots_still_count(store, make_item, add_batch, today):
    item = make_item("Amoxicillin 500mg", minimum_stock=5)
    add_batch(item["id"], 3, expiry_date=today.replace(year=today.year - 1))
    add_batch(item["id"], 7, expiry_date=today.replace(year=today.year + 1))
    stock = aggregate_stock(store.snapshot("batches"))
    assert stock_for(stock, item["id"]) == Decimal("10")
