from datetime import date, timedelta
from decimal import Decimal

import pytest

from stockledger.core.exceptions import (
    PartialWriteError,
    PurchaseValidationError,
    ReferenceNotFoundError,
    StoreUnavailableError,
)
from stockledger.db.store import utcnow
from stockledger.schemas.purchase import PurchaseCreate
from stockledger.services.purchase_processor import (
    get_purchase_detail,
    list_purchases,
    purchase_summary,
    roll_back_purchase,
    submit_purchase,
    validate_purchase,
)
from stockledger.services.stock_aggregator import aggregate_stock


def _order(supplier_id, lines, purchase_date=date(2025, 1, 10)):
    return PurchaseCreate(supplier_id=supplier_id, purchase_date=purchase_date, items=lines)


def _line(item_id, batches, cost="5.00", selling="8.00"):
    return {"item_id": item_id, "cost_price": cost, "selling_price": selling, "batches": batches}


def test_two_items_three_batches(store, make_item, make_supplier):
    supplier = make_supplier(company_name="Kumar Pharma")
    i1, i2 = make_item("Dolo 650"), make_item("Crocin Advance")

    purchase = submit_purchase(store, _order(supplier["id"], [
        _line(i1["id"], [{"quantity": 10, "expiry_date": "2026-01-01"},
                         {"quantity": 4, "expiry_date": "2026-06-01"}]),
        _line(i2["id"], [{"quantity": "6", "expiry_date": "2025-12-01"}], cost="2.50"),
    ]))

    purchases = store.snapshot("purchases")
    batches = store.snapshot("batches")
    assert len(purchases) == 1
    assert len(batches) == 3
    assert all(b["purchase_id"] == purchase["id"] for b in batches)
    assert sum(b["quantity"] for b in batches) == purchase["total_quantity"] == Decimal("20")
    assert purchase["status"] == "committed"
    assert purchase["total_items"] == 2
    assert purchase["supplier_name"] == "Kumar Pharma"
    assert purchase["total_cost"] == 14 * 500 + 6 * 250

    stock = aggregate_stock(batches)
    assert stock[i1["id"]] == Decimal("14")
    assert stock[i2["id"]] == Decimal("6")


def test_total_cost_in_minor_units(store, make_item, make_supplier):
    supplier = make_supplier()
    item = make_item()

    purchase = submit_purchase(store, _order(supplier["id"], [
        _line(item["id"], [{"quantity": 10, "expiry_date": "2026-01-01"},
                           {"quantity": 5, "expiry_date": "2026-03-01"}]),
    ]))

    assert purchase["total_quantity"] == Decimal("15")
    assert purchase["total_cost"] == 7500
    batches = store.find("batches", item_id=item["id"])
    assert sorted(b["quantity"] for b in batches) == [Decimal("5"), Decimal("10")]
    assert {b["cost_price"] for b in batches} == {500}
    assert {b["selling_price"] for b in batches} == {800}


def test_prices_round_half_up_once(store, make_item, make_supplier):
    supplier = make_supplier()
    item = make_item()

    purchase = submit_purchase(store, _order(supplier["id"], [
        _line(item["id"], [{"quantity": 3, "expiry_date": "2026-01-01"}], cost="0.335", selling="10.005"),
    ]))

    batch = store.find("batches", purchase_id=purchase["id"])[0]
    assert batch["cost_price"] == 34
    assert batch["selling_price"] == 1001
    # 3 * 0.335 = 1.005 -> 101, not 3 * 34
    assert purchase["total_cost"] == 101


def test_missing_expiry_is_rejected(store, make_item, make_supplier):
    supplier = make_supplier()
    item = make_item()

    with pytest.raises(PurchaseValidationError) as exc:
        submit_purchase(store, _order(supplier["id"], [
            _line(item["id"], [{"quantity": 10, "expiry_date": "2026-01-01"},
                               {"quantity": 5, "expiry_date": None}]),
        ]))
    assert any("expiry" in e for e in exc.value.errors)
    assert store.snapshot("purchases") == []
    assert store.snapshot("batches") == []


def test_missing_supplier_writes_nothing(store, make_item):
    item = make_item()
    with pytest.raises(ReferenceNotFoundError) as exc:
        submit_purchase(store, _order("no-such-supplier", [
            _line(item["id"], [{"quantity": 1, "expiry_date": "2026-01-01"}]),
        ]))
    assert exc.value.collection == "suppliers"
    assert store.snapshot("purchases") == []
    assert store.snapshot("batches") == []


def test_missing_item_writes_nothing(store, make_supplier):
    supplier = make_supplier()
    with pytest.raises(ReferenceNotFoundError) as exc:
        submit_purchase(store, _order(supplier["id"], [
            _line("no-such-item", [{"quantity": 1, "expiry_date": "2026-01-01"}]),
        ]))
    assert exc.value.collection == "inventory"
    assert store.snapshot("purchases") == []


def test_all_validation_errors_are_reported(store, make_item, make_supplier):
    supplier = make_supplier()
    a, b = make_item("A"), make_item("B")

    with pytest.raises(PurchaseValidationError) as exc:
        validate_purchase(store, _order(supplier["id"], [
            _line(a["id"], [{"quantity": 0, "expiry_date": "2026-01-01"}], cost="abc"),
            _line(b["id"], [], selling="-1"),
            _line(a["id"], [{"quantity": 2, "expiry_date": "2026-01-01"}]),
        ]))
    errors = exc.value.errors
    assert any("cost price" in e for e in errors)
    assert any("quantity" in e for e in errors)
    assert any("selling price" in e for e in errors)
    assert any("at least one batch" in e for e in errors)
    assert any("already added" in e for e in errors)


def test_empty_order_and_blank_supplier(store, make_supplier):
    with pytest.raises(PurchaseValidationError) as exc:
        validate_purchase(store, _order("", []))
    assert exc.value.errors == ["Please select a supplier"]

    supplier = make_supplier()
    with pytest.raises(PurchaseValidationError):
        validate_purchase(store, _order(supplier["id"], []))


def test_failed_batch_write_is_compensated(store, make_item, make_supplier, monkeypatch):
    supplier = make_supplier()
    item = make_item()
    real_create = store.create
    calls = {"batches": 0}

    def flaky_create(collection, fields):
        if collection == "batches":
            calls["batches"] += 1
            if calls["batches"] == 2:
                raise StoreUnavailableError("disk full")
        return real_create(collection, fields)

    monkeypatch.setattr(store, "create", flaky_create)

    with pytest.raises(PartialWriteError) as exc:
        submit_purchase(store, _order(supplier["id"], [
            _line(item["id"], [{"quantity": 1, "expiry_date": "2026-01-01"},
                               {"quantity": 2, "expiry_date": "2026-02-01"},
                               {"quantity": 3, "expiry_date": "2026-03-01"}]),
        ]))
    assert exc.value.written == 1
    assert exc.value.expected == 3
    assert exc.value.compensated is True
    assert store.snapshot("purchases") == []
    assert store.snapshot("batches") == []


def test_incomplete_compensation_leaves_pending(store, make_item, make_supplier, monkeypatch):
    supplier = make_supplier()
    item = make_item()
    real_create = store.create

    def flaky_create(collection, fields):
        if collection == "batches" and store.find("batches"):
            raise StoreUnavailableError("disk full")
        return real_create(collection, fields)

    def failing_delete(collection, record_id):
        raise StoreUnavailableError("still down")

    monkeypatch.setattr(store, "create", flaky_create)
    monkeypatch.setattr(store, "delete", failing_delete)

    with pytest.raises(PartialWriteError) as exc:
        submit_purchase(store, _order(supplier["id"], [
            _line(item["id"], [{"quantity": 1, "expiry_date": "2026-01-01"},
                               {"quantity": 2, "expiry_date": "2026-02-01"}]),
        ]))
    assert exc.value.compensated is False
    pending = store.snapshot("purchases")
    assert [p["status"] for p in pending] == ["pending"]
    assert pending[0]["expected_batches"] == 2
    assert len(store.snapshot("batches")) == 1


def test_failed_commit_returns_pending_purchase(store, make_item, make_supplier, monkeypatch):
    supplier = make_supplier()
    item = make_item()

    def failing_update(collection, record_id, changes):
        raise StoreUnavailableError("timeout")

    monkeypatch.setattr(store, "update", failing_update)
    purchase = submit_purchase(store, _order(supplier["id"], [
        _line(item["id"], [{"quantity": 4, "expiry_date": "2026-01-01"}]),
    ]))
    assert purchase["status"] == "pending"
    assert len(store.find("batches", purchase_id=purchase["id"])) == 1


def test_listing_summary_and_detail(store, make_item, make_supplier):
    s1 = make_supplier("Ravi", company_name="Kumar Pharma")
    s2 = make_supplier("Anita")
    item = make_item()

    older = submit_purchase(store, _order(s1["id"], [
        _line(item["id"], [{"quantity": 2, "expiry_date": "2026-01-01"}]),
    ], purchase_date=date(2025, 1, 1)))
    newer = submit_purchase(store, _order(s2["id"], [
        _line(item["id"], [{"quantity": 3, "expiry_date": "2026-01-01"},
                           {"quantity": 1, "expiry_date": "2026-04-01"}]),
    ], purchase_date=date(2025, 1, 9)))

    listed = list_purchases(store)
    assert [p["id"] for p in listed] == [newer["id"], older["id"]]
    assert [p["id"] for p in list_purchases(store, search="kumar")] == [older["id"]]

    summary = purchase_summary(listed)
    assert summary["total_purchases"] == 2
    assert summary["total_quantity"] == Decimal("6")
    assert summary["total_cost"] == 6 * 500

    detail = get_purchase_detail(store, newer["id"])
    assert len(detail["batches"]) == 2
    with pytest.raises(ReferenceNotFoundError):
        get_purchase_detail(store, "missing")


def test_pending_purchases_are_not_listed(store, make_item, make_supplier, monkeypatch):
    supplier = make_supplier()
    item = make_item()
    def failing_update(collection, record_id, changes):
        raise StoreUnavailableError("timeout")

    monkeypatch.setattr(store, "update", failing_update)
    submit_purchase(store, _order(supplier["id"], [
        _line(item["id"], [{"quantity": 1, "expiry_date": (date.today() + timedelta(days=90)).isoformat()}]),
    ]))
    assert list_purchases(store) == []


def test_quantity_finer_than_ledger_scale_is_rejected(store, make_item, make_supplier):
    supplier = make_supplier()
    item = make_item()

    with pytest.raises(PurchaseValidationError) as exc:
        submit_purchase(store, _order(supplier["id"], [
            _line(item["id"], [{"quantity": "0.004", "expiry_date": "2026-01-01"},
                               {"quantity": "0.004", "expiry_date": "2026-02-01"}]),
        ]))
    assert sum("quantity" in e for e in exc.value.errors) == 2
    assert store.snapshot("purchases") == []
    assert store.snapshot("batches") == []


def test_fractional_quantities_match_purchase_total(store, make_item, make_supplier):
    supplier = make_supplier()
    item = make_item()

    purchase = submit_purchase(store, _order(supplier["id"], [
        _line(item["id"], [{"quantity": "1.25", "expiry_date": "2026-01-01"},
                           {"quantity": "0.50", "expiry_date": "2026-02-01"}]),
    ]))
    batches = store.find("batches", purchase_id=purchase["id"])
    assert all(b["quantity"] > 0 for b in batches)
    assert sum(b["quantity"] for b in batches) == purchase["total_quantity"] == Decimal("1.75")


def test_malformed_expiry_is_rejected(store, make_item, make_supplier):
    supplier = make_supplier()
    item = make_item()

    with pytest.raises(PurchaseValidationError) as exc:
        submit_purchase(store, _order(supplier["id"], [
            _line(item["id"], [{"quantity": 1, "expiry_date": "2026-01-01garbage"}]),
        ]))
    assert any("expiry" in e for e in exc.value.errors)
    assert store.snapshot("batches") == []


def test_batch_committed_before_error_is_still_compensated(store, make_item, make_supplier, monkeypatch):
    supplier = make_supplier()
    item = make_item()
    real_create = store.create
    calls = {"batches": 0}

    def commit_then_fail(collection, fields):
        record = real_create(collection, fields)
        if collection == "batches":
            calls["batches"] += 1
            if calls["batches"] == 2:
                raise StoreUnavailableError("connection lost after commit")
        return record

    monkeypatch.setattr(store, "create", commit_then_fail)

    with pytest.raises(PartialWriteError) as exc:
        submit_purchase(store, _order(supplier["id"], [
            _line(item["id"], [{"quantity": 1, "expiry_date": "2026-01-01"},
                               {"quantity": 2, "expiry_date": "2026-02-01"},
                               {"quantity": 3, "expiry_date": "2026-03-01"}]),
        ]))
    assert exc.value.compensated is True
    assert store.snapshot("batches") == []
    assert store.snapshot("purchases") == []


def test_subscriber_snapshot_failure_does_not_break_purchase(store, make_item, make_supplier, monkeypatch):
    supplier = make_supplier()
    item = make_item()
    received = []
    store.subscribe("batches", received.append)
    real_snapshot = store.snapshot
    calls = {"batches": 0}

    def flaky_snapshot(collection):
        if collection == "batches":
            calls["batches"] += 1
            if calls["batches"] == 2:
                raise StoreUnavailableError("read replica down")
        return real_snapshot(collection)

    monkeypatch.setattr(store, "snapshot", flaky_snapshot)

    purchase = submit_purchase(store, _order(supplier["id"], [
        _line(item["id"], [{"quantity": 1, "expiry_date": "2026-01-01"},
                           {"quantity": 2, "expiry_date": "2026-02-01"},
                           {"quantity": 3, "expiry_date": "2026-03-01"}]),
    ]))
    assert purchase["status"] == "committed"
    assert len(store.find("batches", purchase_id=purchase["id"])) == 3
    # the missed snapshot is made up by the next one
    assert len(received[-1]) == 3


def test_rollback_finds_batches_by_purchase(store, add_batch):
    purchase = store.create("purchases", {
        "supplier_id": "s1", "supplier_name": "Kumar Pharma", "purchase_date": date(2025, 1, 10),
        "total_items": 1, "total_quantity": 3, "total_cost": 1500, "status": "pending",
        "expected_batches": 2, "created_at": utcnow(),
    })
    add_batch("item-1", 1, expiry_date=date(2026, 1, 1), purchase_id=purchase["id"])
    add_batch("item-1", 2, expiry_date=date(2026, 1, 1), purchase_id=purchase["id"])

    assert roll_back_purchase(store, purchase["id"], [], reason="test") is True
    assert store.snapshot("batches") == []
    assert store.get("purchases", purchase["id"]) is None
