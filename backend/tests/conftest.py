"""Shared fixtures: in-memory record store, seed helpers, authenticated client."""
import os
import tempfile
from datetime import date

# Settings are read at import time
os.environ.setdefault("ACCESS_TOKEN", "test-token")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="stockledger-logs-"))

import pytest
from fastapi.testclient import TestClient

from stockledger.api.deps import get_today
from stockledger.db.store import RecordStore, utcnow
from stockledger.main import create_app
from stockledger.services import category_service, inventory_catalog, supplier_service

TODAY = date(2025, 1, 15)
AUTH_HEADERS = {"Authorization": f"Bearer {os.environ['ACCESS_TOKEN']}"}


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def store():
    return RecordStore.from_url("sqlite://")


@pytest.fixture
def make_item(store):
    def _make(trade_name="Paracetamol 500mg", **fields):
        fields.setdefault("cost_price", "5.00")
        fields.setdefault("selling_price", "8.00")
        return inventory_catalog.create_item(store, {"trade_name": trade_name, **fields})
    return _make


@pytest.fixture
def make_supplier(store):
    def _make(name="Ravi Kumar", **fields):
        values = {"name": name, "address": "12 MG Road", "email": "ravi@example.com"}
        values.update(fields)
        return supplier_service.create_supplier(store, values)
    return _make


@pytest.fixture
def make_category(store):
    def _make(name="Analgesics"):
        return category_service.create_category(store, {"name": name})
    return _make


@pytest.fixture
def add_batch(store):
    """Write one batch straight into the ledger."""
    def _add(item_id, quantity, expiry_date=None, cost_price=500, purchase_id="p-test"):
        return store.create(
            "batches",
            {
                "item_id": item_id,
                "purchase_id": purchase_id,
                "quantity": quantity,
                "cost_price": cost_price,
                "selling_price": 800,
                "expiry_date": expiry_date,
                "created_at": utcnow(),
                "is_initial_stock": False,
            },
        )
    return _add


@pytest.fixture
def client(store):
    app = create_app(store=store)
    app.dependency_overrides[get_today] = lambda: TODAY
    with TestClient(app) as c:
        c.headers.update(AUTH_HEADERS)
        yield c
