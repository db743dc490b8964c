"""Seed the ledger with a few medicines, a supplier and one purchase."""
from datetime import date, timedelta

from stockledger.core.config import settings
from stockledger.core.logging_config import setup_logging
from stockledger.db.store import RecordStore
from stockledger.schemas.purchase import PurchaseCreate
from stockledger.services import batch_service, category_service, inventory_catalog, supplier_service
from stockledger.services.purchase_processor import submit_purchase


def seed_inventory():
    setup_logging()
    store = RecordStore.from_url(settings.DATABASE_URL)

    if store.snapshot("inventory"):
        print("Inventory already seeded, nothing to do.")
        return

    analgesics = category_service.create_category(store, {"name": "Analgesics"})
    antibiotics = category_service.create_category(store, {"name": "Antibiotics"})

    medicines = [
        {"trade_name": "Paracetamol 500mg", "generic_name": "Paracetamol", "category": analgesics["id"],
         "cost_price": "1.80", "selling_price": "2.50", "minimum_stock": 50},
        {"trade_name": "Dolo 650", "generic_name": "Paracetamol", "brand_name": "Micro Labs",
         "category": analgesics["id"], "cost_price": "2.10", "selling_price": "3.00", "minimum_stock": 40},
        {"trade_name": "Azithromycin 500mg", "generic_name": "Azithromycin", "category": antibiotics["id"],
         "cost_price": "11.00", "selling_price": "15.00", "minimum_stock": 20},
        {"trade_name": "Amoxicillin 500mg", "generic_name": "Amoxicillin", "category": antibiotics["id"],
         "cost_price": "5.50", "selling_price": "8.00", "minimum_stock": 20},
    ]
    items = [inventory_catalog.create_item(store, m) for m in medicines]
    print(f"Added {len(items)} items")

    # Opening stock without a purchase
    batch_service.record_initial_stock(store, items[0]["id"], 120)

    supplier = supplier_service.create_supplier(store, {
        "name": "Ravi Kumar",
        "company_name": "Kumar Pharma Distributors",
        "phone_number": "+91 98450 12345",
        "address": "12 MG Road, Bengaluru",
        "email": "orders@kumarpharma.in",
    })

    today = date.today()
    purchase = submit_purchase(store, PurchaseCreate(
        supplier_id=supplier["id"],
        purchase_date=today,
        items=[
            {"item_id": items[1]["id"], "cost_price": "2.10", "selling_price": "3.00", "batches": [
                {"quantity": 100, "expiry_date": (today + timedelta(days=400)).isoformat()},
                {"quantity": 30, "expiry_date": (today + timedelta(days=20)).isoformat()},
            ]},
            {"item_id": items[2]["id"], "cost_price": "11.00", "selling_price": "15.00", "batches": [
                {"quantity": 25, "expiry_date": (today + timedelta(days=365)).isoformat()},
            ]},
        ],
    ))
    print(f"Purchase {purchase['id']} committed, total cost {purchase['total_cost']} paise")


if __name__ == "__main__":
    seed_inventory()
