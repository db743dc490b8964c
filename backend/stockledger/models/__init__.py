from stockledger.models.inventory import InventoryItem
from stockledger.models.category import Category
from stockledger.models.supplier import Supplier
from stockledger.models.purchase import Purchase
from stockledger.models.batch import Batch

__all__ = ["InventoryItem", "Category", "Supplier", "Purchase", "Batch"]
