"""
Audit logging for ledger-changing operations.

Every purchase, compensation and reconciliation decision is written as one
JSON line on the "audit" logger so the stock history can be reconstructed
independently of the record store.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for ledger events."""

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete"
        resource_type: str,  # "inventory", "supplier", "category"
        resource_id: str,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log catalog-level changes.

        Usage:
            AuditLog.log_action("update", "inventory", item_id, changes={"minimumStock": 20})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_purchase_committed(
        purchase_id: str,
        supplier_id: str,
        batch_ids: list,
        total_quantity: Any,
        total_cost: int,
    ):
        """One entry per committed purchase, listing every batch it fanned out to."""
        log_entry = {
            "timestamp": _now(),
            "event_type": "purchase.committed",
            "resource_id": purchase_id,
            "supplier_id": supplier_id,
            "batch_ids": batch_ids,
            "total_quantity": total_quantity,
            "total_cost": total_cost,
        }
        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_purchase_rolled_back(
        purchase_id: str,
        removed_batch_ids: list,
        reason: str,
    ):
        """
        Log a compensated purchase (saga rollback or reconciliation).

        These are the only events that remove batches from the ledger.
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "purchase.rolled_back",
            "resource_id": purchase_id,
            "removed_batch_ids": removed_batch_ids,
            "reason": reason,
        }
        audit_logger.warning(json.dumps(log_entry, default=str))

    @staticmethod
    def log_initial_stock(item_id: str, batch_id: str, quantity: Any):
        log_entry = {
            "timestamp": _now(),
            "event_type": "batch.initial_stock",
            "resource_id": batch_id,
            "item_id": item_id,
            "quantity": quantity,
        }
        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_reconciliation(completed: list, rolled_back: list):
        """Summary of one reconciliation sweep."""
        log_entry = {
            "timestamp": _now(),
            "event_type": "purchase.reconciliation",
            "completed": completed,
            "rolled_back": rolled_back,
        }
        audit_logger.info(json.dumps(log_entry, default=str))
