"""
Reconciliation sweep for purchases stuck in "pending".

A purchase stays pending when the process died between writing it and
committing it, or when saga compensation could not finish. Once it is older
than PENDING_PURCHASE_TIMEOUT_SECONDS:

- exactly expected_batches batches reference it  -> flip to committed
- anything else                                    -> delete its batches and it

Runs once at startup and then periodically in the FastAPI event loop.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from stockledger.core.audit import AuditLog
from stockledger.core.config import settings
from stockledger.core.exceptions import LedgerError
from stockledger.db.store import RecordStore, utcnow
from stockledger.models.purchase import PURCHASE_COMMITTED, PURCHASE_PENDING
from stockledger.services.purchase_processor import roll_back_purchase

logger = logging.getLogger(__name__)

COMPLETED = "completed"
ROLLED_BACK = "rolled_back"
UNRESOLVED = "unresolved"


def find_stale_pending(
    store: RecordStore,
    now: Optional[datetime] = None,
    timeout_seconds: Optional[int] = None,
) -> List[dict]:
    now = now or utcnow()
    if timeout_seconds is None:
        timeout_seconds = settings.PENDING_PURCHASE_TIMEOUT_SECONDS
    cutoff = now - timedelta(seconds=timeout_seconds)
    return [
        p for p in store.find("purchases", status=PURCHASE_PENDING)
        if p["created_at"] <= cutoff
    ]


def reconcile_purchase(store: RecordStore, purchase: dict) -> str:
    batches = store.find("batches", purchase_id=purchase["id"])
    if len(batches) == purchase["expected_batches"]:
        store.update(
            "purchases", purchase["id"], {"status": PURCHASE_COMMITTED, "committed_at": utcnow()}
        )
        logger.info(f"[Reconciler] Purchase {purchase['id']} completed ({len(batches)} batches)")
        return COMPLETED

    reason = f"reconciliation: {len(batches)}/{purchase['expected_batches']} batches present"
    if roll_back_purchase(store, purchase["id"], [b["id"] for b in batches], reason):
        logger.warning(f"[Reconciler] Purchase {purchase['id']} rolled back ({reason})")
        return ROLLED_BACK
    return UNRESOLVED


def sweep_pending_purchases(
    store: RecordStore,
    now: Optional[datetime] = None,
    timeout_seconds: Optional[int] = None,
) -> Dict[str, List[str]]:
    """
    Resolve every stale pending purchase.

    Returns:
        {"completed": [...ids], "rolled_back": [...ids], "unresolved": [...ids]}
    """
    outcome: Dict[str, List[str]] = {COMPLETED: [], ROLLED_BACK: [], UNRESOLVED: []}
    for purchase in find_stale_pending(store, now, timeout_seconds):
        outcome[reconcile_purchase(store, purchase)].append(purchase["id"])

    if outcome[COMPLETED] or outcome[ROLLED_BACK]:
        AuditLog.log_reconciliation(outcome[COMPLETED], outcome[ROLLED_BACK])
    if outcome[UNRESOLVED]:
        logger.error(f"[Reconciler] Unresolved pending purchases: {outcome[UNRESOLVED]}")
    return outcome


# ============================================================================
# BACKGROUND TASK - Runs in asyncio loop alongside FastAPI
# ============================================================================

_reconciler_running = False


async def _reconciler_loop(store: RecordStore, interval_seconds: int):
    global _reconciler_running
    _reconciler_running = True
    logger.info(f"[Reconciler] Started. Interval: {interval_seconds}s")

    while _reconciler_running:
        await asyncio.sleep(interval_seconds)
        try:
            # Store calls block; keep them off the event loop
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, sweep_pending_purchases, store)
        except LedgerError as e:
            logger.error(f"[Reconciler] Sweep failed: {e}")


def start_reconciler(store: RecordStore, interval_seconds: Optional[int] = None) -> asyncio.Task:
    """Start the periodic sweep. Called from the FastAPI lifespan."""
    interval = interval_seconds or settings.RECONCILE_INTERVAL_SECONDS
    return asyncio.create_task(_reconciler_loop(store, interval))


async def stop_reconciler(task: Optional[asyncio.Task]) -> None:
    global _reconciler_running
    _reconciler_running = False
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("[Reconciler] Stopped")
