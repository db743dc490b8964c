"""
Record store: keyed collections with live full-snapshot subscriptions.

Collections: inventory, categories, suppliers, purchases, batches.

CONTRACT:
- Every write (create / update / delete) is its own transaction. There is no
  cross-record transaction; multi-record operations must compensate themselves.
- subscribe() delivers the full current snapshot immediately and a fresh full
  snapshot after every committed write to that collection. No diffs.
- Every read and write first checks the session gate.
- Backend failures surface as StoreUnavailableError, never retried here.
"""
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from stockledger.core.exceptions import (
    ReferenceNotFoundError,
    SessionRequiredError,
    StoreUnavailableError,
)
from stockledger.db.init_db import init_db
from stockledger.db.session import make_engine, make_session_factory
from stockledger.models import Batch, Category, InventoryItem, Purchase, Supplier

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "inventory": InventoryItem,
    "categories": Category,
    "suppliers": Supplier,
    "purchases": Purchase,
    "batches": Batch,
}

Record = Dict[str, Any]
SnapshotCallback = Callable[[List[Record]], None]


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite drops tzinfo anyway)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_record_id() -> str:
    return uuid.uuid4().hex


def records_to_list(mapping: Optional[Mapping[str, Mapping[str, Any]]]) -> List[Record]:
    """
    Convert a keyed collection {id: fields} into a list of records with "id" attached.

    None or an empty mapping yields []. The key always wins over a stray "id" field.
    """
    if not mapping:
        return []
    return [{**dict(fields or {}), "id": key} for key, fields in mapping.items()]


class Subscription:
    """Handle for one live collection subscription. Release it when done."""

    def __init__(self, store: "RecordStore", collection: str, callback: SnapshotCallback):
        self.store = store
        self.collection = collection
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.store._release(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


class RecordStore:
    def __init__(
        self,
        session_factory: sessionmaker,
        is_authenticated: Optional[Callable[[], bool]] = None,
    ):
        self._session_factory = session_factory
        self._is_authenticated = is_authenticated or (lambda: True)
        self._subscriptions: Dict[str, List[Subscription]] = {name: [] for name in COLLECTIONS}
        self._lock = threading.RLock()

    @classmethod
    def from_url(
        cls,
        database_url: str,
        is_authenticated: Optional[Callable[[], bool]] = None,
    ) -> "RecordStore":
        engine = make_engine(database_url)
        init_db(engine)
        store = cls(make_session_factory(engine), is_authenticated=is_authenticated)
        store.engine = engine
        return store

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _model(collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    @staticmethod
    def _columns(model) -> List[str]:
        return [attr.key for attr in sa_inspect(model).column_attrs]

    def _to_record(self, row) -> Record:
        return {name: getattr(row, name) for name in self._columns(type(row))}

    def _require_session(self) -> None:
        if not self._is_authenticated():
            raise SessionRequiredError("No usable session for record store access")

    def _check_fields(self, model, fields: Mapping[str, Any]) -> None:
        unknown = set(fields) - set(self._columns(model))
        if unknown:
            raise ValueError(f"Unknown fields for {model.__tablename__}: {sorted(unknown)}")

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        self._require_session()
        model = self._model(collection)
        db = self._session_factory()
        try:
            row = db.get(model, record_id)
            return self._to_record(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"read {collection}/{record_id} failed: {e}") from e
        finally:
            db.close()

    def find(self, collection: str, **criteria: Any) -> List[Record]:
        """Records whose fields equal every given criterion."""
        self._require_session()
        model = self._model(collection)
        self._check_fields(model, criteria)
        db = self._session_factory()
        try:
            rows = db.query(model).filter_by(**criteria).all()
            return [self._to_record(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"query {collection} failed: {e}") from e
        finally:
            db.close()

    def snapshot(self, collection: str) -> List[Record]:
        """Full current contents of a collection."""
        self._require_session()
        model = self._model(collection)
        db = self._session_factory()
        try:
            keyed = {}
            for row in db.query(model).all():
                fields = self._to_record(row)
                keyed[fields.pop("id")] = fields
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"read {collection} failed: {e}") from e
        finally:
            db.close()
        return records_to_list(keyed)

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def create(self, collection: str, fields: Mapping[str, Any]) -> Record:
        """Persist a new record under a generated id and return it."""
        self._require_session()
        model = self._model(collection)
        self._check_fields(model, fields)
        values = dict(fields)
        values["id"] = new_record_id()
        db = self._session_factory()
        try:
            row = model(**values)
            db.add(row)
            db.commit()
            db.refresh(row)
            record = self._to_record(row)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailableError(f"create in {collection} failed: {e}") from e
        finally:
            db.close()
        logger.debug(f"Created {collection}/{record['id']}")
        self._notify(collection)
        return record

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> Record:
        """Partial update. Fields not named in changes are left untouched."""
        self._require_session()
        model = self._model(collection)
        self._check_fields(model, changes)
        if "id" in changes:
            raise ValueError("Record id cannot be changed")
        db = self._session_factory()
        try:
            row = db.get(model, record_id)
            if row is None:
                raise ReferenceNotFoundError(collection, record_id)
            for key, value in changes.items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            record = self._to_record(row)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailableError(f"update {collection}/{record_id} failed: {e}") from e
        finally:
            db.close()
        self._notify(collection)
        return record

    def delete(self, collection: str, record_id: str) -> bool:
        self._require_session()
        model = self._model(collection)
        db = self._session_factory()
        try:
            row = db.get(model, record_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailableError(f"delete {collection}/{record_id} failed: {e}") from e
        finally:
            db.close()
        self._notify(collection)
        return True

    # ------------------------------------------------------------------
    # live subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, collection: str, callback: SnapshotCallback) -> Subscription:
        """Deliver the current snapshot now and a fresh one after every write."""
        self._model(collection)
        subscription = Subscription(self, collection, callback)
        with self._lock:
            self._subscriptions[collection].append(subscription)
        try:
            callback(self.snapshot(collection))
        except Exception:
            subscription.unsubscribe()
            raise
        return subscription

    def subscriber_count(self, collection: str) -> int:
        self._model(collection)
        with self._lock:
            return len(self._subscriptions[collection])

    def _release(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscriptions[subscription.collection]
            if subscription in subscribers:
                subscribers.remove(subscription)

    def _notify(self, collection: str) -> None:
        with self._lock:
            subscribers = list(self._subscriptions[collection])
        if not subscribers:
            return
        try:
            snapshot = self.snapshot(collection)
        except StoreUnavailableError as e:
            # The write is committed; subscribers catch up on the next one
            logger.error(f"Snapshot for '{collection}' subscribers failed after write: {e}")
            return
        for subscription in subscribers:
            if not subscription.active:
                continue
            try:
                subscription.callback(list(snapshot))
            except Exception:
                # The write is already committed; one broken view must not fail it
                logger.exception(f"Subscriber on '{collection}' failed to process snapshot")
