"""
Expiry classification for stock lots.

Pure functions of (expiry_date, today). Nothing here is stored: "today"
advances, so callers classify again on every query.

    NO_EXPIRY      expiry_date is missing
    EXPIRED        expiry_date <  today
    EXPIRING_SOON  today <= expiry_date <= today + window (inclusive)
    ACTIVE         expiry_date >  today + window
"""
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Mapping, Optional, Union

from stockledger.core.config import settings

DateLike = Union[date, datetime, str]


class ExpiryState(str, Enum):
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    NO_EXPIRY = "no_expiry"


def as_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Normalise to a calendar date. Time of day is dropped.

    Strings must be a full ISO date or ISO datetime; anything trailing is a
    ValueError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text).date()


def days_until_expiry(expiry_date: Optional[DateLike], today: DateLike) -> Optional[int]:
    expiry = as_date(expiry_date)
    if expiry is None:
        return None
    return (expiry - as_date(today)).days


def classify(
    expiry_date: Optional[DateLike],
    today: DateLike,
    window_days: Optional[int] = None,
) -> ExpiryState:
    if window_days is None:
        window_days = settings.EXPIRY_WARNING_DAYS
    days = days_until_expiry(expiry_date, today)
    if days is None:
        return ExpiryState.NO_EXPIRY
    if days < 0:
        return ExpiryState.EXPIRED
    if days <= window_days:
        return ExpiryState.EXPIRING_SOON
    return ExpiryState.ACTIVE


def classify_batch(batch: Mapping, today: DateLike, window_days: Optional[int] = None) -> ExpiryState:
    return classify(batch.get("expiry_date"), today, window_days)


def item_expiry_flags(
    batches: Iterable[Mapping],
    item_id: str,
    today: DateLike,
    window_days: Optional[int] = None,
) -> dict:
    """Whether any lot of the item is expired / expiring soon."""
    states = {
        classify_batch(batch, today, window_days)
        for batch in batches
        if batch["item_id"] == item_id
    }
    return {
        "has_expired": ExpiryState.EXPIRED in states,
        "has_expiring_soon": ExpiryState.EXPIRING_SOON in states,
    }
