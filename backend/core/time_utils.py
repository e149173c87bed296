# backend/core/time_utils.py

"""Naive-UTC datetime helpers shared by models, schemas and services."""

from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def round_money(amount: Optional[float]) -> float:
    """Round a monetary amount to 2 decimal places."""
    return round(float(amount or 0.0), 2)
