"""Helpers shared by the handler modules."""

from __future__ import annotations

from datetime import datetime, timedelta

from storeforge.errors import NotFoundError
from storeforge.store.base import Row, StoreGateway


DEFAULT_LIMIT = 20


def limit_of(value: int | None) -> int:
    return value or DEFAULT_LIMIT


def require(gateway: StoreGateway, table: str, store_id: str, row_id: str, *, label: str) -> Row:
    """Fetch a row in scope or raise ``NotFoundError``."""
    row = gateway.get(table, store_id, row_id)
    if row is None:
        raise NotFoundError(
            f"{label.capitalize()} not found",
            suggestion=f"List the store's {label}s to find the right id.",
            details={"table": table, "id": row_id},
        )
    return row


def range_start(name: str, now: datetime) -> datetime:
    """Lower bound for the order list's ``dateRange`` keyword."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if name == "today":
        return midnight
    if name == "yesterday":
        return midnight - timedelta(days=1)
    if name == "this_week":
        return now - timedelta(days=7)
    if name == "this_month":
        return midnight.replace(day=1)
    if name == "last_30_days":
        return now - timedelta(days=30)
    return datetime.min


def format_inr(amount: float | int | None) -> str:
    """Rupee amount with Indian digit grouping: 150000 -> ₹1,50,000."""
    value = round(float(amount or 0), 2)
    whole, _, frac = f"{abs(value):.2f}".partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups: list[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    text = whole if frac == "00" else f"{whole}.{frac}"
    return f"{'-' if value < 0 else ''}₹{text}"


def format_amount(value: float) -> str:
    """``10.0`` -> ``10``, ``12.5`` -> ``12.5``."""
    return f"{value:g}"
