"""Shared read builders and row helpers for the aggregation computations."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable

from storeforge.analytics.context import AnalyticsContext
from storeforge.store.base import Filter, Row


PAID = "paid"
SELLABLE_STATUSES = ["published", "active"]
UNSHIPPED_STATUSES = ["pending", "confirmed"]
SALES_WINDOW_DAYS = 30


def money(value: Any) -> float:
    return round(float(value or 0), 2)


def created_between(start: datetime, end: datetime) -> list[Filter]:
    return [Filter("created_at", "gte", start), Filter("created_at", "lt", end)]


def customer_key(order: Row) -> str | None:
    """Canonical customer identity: the customer id, else the lower-cased email."""
    if order.get("customer_id"):
        return str(order["customer_id"])
    email = (order.get("customer_email") or "").strip().lower()
    return email or None


def paid_only(orders: Iterable[Row]) -> list[Row]:
    return [o for o in orders if o.get("payment_status") == PAID]


# -----------------------------------------------------------------------------
# Read builders (each returns a zero-arg callable for gather_reads)
# -----------------------------------------------------------------------------

def orders_between(ctx: AnalyticsContext, start: datetime, end: datetime, *, paid: bool = False) -> Callable[[], list[Row]]:
    key = f"orders:{start.isoformat()}:{end.isoformat()}:{'paid' if paid else 'all'}"

    def read() -> list[Row]:
        filters = created_between(start, end)
        if paid:
            filters.append(Filter("payment_status", "eq", PAID))
        return ctx.cached(key, lambda: ctx.gateway.fetch("orders", ctx.store_id, filters=filters))

    return read


def order_items_for(ctx: AnalyticsContext, orders: list[Row]) -> Callable[[], list[Row]]:
    ids = [o["id"] for o in orders if o.get("id")]

    def read() -> list[Row]:
        if not ids:
            return []
        return ctx.gateway.fetch_order_items(ids)

    return read


def sellable_products(ctx: AnalyticsContext) -> Callable[[], list[Row]]:
    """Tracked products that are live in the storefront."""

    def read() -> list[Row]:
        return ctx.cached(
            "products:sellable",
            lambda: ctx.gateway.fetch(
                "products",
                ctx.store_id,
                filters=[
                    Filter("track_quantity", "eq", True),
                    Filter("status", "in", SELLABLE_STATUSES),
                ],
            ),
        )

    return read


def trailing_sales_orders(ctx: AnalyticsContext) -> Callable[[], list[Row]]:
    end = ctx.now
    return orders_between(ctx, end - timedelta(days=SALES_WINDOW_DAYS), end, paid=True)


def units_by_product(items: Iterable[Row]) -> dict[str, int]:
    units: dict[str, int] = defaultdict(int)
    for item in items:
        if item.get("product_id"):
            units[item["product_id"]] += int(item.get("quantity") or 0)
    return dict(units)


def stock_of(product: Row) -> int:
    return int(product.get("quantity") or 0)


def is_out_of_stock(product: Row) -> bool:
    return stock_of(product) <= 0


def is_low_stock(product: Row, threshold: int) -> bool:
    return 0 < stock_of(product) <= threshold
