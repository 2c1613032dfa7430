"""Revenue breakdown by channel, category and week."""

from __future__ import annotations

from typing import Any

import pandas as pd

from storeforge.analytics.common import money, order_items_for, orders_between
from storeforge.analytics.context import AnalyticsContext, Read, gather_reads
from storeforge.analytics.period import PeriodWindow, growth_pct


def compute_revenue(ctx: AnalyticsContext, window: PeriodWindow) -> dict[str, Any]:
    reads = gather_reads(
        {
            "current": Read(orders_between(ctx, window.start, window.end, paid=True), []),
            "previous": Read(orders_between(ctx, window.previous_start, window.start, paid=True), []),
            "products": Read(
                lambda: ctx.gateway.fetch("products", ctx.store_id, columns=["id", "category"], order_by=None), []
            ),
        },
        max_workers=ctx.max_workers,
    )
    degraded = list(reads.degraded)

    orders = pd.DataFrame(reads["current"], columns=_ORDER_COLUMNS)
    orders["total"] = pd.to_numeric(orders["total"], errors="coerce").fillna(0.0)
    orders["discount_amount"] = pd.to_numeric(orders["discount_amount"], errors="coerce").fillna(0.0)

    item_reads = gather_reads({"items": Read(order_items_for(ctx, reads["current"]), [])}, max_workers=1)
    degraded.extend(item_reads.degraded)

    current_total = float(orders["total"].sum())
    previous_total = sum(float(o.get("total") or 0) for o in reads["previous"])
    discounted = orders[(orders["discount_amount"] > 0) | orders["coupon_code"].notna()]

    return {
        "period": window.describe(),
        "total": money(current_total),
        "previousTotal": money(previous_total),
        "growth": growth_pct(current_total, previous_total),
        "orderCount": int(len(orders)),
        "byPaymentMethod": by_payment_method(orders),
        "byCategory": by_category(item_reads["items"], reads["products"]),
        "discounts": {
            "totalGiven": money(orders["discount_amount"].sum()),
            "ordersWithDiscount": int(len(discounted)),
        },
        "weekly": weekly_series(orders, window),
        "degraded": degraded,
    }


_ORDER_COLUMNS = ["id", "total", "discount_amount", "coupon_code", "payment_method", "created_at"]


def by_payment_method(orders: pd.DataFrame) -> list[dict[str, Any]]:
    if orders.empty:
        return []
    channels = orders.assign(payment_method=orders["payment_method"].fillna("unknown"))
    grouped = (
        channels.groupby("payment_method")["total"]
        .agg(["sum", "count"])
        .sort_values("sum", ascending=False)
    )
    return [
        {"method": method, "revenue": money(row["sum"]), "orders": int(row["count"])}
        for method, row in grouped.iterrows()
    ]


def by_category(items: list[dict[str, Any]], products: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if not items:
        return []
    frame = pd.DataFrame(items, columns=["product_id", "quantity", "total"])
    categories = {p["id"]: p.get("category") for p in products}
    frame["category"] = frame["product_id"].map(categories).fillna("Uncategorized")
    frame["total"] = pd.to_numeric(frame["total"], errors="coerce").fillna(0.0)
    frame["quantity"] = pd.to_numeric(frame["quantity"], errors="coerce").fillna(0).astype(int)
    grouped = (
        frame.groupby("category")
        .agg(revenue=("total", "sum"), units=("quantity", "sum"))
        .sort_values("revenue", ascending=False)
    )
    return [
        {"category": category, "revenue": money(row["revenue"]), "units": int(row["units"])}
        for category, row in grouped.iterrows()
    ]


def weekly_series(orders: pd.DataFrame, window: PeriodWindow) -> list[dict[str, Any]]:
    """Revenue per bucket; every bucket of the window is present, empty ones as zero."""
    created = pd.to_datetime(orders["created_at"]) if not orders.empty else None
    series = []
    for start, end in window.weekly_buckets():
        if created is None:
            revenue, count = 0.0, 0
        else:
            mask = (created >= start) & (created < end)
            revenue, count = float(orders.loc[mask, "total"].sum()), int(mask.sum())
        series.append({"start": start.isoformat(), "end": end.isoformat(), "revenue": money(revenue), "orders": count})
    return series


