"""Composite business overview: growth, AOV, top products, stock and fulfilment."""

from __future__ import annotations

from typing import Any

from storeforge.analytics.common import (
    PAID,
    customer_key,
    is_low_stock,
    is_out_of_stock,
    money,
    order_items_for,
    orders_between,
    paid_only,
    sellable_products,
)
from storeforge.analytics.context import AnalyticsContext, Read, gather_reads
from storeforge.analytics.period import PeriodWindow, growth_pct, safe_ratio
from storeforge.store.base import Filter, Row


def compute_overview(ctx: AnalyticsContext, window: PeriodWindow, *, top_n: int = 5) -> dict[str, Any]:
    gateway, store_id = ctx.gateway, ctx.store_id

    reads = gather_reads(
        {
            "current_orders": Read(orders_between(ctx, window.start, window.end), []),
            "previous_orders": Read(orders_between(ctx, window.previous_start, window.start), []),
            "prior_paid_orders": Read(
                lambda: gateway.fetch(
                    "orders",
                    store_id,
                    filters=[Filter("created_at", "lt", window.start), Filter("payment_status", "eq", PAID)],
                    columns=["customer_id", "customer_email"],
                    order_by=None,
                ),
                [],
            ),
            "pending_orders": Read(
                lambda: gateway.count("orders", store_id, filters=[Filter("status", "eq", "pending")]), 0
            ),
            "products": Read(sellable_products(ctx), []),
        },
        max_workers=ctx.max_workers,
    )
    degraded = list(reads.degraded)

    current_paid = paid_only(reads["current_orders"])
    previous_paid = paid_only(reads["previous_orders"])
    current_revenue = sum(float(o.get("total") or 0) for o in current_paid)
    previous_revenue = sum(float(o.get("total") or 0) for o in previous_paid)
    current_count = len(reads["current_orders"])
    previous_count = len(reads["previous_orders"])

    item_reads = gather_reads({"items": Read(order_items_for(ctx, current_paid), [])}, max_workers=1)
    degraded.extend(item_reads.degraded)

    products: list[Row] = reads["products"]
    threshold = ctx.low_stock_threshold

    return {
        "period": window.describe(),
        "revenue": {
            "current": money(current_revenue),
            "previous": money(previous_revenue),
            "growth": growth_pct(current_revenue, previous_revenue),
        },
        "orders": {
            "current": current_count,
            "previous": previous_count,
            "growth": growth_pct(current_count, previous_count),
            "paid": len(current_paid),
        },
        "averageOrderValue": safe_ratio(current_revenue, len(current_paid)),
        "topProducts": top_products(item_reads["items"], top_n),
        "pendingOrders": reads["pending_orders"],
        "lowStockCount": sum(1 for p in products if is_low_stock(p, threshold)),
        "outOfStockCount": sum(1 for p in products if is_out_of_stock(p)),
        "customers": new_vs_returning(current_paid, reads["prior_paid_orders"]),
        "avgFulfillmentHours": fulfillment_hours(reads["current_orders"]),
        "degraded": degraded,
    }


def top_products(items: list[Row], top_n: int) -> list[dict[str, Any]]:
    totals: dict[str, dict[str, Any]] = {}
    for item in items:
        product_id = item.get("product_id")
        if not product_id:
            continue
        entry = totals.setdefault(
            product_id, {"productId": product_id, "title": item.get("title"), "unitsSold": 0, "revenue": 0.0}
        )
        entry["unitsSold"] += int(item.get("quantity") or 0)
        entry["revenue"] += float(item.get("total") or 0)

    ranked = sorted(totals.values(), key=lambda e: e["revenue"], reverse=True)[:top_n]
    for entry in ranked:
        entry["revenue"] = money(entry["revenue"])
    return ranked


def new_vs_returning(current_paid: list[Row], prior_paid: list[Row]) -> dict[str, int]:
    """A customer is returning when they had a paid order before the window started."""
    seen_before = {k for k in (customer_key(o) for o in prior_paid) if k}
    in_window = {k for k in (customer_key(o) for o in current_paid) if k}
    returning = in_window & seen_before
    return {"new": len(in_window - returning), "returning": len(returning), "total": len(in_window)}


def fulfillment_hours(orders: list[Row]) -> float:
    """Mean hours from order creation to shipment over shipped orders."""
    spans = [
        (o["shipped_at"] - o["created_at"]).total_seconds() / 3600
        for o in orders
        if o.get("shipped_at") and o.get("created_at")
    ]
    if not spans:
        return 0.0
    return round(sum(spans) / len(spans), 1)
