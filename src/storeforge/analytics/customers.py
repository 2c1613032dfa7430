"""Customer insight: repeat rate, top spenders, CLV segments, geography, cart recovery.

Customers are identified by ``customer_id`` and, for guest checkouts, by the
lower-cased email. The same identity is used for every figure here and in
the overview's new/returning split.
"""

from __future__ import annotations

from typing import Any

import pandas as pd

from storeforge.analytics.common import customer_key, created_between, money, orders_between
from storeforge.analytics.context import AnalyticsContext, Read, gather_reads
from storeforge.analytics.period import PeriodWindow, safe_ratio
from storeforge.store.base import Row


HIGH_VALUE_MULTIPLIER = 2.0
LOW_VALUE_MULTIPLIER = 0.5
TOP_CUSTOMERS = 10
TOP_LOCATIONS = 5


def compute_customer_insights(ctx: AnalyticsContext, window: PeriodWindow) -> dict[str, Any]:
    reads = gather_reads(
        {
            "orders": Read(orders_between(ctx, window.start, window.end, paid=True), []),
            "carts": Read(
                lambda: ctx.gateway.fetch(
                    "abandoned_carts", ctx.store_id, filters=created_between(window.start, window.end)
                ),
                [],
            ),
            "customer_count": Read(lambda: ctx.gateway.count("customers", ctx.store_id), 0),
        },
        max_workers=ctx.max_workers,
    )

    spend = customer_spend(reads["orders"])
    buyers = len(spend)
    repeaters = int((spend["orders"] >= 2).sum()) if buyers else 0

    return {
        "period": window.describe(),
        "totalCustomers": reads["customer_count"],
        "customersWithOrders": buyers,
        "repeatCustomers": repeaters,
        "repeatPurchaseRate": safe_ratio(repeaters, buyers, scale=100, digits=1),
        "topCustomers": top_customers(spend),
        "segments": clv_segments(spend),
        "geography": geography(reads["orders"]),
        "cartRecovery": cart_recovery(reads["carts"]),
        "degraded": reads.degraded,
    }


def customer_spend(orders: list[Row]) -> pd.DataFrame:
    """One row per customer: order count, spend, and the latest name/email seen."""
    rows = []
    for order in orders:
        key = customer_key(order)
        if key is None:
            continue
        rows.append(
            {
                "customer": key,
                "name": order.get("customer_name"),
                "email": order.get("customer_email"),
                "total": float(order.get("total") or 0),
                "created_at": order.get("created_at"),
            }
        )
    if not rows:
        return pd.DataFrame(columns=["name", "email", "orders", "spend"])

    frame = pd.DataFrame(rows).sort_values("created_at")
    return frame.groupby("customer").agg(
        name=("name", "last"),
        email=("email", "last"),
        orders=("total", "count"),
        spend=("total", "sum"),
    )


def top_customers(spend: pd.DataFrame, limit: int = TOP_CUSTOMERS) -> list[dict[str, Any]]:
    if spend.empty:
        return []
    ranked = spend.sort_values("spend", ascending=False, kind="stable").head(limit)
    return [
        {
            "customer": key,
            "name": _text(row["name"]),
            "email": _text(row["email"]),
            "orders": int(row["orders"]),
            "spend": money(row["spend"]),
        }
        for key, row in ranked.iterrows()
    ]


def _text(value: Any) -> str | None:
    return None if pd.isna(value) else str(value)


def clv_segments(spend: pd.DataFrame) -> dict[str, Any]:
    """Split customers around the average spend: high >= 2x, low < 0.5x, mid otherwise."""
    if spend.empty:
        return {"averageSpend": 0.0, "high": 0, "mid": 0, "low": 0}
    average = float(spend["spend"].mean())
    high = spend["spend"] >= average * HIGH_VALUE_MULTIPLIER
    low = spend["spend"] < average * LOW_VALUE_MULTIPLIER
    return {
        "averageSpend": money(average),
        "high": int(high.sum()),
        "mid": int((~high & ~low).sum()),
        "low": int(low.sum()),
    }


def geography(orders: list[Row], limit: int = TOP_LOCATIONS) -> dict[str, list[dict[str, Any]]]:
    if not orders:
        return {"states": [], "cities": []}
    frame = pd.DataFrame(orders, columns=["shipping_state", "shipping_city", "total"])
    frame["total"] = pd.to_numeric(frame["total"], errors="coerce").fillna(0.0)

    def top(column: str) -> list[dict[str, Any]]:
        located = frame.dropna(subset=[column])
        if located.empty:
            return []
        grouped = (
            located.groupby(column)["total"]
            .agg(["count", "sum"])
            .sort_values(["count", "sum"], ascending=False)
            .head(limit)
        )
        return [
            {"name": name, "orders": int(row["count"]), "revenue": money(row["sum"])}
            for name, row in grouped.iterrows()
        ]

    return {"states": top("shipping_state"), "cities": top("shipping_city")}


def cart_recovery(carts: list[Row]) -> dict[str, Any]:
    """Carts are ``active`` (still recoverable), ``recovered`` or ``expired``."""
    total = len(carts)
    recovered = sum(1 for c in carts if c.get("recovery_status") == "recovered")
    active = [c for c in carts if c.get("recovery_status") == "active"]
    return {
        "abandoned": total,
        "active": len(active),
        "recovered": recovered,
        "recoveryRate": safe_ratio(recovered, total, scale=100, digits=1),
        "activeValue": money(sum(float(c.get("subtotal") or 0) for c in active)),
    }
