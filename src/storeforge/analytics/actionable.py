"""Rule-based action items over live store counts.

Rules run in a fixed order and each one emits at most one ``Insight``. The
ranker then orders them by priority, keeping this order within a priority.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

from storeforge.analytics.common import (
    PAID,
    SELLABLE_STATUSES,
    UNSHIPPED_STATUSES,
    created_between,
    money,
)
from storeforge.analytics.context import AnalyticsContext, Read, gather_reads
from storeforge.analytics.marketing import EXPIRY_WARNING_DAYS
from storeforge.analytics.period import growth_ratio
from storeforge.analytics.ranker import Insight, Priority, rank_insights
from storeforge.store.base import Filter


UNSHIPPED_AFTER_HOURS = 48
REVENUE_DROP_PCT = 10.0
REVENUE_SURGE_PCT = 20.0
ABANDONED_CART_MIN = 5
UNREAD_NOTIFICATION_MIN = 5


def collect_signals(ctx: AnalyticsContext) -> tuple[dict[str, Any], list[str]]:
    """Read every live count the rules need, concurrently."""
    gateway, store_id, now = ctx.gateway, ctx.store_id, ctx.now

    def count(table: str, *filters: Filter) -> Callable[[], int]:
        return lambda: gateway.count(table, store_id, filters=list(filters))

    def revenue(start: datetime, end: datetime) -> Callable[[], float]:
        def read() -> float:
            rows = gateway.fetch(
                "orders",
                store_id,
                filters=created_between(start, end) + [Filter("payment_status", "eq", PAID)],
                columns=["total"],
                order_by=None,
            )
            return sum(float(r.get("total") or 0) for r in rows)

        return read

    sellable = [Filter("track_quantity", "eq", True), Filter("status", "in", SELLABLE_STATUSES)]
    week_ago = now - timedelta(days=7)

    reads = gather_reads(
        {
            "out_of_stock": Read(count("products", *sellable, Filter("quantity", "lte", 0)), 0),
            "low_stock": Read(
                count(
                    "products",
                    *sellable,
                    Filter("quantity", "gt", 0),
                    Filter("quantity", "lte", ctx.low_stock_threshold),
                ),
                0,
            ),
            "unshipped": Read(
                count(
                    "orders",
                    Filter("status", "in", UNSHIPPED_STATUSES),
                    Filter("shipped_at", "is_null"),
                    Filter("created_at", "lt", now - timedelta(hours=UNSHIPPED_AFTER_HOURS)),
                ),
                0,
            ),
            "revenue_7d": Read(revenue(week_ago, now), 0.0),
            "revenue_prev_7d": Read(revenue(now - timedelta(days=14), week_ago), 0.0),
            "pending_reviews": Read(
                lambda: len(gateway.fetch_reviews(store_id, filters=[Filter("status", "eq", "pending")])), 0
            ),
            "expiring_coupons": Read(
                count(
                    "coupons",
                    Filter("is_active", "eq", True),
                    Filter("expires_at", "gte", now),
                    Filter("expires_at", "lte", now + timedelta(days=EXPIRY_WARNING_DAYS)),
                ),
                0,
            ),
            "abandoned_carts": Read(count("abandoned_carts", Filter("recovery_status", "eq", "active")), 0),
            "unread_notifications": Read(count("notifications", Filter("is_read", "ne", True)), 0),
        },
        max_workers=ctx.max_workers,
    )
    return reads.values, reads.degraded


def evaluate_rules(signals: dict[str, Any]) -> list[Insight]:
    """Turn live counts into insights, in rule order."""
    insights: list[Insight] = []

    out_of_stock = signals.get("out_of_stock", 0)
    if out_of_stock > 0:
        insights.append(
            Insight(
                priority=Priority.CRITICAL,
                category="inventory",
                title=f"{out_of_stock} product{_s(out_of_stock)} out of stock",
                detail="Published products with zero stock cannot be bought and are losing sales.",
                suggested_action="Restock these products or set them to draft until stock arrives.",
            )
        )

    unshipped = signals.get("unshipped", 0)
    if unshipped > 0:
        insights.append(
            Insight(
                priority=Priority.CRITICAL,
                category="orders",
                title=f"{unshipped} order{_s(unshipped)} unshipped for over {UNSHIPPED_AFTER_HOURS} hours",
                detail="Delayed shipments lead to cancellations and poor reviews.",
                suggested_action="Ship these orders and add tracking numbers today.",
            )
        )

    current, previous = signals.get("revenue_7d", 0.0), signals.get("revenue_prev_7d", 0.0)
    change = growth_ratio(current, previous)
    if change < -REVENUE_DROP_PCT:
        insights.append(
            Insight(
                priority=Priority.HIGH,
                category="revenue",
                title=f"Revenue down {round(abs(change), 1)}% this week",
                detail=f"Last 7 days: ₹{money(current):,.2f} vs ₹{money(previous):,.2f} the week before.",
                suggested_action="Run a limited-time coupon or feature your best sellers.",
            )
        )
    elif change > REVENUE_SURGE_PCT:
        insights.append(
            Insight(
                priority=Priority.LOW,
                category="revenue",
                title=f"Revenue up {round(change, 1)}% this week",
                detail=f"Last 7 days: ₹{money(current):,.2f} vs ₹{money(previous):,.2f} the week before.",
                suggested_action="Check stock on your best sellers so the momentum is not lost.",
            )
        )

    low_stock = signals.get("low_stock", 0)
    if low_stock > 0:
        insights.append(
            Insight(
                priority=Priority.HIGH,
                category="inventory",
                title=f"{low_stock} product{_s(low_stock)} running low",
                detail="These products will sell out soon at the current pace.",
                suggested_action="Review the inventory health report and reorder.",
            )
        )

    pending_reviews = signals.get("pending_reviews", 0)
    if pending_reviews > 0:
        insights.append(
            Insight(
                priority=Priority.MEDIUM,
                category="reviews",
                title=f"{pending_reviews} review{_s(pending_reviews)} awaiting moderation",
                detail="Approved reviews build trust with new shoppers.",
                suggested_action="Approve or reject the pending reviews.",
            )
        )

    expiring = signals.get("expiring_coupons", 0)
    if expiring > 0:
        insights.append(
            Insight(
                priority=Priority.MEDIUM,
                category="marketing",
                title=f"{expiring} coupon{_s(expiring)} expiring within {EXPIRY_WARNING_DAYS} days",
                detail="Customers holding these codes lose them soon.",
                suggested_action="Extend the expiry or announce a last-chance reminder.",
            )
        )

    carts = signals.get("abandoned_carts", 0)
    if carts >= ABANDONED_CART_MIN:
        insights.append(
            Insight(
                priority=Priority.MEDIUM,
                category="conversion",
                title=f"{carts} abandoned carts can still be recovered",
                detail="Shoppers left items in their carts without checking out.",
                suggested_action="Send a recovery email with a small discount.",
            )
        )

    unread = signals.get("unread_notifications", 0)
    if unread >= UNREAD_NOTIFICATION_MIN:
        insights.append(
            Insight(
                priority=Priority.LOW,
                category="notifications",
                title=f"{unread} unread notifications",
                detail="Important store updates may be buried in the backlog.",
                suggested_action="Open the notification center and clear the backlog.",
            )
        )

    return insights


def compute_actionable_insights(ctx: AnalyticsContext) -> dict[str, Any]:
    signals, degraded = collect_signals(ctx)
    ranked = rank_insights(evaluate_rules(signals))
    return {**ranked.to_wire(), "signals": signals, "degraded": degraded}


def _s(n: int) -> str:
    return "" if n == 1 else "s"
