"""Marketing insight: coupon performance, expiring coupons, cart recovery, feature candidates."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any

from storeforge.analytics.common import created_between, money, orders_between
from storeforge.analytics.context import AnalyticsContext, Read, gather_reads
from storeforge.analytics.customers import cart_recovery
from storeforge.analytics.period import PeriodWindow
from storeforge.store.base import Filter, Row


EXPIRY_WARNING_DAYS = 3
MIN_FEATURE_REVIEWS = 2
MIN_FEATURE_RATING = 4.0


def redemption_rate(used: int | None, max_uses: int | None) -> float | None:
    """Percentage of the usage cap consumed; None when the coupon is unbounded."""
    if not max_uses:
        return None
    return round((used or 0) / max_uses * 100, 1)


def coupon_roi(revenue: float, discount: float) -> float | None:
    """Revenue earned per unit of discount given; None when nothing was discounted."""
    if not discount:
        return None
    return round(revenue / discount, 2)


def expiring_soon(coupon: Row, now: datetime, days: int = EXPIRY_WARNING_DAYS) -> bool:
    expires = coupon.get("expires_at")
    if not coupon.get("is_active") or expires is None:
        return False
    return now <= expires <= now + timedelta(days=days)


def compute_marketing_insights(ctx: AnalyticsContext, window: PeriodWindow) -> dict[str, Any]:
    gateway, store_id = ctx.gateway, ctx.store_id
    reads = gather_reads(
        {
            "coupons": Read(lambda: gateway.fetch("coupons", store_id), []),
            "orders": Read(orders_between(ctx, window.start, window.end, paid=True), []),
            "carts": Read(
                lambda: gateway.fetch("abandoned_carts", store_id, filters=created_between(window.start, window.end)),
                [],
            ),
            "products": Read(
                lambda: gateway.fetch(
                    "products",
                    store_id,
                    filters=[Filter("status", "eq", "published"), Filter("featured", "ne", True)],
                    columns=["id", "title", "price"],
                    order_by=None,
                ),
                [],
            ),
            "reviews": Read(lambda: gateway.fetch_reviews(store_id, filters=[Filter("status", "eq", "approved")]), []),
        },
        max_workers=ctx.max_workers,
    )

    return {
        "period": window.describe(),
        "coupons": coupon_performance(reads["coupons"], reads["orders"]),
        "expiringCoupons": [
            {"id": c["id"], "code": c.get("code"), "expiresAt": c["expires_at"].isoformat()}
            for c in reads["coupons"]
            if expiring_soon(c, ctx.now)
        ],
        "cartRecovery": cart_recovery(reads["carts"]),
        "featureCandidates": feature_candidates(reads["products"], reads["reviews"]),
        "degraded": reads.degraded,
    }


def coupon_performance(coupons: list[Row], orders: list[Row]) -> list[dict[str, Any]]:
    revenue: dict[str, float] = defaultdict(float)
    discount: dict[str, float] = defaultdict(float)
    uses: dict[str, int] = defaultdict(int)
    for order in orders:
        code = (order.get("coupon_code") or "").upper()
        if not code:
            continue
        revenue[code] += float(order.get("total") or 0)
        discount[code] += float(order.get("discount_amount") or 0)
        uses[code] += 1

    report = []
    for coupon in coupons:
        code = (coupon.get("code") or "").upper()
        report.append(
            {
                "id": coupon["id"],
                "code": code,
                "isActive": bool(coupon.get("is_active")),
                "timesUsed": int(coupon.get("used_count") or 0),
                "maxUses": coupon.get("max_uses"),
                "redemptionRate": redemption_rate(coupon.get("used_count"), coupon.get("max_uses")),
                "ordersInPeriod": uses.get(code, 0),
                "revenueAttributed": money(revenue.get(code, 0.0)),
                "discountGiven": money(discount.get(code, 0.0)),
                "roi": coupon_roi(revenue.get(code, 0.0), discount.get(code, 0.0)),
            }
        )
    report.sort(key=lambda c: c["revenueAttributed"], reverse=True)
    return report


def feature_candidates(products: list[Row], reviews: list[Row], limit: int = 10) -> list[dict[str, Any]]:
    """Unfeatured products customers already rate well, best rated first."""
    ratings: dict[str, list[int]] = defaultdict(list)
    for review in reviews:
        if review.get("product_id") and review.get("rating") is not None:
            ratings[review["product_id"]].append(int(review["rating"]))

    candidates = []
    for product in products:
        scores = ratings.get(product["id"], [])
        if len(scores) < MIN_FEATURE_REVIEWS:
            continue
        average = sum(scores) / len(scores)
        if average < MIN_FEATURE_RATING:
            continue
        candidates.append(
            {
                "productId": product["id"],
                "title": product.get("title"),
                "averageRating": round(average, 2),
                "reviewCount": len(scores),
            }
        )
    candidates.sort(key=lambda c: (c["averageRating"], c["reviewCount"]), reverse=True)
    return candidates[:limit]
