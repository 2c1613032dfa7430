"""Tests for the business overview and revenue breakdown computations.

Figures come from the ``known_store`` fixture: 12000 of paid revenue over
three orders in the last 30 days against 10000 in the 30 days before.
"""

from __future__ import annotations

from storeforge.analytics.overview import compute_overview, fulfillment_hours, new_vs_returning, top_products
from storeforge.analytics.period import PeriodWindow
from storeforge.analytics.revenue import compute_revenue

from conftest import NOW


def _window(period: str = "last_30_days") -> PeriodWindow:
    return PeriodWindow.from_period(period, NOW)


class TestOverview:
    def test_revenue_and_growth(self, analytics_ctx):
        report = compute_overview(analytics_ctx, _window())
        assert report["revenue"] == {"current": 12000.0, "previous": 10000.0, "growth": 20.0}
        assert report["degraded"] == []

    def test_average_order_value_counts_paid_orders_only(self, analytics_ctx):
        report = compute_overview(analytics_ctx, _window())
        assert report["averageOrderValue"] == 4000.0
        assert report["orders"] == {"current": 4, "previous": 1, "growth": 300.0, "paid": 3}

    def test_top_products(self, analytics_ctx):
        top = compute_overview(analytics_ctx, _window(), top_n=1)["topProducts"]
        assert top == [{"productId": "p_saree", "title": "Cotton Saree", "unitsSold": 4, "revenue": 8000.0}]

    def test_stock_counts_ignore_drafts(self, analytics_ctx):
        report = compute_overview(analytics_ctx, _window())
        assert report["outOfStockCount"] == 1
        assert report["lowStockCount"] == 1
        assert report["pendingOrders"] == 1

    def test_new_vs_returning(self, analytics_ctx):
        report = compute_overview(analytics_ctx, _window())
        assert report["customers"] == {"new": 1, "returning": 1, "total": 2}

    def test_fulfillment_hours(self, analytics_ctx):
        assert compute_overview(analytics_ctx, _window())["avgFulfillmentHours"] == 36.0

    def test_empty_store(self, empty_store):
        from storeforge.analytics.context import AnalyticsContext

        ctx = AnalyticsContext(store_id="nobody", gateway=empty_store, now=NOW)
        report = compute_overview(ctx, _window())
        assert report["revenue"]["growth"] == 0.0
        assert report["averageOrderValue"] == 0.0
        assert report["topProducts"] == []
        assert report["avgFulfillmentHours"] == 0.0


class TestOverviewHelpers:
    def test_top_products_sorted_by_revenue(self):
        items = [
            {"product_id": "a", "title": "A", "quantity": 1, "total": 100},
            {"product_id": "b", "title": "B", "quantity": 5, "total": 500},
            {"product_id": "a", "title": "A", "quantity": 2, "total": 200},
            {"product_id": None, "title": "Gift wrap", "quantity": 1, "total": 50},
        ]
        ranked = top_products(items, 5)
        assert [p["productId"] for p in ranked] == ["b", "a"]
        assert ranked[1]["unitsSold"] == 3

    def test_guest_checkouts_match_by_email(self):
        current = [{"customer_id": None, "customer_email": "Guest@Example.com"}]
        prior = [{"customer_id": None, "customer_email": "guest@example.com "}]
        assert new_vs_returning(current, prior) == {"new": 0, "returning": 1, "total": 1}

    def test_fulfillment_skips_unshipped(self):
        created = NOW
        orders = [
            {"created_at": created, "shipped_at": created.replace(hour=18)},
            {"created_at": created, "shipped_at": None},
        ]
        assert fulfillment_hours(orders) == 6.0


class TestRevenue:
    def test_totals(self, analytics_ctx):
        report = compute_revenue(analytics_ctx, _window())
        assert report["total"] == 12000.0
        assert report["previousTotal"] == 10000.0
        assert report["growth"] == 20.0
        assert report["orderCount"] == 3

    def test_by_payment_method(self, analytics_ctx):
        report = compute_revenue(analytics_ctx, _window())
        assert report["byPaymentMethod"] == [
            {"method": "upi", "revenue": 8000.0, "orders": 2},
            {"method": "card", "revenue": 4000.0, "orders": 1},
        ]

    def test_by_category(self, analytics_ctx):
        by_category = {c["category"]: c for c in compute_revenue(analytics_ctx, _window())["byCategory"]}
        assert by_category["Sarees"] == {"category": "Sarees", "revenue": 8000.0, "units": 4}
        assert by_category["Kurtas"]["units"] == 2
        assert by_category["Accessories"]["units"] == 4

    def test_discounts(self, analytics_ctx):
        report = compute_revenue(analytics_ctx, _window())
        assert report["discounts"] == {"totalGiven": 600.0, "ordersWithDiscount": 1}

    def test_weekly_series_covers_every_bucket(self, analytics_ctx):
        weekly = compute_revenue(analytics_ctx, _window())["weekly"]
        assert len(weekly) == 5
        assert sum(w["revenue"] for w in weekly) == 12000.0
        assert sum(w["orders"] for w in weekly) == 3

    def test_empty_period(self, analytics_ctx):
        report = compute_revenue(analytics_ctx, _window("today"))
        assert report["total"] == 0.0
        assert report["byPaymentMethod"] == []
        assert report["byCategory"] == []
        assert all(w["revenue"] == 0.0 for w in report["weekly"])
