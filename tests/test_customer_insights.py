"""Tests for customer insight: repeat rate, CLV segments, geography, cart recovery."""

from __future__ import annotations

from datetime import datetime

from storeforge.analytics.customers import cart_recovery, clv_segments, compute_customer_insights, customer_spend, geography
from storeforge.analytics.period import PeriodWindow

from conftest import NOW


def _order(key, total, **extra):
    row = {"customer_id": key, "customer_email": None, "customer_name": key, "total": total,
           "created_at": datetime(2025, 6, 1)}
    row.update(extra)
    return row


class TestComputeCustomerInsights:
    def test_repeat_purchase_rate(self, analytics_ctx):
        report = compute_customer_insights(analytics_ctx, PeriodWindow.from_period("last_30_days", NOW))
        assert report["totalCustomers"] == 2
        assert report["customersWithOrders"] == 2
        assert report["repeatCustomers"] == 1
        assert report["repeatPurchaseRate"] == 50.0

    def test_top_customers(self, analytics_ctx):
        report = compute_customer_insights(analytics_ctx, PeriodWindow.from_period("last_30_days", NOW))
        first, second = report["topCustomers"]
        assert first == {"customer": "c1", "name": "Asha Rao", "email": "asha@example.com", "orders": 2, "spend": 8000.0}
        assert second["customer"] == "c2"

    def test_geography(self, analytics_ctx):
        report = compute_customer_insights(analytics_ctx, PeriodWindow.from_period("last_30_days", NOW))
        assert report["geography"]["states"] == [
            {"name": "Karnataka", "orders": 2, "revenue": 8000.0},
            {"name": "Maharashtra", "orders": 1, "revenue": 4000.0},
        ]

    def test_cart_recovery(self, analytics_ctx):
        report = compute_customer_insights(analytics_ctx, PeriodWindow.from_period("last_30_days", NOW))
        assert report["cartRecovery"] == {
            "abandoned": 9,
            "active": 6,
            "recovered": 2,
            "recoveryRate": 22.2,
            "activeValue": 6000.0,
        }

    def test_no_orders(self, analytics_ctx):
        report = compute_customer_insights(analytics_ctx, PeriodWindow.from_period("today", NOW))
        assert report["customersWithOrders"] == 0
        assert report["repeatPurchaseRate"] == 0.0
        assert report["topCustomers"] == []
        assert report["segments"] == {"averageSpend": 0.0, "high": 0, "mid": 0, "low": 0}
        assert report["geography"] == {"states": [], "cities": []}


class TestSegments:
    def test_split_around_average(self):
        # average spend is 1000: 2500 is high (>= 2000), 100 is low (< 500)
        orders = [_order("a", 2500), _order("b", 400), _order("b", 300), _order("c", 100), _order("d", 700)]
        segments = clv_segments(customer_spend(orders))
        assert segments == {"averageSpend": 1000.0, "high": 1, "mid": 2, "low": 1}

    def test_guest_orders_grouped_by_email(self):
        orders = [
            _order(None, 100, customer_email="Guest@Shop.in"),
            _order(None, 200, customer_email="guest@shop.in"),
            _order(None, 50),
        ]
        spend = customer_spend(orders)
        assert list(spend.index) == ["guest@shop.in"]
        assert int(spend.loc["guest@shop.in", "orders"]) == 2

    def test_missing_names_are_none(self):
        from storeforge.analytics.customers import top_customers

        spend = customer_spend([_order("a", 100, customer_name=None)])
        assert top_customers(spend)[0]["name"] is None


class TestGeographyAndCarts:
    def test_orders_without_location_are_skipped(self):
        orders = [
            {"shipping_state": "Goa", "shipping_city": None, "total": 100},
            {"shipping_state": None, "shipping_city": "Panaji", "total": 50},
        ]
        geo = geography(orders)
        assert geo["states"] == [{"name": "Goa", "orders": 1, "revenue": 100.0}]
        assert geo["cities"] == [{"name": "Panaji", "orders": 1, "revenue": 50.0}]

    def test_cart_recovery_empty(self):
        assert cart_recovery([]) == {
            "abandoned": 0,
            "active": 0,
            "recovered": 0,
            "recoveryRate": 0.0,
            "activeValue": 0.0,
        }
