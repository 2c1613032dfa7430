"""Tests for the rule set behind actionable insights and the priority ranker."""

from __future__ import annotations

from storeforge.analytics.actionable import collect_signals, compute_actionable_insights, evaluate_rules
from storeforge.analytics.ranker import Insight, Priority, rank_insights


def _insight(priority: Priority, title: str) -> Insight:
    return Insight(priority=priority, category="test", title=title, detail="d", suggested_action="a")


class TestRanker:
    def test_critical_first_and_stable_within_priority(self):
        ranked = rank_insights(
            [
                _insight(Priority.LOW, "low-1"),
                _insight(Priority.CRITICAL, "crit-1"),
                _insight(Priority.MEDIUM, "med-1"),
                _insight(Priority.CRITICAL, "crit-2"),
                _insight(Priority.HIGH, "high-1"),
                _insight(Priority.MEDIUM, "med-2"),
            ]
        )
        assert [i.title for i in ranked.insights] == ["crit-1", "crit-2", "high-1", "med-1", "med-2", "low-1"]
        assert ranked.summary == {"critical": 2, "high": 1, "medium": 2, "low": 1, "total": 6}

    def test_empty(self):
        ranked = rank_insights([])
        assert ranked.insights == []
        assert ranked.summary["total"] == 0

    def test_wire_shape(self):
        wire = rank_insights([_insight(Priority.HIGH, "x")]).to_wire()
        assert wire["insights"][0] == {
            "priority": "high",
            "category": "test",
            "title": "x",
            "detail": "d",
            "suggestedAction": "a",
        }


class TestRules:
    def test_quiet_store_has_no_insights(self):
        assert evaluate_rules({}) == []

    def test_revenue_drop_is_high(self):
        (insight,) = evaluate_rules({"revenue_7d": 8000.0, "revenue_prev_7d": 10000.0})
        assert insight.priority is Priority.HIGH
        assert insight.title == "Revenue down 20.0% this week"

    def test_small_revenue_moves_are_ignored(self):
        assert evaluate_rules({"revenue_7d": 9500.0, "revenue_prev_7d": 10000.0}) == []
        assert evaluate_rules({"revenue_7d": 11500.0, "revenue_prev_7d": 10000.0}) == []

    def test_revenue_thresholds_use_the_unrounded_change(self):
        (drop,) = evaluate_rules({"revenue_7d": 8996.0, "revenue_prev_7d": 10000.0})
        assert drop.priority is Priority.HIGH
        assert drop.title == "Revenue down 10.0% this week"
        (surge,) = evaluate_rules({"revenue_7d": 12004.0, "revenue_prev_7d": 10000.0})
        assert surge.priority is Priority.LOW
        assert evaluate_rules({"revenue_7d": 9000.0, "revenue_prev_7d": 10000.0}) == []
        assert evaluate_rules({"revenue_7d": 12000.0, "revenue_prev_7d": 10000.0}) == []

    def test_no_previous_revenue_is_not_a_surge(self):
        assert evaluate_rules({"revenue_7d": 5000.0, "revenue_prev_7d": 0.0}) == []

    def test_thresholds_for_carts_and_notifications(self):
        assert evaluate_rules({"abandoned_carts": 4, "unread_notifications": 4}) == []
        titles = [i.title for i in evaluate_rules({"abandoned_carts": 5, "unread_notifications": 5})]
        assert titles == ["5 abandoned carts can still be recovered", "5 unread notifications"]

    def test_singular_titles(self):
        (insight,) = evaluate_rules({"out_of_stock": 1})
        assert insight.title == "1 product out of stock"


class TestComputeActionableInsights:
    def test_signals_from_known_store(self, analytics_ctx):
        signals, degraded = collect_signals(analytics_ctx)
        assert degraded == []
        assert signals["out_of_stock"] == 1
        assert signals["low_stock"] == 1
        assert signals["unshipped"] == 2
        assert signals["revenue_7d"] == 10000.0
        assert signals["revenue_prev_7d"] == 2000.0
        assert signals["pending_reviews"] == 1
        assert signals["expiring_coupons"] == 1
        assert signals["abandoned_carts"] == 6
        assert signals["unread_notifications"] == 5

    def test_ranked_report(self, analytics_ctx):
        report = compute_actionable_insights(analytics_ctx)
        assert [(i["priority"], i["category"]) for i in report["insights"]] == [
            ("critical", "inventory"),
            ("critical", "orders"),
            ("high", "inventory"),
            ("medium", "reviews"),
            ("medium", "marketing"),
            ("medium", "conversion"),
            ("low", "revenue"),
            ("low", "notifications"),
        ]
        assert report["summary"] == {"critical": 2, "high": 1, "medium": 3, "low": 2, "total": 8}
        assert report["insights"][1]["title"] == "2 orders unshipped for over 48 hours"

    def test_every_insight_has_a_suggested_action(self, analytics_ctx):
        for insight in compute_actionable_insights(analytics_ctx)["insights"]:
            assert insight["suggestedAction"]
