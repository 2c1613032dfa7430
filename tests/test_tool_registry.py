"""Tests for the tool registry and the default catalogue."""

from __future__ import annotations

import pytest

from storeforge.tools.contracts import ActionType, SideEffect, ToolResult
from storeforge.tools.registry import ToolDefinition, ToolRegistry, build_default_registry
from storeforge.tools.schemas import NoArgs, UpdateOrderStatusArgs


DESTRUCTIVE = {
    "deleteProduct",
    "bulkDeleteProducts",
    "updateOrderStatus",
    "processRefund",
    "deleteCoupon",
    "deleteCollection",
    "deleteReview",
}


def _noop(args, ctx):
    return ToolResult.ok()


class TestDefaultCatalogue:
    @pytest.fixture
    def registry(self) -> ToolRegistry:
        return build_default_registry()

    def test_catalogue_size_and_classes(self, registry):
        assert len(registry) == 33
        assert set(registry.names(SideEffect.DESTRUCTIVE)) == DESTRUCTIVE
        assert len(registry.names(SideEffect.READ)) == 17
        assert len(registry.names(SideEffect.WRITE)) == 9

    def test_every_destructive_tool_has_an_action_type(self, registry):
        for name in DESTRUCTIVE:
            assert registry.get(name).action_type is not None

    def test_bulk_delete_action_type(self, registry):
        assert registry.get("bulkDeleteProducts").action_type is ActionType.BULK_DELETE
        assert registry.get("processRefund").action_type is ActionType.REFUND

    def test_lookup(self, registry):
        assert "getProducts" in registry
        assert "dropDatabase" not in registry
        assert registry.get("dropDatabase") is None

    def test_catalogue_uses_wire_names(self, registry):
        schemas = {entry["name"]: entry for entry in registry.catalogue()}
        params = schemas["deleteProduct"]["parameters"]
        assert "productId" in params["properties"]
        assert "productId" in params["required"]
        assert schemas["deleteProduct"]["sideEffect"] == "destructive"

    def test_analytics_tools_registered(self, registry):
        for name in (
            "getBusinessIntelligence",
            "getRevenueAnalytics",
            "getCustomerInsights",
            "getInventoryHealth",
            "getMarketingInsights",
            "getActionableInsights",
        ):
            assert registry.get(name).side_effect is SideEffect.READ


class TestConfirmationPredicate:
    def test_order_status_only_gated_for_terminal_targets(self):
        tool = build_default_registry().get("updateOrderStatus")
        assert tool.requires_confirmation(UpdateOrderStatusArgs(order_id="o1", status="cancelled"))
        assert tool.requires_confirmation(UpdateOrderStatusArgs(order_id="o1", status="delivered"))
        assert not tool.requires_confirmation(UpdateOrderStatusArgs(order_id="o1", status="shipped"))
        assert not tool.requires_confirmation(UpdateOrderStatusArgs(order_id="o1", status="confirmed"))

    def test_read_and_write_tools_never_gated(self):
        registry = build_default_registry()
        for name in registry.names(SideEffect.READ) + registry.names(SideEffect.WRITE):
            tool = registry.get(name)
            assert tool.confirm_when is None
            assert tool.side_effect is not SideEffect.DESTRUCTIVE


class TestRegistration:
    def test_duplicate_names_rejected(self):
        tool = ToolDefinition("ping", "Ping", NoArgs, SideEffect.READ, _noop)
        registry = ToolRegistry([tool])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(tool)

    def test_destructive_tool_needs_action_type(self):
        tool = ToolDefinition("wipe", "Wipe", NoArgs, SideEffect.DESTRUCTIVE, _noop)
        with pytest.raises(ValueError, match="action type"):
            ToolRegistry([tool])

    def test_default_summary(self):
        tool = ToolDefinition("wipe", "Wipe", NoArgs, SideEffect.DESTRUCTIVE, _noop, action_type=ActionType.DELETE)
        assert tool.summarize(NoArgs()) == ("Confirm wipe", "Run wipe with the given arguments.")
        assert tool.requires_confirmation(NoArgs())
