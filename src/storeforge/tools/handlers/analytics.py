"""Analytics handlers: the quick store snapshot plus the six BI reports."""

from __future__ import annotations

from storeforge.analytics.actionable import compute_actionable_insights
from storeforge.analytics.common import PAID
from storeforge.analytics.customers import compute_customer_insights
from storeforge.analytics.inventory import compute_inventory_health
from storeforge.analytics.marketing import compute_marketing_insights
from storeforge.analytics.overview import compute_overview
from storeforge.analytics.period import PeriodWindow
from storeforge.analytics.revenue import compute_revenue
from storeforge.store.base import Filter
from storeforge.tools.contracts import SideEffect, ToolResult
from storeforge.tools.handlers.base import format_inr
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import (
    BusinessIntelligenceArgs,
    GetAnalyticsArgs,
    InventoryHealthArgs,
    NoArgs,
    PeriodArgs,
)


def get_analytics(args: GetAnalyticsArgs, ctx: HandlerContext) -> ToolResult:
    gateway, store_id = ctx.gateway, ctx.store_id
    order_filters: list[Filter] = []
    if args.period:
        window = PeriodWindow.from_period(args.period, ctx.now)
        order_filters = [Filter("created_at", "gte", window.start), Filter("created_at", "lt", window.end)]

    products = gateway.count("products", store_id, filters=[Filter("status", "ne", "archived")])
    orders = gateway.count("orders", store_id, filters=order_filters)
    paid = gateway.fetch(
        "orders",
        store_id,
        filters=order_filters + [Filter("payment_status", "eq", PAID)],
        columns=["total"],
        order_by=None,
    )
    revenue = round(sum(float(o.get("total") or 0) for o in paid), 2)
    low_stock = gateway.count(
        "products",
        store_id,
        filters=[
            Filter("track_quantity", "eq", True),
            Filter("quantity", "lte", ctx.settings.low_stock_threshold),
            Filter("status", "ne", "archived"),
        ],
    )
    return ToolResult.ok(
        {"products": products, "orders": orders, "revenue": revenue, "lowStock": low_stock},
        f"Store has {products} products, {orders} orders, {format_inr(revenue)} revenue",
    )


def get_business_intelligence(args: BusinessIntelligenceArgs, ctx: HandlerContext) -> ToolResult:
    actx = ctx.analytics()
    report = compute_overview(actx, PeriodWindow.from_period(args.period, actx.now), top_n=args.top_n)
    revenue = report["revenue"]
    return ToolResult.ok(
        report,
        f"Revenue {format_inr(revenue['current'])} ({revenue['growth']:+.1f}% vs previous period), "
        f"{report['orders']['current']} orders",
    )


def get_revenue_analytics(args: PeriodArgs, ctx: HandlerContext) -> ToolResult:
    actx = ctx.analytics()
    report = compute_revenue(actx, PeriodWindow.from_period(args.period, actx.now))
    return ToolResult.ok(report, f"Revenue {format_inr(report['total'])} across {report['orderCount']} paid orders")


def get_customer_insights(args: PeriodArgs, ctx: HandlerContext) -> ToolResult:
    actx = ctx.analytics()
    report = compute_customer_insights(actx, PeriodWindow.from_period(args.period, actx.now))
    return ToolResult.ok(
        report,
        f"{report['customersWithOrders']} paying customers, {report['repeatPurchaseRate']}% repeat purchase rate",
    )


def get_inventory_health(args: InventoryHealthArgs, ctx: HandlerContext) -> ToolResult:
    report = compute_inventory_health(
        ctx.analytics(),
        lead_time_days=args.lead_time_days,
        safety_factor=args.safety_factor,
        limit=args.limit,
    )
    return ToolResult.ok(
        report,
        f"{report['outOfStockCount']} out of stock, {len(report['needsReorder'])} need reorder, "
        f"{len(report['deadStock'])} dead stock",
    )


def get_marketing_insights(args: PeriodArgs, ctx: HandlerContext) -> ToolResult:
    actx = ctx.analytics()
    report = compute_marketing_insights(actx, PeriodWindow.from_period(args.period, actx.now))
    return ToolResult.ok(
        report,
        f"{len(report['coupons'])} coupons analysed, {len(report['expiringCoupons'])} expiring soon",
    )


def get_actionable_insights(args: NoArgs, ctx: HandlerContext) -> ToolResult:
    report = compute_actionable_insights(ctx.analytics())
    summary = report["summary"]
    if not summary["total"]:
        return ToolResult.ok(report, "No action items right now")
    return ToolResult.ok(
        report, f"{summary['total']} action items ({summary['critical']} critical, {summary['high']} high)"
    )


TOOLS = [
    ToolDefinition(
        name="getAnalytics",
        description="Get store analytics and statistics",
        args_model=GetAnalyticsArgs,
        side_effect=SideEffect.READ,
        handler=get_analytics,
    ),
    ToolDefinition(
        name="getBusinessIntelligence",
        description="Get a composite business overview: revenue and order growth, average order value, "
        "top products, stock alerts, new vs returning customers and fulfilment time",
        args_model=BusinessIntelligenceArgs,
        side_effect=SideEffect.READ,
        handler=get_business_intelligence,
    ),
    ToolDefinition(
        name="getRevenueAnalytics",
        description="Get revenue broken down by payment method, category and week, with discount totals",
        args_model=PeriodArgs,
        side_effect=SideEffect.READ,
        handler=get_revenue_analytics,
    ),
    ToolDefinition(
        name="getCustomerInsights",
        description="Get repeat purchase rate, top customers, value segments, locations and cart recovery",
        args_model=PeriodArgs,
        side_effect=SideEffect.READ,
        handler=get_customer_insights,
    ),
    ToolDefinition(
        name="getInventoryHealth",
        description="Get sales velocity, stockout forecasts, reorder suggestions and dead stock",
        args_model=InventoryHealthArgs,
        side_effect=SideEffect.READ,
        handler=get_inventory_health,
    ),
    ToolDefinition(
        name="getMarketingInsights",
        description="Get coupon redemption and ROI, expiring coupons, cart recovery and products worth featuring",
        args_model=PeriodArgs,
        side_effect=SideEffect.READ,
        handler=get_marketing_insights,
    ),
    ToolDefinition(
        name="getActionableInsights",
        description="Get a prioritized list of things the merchant should act on now",
        args_model=NoArgs,
        side_effect=SideEffect.READ,
        handler=get_actionable_insights,
    ),
]
