"""Order handlers, including refunds and status changes."""

from __future__ import annotations

from storeforge.analytics.period import utc_now
from storeforge.errors import NotFoundError, ValidationError
from storeforge.store.base import Filter
from storeforge.tools.contracts import ActionType, SideEffect, ToolResult
from storeforge.tools.handlers.base import format_inr, limit_of, range_start, require
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import (
    AddTrackingNumberArgs,
    GetOrderArgs,
    GetOrdersArgs,
    ProcessRefundArgs,
    UpdateOrderStatusArgs,
)


LIST_COLUMNS = ["id", "order_number", "status", "payment_status", "total", "customer_name", "customer_email", "created_at"]

# Status targets that need confirmation.
CONFIRM_STATUSES = {"cancelled", "delivered"}


def get_orders(args: GetOrdersArgs, ctx: HandlerContext) -> ToolResult:
    filters: list[Filter] = []
    if args.status and args.status != "all":
        filters.append(Filter("status", "eq", args.status))
    if args.date_range:
        filters.append(Filter("created_at", "gte", range_start(args.date_range, ctx.now or utc_now())))

    total = ctx.gateway.count("orders", ctx.store_id, filters=filters)
    orders = ctx.gateway.fetch(
        "orders", ctx.store_id, filters=filters, columns=LIST_COLUMNS, limit=limit_of(args.limit)
    )
    return ToolResult.ok({"orders": orders, "total": total}, f"Found {total} orders")


def get_order(args: GetOrderArgs, ctx: HandlerContext) -> ToolResult:
    if args.order_id:
        order = ctx.gateway.get("orders", ctx.store_id, args.order_id)
    elif args.order_number:
        rows = ctx.gateway.fetch(
            "orders", ctx.store_id, filters=[Filter("order_number", "eq", args.order_number)], limit=1
        )
        order = rows[0] if rows else None
    else:
        raise ValidationError("Order ID or order number required", suggestion="List recent orders with getOrders.")
    if order is None:
        raise NotFoundError("Order not found", suggestion="List recent orders with getOrders.")
    order["items"] = ctx.gateway.fetch_order_items([order["id"]])
    return ToolResult.ok(order, f"Found order #{order['order_number']}")


def update_order_status(args: UpdateOrderStatusArgs, ctx: HandlerContext) -> ToolResult:
    require(ctx.gateway, "orders", ctx.store_id, args.order_id, label="order")
    updates: dict = {"status": args.status}
    if args.tracking_number:
        updates["tracking_number"] = args.tracking_number
    if args.tracking_url:
        updates["tracking_url"] = args.tracking_url
    if args.notes:
        updates["notes"] = args.notes
    if args.status == "shipped":
        updates["shipped_at"] = ctx.now or utc_now()

    order = ctx.gateway.update("orders", ctx.store_id, args.order_id, updates)
    return ToolResult.ok(
        {"id": order["id"], "orderNumber": order["order_number"], "status": order["status"]},
        f"Order #{order['order_number']} status changed to {args.status}",
    )


def add_tracking_number(args: AddTrackingNumberArgs, ctx: HandlerContext) -> ToolResult:
    updates: dict = {"tracking_number": args.tracking_number}
    if args.courier:
        updates["courier"] = args.courier
    if args.tracking_url:
        updates["tracking_url"] = args.tracking_url
    order = ctx.gateway.update("orders", ctx.store_id, args.order_id, updates)
    if order is None:
        raise NotFoundError("Order not found", suggestion="List recent orders with getOrders.")
    return ToolResult.ok(
        {"id": order["id"], "orderNumber": order["order_number"], "trackingNumber": args.tracking_number},
        f"Added tracking {args.tracking_number} to order #{order['order_number']}",
    )


def process_refund(args: ProcessRefundArgs, ctx: HandlerContext) -> ToolResult:
    order = require(ctx.gateway, "orders", ctx.store_id, args.order_id, label="order")
    total = float(order.get("total") or 0)
    amount = args.amount or total
    if amount > total:
        raise ValidationError(
            f"Refund of {format_inr(amount)} exceeds the order total of {format_inr(total)}",
            suggestion="Refund the full amount by leaving out the amount.",
        )
    ctx.gateway.update(
        "orders",
        ctx.store_id,
        order["id"],
        {
            "status": "refunded",
            "refund_amount": amount,
            "refund_reason": args.reason,
            "refunded_at": ctx.now or utc_now(),
        },
    )
    return ToolResult.ok(
        {"id": order["id"], "orderNumber": order["order_number"], "refundAmount": amount},
        f"Processed {format_inr(amount)} refund for order #{order['order_number']}",
    )


def _confirm_status(args: UpdateOrderStatusArgs) -> bool:
    return args.status in CONFIRM_STATUSES


def _describe_status(args: UpdateOrderStatusArgs) -> tuple[str, str]:
    return (
        f"Mark order as {args.status}",
        f"Change the status of order {args.order_id} to {args.status}? The customer may be notified.",
    )


def _describe_refund(args: ProcessRefundArgs) -> tuple[str, str]:
    amount = format_inr(args.amount) if args.amount else "the full order total"
    reason = f" Reason: {args.reason}." if args.reason else ""
    return "Process refund", f"Refund {amount} for order {args.order_id}?{reason}"


TOOLS = [
    ToolDefinition(
        name="getOrders",
        description="Get a list of orders from the store. Can filter by status, date range, or customer.",
        args_model=GetOrdersArgs,
        side_effect=SideEffect.READ,
        handler=get_orders,
    ),
    ToolDefinition(
        name="getOrder",
        description="Get details of a single order by ID or order number",
        args_model=GetOrderArgs,
        side_effect=SideEffect.READ,
        handler=get_order,
    ),
    ToolDefinition(
        name="updateOrderStatus",
        description="Update the status of an order. Requires confirmation for status changes.",
        args_model=UpdateOrderStatusArgs,
        side_effect=SideEffect.DESTRUCTIVE,
        handler=update_order_status,
        action_type=ActionType.STATUS_CHANGE,
        confirm_when=_confirm_status,
        describe=_describe_status,
    ),
    ToolDefinition(
        name="addTrackingNumber",
        description="Add tracking information to an order",
        args_model=AddTrackingNumberArgs,
        side_effect=SideEffect.WRITE,
        handler=add_tracking_number,
    ),
    ToolDefinition(
        name="processRefund",
        description="Process a refund for an order. REQUIRES CONFIRMATION.",
        args_model=ProcessRefundArgs,
        side_effect=SideEffect.DESTRUCTIVE,
        handler=process_refund,
        action_type=ActionType.REFUND,
        describe=_describe_refund,
    ),
]
