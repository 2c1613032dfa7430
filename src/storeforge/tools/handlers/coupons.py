"""Coupon handlers."""

from __future__ import annotations

import re

from storeforge.analytics.period import utc_now
from storeforge.errors import NotFoundError, ValidationError
from storeforge.store.base import Filter
from storeforge.tools.contracts import ActionType, SideEffect, ToolResult
from storeforge.tools.handlers.base import format_amount, format_inr, limit_of, require
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import CreateCouponArgs, DeleteCouponArgs, GetCouponsArgs, UpdateCouponArgs


def normalize_code(code: str) -> str:
    """Coupon codes are stored upper-case without whitespace."""
    return re.sub(r"\s", "", code).upper()


def get_coupons(args: GetCouponsArgs, ctx: HandlerContext) -> ToolResult:
    now = ctx.now or utc_now()
    filters: list[Filter] = []
    if args.status == "active":
        filters.append(Filter("is_active", "eq", True))
    elif args.status == "expired":
        filters.append(Filter("expires_at", "lt", now))
    elif args.status == "scheduled":
        filters.append(Filter("is_active", "ne", True))

    coupons = ctx.gateway.fetch("coupons", ctx.store_id, filters=filters)
    if args.status in ("active", "scheduled"):
        coupons = [c for c in coupons if c.get("expires_at") is None or c["expires_at"] > now]

    total = len(coupons)
    return ToolResult.ok({"coupons": coupons[: limit_of(args.limit)], "total": total}, f"Found {total} coupons")


def create_coupon(args: CreateCouponArgs, ctx: HandlerContext) -> ToolResult:
    code = normalize_code(args.code)
    if not code:
        raise ValidationError("Coupon code cannot be blank")
    if args.discount_type == "percentage" and args.discount_value > 100:
        raise ValidationError("Percentage discount cannot exceed 100", suggestion="Use a fixed discount instead.")
    existing = ctx.gateway.count("coupons", ctx.store_id, filters=[Filter("code", "eq", code)])
    if existing:
        raise ValidationError(f'Coupon "{code}" already exists', suggestion="Pick a different code.")

    coupon = ctx.gateway.insert(
        "coupons",
        ctx.store_id,
        {
            "code": code,
            "discount_type": args.discount_type,
            "discount_value": args.discount_value,
            "min_order_value": args.min_order_value or 0,
            "max_uses": args.max_uses,
            "expires_at": args.expires_at,
            "description": args.description,
            "is_active": True,
            "used_count": 0,
        },
    )
    if args.discount_type == "percentage":
        discount = f"{format_amount(args.discount_value)}% off"
    else:
        discount = f"{format_inr(args.discount_value)} off"
    return ToolResult.ok(coupon, f'Created coupon "{code}" - {discount}')


def update_coupon(args: UpdateCouponArgs, ctx: HandlerContext) -> ToolResult:
    updates = args.model_dump(exclude_unset=True, exclude_none=True, exclude={"coupon_id"})
    if "code" in updates:
        updates["code"] = normalize_code(updates["code"])
    if not updates:
        raise ValidationError("No fields to update", suggestion="Pass at least one coupon field to change.")
    coupon = ctx.gateway.update("coupons", ctx.store_id, args.coupon_id, updates)
    if coupon is None:
        raise NotFoundError("Coupon not found", suggestion="List coupons with getCoupons.")
    return ToolResult.ok(coupon, f'Updated coupon "{coupon["code"]}"')


def delete_coupon(args: DeleteCouponArgs, ctx: HandlerContext) -> ToolResult:
    coupon = require(ctx.gateway, "coupons", ctx.store_id, args.coupon_id, label="coupon")
    ctx.gateway.delete("coupons", ctx.store_id, [coupon["id"]])
    code = args.coupon_code or coupon.get("code")
    return ToolResult.ok({"deleted": [coupon["id"]]}, f'Deleted coupon "{code}"' if code else "Deleted coupon")


def _describe_delete(args: DeleteCouponArgs) -> tuple[str, str]:
    name = f'"{args.coupon_code}"' if args.coupon_code else f"coupon {args.coupon_id}"
    return "Delete coupon", f"Permanently delete {name}? Customers will no longer be able to use it."


TOOLS = [
    ToolDefinition(
        name="getCoupons",
        description="Get a list of coupons",
        args_model=GetCouponsArgs,
        side_effect=SideEffect.READ,
        handler=get_coupons,
    ),
    ToolDefinition(
        name="createCoupon",
        description="Create a new discount coupon",
        args_model=CreateCouponArgs,
        side_effect=SideEffect.WRITE,
        handler=create_coupon,
    ),
    ToolDefinition(
        name="updateCoupon",
        description="Update an existing coupon",
        args_model=UpdateCouponArgs,
        side_effect=SideEffect.WRITE,
        handler=update_coupon,
    ),
    ToolDefinition(
        name="deleteCoupon",
        description="Delete a coupon. REQUIRES CONFIRMATION.",
        args_model=DeleteCouponArgs,
        side_effect=SideEffect.DESTRUCTIVE,
        handler=delete_coupon,
        action_type=ActionType.DELETE,
        describe=_describe_delete,
    ),
]
