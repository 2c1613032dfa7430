"""Inventory health: sales velocity, stockout forecast, reorder suggestions, dead stock.

Velocity always looks at the trailing 30 days of paid orders, independent of
any reporting period. Only tracked, live products are considered.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel

from storeforge.analytics.common import (
    SALES_WINDOW_DAYS,
    is_low_stock,
    is_out_of_stock,
    order_items_for,
    sellable_products,
    stock_of,
    trailing_sales_orders,
    units_by_product,
)
from storeforge.analytics.context import AnalyticsContext, Read, gather_reads
from storeforge.store.base import Row


REORDER_HORIZON_DAYS = 14


class StockPosition(BaseModel):
    """Forecast for one tracked product."""

    product_id: str
    title: str | None = None
    sku: str | None = None
    stock: int
    units_sold: int
    daily_velocity: float
    days_until_stockout: float | None = None
    needs_reorder: bool = False
    suggested_reorder_qty: int = 0
    dead_stock: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "title": self.title,
            "sku": self.sku,
            "stock": self.stock,
            "unitsSold30d": self.units_sold,
            "dailyVelocity": self.daily_velocity,
            "daysUntilStockout": self.days_until_stockout,
            "needsReorder": self.needs_reorder,
            "suggestedReorderQty": self.suggested_reorder_qty,
            "deadStock": self.dead_stock,
        }


def stock_position(
    product: Row,
    units_sold: int,
    *,
    lead_time_days: int = 14,
    safety_factor: float = 1.5,
) -> StockPosition:
    stock = stock_of(product)
    velocity = units_sold / SALES_WINDOW_DAYS
    days_left = stock / velocity if velocity > 0 else None
    return StockPosition(
        product_id=product["id"],
        title=product.get("title"),
        sku=product.get("sku"),
        stock=stock,
        units_sold=units_sold,
        daily_velocity=round(velocity, 3),
        days_until_stockout=round(days_left, 1) if days_left is not None else None,
        needs_reorder=days_left is not None and days_left <= REORDER_HORIZON_DAYS,
        suggested_reorder_qty=math.ceil(velocity * lead_time_days * safety_factor),
        dead_stock=stock > 0 and units_sold == 0,
    )


def compute_inventory_health(
    ctx: AnalyticsContext,
    *,
    lead_time_days: int | None = None,
    safety_factor: float | None = None,
    limit: int = 10,
) -> dict[str, Any]:
    lead_time = lead_time_days or ctx.lead_time_days
    safety = safety_factor or ctx.safety_factor

    reads = gather_reads(
        {
            "products": Read(sellable_products(ctx), []),
            "orders": Read(trailing_sales_orders(ctx), []),
        },
        max_workers=ctx.max_workers,
    )
    item_reads = gather_reads({"items": Read(order_items_for(ctx, reads["orders"]), [])}, max_workers=1)
    degraded = reads.degraded + item_reads.degraded

    products: list[Row] = reads["products"]
    sold = units_by_product(item_reads["items"])
    positions = [
        stock_position(p, sold.get(p["id"], 0), lead_time_days=lead_time, safety_factor=safety) for p in products
    ]

    out_of_stock = sorted(
        (p for p in positions if p.stock <= 0), key=lambda p: p.daily_velocity, reverse=True
    )
    dead = sorted((p for p in positions if p.dead_stock), key=lambda p: p.stock, reverse=True)
    reorder = sorted(
        (p for p in positions if p.needs_reorder), key=lambda p: p.days_until_stockout
    )
    best = sorted((p for p in positions if p.units_sold > 0), key=lambda p: p.daily_velocity, reverse=True)

    return {
        "trackedProducts": len(positions),
        "outOfStockCount": sum(1 for p in products if is_out_of_stock(p)),
        "lowStockCount": sum(1 for p in products if is_low_stock(p, ctx.low_stock_threshold)),
        "leadTimeDays": lead_time,
        "safetyFactor": safety,
        "outOfStock": [p.to_dict() for p in out_of_stock[:limit]],
        "deadStock": [p.to_dict() for p in dead[:limit]],
        "needsReorder": [p.to_dict() for p in reorder[:limit]],
        "bestSellers": [p.to_dict() for p in best[:limit]],
        "degraded": degraded,
    }
