"""Argument schemas for every registered tool.

Field names are snake_case in Python and camelCase on the wire
(``productId``). Unknown keys are dropped rather than rejected, matching what
the text-generation provider tends to send.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storeforge.analytics.period import PeriodName


class ToolArgs(BaseModel):
    """Base for tool argument models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


HEX_COLOR = r"^#(?:[0-9a-fA-F]{3}){1,2}$"
URL = r"^https?://\S+$"
EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

ProductStatus = Literal["draft", "published", "archived"]
OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled", "refunded"]
OrderDateRange = Literal["today", "yesterday", "this_week", "this_month", "last_30_days"]


# =============================================================================
# Read tools
# =============================================================================

class GetProductsArgs(ToolArgs):
    status: Literal["all", "published", "draft", "archived"] | None = None
    category: str | None = None
    featured: bool | None = None
    low_stock: bool | None = Field(None, description="Only tracked items with quantity <= 5")
    search: str | None = Field(None, description="Search by title or SKU")
    limit: int | None = Field(None, ge=1, le=100)


class GetProductArgs(ToolArgs):
    product_id: str | None = None
    sku: str | None = None


class GetOrdersArgs(ToolArgs):
    status: Literal["all", "pending", "confirmed", "shipped", "delivered", "cancelled", "refunded"] | None = None
    date_range: OrderDateRange | None = None
    limit: int | None = Field(None, ge=1, le=50)


class GetOrderArgs(ToolArgs):
    order_id: str | None = None
    order_number: str | None = None


class GetAnalyticsArgs(ToolArgs):
    metric: Literal["overview", "revenue", "orders", "products", "customers", "top_sellers"] | None = None
    period: Literal["today", "yesterday", "this_week", "this_month", "last_30_days", "this_year"] | None = None


class GetSettingsArgs(ToolArgs):
    section: Literal["general", "branding", "shipping", "payments", "notifications", "all"] | None = None


class GetCouponsArgs(ToolArgs):
    status: Literal["all", "active", "expired", "scheduled"] | None = None
    limit: int | None = Field(None, ge=1, le=50)


class GetCollectionsArgs(ToolArgs):
    limit: int | None = Field(None, ge=1, le=50)


class GetReviewsArgs(ToolArgs):
    product_id: str | None = None
    rating: int | None = Field(None, ge=1, le=5)
    status: Literal["all", "approved", "pending", "rejected"] | None = None
    limit: int | None = Field(None, ge=1, le=50)


# Business intelligence

class NoArgs(ToolArgs):
    """For tools that take no arguments."""


class PeriodArgs(ToolArgs):
    period: PeriodName = "last_30_days"


class BusinessIntelligenceArgs(PeriodArgs):
    top_n: int = Field(5, ge=1, le=20, description="How many top products to return")


class InventoryHealthArgs(ToolArgs):
    lead_time_days: int | None = Field(None, ge=1, le=180)
    safety_factor: float | None = Field(None, ge=1.0, le=5.0)
    limit: int = Field(10, ge=1, le=50, description="Items per ranked list")


# =============================================================================
# Write tools
# =============================================================================

class CreateProductArgs(ToolArgs):
    title: str = Field(..., min_length=1)
    description: str | None = None
    price: float = Field(..., ge=0, description="Price in INR")
    compare_at_price: float | None = Field(None, ge=0)
    category: str | None = None
    sku: str | None = None
    quantity: int | None = Field(None, ge=0)
    track_quantity: bool | None = None
    status: Literal["draft", "published"] | None = None
    featured: bool | None = None
    tags: list[str] | None = None


class UpdateProductArgs(ToolArgs):
    product_id: str = Field(..., min_length=1)
    title: str | None = None
    description: str | None = None
    price: float | None = Field(None, ge=0)
    compare_at_price: float | None = Field(None, ge=0)
    category: str | None = None
    quantity: int | None = Field(None, ge=0)
    status: ProductStatus | None = None
    featured: bool | None = None
    tags: list[str] | None = None


class CreateCouponArgs(ToolArgs):
    code: str = Field(..., min_length=1)
    discount_type: Literal["percentage", "fixed"]
    discount_value: float = Field(..., ge=0)
    min_order_value: float | None = Field(None, ge=0)
    max_uses: int | None = Field(None, ge=1)
    expires_at: datetime | None = None
    description: str | None = None


class UpdateCouponArgs(ToolArgs):
    coupon_id: str = Field(..., min_length=1)
    code: str | None = None
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: float | None = Field(None, ge=0)
    min_order_value: float | None = Field(None, ge=0)
    max_uses: int | None = Field(None, ge=1)
    expires_at: datetime | None = None
    is_active: bool | None = None


class CreateCollectionArgs(ToolArgs):
    name: str = Field(..., min_length=1)
    description: str | None = None
    product_ids: list[str] | None = None
    tags: list[str] | None = None


class UpdateCollectionArgs(ToolArgs):
    collection_id: str = Field(..., min_length=1)
    name: str | None = None
    description: str | None = None
    add_product_ids: list[str] | None = None
    remove_product_ids: list[str] | None = None


class UpdateSettingsArgs(ToolArgs):
    store_name: str | None = None
    tagline: str | None = None
    description: str | None = None
    email: str | None = Field(None, pattern=EMAIL)
    phone: str | None = None
    address: str | None = None
    currency: str | None = None


class UpdateBrandingArgs(ToolArgs):
    primary_color: str | None = Field(None, pattern=HEX_COLOR)
    secondary_color: str | None = Field(None, pattern=HEX_COLOR)
    logo_url: str | None = Field(None, pattern=URL)


class UpdateOrderStatusArgs(ToolArgs):
    order_id: str = Field(..., min_length=1)
    status: Literal["confirmed", "shipped", "delivered", "cancelled"]
    tracking_number: str | None = None
    tracking_url: str | None = Field(None, pattern=URL)
    notes: str | None = None


class AddTrackingNumberArgs(ToolArgs):
    order_id: str = Field(..., min_length=1)
    tracking_number: str = Field(..., min_length=1)
    courier: str | None = None
    tracking_url: str | None = Field(None, pattern=URL)


# =============================================================================
# Destructive tools
# =============================================================================

class DeleteProductArgs(ToolArgs):
    product_id: str = Field(..., min_length=1)
    product_title: str | None = None


class DeleteCouponArgs(ToolArgs):
    coupon_id: str = Field(..., min_length=1)
    coupon_code: str | None = None


class DeleteCollectionArgs(ToolArgs):
    collection_id: str = Field(..., min_length=1)
    collection_name: str | None = None


class DeleteReviewArgs(ToolArgs):
    review_id: str = Field(..., min_length=1)


class ProcessRefundArgs(ToolArgs):
    order_id: str = Field(..., min_length=1)
    amount: float | None = Field(None, ge=0, description="Full refund if omitted")
    reason: str | None = None


class BulkDeleteProductsArgs(ToolArgs):
    product_ids: list[str] = Field(..., min_length=1)


# =============================================================================
# UI tools
# =============================================================================

DashboardPage = Literal[
    "dashboard",
    "products",
    "products/new",
    "orders",
    "coupons",
    "collections",
    "reviews",
    "analytics",
    "settings",
    "settings/branding",
    "settings/shipping",
    "settings/payments",
]


class NavigateToArgs(ToolArgs):
    page: DashboardPage


class ShowNotificationArgs(ToolArgs):
    message: str = Field(..., min_length=1)
    type: Literal["success", "error", "info", "warning"] = "info"
