"""Product handlers."""

from __future__ import annotations

from storeforge.errors import NotFoundError, ValidationError
from storeforge.store.base import Filter
from storeforge.tools.contracts import ActionType, SideEffect, ToolResult
from storeforge.tools.handlers.base import format_inr, limit_of, require
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import (
    BulkDeleteProductsArgs,
    CreateProductArgs,
    DeleteProductArgs,
    GetProductArgs,
    GetProductsArgs,
    UpdateProductArgs,
)


LIST_COLUMNS = ["id", "title", "price", "status", "quantity", "track_quantity", "category", "featured", "sku", "created_at"]
LOW_STOCK_QUANTITY = 5


def get_products(args: GetProductsArgs, ctx: HandlerContext) -> ToolResult:
    filters: list[Filter] = []
    if args.status and args.status != "all":
        filters.append(Filter("status", "eq", args.status))
    else:
        filters.append(Filter("status", "ne", "archived"))
    if args.category:
        filters.append(Filter("category", "eq", args.category))
    if args.featured is not None:
        filters.append(Filter("featured", "eq", args.featured))
    if args.low_stock:
        filters.append(Filter("track_quantity", "eq", True))
        filters.append(Filter("quantity", "lte", LOW_STOCK_QUANTITY))
    if args.search:
        filters.append(Filter(("title", "sku"), "ilike", args.search))

    total = ctx.gateway.count("products", ctx.store_id, filters=filters)
    products = ctx.gateway.fetch(
        "products", ctx.store_id, filters=filters, columns=LIST_COLUMNS, limit=limit_of(args.limit)
    )
    return ToolResult.ok({"products": products, "total": total}, f"Found {total} products")


def get_product(args: GetProductArgs, ctx: HandlerContext) -> ToolResult:
    if args.product_id:
        product = ctx.gateway.get("products", ctx.store_id, args.product_id)
    elif args.sku:
        rows = ctx.gateway.fetch("products", ctx.store_id, filters=[Filter("sku", "eq", args.sku)], limit=1)
        product = rows[0] if rows else None
    else:
        raise ValidationError("Product ID or SKU required", suggestion="Search products by title with getProducts.")
    if product is None:
        raise NotFoundError("Product not found", suggestion="Search products by title with getProducts.")
    return ToolResult.ok(product, f"Found product: {product['title']}")


def create_product(args: CreateProductArgs, ctx: HandlerContext) -> ToolResult:
    product = ctx.gateway.insert(
        "products",
        ctx.store_id,
        {
            "title": args.title,
            "description": args.description or "",
            "price": args.price,
            "compare_at_price": args.compare_at_price,
            "category": args.category or "General",
            "sku": args.sku,
            "quantity": args.quantity or 0,
            "track_quantity": bool(args.track_quantity),
            "status": args.status or "draft",
            "featured": bool(args.featured),
            "tags": args.tags or [],
        },
    )
    return ToolResult.ok(product, f'Created product "{args.title}" with price {format_inr(args.price)}')


def update_product(args: UpdateProductArgs, ctx: HandlerContext) -> ToolResult:
    updates = args.model_dump(exclude_unset=True, exclude_none=True, exclude={"product_id"})
    if not updates:
        raise ValidationError("No fields to update", suggestion="Pass at least one product field to change.")
    product = ctx.gateway.update("products", ctx.store_id, args.product_id, updates)
    if product is None:
        raise NotFoundError("Product not found", suggestion="List products to find the right id.")
    return ToolResult.ok(product, f'Updated product "{product["title"]}"')


def delete_product(args: DeleteProductArgs, ctx: HandlerContext) -> ToolResult:
    product = require(ctx.gateway, "products", ctx.store_id, args.product_id, label="product")
    ctx.gateway.delete_with_links("products", ctx.store_id, [product["id"]])
    title = args.product_title or product.get("title")
    return ToolResult.ok({"deleted": [product["id"]]}, f'Deleted product "{title}"' if title else "Deleted product")


def bulk_delete_products(args: BulkDeleteProductsArgs, ctx: HandlerContext) -> ToolResult:
    ids = list(dict.fromkeys(args.product_ids))
    owned = ctx.gateway.fetch(
        "products", ctx.store_id, filters=[Filter("id", "in", ids)], columns=["id"], order_by=None
    )
    owned_ids = [row["id"] for row in owned]
    if not owned_ids:
        raise NotFoundError("None of those products were found", suggestion="List products to find the right ids.")
    deleted = ctx.gateway.delete_with_links("products", ctx.store_id, owned_ids)
    skipped = [pid for pid in ids if pid not in set(owned_ids)]
    return ToolResult.ok({"deleted": owned_ids, "skipped": skipped}, f"Deleted {deleted} products")


def _describe_delete(args: DeleteProductArgs) -> tuple[str, str]:
    name = f'"{args.product_title}"' if args.product_title else f"product {args.product_id}"
    return "Delete product", f"Permanently delete {name}? This cannot be undone."


def _describe_bulk_delete(args: BulkDeleteProductsArgs) -> tuple[str, str]:
    n = len(set(args.product_ids))
    return f"Delete {n} products", f"Permanently delete {n} products? This cannot be undone."


TOOLS = [
    ToolDefinition(
        name="getProducts",
        description="Get a list of products from the store. Can filter by status, category, featured, or search term.",
        args_model=GetProductsArgs,
        side_effect=SideEffect.READ,
        handler=get_products,
    ),
    ToolDefinition(
        name="getProduct",
        description="Get details of a single product by ID or SKU",
        args_model=GetProductArgs,
        side_effect=SideEffect.READ,
        handler=get_product,
    ),
    ToolDefinition(
        name="createProduct",
        description="Create a new product in the store",
        args_model=CreateProductArgs,
        side_effect=SideEffect.WRITE,
        handler=create_product,
    ),
    ToolDefinition(
        name="updateProduct",
        description="Update an existing product",
        args_model=UpdateProductArgs,
        side_effect=SideEffect.WRITE,
        handler=update_product,
    ),
    ToolDefinition(
        name="deleteProduct",
        description="Delete a product. REQUIRES CONFIRMATION.",
        args_model=DeleteProductArgs,
        side_effect=SideEffect.DESTRUCTIVE,
        handler=delete_product,
        action_type=ActionType.DELETE,
        describe=_describe_delete,
    ),
    ToolDefinition(
        name="bulkDeleteProducts",
        description="Delete multiple products at once. REQUIRES CONFIRMATION.",
        args_model=BulkDeleteProductsArgs,
        side_effect=SideEffect.DESTRUCTIVE,
        handler=bulk_delete_products,
        action_type=ActionType.BULK_DELETE,
        describe=_describe_bulk_delete,
    ),
]
