"""Collection handlers."""

from __future__ import annotations

import re

from storeforge.errors import ValidationError
from storeforge.store.base import Filter
from storeforge.tools.contracts import ActionType, SideEffect, ToolResult
from storeforge.tools.handlers.base import limit_of, require
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import (
    CreateCollectionArgs,
    DeleteCollectionArgs,
    GetCollectionsArgs,
    UpdateCollectionArgs,
)


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def _owned_product_ids(ctx: HandlerContext, product_ids: list[str]) -> list[str]:
    """Keep only ids of products in this store, preserving order."""
    if not product_ids:
        return []
    rows = ctx.gateway.fetch(
        "products", ctx.store_id, filters=[Filter("id", "in", product_ids)], columns=["id"], order_by=None
    )
    owned = {r["id"] for r in rows}
    return [pid for pid in dict.fromkeys(product_ids) if pid in owned]


def get_collections(args: GetCollectionsArgs, ctx: HandlerContext) -> ToolResult:
    total = ctx.gateway.count("collections", ctx.store_id)
    collections = ctx.gateway.fetch("collections", ctx.store_id, limit=limit_of(args.limit))
    return ToolResult.ok({"collections": collections, "total": total}, f"Found {total} collections")


def create_collection(args: CreateCollectionArgs, ctx: HandlerContext) -> ToolResult:
    collection = ctx.gateway.insert(
        "collections",
        ctx.store_id,
        {"name": args.name, "description": args.description, "slug": slugify(args.name), "tags": args.tags},
    )
    message = f'Created collection "{args.name}"'
    if args.product_ids:
        linked = ctx.gateway.link_collection_products(collection["id"], _owned_product_ids(ctx, args.product_ids))
        collection["productCount"] = linked
        message += f" with {linked} products"
    return ToolResult.ok(collection, message)


def update_collection(args: UpdateCollectionArgs, ctx: HandlerContext) -> ToolResult:
    collection = require(ctx.gateway, "collections", ctx.store_id, args.collection_id, label="collection")
    updates: dict = {}
    if args.name:
        updates["name"] = args.name
        updates["slug"] = slugify(args.name)
    if args.description:
        updates["description"] = args.description
    if not (updates or args.add_product_ids or args.remove_product_ids):
        raise ValidationError("No changes requested", suggestion="Pass a new name, description or product ids.")

    if updates:
        collection = ctx.gateway.update("collections", ctx.store_id, collection["id"], updates)
    added = removed = 0
    if args.add_product_ids:
        added = ctx.gateway.link_collection_products(collection["id"], _owned_product_ids(ctx, args.add_product_ids))
    if args.remove_product_ids:
        removed = ctx.gateway.unlink_collection_products(
            collection_id=collection["id"], product_ids=args.remove_product_ids
        )
    return ToolResult.ok({**collection, "added": added, "removed": removed}, "Updated collection")


def delete_collection(args: DeleteCollectionArgs, ctx: HandlerContext) -> ToolResult:
    collection = require(ctx.gateway, "collections", ctx.store_id, args.collection_id, label="collection")
    ctx.gateway.delete_with_links("collections", ctx.store_id, [collection["id"]])
    name = args.collection_name or collection.get("name")
    return ToolResult.ok(
        {"deleted": [collection["id"]]}, f'Deleted collection "{name}"' if name else "Deleted collection"
    )


def _describe_delete(args: DeleteCollectionArgs) -> tuple[str, str]:
    name = f'"{args.collection_name}"' if args.collection_name else f"collection {args.collection_id}"
    return "Delete collection", f"Delete {name}? The products themselves are kept."


TOOLS = [
    ToolDefinition(
        name="getCollections",
        description="Get a list of product collections",
        args_model=GetCollectionsArgs,
        side_effect=SideEffect.READ,
        handler=get_collections,
    ),
    ToolDefinition(
        name="createCollection",
        description="Create a new product collection",
        args_model=CreateCollectionArgs,
        side_effect=SideEffect.WRITE,
        handler=create_collection,
    ),
    ToolDefinition(
        name="updateCollection",
        description="Update an existing collection",
        args_model=UpdateCollectionArgs,
        side_effect=SideEffect.WRITE,
        handler=update_collection,
    ),
    ToolDefinition(
        name="deleteCollection",
        description="Delete a collection. REQUIRES CONFIRMATION.",
        args_model=DeleteCollectionArgs,
        side_effect=SideEffect.DESTRUCTIVE,
        handler=delete_collection,
        action_type=ActionType.DELETE,
        describe=_describe_delete,
    ),
]
