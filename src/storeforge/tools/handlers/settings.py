"""Store settings and branding handlers.

Settings live in the store's ``blueprint`` document; only the store name and
logo url are top-level columns.
"""

from __future__ import annotations

import copy
from typing import Any

from storeforge.errors import NotFoundError, ValidationError
from storeforge.tools.contracts import SideEffect, ToolResult
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import GetSettingsArgs, UpdateBrandingArgs, UpdateSettingsArgs


SECTION_KEYS: dict[str, tuple[str, ...]] = {
    "general": ("tagline", "brand_description", "contact", "location"),
    "branding": ("brand_colors",),
    "shipping": ("shipping",),
    "payments": ("payments",),
    "notifications": ("notifications",),
}


def _load_store(ctx: HandlerContext) -> dict[str, Any]:
    store = ctx.gateway.get_store(ctx.store_id)
    if store is None:
        raise NotFoundError("Store not found")
    return store


def _blueprint(store: dict[str, Any]) -> dict[str, Any]:
    blueprint = store.get("blueprint")
    return copy.deepcopy(blueprint) if isinstance(blueprint, dict) else {}


def get_settings(args: GetSettingsArgs, ctx: HandlerContext) -> ToolResult:
    store = _load_store(ctx)
    blueprint = _blueprint(store)
    data: dict[str, Any] = {k: store.get(k) for k in ("name", "slug", "status", "logo_url")}
    if args.section and args.section != "all":
        data["blueprint"] = {k: blueprint[k] for k in SECTION_KEYS[args.section] if k in blueprint}
    else:
        data["blueprint"] = blueprint
    return ToolResult.ok(data, f"Store settings for {store.get('name')}")


def update_settings(args: UpdateSettingsArgs, ctx: HandlerContext) -> ToolResult:
    if not args.model_dump(exclude_none=True):
        raise ValidationError("No settings to update")
    blueprint = _blueprint(_load_store(ctx))

    if args.tagline:
        blueprint["tagline"] = args.tagline
    if args.description:
        blueprint["brand_description"] = args.description
    if args.email or args.phone:
        contact = blueprint.setdefault("contact", {})
        if args.email:
            contact["email"] = args.email
        if args.phone:
            contact["phone"] = args.phone
    if args.address:
        blueprint.setdefault("location", {})["address"] = args.address
    if args.currency:
        blueprint.setdefault("location", {})["currency"] = args.currency

    updates: dict[str, Any] = {"blueprint": blueprint}
    if args.store_name:
        updates["name"] = args.store_name
    store = ctx.gateway.update_store(ctx.store_id, updates)
    return ToolResult.ok({"name": store["name"], "blueprint": store.get("blueprint")}, "Updated store settings")


def update_branding(args: UpdateBrandingArgs, ctx: HandlerContext) -> ToolResult:
    if not args.model_dump(exclude_none=True):
        raise ValidationError("No branding changes given", suggestion="Pass a color or a logo url.")
    blueprint = _blueprint(_load_store(ctx))
    if args.primary_color:
        blueprint.setdefault("brand_colors", {})["primary"] = args.primary_color
    if args.secondary_color:
        blueprint.setdefault("brand_colors", {})["secondary"] = args.secondary_color

    updates: dict[str, Any] = {"blueprint": blueprint}
    if args.logo_url:
        updates["logo_url"] = args.logo_url
    store = ctx.gateway.update_store(ctx.store_id, updates)

    message = "Updated branding"
    if args.primary_color:
        message += f" - primary color: {args.primary_color}"
    return ToolResult.ok(
        {"brandColors": (store.get("blueprint") or {}).get("brand_colors"), "logoUrl": store.get("logo_url")},
        message,
    )


TOOLS = [
    ToolDefinition(
        name="getSettings",
        description="Get current store settings",
        args_model=GetSettingsArgs,
        side_effect=SideEffect.READ,
        handler=get_settings,
    ),
    ToolDefinition(
        name="updateSettings",
        description="Update store settings",
        args_model=UpdateSettingsArgs,
        side_effect=SideEffect.WRITE,
        handler=update_settings,
    ),
    ToolDefinition(
        name="updateBranding",
        description="Update store branding (colors, logo)",
        args_model=UpdateBrandingArgs,
        side_effect=SideEffect.WRITE,
        handler=update_branding,
    ),
]
