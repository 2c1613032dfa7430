"""Dashboard UI tools. They touch no store data; the presentation layer acts on the payload."""

from __future__ import annotations

from storeforge.tools.contracts import SideEffect, ToolResult
from storeforge.tools.registry import HandlerContext, ToolDefinition
from storeforge.tools.schemas import NavigateToArgs, ShowNotificationArgs


DASHBOARD_ROOT = "/dashboard"


def navigate_to(args: NavigateToArgs, ctx: HandlerContext) -> ToolResult:
    path = DASHBOARD_ROOT if args.page == "dashboard" else f"{DASHBOARD_ROOT}/{args.page}"
    return ToolResult.ok({"action": "navigate", "page": args.page, "path": path}, f"Opening {args.page}")


def show_notification(args: ShowNotificationArgs, ctx: HandlerContext) -> ToolResult:
    return ToolResult.ok({"action": "notify", "message": args.message, "type": args.type}, args.message)


TOOLS = [
    ToolDefinition(
        name="navigateTo",
        description="Navigate to a dashboard page",
        args_model=NavigateToArgs,
        side_effect=SideEffect.READ,
        handler=navigate_to,
    ),
    ToolDefinition(
        name="showNotification",
        description="Show a notification toast to the user",
        args_model=ShowNotificationArgs,
        side_effect=SideEffect.READ,
        handler=show_notification,
    ),
]
