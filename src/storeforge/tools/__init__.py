"""Tool contracts, argument schemas, registry and dispatch."""

from storeforge.tools.contracts import (
    ActionType,
    PendingAction,
    SideEffect,
    ToolCall,
    ToolContext,
    ToolResult,
)

__all__ = ["ActionType", "PendingAction", "SideEffect", "ToolCall", "ToolContext", "ToolResult"]
