"""Pydantic contracts for tool orchestration.

Wire-facing models serialize with camelCase aliases (``toolName``,
``requiresConfirmation``) because that is what the model-facing layer and
the presentation layer exchange. Python code uses the snake_case names.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged with the model-facing layer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# Enums
# =============================================================================

class SideEffect(str, Enum):
    """Side-effect classification of a registered tool."""

    READ = "read"
    WRITE = "write"
    DESTRUCTIVE = "destructive"


class ActionType(str, Enum):
    """Kind of destructive action surfaced for confirmation."""

    DELETE = "delete"
    STATUS_CHANGE = "status_change"
    REFUND = "refund"
    BULK_DELETE = "bulk_delete"


# =============================================================================
# Call / result envelopes
# =============================================================================

class ToolContext(WireModel):
    """Tenant scope a tool call runs under."""

    store_id: str = Field(..., min_length=1, description="Store the call is scoped to")
    conversation_id: str | None = Field(None, description="Conversation that issued the call")


class ToolCall(WireModel):
    """One model-proposed tool invocation."""

    tool_name: str = Field(..., description="Registered tool name")
    args: dict[str, Any] = Field(default_factory=dict, description="Raw argument map")
    context: ToolContext


class ToolResult(WireModel):
    """Uniform result envelope returned by every handler."""

    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    suggestion: str | None = None
    requires_confirmation: bool = False

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> "ToolResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, suggestion: str | None = None) -> "ToolResult":
        return cls(success=False, error=error, suggestion=suggestion)


class PendingAction(WireModel):
    """A destructive call intercepted by the confirmation gate."""

    id: str = Field(..., min_length=1)
    type: ActionType
    title: str
    description: str
    tool_name: str
    tool_args: dict[str, Any] = Field(default_factory=dict)
