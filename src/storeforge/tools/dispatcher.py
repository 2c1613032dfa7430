"""Tool dispatch: name + raw args + tenant context in, ``ToolResult`` out.

``dispatch`` is the only catch-all boundary in the package. Argument
validation failures, expected handler errors and unexpected exceptions all
come back as ``ToolResult(success=False, ...)``.

Destructive calls that need confirmation are never executed here; they come
back flagged ``requires_confirmation`` so the caller routes them through a
``ConfirmationGate``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

import pydantic

from storeforge.config import Settings
from storeforge.errors import StoreForgeError, ValidationError
from storeforge.store.base import StoreGateway
from storeforge.tools.contracts import ToolContext, ToolResult
from storeforge.tools.registry import HandlerContext, ToolDefinition, ToolRegistry, build_default_registry
from storeforge.tools.schemas import ToolArgs


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedCall:
    """A call whose tool exists and whose arguments validated."""

    tool: ToolDefinition
    args: ToolArgs

    @property
    def requires_confirmation(self) -> bool:
        return self.tool.requires_confirmation(self.args)

    def wire_args(self) -> dict[str, Any]:
        return self.args.model_dump(by_alias=True, exclude_none=True, mode="json")


def format_validation_error(tool_name: str, exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "args"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return f"Invalid arguments for {tool_name}: " + "; ".join(parts)


class ToolDispatcher:
    """Validates and executes tool calls against a store gateway."""

    def __init__(
        self,
        gateway: StoreGateway,
        registry: ToolRegistry | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.gateway = gateway
        self.registry = registry or build_default_registry()
        self.settings = settings or Settings()
        self.clock = clock

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def prepare(self, tool_name: str, args: dict[str, Any] | None) -> PreparedCall:
        """Resolve the tool and validate its arguments. Raises ``ValidationError``."""
        tool = self.registry.get(tool_name)
        if tool is None:
            raise ValidationError(
                f"Unknown tool: {tool_name}",
                suggestion="Use one of the tools listed in the catalogue.",
            )
        try:
            parsed = tool.args_model.model_validate(args or {})
        except pydantic.ValidationError as e:
            raise ValidationError(
                format_validation_error(tool_name, e),
                suggestion="Check the argument names and types, then try again.",
            ) from e
        return PreparedCall(tool=tool, args=parsed)

    def run(self, call: PreparedCall, context: ToolContext) -> ToolResult:
        """Execute a prepared call. Never raises."""
        ctx = HandlerContext(
            store_id=context.store_id,
            gateway=self.gateway,
            settings=self.settings,
            conversation_id=context.conversation_id,
            now=self.clock() if self.clock else None,
        )
        logger.info("Running tool %s for store %s", call.tool.name, context.store_id)
        try:
            result = call.tool.handler(call.args, ctx)
        except StoreForgeError as e:
            logger.info("Tool %s failed (%s): %s", call.tool.name, e.kind, e.message)
            return ToolResult.fail(e.message, e.suggestion)
        except Exception:
            logger.exception("Tool %s raised unexpectedly", call.tool.name)
            return ToolResult.fail(f"Failed to run {call.tool.name}", "Try again in a moment.")
        return result

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def dispatch(self, tool_name: str, args: dict[str, Any] | None, context: ToolContext) -> ToolResult:
        try:
            call = self.prepare(tool_name, args)
        except StoreForgeError as e:
            logger.info("Rejected call to %s: %s", tool_name, e.message)
            return ToolResult.fail(e.message, e.suggestion)

        if call.requires_confirmation:
            logger.info("Tool %s needs confirmation; not executed", tool_name)
            return ToolResult(
                success=False,
                error=f"{tool_name} requires confirmation before it can run",
                suggestion="Route the call through the conversation so the merchant can confirm it.",
                requires_confirmation=True,
            )
        return self.run(call, context)
