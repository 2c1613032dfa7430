"""Tool registry: the fixed catalogue of operations exposed to the model.

Each ``ToolDefinition`` ties a name to its argument model, side-effect class
and handler. Destructive tools also declare the action type shown in the
confirmation prompt and, optionally, a predicate over the validated
arguments deciding whether this particular call needs confirmation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator

from storeforge.analytics.context import AnalyticsContext
from storeforge.analytics.period import utc_now
from storeforge.config import Settings
from storeforge.store.base import StoreGateway
from storeforge.tools.contracts import ActionType, SideEffect, ToolResult
from storeforge.tools.schemas import ToolArgs


@dataclass
class HandlerContext:
    """Tenant scope and collaborators a handler runs with."""

    store_id: str
    gateway: StoreGateway
    settings: Settings = field(default_factory=Settings)
    conversation_id: str | None = None
    now: datetime | None = None

    def analytics(self) -> AnalyticsContext:
        return AnalyticsContext(
            store_id=self.store_id,
            gateway=self.gateway,
            now=self.now or utc_now(),
            max_workers=self.settings.analytics_workers,
            low_stock_threshold=self.settings.low_stock_threshold,
            lead_time_days=self.settings.lead_time_days,
            safety_factor=self.settings.safety_factor,
        )


Handler = Callable[[Any, HandlerContext], ToolResult]
ConfirmPredicate = Callable[[Any], bool]
Describer = Callable[[Any], tuple[str, str]]


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    args_model: type[ToolArgs]
    side_effect: SideEffect
    handler: Handler
    action_type: ActionType | None = None
    confirm_when: ConfirmPredicate | None = None
    describe: Describer | None = None

    def requires_confirmation(self, args: ToolArgs) -> bool:
        if self.side_effect is not SideEffect.DESTRUCTIVE:
            return False
        if self.confirm_when is None:
            return True
        return bool(self.confirm_when(args))

    def summarize(self, args: ToolArgs) -> tuple[str, str]:
        """Title and description for the confirmation prompt."""
        if self.describe is not None:
            return self.describe(args)
        return f"Confirm {self.name}", f"Run {self.name} with the given arguments."

    def schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "sideEffect": self.side_effect.value,
            "parameters": self.args_model.model_json_schema(by_alias=True),
        }


class ToolRegistry:
    """Name-keyed catalogue. Registration rejects duplicates."""

    def __init__(self, tools: Iterable[ToolDefinition] = ()):
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> ToolDefinition:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        if tool.side_effect is SideEffect.DESTRUCTIVE and tool.action_type is None:
            raise ValueError(f"Destructive tool '{tool.name}' must declare an action type")
        self._tools[tool.name] = tool
        return tool

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def names(self, side_effect: SideEffect | None = None) -> list[str]:
        return [t.name for t in self._tools.values() if side_effect is None or t.side_effect is side_effect]

    def catalogue(self) -> list[dict[str, Any]]:
        """JSON-schema descriptions of every tool, for the text-generation provider."""
        return [tool.schema() for tool in self._tools.values()]


def build_default_registry() -> ToolRegistry:
    from storeforge.tools.handlers import ALL_TOOLS

    return ToolRegistry(ALL_TOOLS)
