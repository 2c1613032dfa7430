"""Confirmation gate for destructive tool calls.

One gate per conversation, holding at most one pending action:

    idle -> proposed -> awaiting_confirmation -> confirmed | cancelled -> idle

- A destructive call is validated, turned into a ``PendingAction`` and
  returned instead of executed (``proposed``).
- Once the action has been shown to the merchant the gate is
  ``awaiting_confirmation``.
- A confirm carrying the pending action's id runs the stored call and
  returns to ``idle``. A confirm with no id or another id is rejected and the
  pending action is kept.
- A cancel discards the pending action. Nothing ran, so nothing is undone.
- A new destructive call while one is pending replaces it; the old one is
  discarded and never executed.

Read and write calls pass straight through to the dispatcher.
"""

from __future__ import annotations

import logging
import threading
import uuid
from enum import Enum
from typing import Any, Callable

from storeforge.errors import StoreForgeError
from storeforge.tools.contracts import PendingAction, ToolContext, ToolResult
from storeforge.tools.dispatcher import PreparedCall, ToolDispatcher


logger = logging.getLogger(__name__)


class GateState(str, Enum):
    IDLE = "idle"
    PROPOSED = "proposed"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


def new_action_id() -> str:
    return f"act_{uuid.uuid4().hex[:16]}"


class ConfirmationGate:
    """Single-slot pending-action state machine for one conversation."""

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        context: ToolContext,
        id_factory: Callable[[], str] = new_action_id,
    ):
        self.dispatcher = dispatcher
        self.context = context
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._state = GateState.IDLE
        self._pending: PendingAction | None = None
        self._call: PreparedCall | None = None
        self.transitions: list[tuple[GateState, GateState]] = []

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def pending(self) -> PendingAction | None:
        return self._pending

    def _move(self, target: GateState) -> None:
        if target is not self._state:
            logger.info(
                "Conversation %s gate: %s -> %s",
                self.context.conversation_id or "-",
                self._state.value,
                target.value,
            )
            self.transitions.append((self._state, target))
            self._state = target

    def _clear(self) -> None:
        self._pending = None
        self._call = None

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------

    def submit(self, tool_name: str, args: dict[str, Any] | None) -> ToolResult:
        """Execute a non-destructive call, or hold a destructive one for confirmation."""
        try:
            call = self.dispatcher.prepare(tool_name, args)
        except StoreForgeError as e:
            return ToolResult.fail(e.message, e.suggestion)

        if not call.requires_confirmation:
            return self.dispatcher.run(call, self.context)

        with self._lock:
            if self._pending is not None:
                logger.info(
                    "Discarding pending action %s (%s); replaced by %s",
                    self._pending.id,
                    self._pending.tool_name,
                    tool_name,
                )
                self._move(GateState.IDLE)
                self._clear()

            title, description = call.tool.summarize(call.args)
            action = PendingAction(
                id=self._id_factory(),
                type=call.tool.action_type,
                title=title,
                description=description,
                tool_name=call.tool.name,
                tool_args=call.wire_args(),
            )
            self._pending, self._call = action, call
            self._move(GateState.PROPOSED)

        return ToolResult(
            success=True,
            data={"pendingAction": action.to_wire()},
            message=f"Confirmation required: {title}",
            requires_confirmation=True,
        )

    def mark_surfaced(self, action_id: str) -> bool:
        """Record that the merchant has been shown the pending action."""
        with self._lock:
            if self._pending is None or self._pending.id != action_id:
                return False
            if self._state is GateState.PROPOSED:
                self._move(GateState.AWAITING_CONFIRMATION)
            return True

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def confirm(self, action_id: str | None) -> ToolResult:
        with self._lock:
            if self._pending is None:
                return ToolResult.fail(
                    "There is no action waiting for confirmation",
                    "Ask for the change again.",
                )
            if not action_id or action_id != self._pending.id:
                return ToolResult.fail(
                    "Confirmation does not match the pending action",
                    f"Confirm action {self._pending.id} or cancel it.",
                )
            if self._state is not GateState.AWAITING_CONFIRMATION:
                return ToolResult.fail(
                    "The pending action has not been shown for confirmation yet",
                    "Show the confirmation prompt first.",
                )
            call = self._call
            self._move(GateState.CONFIRMED)
            self._clear()

        try:
            return self.dispatcher.run(call, self.context)
        finally:
            with self._lock:
                if self._state is GateState.CONFIRMED:
                    self._move(GateState.IDLE)

    def cancel(self, action_id: str | None = None) -> ToolResult:
        with self._lock:
            if self._pending is None:
                return ToolResult.fail("There is no action waiting for confirmation")
            if action_id and action_id != self._pending.id:
                return ToolResult.fail(
                    "Cancellation does not match the pending action",
                    f"Cancel action {self._pending.id} instead.",
                )
            action = self._pending
            self._move(GateState.CANCELLED)
            self._clear()
            self._move(GateState.IDLE)

        return ToolResult.ok(
            {"cancelled": action.id, "toolName": action.tool_name},
            f"Cancelled: {action.title}",
        )
