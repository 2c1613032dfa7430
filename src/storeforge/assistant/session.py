"""Per-conversation assistant session.

Ties a ``ConfirmationGate`` to the marker protocol so the model-facing layer
never parses raw text itself:

- ``call_tool`` runs a model-proposed call through the gate.
- ``ingest_model_output`` decodes markers from model text; a
  ``[CONFIRM_ACTION]`` span for the gate's own pending action marks it as
  shown to the merchant. Actions the model made up are ignored.
- ``handle_user_message`` consumes ``[CONFIRMED]`` / ``[CANCELLED]`` signals
  before anything else looks at the text.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storeforge.analytics.period import utc_now
from storeforge.errors import AuthorizationError
from storeforge.gate.confirmation import ConfirmationGate, GateState
from storeforge.protocol.markers import (
    Signal,
    SignalKind,
    ToolResultSummary,
    decode_confirm_actions,
    decode_tool_results,
    encode_confirm_action,
    encode_tool_result,
    parse_signal,
    strip_markers,
)
from storeforge.tools.contracts import PendingAction, ToolContext, ToolResult
from storeforge.tools.dispatcher import ToolDispatcher


logger = logging.getLogger(__name__)


@dataclass
class ModelOutput:
    text: str
    actions: list[PendingAction] = field(default_factory=list)
    results: list[ToolResultSummary] = field(default_factory=list)
    surfaced: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "actions": [a.to_wire() for a in self.actions],
            "results": [r.to_wire() for r in self.results],
            "surfacedActionId": self.surfaced,
        }


@dataclass
class UserTurn:
    text: str
    signal: Signal | None = None
    result: ToolResult | None = None
    marker: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "signal": self.signal.kind.value if self.signal else None,
            "actionId": self.signal.action_id if self.signal else None,
            "result": self.result.to_wire() if self.result else None,
            "marker": self.marker,
        }


class AssistantSession:
    """One conversation: a gate plus the codec around it."""

    def __init__(self, conversation_id: str, store_id: str, dispatcher: ToolDispatcher):
        self.conversation_id = conversation_id
        self.store_id = store_id
        self.created_at: datetime = utc_now()
        self.gate = ConfirmationGate(
            dispatcher, ToolContext(store_id=store_id, conversation_id=conversation_id)
        )

    @property
    def state(self) -> GateState:
        return self.gate.state

    @property
    def pending(self) -> PendingAction | None:
        return self.gate.pending

    def call_tool(self, tool_name: str, args: dict[str, Any] | None = None) -> ToolResult:
        return self.gate.submit(tool_name, args)

    def surface_pending(self) -> str | None:
        """Encode the pending action for display and mark it shown."""
        action = self.gate.pending
        if action is None:
            return None
        marker = encode_confirm_action(action)
        self.gate.mark_surfaced(action.id)
        return marker

    def ingest_model_output(self, text: str) -> ModelOutput:
        actions = decode_confirm_actions(text)
        surfaced = None
        for action in actions:
            if self.gate.mark_surfaced(action.id):
                surfaced = action.id
            else:
                logger.warning(
                    "Conversation %s: model output carried unknown action %s; ignored",
                    self.conversation_id,
                    action.id,
                )
        return ModelOutput(
            text=strip_markers(text),
            actions=actions,
            results=decode_tool_results(text),
            surfaced=surfaced,
        )

    def handle_user_message(self, text: str) -> UserTurn:
        signal = parse_signal(text)
        if signal is None:
            return UserTurn(text=text)

        pending = self.gate.pending
        if signal.kind is SignalKind.CONFIRM:
            result = self.gate.confirm(signal.action_id)
        else:
            result = self.gate.cancel(signal.action_id)

        tool = pending.tool_name if pending else "confirmation"
        message = result.message if result.success else result.error
        return UserTurn(
            text=signal.remainder,
            signal=signal,
            result=result,
            marker=encode_tool_result(tool, result.success, message),
        )


class ConversationRegistry:
    """In-process sessions keyed by conversation id. Nothing is persisted."""

    def __init__(self, dispatcher: ToolDispatcher):
        self.dispatcher = dispatcher
        self._sessions: dict[str, AssistantSession] = {}
        self._lock = threading.RLock()

    def get_or_create(self, conversation_id: str | None, store_id: str) -> AssistantSession:
        with self._lock:
            cid = conversation_id or f"conv_{uuid.uuid4().hex[:12]}"
            session = self._sessions.get(cid)
            if session is None:
                session = AssistantSession(cid, store_id, self.dispatcher)
                self._sessions[cid] = session
            elif session.store_id != store_id:
                raise AuthorizationError(
                    "Conversation belongs to another store",
                    details={"conversation_id": cid},
                )
            return session

    def get(self, conversation_id: str) -> AssistantSession | None:
        with self._lock:
            return self._sessions.get(conversation_id)

    def drop(self, conversation_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(conversation_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
