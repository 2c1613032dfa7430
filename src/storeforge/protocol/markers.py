"""Marker protocol: structured payloads embedded in free model text.

Spans:
    [CONFIRM_ACTION]{...pending action...}[/CONFIRM_ACTION]
    [TOOL_RESULT]{"tool": ..., "success": ..., "message": ...}[/TOOL_RESULT]

Signals (prefix of a human reply):
    [CONFIRMED] action:<id> ...
    [CANCELLED] action:<id> ...

Decoding never raises. Spans whose body is not valid JSON, or not a valid
payload, are dropped. Unterminated spans and nested spans yield nothing.
Encoding validates the payload first and escapes any marker token that
appears inside a string value, so an encoded span always decodes back.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

import pydantic
from pydantic import Field

from storeforge.tools.contracts import PendingAction, WireModel


logger = logging.getLogger(__name__)


CONFIRM_ACTION = "CONFIRM_ACTION"
TOOL_RESULT = "TOOL_RESULT"
CONFIRMED_PREFIX = "[CONFIRMED]"
CANCELLED_PREFIX = "[CANCELLED]"

_MARKER_TOKENS = (
    f"[{CONFIRM_ACTION}]",
    f"[/{CONFIRM_ACTION}]",
    f"[{TOOL_RESULT}]",
    f"[/{TOOL_RESULT}]",
    CONFIRMED_PREFIX,
    CANCELLED_PREFIX,
)

_ACTION_ID = re.compile(r"\baction:\s*([A-Za-z0-9_-]+)")


class ToolResultSummary(WireModel):
    """Inline summary of a tool result for display."""

    tool: str = Field(..., min_length=1)
    success: bool
    message: str | None = None


# =============================================================================
# Encoding
# =============================================================================

def _dump(payload: dict[str, Any]) -> str:
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    # Marker tokens only occur inside JSON strings, where \u005b decodes to "[".
    for token in _MARKER_TOKENS:
        text = text.replace(token, "\\u005b" + token[1:])
    return text


def encode_confirm_action(action: PendingAction | dict[str, Any]) -> str:
    """Encode a pending action. Raises ``ValueError`` for an invalid payload."""
    if not isinstance(action, PendingAction):
        try:
            action = PendingAction.model_validate(action)
        except pydantic.ValidationError as e:
            raise ValueError(f"Invalid pending action payload: {e}") from e
    return f"[{CONFIRM_ACTION}]{_dump(action.to_wire())}[/{CONFIRM_ACTION}]"


def encode_tool_result(tool: str, success: bool, message: str | None = None) -> str:
    try:
        summary = ToolResultSummary(tool=tool, success=success, message=message)
    except pydantic.ValidationError as e:
        raise ValueError(f"Invalid tool result payload: {e}") from e
    return f"[{TOOL_RESULT}]{_dump(summary.to_wire())}[/{TOOL_RESULT}]"


# =============================================================================
# Decoding
# =============================================================================

@dataclass(frozen=True)
class Span:
    start: int
    end: int
    body: str


def find_spans(text: str, tag: str) -> list[Span]:
    """Well-formed, non-nested spans of ``tag`` in ``text``, in order."""
    open_token, close_token = f"[{tag}]", f"[/{tag}]"
    tokens = sorted(
        [(m.start(), True) for m in re.finditer(re.escape(open_token), text)]
        + [(m.start(), False) for m in re.finditer(re.escape(close_token), text)]
    )

    spans: list[Span] = []
    depth = max_depth = 0
    region_start = 0
    for pos, is_open in tokens:
        if is_open:
            if depth == 0:
                region_start, max_depth = pos, 0
            depth += 1
            max_depth = max(max_depth, depth)
            continue
        if depth == 0:
            continue  # stray closing token
        depth -= 1
        if depth == 0 and max_depth == 1:
            body = text[region_start + len(open_token):pos]
            spans.append(Span(region_start, pos + len(close_token), body))
    return spans


def _payloads(text: str, tag: str) -> Iterator[tuple[Span, dict[str, Any]]]:
    for span in find_spans(text, tag):
        try:
            payload = json.loads(span.body)
        except (ValueError, RecursionError):
            logger.debug("Dropping %s span with malformed JSON", tag)
            continue
        if isinstance(payload, dict):
            yield span, payload


def decode_confirm_actions(text: str) -> list[PendingAction]:
    actions = []
    for _, payload in _payloads(text, CONFIRM_ACTION):
        try:
            actions.append(PendingAction.model_validate(payload))
        except pydantic.ValidationError:
            logger.debug("Dropping %s span with an invalid payload", CONFIRM_ACTION)
    return actions


def decode_confirm_action(text: str) -> PendingAction | None:
    """The last pending action in ``text``, if any."""
    actions = decode_confirm_actions(text)
    return actions[-1] if actions else None


def decode_tool_results(text: str) -> list[ToolResultSummary]:
    results = []
    for _, payload in _payloads(text, TOOL_RESULT):
        try:
            results.append(ToolResultSummary.model_validate(payload))
        except pydantic.ValidationError:
            logger.debug("Dropping %s span with an invalid payload", TOOL_RESULT)
    return results


def strip_markers(text: str) -> str:
    """Remove every well-formed span, leaving the surrounding prose."""
    spans = sorted(find_spans(text, CONFIRM_ACTION) + find_spans(text, TOOL_RESULT), key=lambda s: s.start)
    out, cursor = [], 0
    for span in spans:
        if span.start < cursor:
            continue
        out.append(text[cursor:span.start])
        cursor = span.end
    out.append(text[cursor:])
    return "".join(out).strip()


# =============================================================================
# Signals
# =============================================================================

class SignalKind(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Signal:
    kind: SignalKind
    action_id: str | None
    remainder: str = ""


def parse_signal(text: str) -> Signal | None:
    """Detect a confirm/cancel prefix at the start of a human reply."""
    stripped = text.lstrip()
    if stripped.startswith(CONFIRMED_PREFIX):
        kind, rest = SignalKind.CONFIRM, stripped[len(CONFIRMED_PREFIX):]
    elif stripped.startswith(CANCELLED_PREFIX):
        kind, rest = SignalKind.CANCEL, stripped[len(CANCELLED_PREFIX):]
    else:
        return None

    match = _ACTION_ID.search(rest)
    action_id = match.group(1) if match else None
    if match:
        rest = rest[: match.start()] + rest[match.end():]
    return Signal(kind=kind, action_id=action_id, remainder=rest.strip())


def encode_signal(kind: SignalKind | str, action_id: str, tool_name: str | None = None) -> str:
    kind = SignalKind(kind)
    if kind is SignalKind.CONFIRM:
        text = f"{CONFIRMED_PREFIX} action:{action_id}"
        return f"{text} Execute the action: {tool_name}" if tool_name else text
    text = f"{CANCELLED_PREFIX} action:{action_id}"
    return f"{text} I cancelled the action: {tool_name}" if tool_name else text
