"""Marker protocol codec for the model text stream."""

from storeforge.protocol.markers import (
    Signal,
    SignalKind,
    ToolResultSummary,
    decode_confirm_action,
    decode_confirm_actions,
    decode_tool_results,
    encode_confirm_action,
    encode_signal,
    encode_tool_result,
    parse_signal,
    strip_markers,
)

__all__ = [
    "Signal",
    "SignalKind",
    "ToolResultSummary",
    "decode_confirm_action",
    "decode_confirm_actions",
    "decode_tool_results",
    "encode_confirm_action",
    "encode_signal",
    "encode_tool_result",
    "parse_signal",
    "strip_markers",
]
