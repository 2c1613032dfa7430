"""Tests for the marker protocol codec."""

from __future__ import annotations

import pytest

from storeforge.protocol.markers import (
    SignalKind,
    decode_confirm_action,
    decode_confirm_actions,
    decode_tool_results,
    encode_confirm_action,
    encode_signal,
    encode_tool_result,
    find_spans,
    parse_signal,
    strip_markers,
)
from storeforge.tools.contracts import ActionType, PendingAction


def _action(**overrides) -> PendingAction:
    values = {
        "id": "act_1",
        "type": ActionType.BULK_DELETE,
        "title": "Delete 3 products",
        "description": "Permanently delete 3 products? This cannot be undone.",
        "tool_name": "bulkDeleteProducts",
        "tool_args": {"productIds": ["a", "b", "c"]},
    }
    values.update(overrides)
    return PendingAction(**values)


# ---------------------------------------------------------------------------
# Confirm-action spans
# ---------------------------------------------------------------------------


class TestConfirmActionSpans:
    def test_encoded_span_shape(self):
        text = encode_confirm_action(_action())
        assert text.startswith("[CONFIRM_ACTION]{")
        assert text.endswith("}[/CONFIRM_ACTION]")
        assert '"toolName":"bulkDeleteProducts"' in text

    def test_decode_from_surrounding_prose(self):
        action = _action()
        text = f"I can do that.\n{encode_confirm_action(action)}\nPlease confirm."
        assert decode_confirm_actions(text) == [action]

    def test_marker_tokens_inside_strings_are_escaped(self):
        action = _action(title="Delete [/CONFIRM_ACTION] and [CONFIRMED] things")
        text = encode_confirm_action(action)
        assert text.count("[/CONFIRM_ACTION]") == 1
        assert "[CONFIRMED]" not in text
        assert decode_confirm_action(text).title == action.title

    def test_unicode_survives(self):
        action = _action(title="Delete “Silk Dupatta” – ₹899")
        assert decode_confirm_action(encode_confirm_action(action)).title == action.title

    def test_dict_payload_is_validated(self):
        with pytest.raises(ValueError, match="Invalid pending action"):
            encode_confirm_action({"id": "", "type": "delete"})

    def test_dict_payload_with_wire_names(self):
        text = encode_confirm_action(
            {
                "id": "act_9",
                "type": "refund",
                "title": "Process refund",
                "description": "Refund the full order total for order o1?",
                "toolName": "processRefund",
                "toolArgs": {"orderId": "o1"},
            }
        )
        assert decode_confirm_action(text).tool_args == {"orderId": "o1"}

    def test_last_action_wins(self):
        text = encode_confirm_action(_action(id="act_1")) + " then " + encode_confirm_action(_action(id="act_2"))
        assert [a.id for a in decode_confirm_actions(text)] == ["act_1", "act_2"]
        assert decode_confirm_action(text).id == "act_2"

    def test_no_span(self):
        assert decode_confirm_actions("Nothing to confirm here.") == []
        assert decode_confirm_action("") is None


class TestMalformedSpans:
    def test_unterminated_span_yields_nothing(self):
        text = '[CONFIRM_ACTION]{"id": "act_1", "type": "delete"}'
        assert decode_confirm_actions(text) == []

    def test_nested_spans_yield_nothing(self):
        inner = encode_confirm_action(_action())
        assert decode_confirm_actions(f"[CONFIRM_ACTION]{inner}[/CONFIRM_ACTION]") == []

    def test_malformed_json_is_dropped(self):
        good = encode_confirm_action(_action(id="act_ok"))
        text = "[CONFIRM_ACTION]{id: act_1,}[/CONFIRM_ACTION] " + good
        assert [a.id for a in decode_confirm_actions(text)] == ["act_ok"]

    def test_json_that_is_not_an_object_is_dropped(self):
        assert decode_confirm_actions("[CONFIRM_ACTION][1, 2, 3][/CONFIRM_ACTION]") == []

    def test_object_missing_fields_is_dropped(self):
        assert decode_confirm_actions('[CONFIRM_ACTION]{"id": "act_1"}[/CONFIRM_ACTION]') == []

    def test_stray_closing_token_is_ignored(self):
        text = "[/CONFIRM_ACTION] " + encode_confirm_action(_action())
        assert len(decode_confirm_actions(text)) == 1

    def test_find_spans_positions(self):
        text = "ab[TOOL_RESULT]{}[/TOOL_RESULT]cd"
        (span,) = find_spans(text, "TOOL_RESULT")
        assert text[span.start:span.end] == "[TOOL_RESULT]{}[/TOOL_RESULT]"
        assert span.body == "{}"


# ---------------------------------------------------------------------------
# Tool-result spans
# ---------------------------------------------------------------------------


class TestToolResultSpans:
    def test_encode_and_decode(self):
        text = encode_tool_result("deleteProduct", True, 'Deleted product "Brass Lamp"')
        (summary,) = decode_tool_results(f"Done! {text}")
        assert summary.tool == "deleteProduct"
        assert summary.success is True
        assert summary.message == 'Deleted product "Brass Lamp"'

    def test_message_is_optional(self):
        text = encode_tool_result("getProducts", False)
        assert text == '[TOOL_RESULT]{"tool":"getProducts","success":false}[/TOOL_RESULT]'

    def test_blank_tool_name_rejected(self):
        with pytest.raises(ValueError):
            encode_tool_result("", True)

    def test_strip_markers_keeps_prose(self):
        result = encode_tool_result("getProducts", True, "Found 5 products")
        action = encode_confirm_action(_action())
        assert strip_markers(f"Here you go. {result}") == "Here you go."
        assert strip_markers(f"{action}\nConfirm?") == "Confirm?"
        assert strip_markers("[TOOL_RESULT]{unterminated") == "[TOOL_RESULT]{unterminated"


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


class TestSignals:
    def test_confirm_signal(self):
        signal = parse_signal("[CONFIRMED] action:act_1 Execute the action: deleteProduct")
        assert signal.kind is SignalKind.CONFIRM
        assert signal.action_id == "act_1"
        assert signal.remainder == "Execute the action: deleteProduct"

    def test_cancel_signal_with_leading_whitespace(self):
        signal = parse_signal("  [CANCELLED] action:act_7f3a I cancelled the action: bulkDeleteProducts")
        assert signal.kind is SignalKind.CANCEL
        assert signal.action_id == "act_7f3a"

    def test_signal_without_id(self):
        signal = parse_signal("[CANCELLED] never mind")
        assert signal.action_id is None
        assert signal.remainder == "never mind"

    def test_prefix_must_lead_the_message(self):
        assert parse_signal("Please [CONFIRMED] action:act_1") is None
        assert parse_signal("yes, delete it") is None

    def test_encode_signal(self):
        assert encode_signal(SignalKind.CONFIRM, "act_1", "deleteProduct") == (
            "[CONFIRMED] action:act_1 Execute the action: deleteProduct"
        )
        assert encode_signal("cancel", "act_1", "processRefund") == (
            "[CANCELLED] action:act_1 I cancelled the action: processRefund"
        )
        assert encode_signal("confirm", "act_2") == "[CONFIRMED] action:act_2"

    def test_encoded_signal_parses_back(self):
        signal = parse_signal(encode_signal(SignalKind.CANCEL, "act_5", "deleteCoupon"))
        assert (signal.kind, signal.action_id) == (SignalKind.CANCEL, "act_5")
