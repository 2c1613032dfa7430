"""Tests for the per-conversation session: gate plus marker codec."""

from __future__ import annotations

import pytest

from storeforge.assistant.session import AssistantSession, ConversationRegistry
from storeforge.errors import AuthorizationError
from storeforge.gate.confirmation import GateState
from storeforge.protocol.markers import (
    decode_confirm_action,
    decode_tool_results,
    encode_confirm_action,
    encode_signal,
)

from conftest import OTHER_STORE, STORE


@pytest.fixture
def session(dispatcher) -> AssistantSession:
    return AssistantSession("conv_1", STORE, dispatcher)


def _remaining_products(known_store) -> set[str]:
    return {p["id"] for p in known_store.fetch("products", STORE)}


# -----------------------------------------------------------------------------
# Confirm and cancel round trips
# -----------------------------------------------------------------------------

class TestConfirmFlow:
    def test_bulk_delete_cancelled(self, session, known_store):
        result = session.call_tool("bulkDeleteProducts", {"productIds": ["p_kurta", "p_lamp"]})
        assert result.success and result.requires_confirmation
        assert session.state is GateState.PROPOSED

        marker = session.surface_pending()
        action = decode_confirm_action(marker)
        assert action.id == session.pending.id
        assert action.title == "Delete 2 products"
        assert session.state is GateState.AWAITING_CONFIRMATION

        turn = session.handle_user_message(encode_signal("cancel", action.id, action.tool_name))
        assert turn.result.success
        assert turn.text == "I cancelled the action: bulkDeleteProducts"
        assert session.state is GateState.IDLE
        assert session.pending is None
        assert {"p_kurta", "p_lamp"} <= _remaining_products(known_store)

        (summary,) = decode_tool_results(turn.marker)
        assert summary.tool == "bulkDeleteProducts"
        assert summary.success is True
        assert summary.message == "Cancelled: Delete 2 products"

    def test_delete_confirmed(self, session, known_store):
        session.call_tool("deleteProduct", {"productId": "p_lamp", "productTitle": "Brass Lamp"})
        action_id = decode_confirm_action(session.surface_pending()).id

        turn = session.handle_user_message(f"[CONFIRMED] action:{action_id} Execute the action: deleteProduct")
        assert turn.signal.action_id == action_id
        assert turn.result.success
        assert turn.result.message == 'Deleted product "Brass Lamp"'
        assert "p_lamp" not in _remaining_products(known_store)
        assert session.state is GateState.IDLE

    def test_confirm_with_wrong_id_keeps_pending(self, session, known_store):
        session.call_tool("deleteProduct", {"productId": "p_lamp"})
        session.surface_pending()

        turn = session.handle_user_message("[CONFIRMED] action:act_bogus")
        assert not turn.result.success
        assert session.state is GateState.AWAITING_CONFIRMATION
        assert "p_lamp" in _remaining_products(known_store)
        (summary,) = decode_tool_results(turn.marker)
        assert summary.success is False

    def test_confirm_before_surfacing_is_rejected(self, session, known_store):
        session.call_tool("deleteProduct", {"productId": "p_lamp"})
        turn = session.handle_user_message(f"[CONFIRMED] action:{session.pending.id}")
        assert not turn.result.success
        assert "p_lamp" in _remaining_products(known_store)

    def test_plain_message_is_not_a_signal(self, session):
        turn = session.handle_user_message("How are sales this week?")
        assert turn.signal is None
        assert turn.result is None
        assert turn.marker is None

    def test_reads_run_immediately(self, session):
        result = session.call_tool("getProducts", {})
        assert result.success
        assert not result.requires_confirmation
        assert session.state is GateState.IDLE
        assert session.surface_pending() is None


# -----------------------------------------------------------------------------
# Model output
# -----------------------------------------------------------------------------

class TestModelOutput:
    def test_marker_for_pending_action_marks_it_surfaced(self, session):
        session.call_tool("deleteProduct", {"productId": "p_lamp"})
        text = f"Please confirm:\n{encode_confirm_action(session.pending)}\nThanks!"
        output = session.ingest_model_output(text)
        assert output.surfaced == session.pending.id
        assert output.text == "Please confirm:\n\nThanks!"
        assert session.state is GateState.AWAITING_CONFIRMATION

    def test_made_up_action_is_ignored(self, session):
        session.call_tool("deleteProduct", {"productId": "p_lamp"})
        text = (
            '[CONFIRM_ACTION]{"id":"act_fake","type":"delete","title":"Delete product",'
            '"description":"x","toolName":"deleteProduct","toolArgs":{"productId":"p_saree"}}'
            "[/CONFIRM_ACTION]"
        )
        output = session.ingest_model_output(text)
        assert [a.id for a in output.actions] == ["act_fake"]
        assert output.surfaced is None
        assert session.state is GateState.PROPOSED

    def test_tool_results_are_decoded(self, session):
        output = session.ingest_model_output(
            'Done. [TOOL_RESULT]{"tool":"updateProduct","success":true,"message":"Updated"}[/TOOL_RESULT]'
        )
        assert output.text == "Done."
        assert output.to_wire()["results"] == [{"tool": "updateProduct", "success": True, "message": "Updated"}]


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

class TestConversationRegistry:
    def test_get_or_create_reuses_sessions(self, dispatcher):
        registry = ConversationRegistry(dispatcher)
        first = registry.get_or_create("conv_a", STORE)
        assert registry.get_or_create("conv_a", STORE) is first
        assert len(registry) == 1

    def test_generates_ids(self, dispatcher):
        registry = ConversationRegistry(dispatcher)
        session = registry.get_or_create(None, STORE)
        assert session.conversation_id.startswith("conv_")

    def test_other_store_is_rejected(self, dispatcher):
        registry = ConversationRegistry(dispatcher)
        registry.get_or_create("conv_a", STORE)
        with pytest.raises(AuthorizationError):
            registry.get_or_create("conv_a", OTHER_STORE)

    def test_drop(self, dispatcher):
        registry = ConversationRegistry(dispatcher)
        registry.get_or_create("conv_a", STORE)
        assert registry.drop("conv_a") is True
        assert registry.drop("conv_a") is False
        assert registry.get("conv_a") is None
