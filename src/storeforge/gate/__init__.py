"""Confirmation gate for destructive tool calls."""

from storeforge.gate.confirmation import ConfirmationGate, GateState, new_action_id

__all__ = ["ConfirmationGate", "GateState", "new_action_id"]
