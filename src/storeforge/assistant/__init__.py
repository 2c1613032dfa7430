"""Conversation sessions for the store assistant."""

from storeforge.assistant.session import AssistantSession, ConversationRegistry, ModelOutput, UserTurn

__all__ = ["AssistantSession", "ConversationRegistry", "ModelOutput", "UserTurn"]
