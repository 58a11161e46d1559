"""Conversation log and the turn engine that drives it."""

from healthchat.conversation.conversation import Conversation
from healthchat.conversation.engine import ConversationEngine, EngineState

__all__ = ["Conversation", "ConversationEngine", "EngineState"]
