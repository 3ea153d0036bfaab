"""Memory module - conversation transcript and history window."""

from paypilot.memory.models import ChatEntry, ConversationTurn, EntryKind, TurnRole
from paypilot.memory.session import ConversationMemory, sanitize_history

__all__ = [
    "ChatEntry",
    "ConversationTurn",
    "EntryKind",
    "TurnRole",
    "ConversationMemory",
    "sanitize_history",
]
