"""Conversation Memory - bounded chat transcript and history sanitizing."""

import logging
import uuid
from collections import deque
from datetime import datetime, UTC
from typing import Iterable, List, Optional

from paypilot.memory.models import ChatEntry, ConversationTurn, TurnRole


logger = logging.getLogger(__name__)


DEFAULT_HISTORY_WINDOW = 6


def sanitize_history(turns: Iterable[ConversationTurn]) -> List[ConversationTurn]:
    """
    Normalize a turn window into a sequence the backend accepts.

    Turns with blank text are dropped first; then everything before the first
    USER turn is dropped. With no USER turn at all the result is empty.
    """
    kept = [t for t in turns if t.text.strip()]
    for index, turn in enumerate(kept):
        if turn.role == TurnRole.USER:
            return kept[index:]
    return []


class ConversationMemory:
    """
    Chat transcript owned by one conversation.

    The transcript is a bounded ring buffer; the history sent to the backend is
    a sanitized snapshot of its tail.

    Note: This is in-memory and resets when the session ends.
    Persistent copies go through the wallet client.
    """

    def __init__(self, max_entries: int = 200, history_window: int = DEFAULT_HISTORY_WINDOW):
        """
        Initialize conversation memory.

        Args:
            max_entries: Maximum chat entries to keep
            history_window: How many trailing entries feed the backend history
        """
        self.session_id = f"session_{uuid.uuid4().hex[:12]}"
        self.history_window = history_window
        self.entries: deque[ChatEntry] = deque(maxlen=max_entries)
        self.session_start = datetime.now(UTC)

        logger.info(f"Conversation memory initialized: {self.session_id}")

    def append(self, entry: ChatEntry) -> ChatEntry:
        self.entries.append(entry)
        logger.debug(f"Appended {entry.kind.value} entry {entry.entry_id}")
        return entry

    def snapshot(self) -> tuple[ChatEntry, ...]:
        return tuple(self.entries)

    def last(self) -> Optional[ChatEntry]:
        return self.entries[-1] if self.entries else None

    def history(self, confirm_prompt: str = "", window: Optional[int] = None) -> List[ConversationTurn]:
        """Sanitized history built from the last `window` entries, oldest first."""
        window = self.history_window if window is None else window
        if window <= 0:
            return []
        tail = list(self.entries)[-window:]
        return sanitize_history(entry.as_turn(confirm_prompt) for entry in tail)

    def clear(self) -> None:
        """Clear conversation memory."""
        self.entries.clear()
        self.session_start = datetime.now(UTC)
        logger.info("Conversation memory cleared")
