"""Memory models for conversation tracking."""

import uuid
from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class TurnRole(str, Enum):
    """Role in conversation turn. Values match the backend chat protocol."""
    USER = "user"
    ASSISTANT = "model"


class ConversationTurn(BaseModel):
    """A single turn in the conversation history sent to the backend."""

    role: TurnRole = Field(description="Who sent this message")
    text: str = Field(default="", description="Message content (possibly empty)")

    @model_validator(mode="before")
    @classmethod
    def from_wire(cls, data: Any) -> Any:
        """Accept the chat wire form {"role", "parts": [{"text"}]} as well as {"role", "text"}."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("role") == "assistant":
            data["role"] = TurnRole.ASSISTANT.value
        if "text" not in data and "parts" in data:
            parts = data.pop("parts") or []
            data["text"] = "".join(
                str(p.get("text", "")) for p in parts if isinstance(p, dict)
            )
        return data

    def to_wire(self) -> dict:
        return {"role": self.role.value, "parts": [{"text": self.text}]}


class EntryKind(str, Enum):
    """Kinds of chat entries shown in the conversation view."""
    TEXT = "text"
    CONFIRMATION = "confirmation"
    RECEIPT = "receipt"
    AUDIO = "audio"


class ChatEntry(BaseModel):
    """A UI-facing chat message."""

    entry_id: str = Field(default_factory=lambda: f"msg_{uuid.uuid4().hex[:12]}")
    text: str = Field(default="")
    is_user: bool = Field(default=False)
    kind: EntryKind = Field(default=EntryKind.TEXT)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Confirmation / receipt details
    amount: Optional[Decimal] = Field(default=None)
    merchant: Optional[str] = Field(default=None)
    currency: Optional[str] = Field(default=None)
    bank_name: Optional[str] = Field(default=None)
    card_hint: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)

    # Audio details
    duration: Optional[int] = Field(default=None, description="Recording length (seconds)")
    uri: Optional[str] = Field(default=None)

    @property
    def role(self) -> TurnRole:
        return TurnRole.USER if self.is_user else TurnRole.ASSISTANT

    def as_turn(self, confirm_prompt: str = "") -> ConversationTurn:
        """Map to a history turn. Empty confirmation prose falls back to `confirm_prompt`."""
        text = self.text
        if not text and self.kind == EntryKind.CONFIRMATION:
            text = confirm_prompt
        return ConversationTurn(role=self.role, text=text)
