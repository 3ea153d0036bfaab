"""Request models for the intent endpoint."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from paypilot.memory.models import ConversationTurn
from paypilot.memory.session import DEFAULT_HISTORY_WINDOW


DEFAULT_AUDIO_MIME_TYPE = "audio/mp4"


class InboundMessage(BaseModel):
    """
    One user turn headed for the backend.

    Exactly one of `text` / `audio` is expected; the request builder enforces
    it. `history` keeps at most the last six turns, oldest first.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    text: Optional[str] = Field(default=None)
    audio: Optional[str] = Field(default=None, description="Base64-encoded audio bytes")
    mime_type: str = Field(default=DEFAULT_AUDIO_MIME_TYPE, alias="mimeType")
    history: List[ConversationTurn] = Field(default_factory=list)

    @field_validator("mime_type", mode="before")
    @classmethod
    def default_mime_type(cls, v: Optional[str]) -> str:
        return v or DEFAULT_AUDIO_MIME_TYPE

    @field_validator("history", mode="before")
    @classmethod
    def bound_history(cls, v):
        if v is None:
            return []
        if isinstance(v, list) and len(v) > DEFAULT_HISTORY_WINDOW:
            return v[-DEFAULT_HISTORY_WINDOW:]
        return v

    @property
    def has_text(self) -> bool:
        return bool(self.text and self.text.strip())

    @property
    def has_audio(self) -> bool:
        return bool(self.audio)

    def to_wire(self) -> dict:
        payload: dict = {"history": [t.to_wire() for t in self.history]}
        if self.has_audio:
            payload["audio"] = self.audio
            payload["mimeType"] = self.mime_type
        else:
            payload["text"] = self.text
        return payload
