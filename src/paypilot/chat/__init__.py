"""Chat module - dispatching intents and running the conversation."""

from paypilot.chat.cancellation import CancellationToken
from paypilot.chat.dispatcher import dispatch, resolve_card
from paypilot.chat.session import ChatSession, Recorder, Recording, SessionAlert

__all__ = [
    "CancellationToken",
    "dispatch",
    "resolve_card",
    "ChatSession",
    "Recorder",
    "Recording",
    "SessionAlert",
]
