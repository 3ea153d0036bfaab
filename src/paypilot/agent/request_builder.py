"""
Multi-modal Request Builder

Produces exactly one backend request per user turn:

- Text: the sanitized history as prior chat turns, then the new user text.
- Audio: a single-shot content call. The JSON-only instruction comes first,
  then the audio bytes, then the sanitized history as plain context text,
  because the audio path does not accept mixed turn histories.
"""

import base64
import binascii
import json
import logging
from typing import List

from google.genai import types

from paypilot.agent.models import InboundMessage
from paypilot.agent.prompt import AUDIO_INSTRUCTION, HISTORY_CONTEXT_HEADER
from paypilot.errors import InvalidInputError
from paypilot.memory.models import ConversationTurn
from paypilot.memory.session import sanitize_history


logger = logging.getLogger(__name__)


def decode_audio(audio: str) -> bytes:
    """Decode base64 audio, tolerating a leading data-URL prefix."""
    if audio.startswith("data:") and "," in audio:
        audio = audio.split(",", 1)[1]
    try:
        data = base64.b64decode(audio, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Audio is not valid base64: {e}")
    if not data:
        raise InvalidInputError("Audio payload is empty")
    return data


def build_text_contents(text: str, history: List[ConversationTurn]) -> List[types.Content]:
    contents = [
        types.Content(role=turn.role.value, parts=[types.Part(text=turn.text)])
        for turn in sanitize_history(history)
    ]
    contents.append(types.Content(role="user", parts=[types.Part(text=text)]))
    return contents


def build_audio_contents(
    audio: str,
    mime_type: str,
    history: List[ConversationTurn],
) -> List[types.Content]:
    parts = [
        types.Part(text=AUDIO_INSTRUCTION),
        types.Part.from_bytes(data=decode_audio(audio), mime_type=mime_type),
    ]
    context = sanitize_history(history)
    if context:
        parts.append(types.Part(text=HISTORY_CONTEXT_HEADER))
        parts.append(types.Part(text=json.dumps(
            [turn.to_wire() for turn in context], ensure_ascii=False,
        )))
    return [types.Content(role="user", parts=parts)]


def build_contents(message: InboundMessage) -> List[types.Content]:
    """
    Build the backend contents for one inbound message.

    Raises:
        InvalidInputError: neither or both of text/audio supplied, or bad audio
    """
    if message.has_text and message.has_audio:
        raise InvalidInputError("Supply either text or audio, not both")
    if message.has_audio:
        logger.info(f"Building audio request ({len(message.audio)} chars, {message.mime_type})")
        return build_audio_contents(message.audio, message.mime_type, message.history)
    if message.has_text:
        logger.info(f"Building text request with {len(message.history)} history items")
        return build_text_contents(message.text.strip(), message.history)
    raise InvalidInputError("Request must carry text or audio")
