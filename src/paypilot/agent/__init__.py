"""Agent module - request building, Gemini interpretation, and the endpoint client."""

from paypilot.agent.ai_client import AIServiceClient
from paypilot.agent.intent_interpreter import IntentInterpreter
from paypilot.agent.models import InboundMessage
from paypilot.agent.request_builder import build_contents

__all__ = [
    "AIServiceClient",
    "IntentInterpreter",
    "InboundMessage",
    "build_contents",
]
