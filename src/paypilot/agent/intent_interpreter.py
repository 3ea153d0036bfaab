"""
Gemini Intent Interpreter

Server-side half of the pipeline: sends one user turn plus the policy prompt to
Gemini and turns the raw reply into a StructuredIntent.

The model is an untrusted producer. Its output always passes through the
ResponseParser; a reply that is not a valid intent becomes a plain message.
"""

import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from paypilot.agent.models import InboundMessage
from paypilot.agent.prompt import SYSTEM_PROMPT
from paypilot.agent.request_builder import build_contents
from paypilot.config import Settings, settings as default_settings
from paypilot.errors import BackendUnavailableError
from paypilot.messages import AUDIO_FAILED, Language, get_message
from paypilot.schema import MessageIntent, ResponseParser, StructuredIntent


logger = logging.getLogger(__name__)


class IntentInterpreter:
    """
    Gemini-backed intent interpreter.

    One request per user turn, no automatic retries. Text turns that fail at
    the backend raise BackendUnavailableError for the endpoint to report; audio
    turns that fail degrade to a fixed "could not process audio" message.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the interpreter.

        Args:
            api_key: Gemini API key (defaults to GEMINI_API_KEY)
            model_name: Model to use (defaults to gemini-2.5-flash)
            temperature: Sampling temperature (lower = more deterministic)
            settings: Settings instance to read defaults from
        """
        self.settings = settings or default_settings
        self.api_key = api_key or self.settings.gemini_api_key
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not configured")

        self.model_name = model_name or self.settings.gemini_model
        self.temperature = self.settings.temperature if temperature is None else temperature

        self.client = genai.Client(api_key=self.api_key)
        self.config = types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            temperature=self.temperature,
            top_p=self.settings.top_p,
            max_output_tokens=self.settings.max_output_tokens,
        )
        self.parser = ResponseParser()

        self.logger = logger
        self.logger.info(f"Intent Interpreter initialized with model: {self.model_name}")

    async def interpret(
        self,
        message: InboundMessage,
        language: Language | str = Language.AZ,
    ) -> StructuredIntent:
        """
        Resolve one inbound message into a structured intent.

        Raises:
            InvalidInputError: neither text nor audio supplied
            BackendUnavailableError: the text call failed at the backend
        """
        contents = build_contents(message)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=self.config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            return self._handle_backend_error(e, message, language)

        return self._to_intent(response, language)

    def interpret_sync(
        self,
        message: InboundMessage,
        language: Language | str = Language.AZ,
    ) -> StructuredIntent:
        """Synchronous version of interpret (for scripts and simple callers)."""
        contents = build_contents(message)

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=self.config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            return self._handle_backend_error(e, message, language)

        return self._to_intent(response, language)

    def _handle_backend_error(
        self,
        error: Exception,
        message: InboundMessage,
        language: Language | str,
    ) -> StructuredIntent:
        if message.has_audio:
            self.logger.error(f"Audio processing error: {error}")
            return MessageIntent(text=get_message(AUDIO_FAILED, language))
        self.logger.error(f"Intent interpretation failed: {error}")
        raise BackendUnavailableError(f"Gemini call failed: {error}")

    def _to_intent(self, response: Any, language: Language | str) -> StructuredIntent:
        raw_output = getattr(response, "text", None)
        self.logger.debug(f"Gemini raw response: {raw_output}")

        intent = self.parser.parse_reply(raw_output, language)
        self.logger.info(f"Intent interpretation complete: {intent.type}")
        return intent
