"""
AI Service Client

Client-side caller of the intent endpoint. Every failure is converted to a
terminal MessageIntent at this boundary so nothing raises into the UI layer:

- HTTP 401       -> "session expired"
- other non-2xx  -> "service unavailable"
- transport error-> "connection error"

Only a request with neither text nor audio raises (InvalidInputError).
"""

import asyncio
import logging
import random
from typing import Callable, List, Optional

import httpx

from paypilot.agent.models import DEFAULT_AUDIO_MIME_TYPE, InboundMessage
from paypilot.config import Settings, settings as default_settings
from paypilot.errors import InvalidInputError
from paypilot.memory.models import ConversationTurn
from paypilot.messages import (
    CONNECTION_ERROR,
    SERVICE_UNAVAILABLE,
    SESSION_EXPIRED,
    Language,
    get_message,
)
from paypilot.schema import MessageIntent, ResponseParser, StructuredIntent


logger = logging.getLogger(__name__)


TokenProvider = Callable[[], Optional[str]]


class AIServiceClient:
    """
    HTTP client for the intent endpoint.

    The bearer credential comes from `token_provider` (the hosted auth
    session). A missing credential is logged and the call proceeds.
    """

    def __init__(
        self,
        function_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        language: Language | str | None = None,
    ):
        """
        Initialize the client.

        Args:
            function_url: Endpoint URL (default: from settings)
            token_provider: Callable returning the current access token or None
            settings: Settings instance
            transport: Optional httpx transport (tests inject a MockTransport)
            language: Language for the fixed fallback messages
        """
        self.settings = settings or default_settings
        self.function_url = function_url or self.settings.function_url
        self.token_provider = token_provider
        self.timeout = self.settings.request_timeout
        self.max_retries = max(0, self.settings.max_retries)
        self.retry_backoff = 0.5
        self.transport = transport
        self.language = language or self.settings.language
        self.parser = ResponseParser()
        self.logger = logger

    async def chat(
        self,
        text: str,
        history: Optional[List[ConversationTurn]] = None,
    ) -> StructuredIntent:
        """Send a text message and get a structured response."""
        return await self.send(InboundMessage(text=text, history=history or []))

    async def chat_with_audio(
        self,
        audio_base64: str,
        mime_type: str = DEFAULT_AUDIO_MIME_TYPE,
        history: Optional[List[ConversationTurn]] = None,
    ) -> StructuredIntent:
        """Send an audio message (voice command) and get a structured response."""
        return await self.send(InboundMessage(
            audio=audio_base64,
            mime_type=mime_type,
            history=history or [],
        ))

    async def send(self, message: InboundMessage) -> StructuredIntent:
        """
        Post one inbound message to the endpoint.

        Raises:
            InvalidInputError: the message carries neither text nor audio, or both
        """
        if not message.has_text and not message.has_audio:
            raise InvalidInputError("Request must carry text or audio")
        if message.has_text and message.has_audio:
            raise InvalidInputError("Supply either text or audio, not both")

        try:
            response = await self._post(message.to_wire())
        except httpx.HTTPError as e:
            self.logger.error(f"AIService request failed: {e}")
            return MessageIntent(text=get_message(CONNECTION_ERROR, self.language))

        if response.status_code == 401:
            self.logger.warning("AIService: session expired (401)")
            return MessageIntent(text=get_message(SESSION_EXPIRED, self.language))

        if not response.is_success:
            self.logger.error(
                f"AIService error status: {response.status_code} {response.text[:200]}"
            )
            return MessageIntent(text=get_message(SERVICE_UNAVAILABLE, self.language))

        return self.parser.parse_reply(response.text, self.language)

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            self.logger.warning("AIService: no access token, calling without credentials")
        return headers

    async def _post(self, payload: dict) -> httpx.Response:
        """POST with bounded, jittered retry on transport failures only."""
        attempt = 0
        while True:
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                    return await client.post(self.function_url, json=payload, headers=self._headers())
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.retry_backoff * (2 ** attempt) + random.uniform(0, self.retry_backoff)
                attempt += 1
                self.logger.warning(f"Transport error ({e}); retry {attempt}/{self.max_retries} in {delay:.2f}s")
                await asyncio.sleep(delay)
