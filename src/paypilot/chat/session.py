"""
Chat Session

The conversation object behind the chat screen. It owns the transcript, sends
one submission at a time to the intent endpoint, dispatches the reply into a
chat entry, and hands confirmed payments to the confirmation engine.

Nothing here raises for backend trouble: the AI client already turns failures
into message intents. Callers only see InvalidInputError (blank input),
TurnInProgressError (a call is outstanding) and PaymentStateError.
"""

import logging
from datetime import datetime, UTC
from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from paypilot.agent.ai_client import AIServiceClient
from paypilot.agent.models import DEFAULT_AUDIO_MIME_TYPE
from paypilot.chat.cancellation import CancellationToken
from paypilot.chat.dispatcher import dispatch
from paypilot.config import Settings, settings as default_settings
from paypilot.errors import ErrorKind, InvalidInputError, RecordingError, TurnInProgressError
from paypilot.execution.engine import PaymentConfirmationEngine
from paypilot.execution.models import CompletedPayment, PendingPayment, VerificationResult
from paypilot.memory.models import ChatEntry, ConversationTurn, EntryKind
from paypilot.memory.session import ConversationMemory
from paypilot.messages import (
    BONUS_EARNED,
    CONFIRM_PROMPT,
    GREETING,
    NO_CARD,
    RECORDING_FAILED,
    Language,
    get_message,
)
from paypilot.schema import StructuredIntent
from paypilot.wallet.models import WalletSnapshot
from paypilot.wallet.wallet_client import WalletError


logger = logging.getLogger(__name__)


class SessionAlert(BaseModel):
    """A transient notice for the user that is not part of the transcript."""

    kind: ErrorKind
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Recording(BaseModel):
    """A finished voice recording."""

    audio_base64: str
    mime_type: str = DEFAULT_AUDIO_MIME_TYPE
    duration: Optional[int] = None
    uri: Optional[str] = None


class Recorder(Protocol):
    async def stop(self) -> Recording:
        """Stop capturing and return the clip. Raises RecordingError on failure."""
        ...


class ChatSession:
    """One user's conversation with the assistant."""

    def __init__(
        self,
        ai_client: AIServiceClient,
        wallet,
        engine: Optional[PaymentConfirmationEngine] = None,
        settings: Optional[Settings] = None,
        language: Language | str | None = None,
    ):
        """
        Initialize a session.

        Args:
            ai_client: Caller of the intent endpoint
            wallet: WalletClient or InMemoryWallet
            engine: Confirmation engine (default: one bound to `wallet`)
            settings: Settings instance
            language: Language for fixed messages
        """
        self.settings = settings or default_settings
        self.ai_client = ai_client
        self.wallet = wallet
        self.language = language or self.settings.language
        self.engine = engine or PaymentConfirmationEngine(
            wallet=wallet, settings=self.settings, language=self.language
        )
        self.memory = ConversationMemory(history_window=self.settings.history_window)
        self.snapshot: Optional[WalletSnapshot] = None
        self.alerts: List[SessionAlert] = []
        self.in_flight = False
        self._delivered_keys: set[str] = set()

        logger.info(f"Chat session started: {self.memory.session_id}")

    @property
    def entries(self) -> tuple[ChatEntry, ...]:
        return self.memory.snapshot()

    def greet(self) -> Optional[ChatEntry]:
        """Proactive greeting for an empty conversation."""
        if self.memory.last() is not None or self.in_flight:
            return None
        return self.memory.append(ChatEntry(text=get_message(GREETING, self.language)))

    async def load_wallet(self) -> WalletSnapshot:
        """Read the wallet and replace the current snapshot."""
        try:
            self.snapshot = await self.wallet.get_snapshot()
        except WalletError as e:
            logger.error(f"Failed to load wallet: {e}")
            if self.snapshot is None:
                self.snapshot = WalletSnapshot()
        return self.snapshot

    def history_window(self) -> List[ConversationTurn]:
        """Sanitized backend history from the tail of the transcript."""
        return self.memory.history(confirm_prompt=get_message(CONFIRM_PROMPT, self.language))

    async def send_text(self, text: str, token: Optional[CancellationToken] = None) -> Optional[ChatEntry]:
        """
        Submit a typed message.

        Returns the assistant entry, or None when the submission was cancelled
        before the reply arrived.
        """
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Message text is empty")
        self._claim_turn()
        try:
            history = self.history_window()
            self.memory.append(ChatEntry(text=text, is_user=True))
            await self._persist(text, is_bot=False)

            intent = await self.ai_client.chat(text, history)
            return await self._accept(intent, token)
        finally:
            self.in_flight = False

    async def send_audio(
        self,
        audio_base64: str,
        mime_type: str = DEFAULT_AUDIO_MIME_TYPE,
        duration: Optional[int] = None,
        uri: Optional[str] = None,
        token: Optional[CancellationToken] = None,
    ) -> Optional[ChatEntry]:
        """Submit a voice message. The transcript shows an audio entry for it."""
        if not audio_base64:
            raise InvalidInputError("Audio payload is empty")
        self._claim_turn()
        try:
            history = self.history_window()
            self.memory.append(ChatEntry(
                is_user=True,
                kind=EntryKind.AUDIO,
                duration=duration,
                uri=uri,
            ))

            intent = await self.ai_client.chat_with_audio(audio_base64, mime_type, history)
            return await self._accept(intent, token)
        finally:
            self.in_flight = False

    async def send_recording(self, recorder: Recorder, token: Optional[CancellationToken] = None) -> Optional[ChatEntry]:
        """Stop `recorder` and send the clip. A failed capture raises an alert instead."""
        if self.in_flight:
            raise TurnInProgressError("A message is already being processed")
        try:
            recording = await recorder.stop()
        except (RecordingError, OSError) as e:
            logger.error(f"Stop recording error: {e}")
            self._alert(ErrorKind.RECORDING_FAILURE, RECORDING_FAILED)
            return None

        return await self.send_audio(
            recording.audio_base64,
            recording.mime_type,
            duration=recording.duration,
            uri=recording.uri,
            token=token,
        )

    def confirm_payment(self, entry: ChatEntry) -> Optional[PendingPayment]:
        """The user tapped confirm on a payment request: start code verification."""
        if self.snapshot is not None and self.snapshot.is_empty:
            self._alert(ErrorKind.INVALID_INPUT, NO_CARD)
            return None
        return self.engine.begin(entry)

    async def verify_and_pay(self, pending: PendingPayment, code: Optional[str] = None) -> VerificationResult:
        """Submit the code; on a match settle and deliver the receipt."""
        result, completed = await self.engine.confirm(pending, code)
        if completed is not None:
            await self.deliver_receipt(completed)
        return result

    async def deliver_receipt(self, completed: CompletedPayment) -> List[ChatEntry]:
        """
        Append the receipt (and the bonus notice, if any) for a settled payment.

        A receipt already delivered is ignored.
        """
        if completed.key in self._delivered_keys:
            logger.warning(f"Duplicate receipt suppressed: {completed.key}")
            return []
        self._delivered_keys.add(completed.key)

        appended = [self.memory.append(ChatEntry(
            kind=EntryKind.RECEIPT,
            amount=completed.amount,
            merchant=completed.merchant,
            currency=completed.currency,
            bank_name=completed.bank_name,
        ))]
        if completed.bonus_amount > 0:
            appended.append(self.memory.append(ChatEntry(
                text=get_message(
                    BONUS_EARNED,
                    self.language,
                    partner=completed.bonus_partner,
                    bonus=completed.bonus_amount,
                    currency=completed.currency,
                ),
            )))

        await self.load_wallet()
        return appended

    def _claim_turn(self) -> None:
        if self.in_flight:
            raise TurnInProgressError("A message is already being processed")
        self.in_flight = True

    async def _accept(self, intent: StructuredIntent, token: Optional[CancellationToken]) -> Optional[ChatEntry]:
        if token is not None and token.cancelled:
            logger.info("Response arrived after cancellation, discarded")
            return None

        entry = self.memory.append(dispatch(intent, self.snapshot))
        if entry.text:
            await self._persist(entry.text, is_bot=True)
        return entry

    async def _persist(self, text: str, is_bot: bool) -> None:
        try:
            await self.wallet.save_chat_message(text, is_bot)
        except WalletError as e:
            logger.error(f"Failed to save chat message: {e}")

    def _alert(self, kind: ErrorKind, message_key: str) -> None:
        alert = SessionAlert(kind=kind, message=get_message(message_key, self.language))
        self.alerts.append(alert)
        logger.warning(f"Session alert: {alert.message}")
