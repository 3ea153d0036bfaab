"""Intent Dispatcher - turns a structured intent into the chat entry the user sees."""

import logging
from typing import Optional

from paypilot.memory.models import ChatEntry, EntryKind
from paypilot.schema import MessageIntent, PaymentIntent, StructuredIntent
from paypilot.wallet.models import CardIdentity, WalletSnapshot


logger = logging.getLogger(__name__)


DEFAULT_BANK_NAME = "ABB"


def resolve_card(intent: PaymentIntent, wallet: Optional[WalletSnapshot]) -> CardIdentity:
    """
    Pick the card a payment request will be paid with.

    A non-empty card hint wins verbatim; when the wallet holds a card from the
    same bank its number and balance are carried over. Without a hint the
    first wallet card is used. An empty wallet falls back to ABB.
    """
    if intent.card_hint:
        card = wallet.find(intent.card_hint) if wallet else None
        if card is not None:
            return card.model_copy(update={"bank_name": intent.card_hint})
        return CardIdentity(bank_name=intent.card_hint)

    first = wallet.first() if wallet else None
    if first is not None:
        return first
    return CardIdentity(bank_name=DEFAULT_BANK_NAME)


def dispatch(intent: StructuredIntent, wallet: Optional[WalletSnapshot] = None) -> ChatEntry:
    """
    Map a structured intent to one chat entry.

    MessageIntent -> plain text entry. PaymentIntent -> confirmation entry
    with the resolved card. No side effects.
    """
    if isinstance(intent, PaymentIntent):
        card = resolve_card(intent, wallet)
        logger.info(f"Payment request: {intent.amount} {intent.currency} → {intent.merchant} ({card.bank_name})")
        return ChatEntry(
            text=intent.confirmation_text,
            kind=EntryKind.CONFIRMATION,
            amount=intent.amount,
            merchant=intent.merchant,
            currency=intent.currency,
            bank_name=card.bank_name,
            card_hint=intent.card_hint,
            category=intent.category,
        )

    if isinstance(intent, MessageIntent):
        return ChatEntry(text=intent.text)

    raise TypeError(f"Unsupported intent type: {type(intent).__name__}")
