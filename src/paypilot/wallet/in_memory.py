"""
In-memory wallet

Demo/test stand-in for the hosted store with the same async interface as
WalletClient. Seeded with the demo wallet the assistant prompt describes.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from paypilot.wallet.models import (
    BonusRecord,
    CardIdentity,
    ChatMessageRecord,
    TransactionRecord,
    WalletSnapshot,
)


logger = logging.getLogger(__name__)


DEMO_CARDS = (
    CardIdentity(card_id="card_kapital", bank_name="Kapital Bank", card_number="4821",
                 balance=Decimal("350.00"), is_favorite=True),
    CardIdentity(card_id="card_abb", bank_name="ABB", card_number="1934",
                 balance=Decimal("850.50")),
    CardIdentity(card_id="card_leo", bank_name="Leobank", card_number="7702",
                 balance=Decimal("120.00")),
)


class InMemoryWallet:
    """Wallet store kept in process memory."""

    def __init__(
        self,
        cards: Optional[Iterable[CardIdentity]] = None,
        user_id: Optional[str] = "user_demo",
    ):
        self.cards: List[CardIdentity] = list(DEMO_CARDS if cards is None else cards)
        self.user_id = user_id
        self.transactions: List[TransactionRecord] = []
        self.bonuses: List[BonusRecord] = []
        self.messages: List[ChatMessageRecord] = []
        self.snapshot_reads = 0

    async def get_user_id(self) -> Optional[str]:
        return self.user_id

    async def get_cards(self) -> List[CardIdentity]:
        return sorted(self.cards, key=lambda c: not c.is_favorite)

    async def get_snapshot(self) -> WalletSnapshot:
        self.snapshot_reads += 1
        return WalletSnapshot(cards=tuple(await self.get_cards()))

    async def get_transactions(self) -> List[TransactionRecord]:
        return sorted(self.transactions, key=lambda t: t.created_at, reverse=True)

    async def record_bonus(
        self,
        partner_name: str,
        amount: Decimal,
        card_name: Optional[str] = None,
    ) -> BonusRecord:
        record = BonusRecord(
            partner_name=partner_name,
            amount=amount,
            card_name=card_name,
            user_id=self.user_id,
        )
        self.bonuses.append(record)
        logger.info(f"Recorded bonus: {amount} from {partner_name} ({card_name})")
        return record

    async def save_chat_message(
        self,
        text: str,
        is_bot: bool,
        metadata: Optional[dict] = None,
    ) -> ChatMessageRecord:
        record = ChatMessageRecord(text=text, is_bot=is_bot, metadata=metadata or {})
        self.messages.append(record)
        return record
