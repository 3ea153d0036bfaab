"""
Wallet Data Models

Rows of the hosted store that the conversation core reads or writes. The core
never mutates balances; the external ledger is authoritative.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CardIdentity(BaseModel):
    """A payment card in the user's wallet (read-only to the core)."""

    model_config = ConfigDict(frozen=True)

    bank_name: str = Field(description="Issuing bank display name")
    card_number: Optional[str] = Field(
        default=None,
        description="Last 4 digits only",
    )
    balance: Optional[Decimal] = Field(default=None, description="Balance (AZN)")
    card_id: Optional[str] = Field(default=None)
    is_favorite: bool = Field(default=False)

    @classmethod
    def from_row(cls, row: dict) -> "CardIdentity":
        """Map a snake_case store row."""
        balance = row.get("balance")
        return cls(
            bank_name=row["bank_name"],
            card_number=(str(row["card_number"])[-4:] if row.get("card_number") else None),
            balance=Decimal(str(balance)) if balance is not None else None,
            card_id=str(row["id"]) if row.get("id") is not None else None,
            is_favorite=bool(row.get("is_favorite") or False),
        )


class WalletSnapshot(BaseModel):
    """Immutable view of the wallet, replaced after each completed payment."""

    model_config = ConfigDict(frozen=True)

    cards: tuple[CardIdentity, ...] = Field(default_factory=tuple)
    refreshed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_empty(self) -> bool:
        return not self.cards

    def first(self) -> Optional[CardIdentity]:
        return self.cards[0] if self.cards else None

    def find(self, bank_name: str) -> Optional[CardIdentity]:
        """Card whose bank name equals `bank_name` (case-insensitive)."""
        wanted = bank_name.strip().lower()
        for card in self.cards:
            if card.bank_name.strip().lower() == wanted:
                return card
        return None


class TransactionRecord(BaseModel):
    """A ledger transaction row."""

    transaction_id: str
    card_id: Optional[str] = None
    amount: Decimal
    merchant_name: str
    category: str = "General"
    status: str = "Success"  # Success, Pending, Failed
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: dict) -> "TransactionRecord":
        return cls(
            transaction_id=str(row["id"]),
            card_id=str(row["card_id"]) if row.get("card_id") is not None else None,
            amount=Decimal(str(row["amount"])),
            merchant_name=row.get("merchant_name") or "",
            category=row.get("category") or "General",
            status=row.get("status") or "Success",
            created_at=row.get("created_at") or datetime.now(UTC),
        )


class BonusRecord(BaseModel):
    """A cashback/bonus award persisted after a completed payment."""

    partner_name: str
    amount: Decimal = Field(gt=0)
    card_name: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ChatMessageRecord(BaseModel):
    """A persisted chat message."""

    text: str
    is_bot: bool
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
