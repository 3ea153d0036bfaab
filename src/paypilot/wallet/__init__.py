"""Wallet module - read-only card data and bonus/chat persistence."""

from paypilot.wallet.in_memory import DEMO_CARDS, InMemoryWallet
from paypilot.wallet.models import (
    BonusRecord,
    CardIdentity,
    ChatMessageRecord,
    TransactionRecord,
    WalletSnapshot,
)
from paypilot.wallet.wallet_client import WalletClient, WalletError

__all__ = [
    "DEMO_CARDS",
    "InMemoryWallet",
    "BonusRecord",
    "CardIdentity",
    "ChatMessageRecord",
    "TransactionRecord",
    "WalletSnapshot",
    "WalletClient",
    "WalletError",
]
