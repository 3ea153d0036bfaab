"""
Wallet Client

HTTP client for the hosted store (PostgREST-style REST interface). Reads cards
and transactions, records bonuses, and saves chat messages for the
authenticated user.
"""

import logging
from decimal import Decimal
from typing import Any, Callable, List, Optional

import httpx

from paypilot.config import Settings, settings as default_settings
from paypilot.wallet.models import (
    BonusRecord,
    CardIdentity,
    ChatMessageRecord,
    TransactionRecord,
    WalletSnapshot,
)


logger = logging.getLogger(__name__)


class WalletError(Exception):
    """The hosted store rejected or failed a request."""


class WalletClient:
    """
    Client for the hosted store.

    Balances are only ever read here; the store's ledger is authoritative.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize wallet client.

        Args:
            base_url: Store base URL (default: from settings)
            anon_key: Public API key sent as `apikey`
            token_provider: Callable returning the user's access token or None
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.settings = settings or default_settings
        self.base_url = (base_url or self.settings.supabase_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else self.settings.supabase_anon_key
        self.token_provider = token_provider
        self.transport = transport
        self.timeout = 5.0
        self.logger = logger

    def _headers(self) -> dict:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider else None
        headers["Authorization"] = f"Bearer {token or self.anon_key}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=headers,
                    **kwargs,
                )
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()
        except httpx.HTTPError as e:
            self.logger.error(f"Wallet store request failed ({method} {path}): {e}")
            raise WalletError(f"Wallet store error: {e}") from e
        except ValueError as e:
            # 2xx with a non-JSON body, e.g. a gateway error page
            self.logger.error(f"Wallet store returned invalid JSON ({method} {path}): {e}")
            raise WalletError(f"Wallet store returned invalid JSON: {e}") from e

    async def get_user_id(self) -> Optional[str]:
        """Resolve the authenticated user's id, or None without a session."""
        if not (self.token_provider and self.token_provider()):
            return None
        data = await self._request("GET", "/auth/v1/user")
        return data.get("id") if data else None

    async def get_cards(self) -> List[CardIdentity]:
        """Fetch all cards, favourites first, newest first."""
        rows = await self._request(
            "GET",
            "/rest/v1/cards",
            params={"select": "*", "order": "is_favorite.desc,created_at.desc"},
        )
        cards = [CardIdentity.from_row(row) for row in rows or []]
        self.logger.info(f"Fetched {len(cards)} cards")
        return cards

    async def get_snapshot(self) -> WalletSnapshot:
        return WalletSnapshot(cards=tuple(await self.get_cards()))

    async def get_transactions(self) -> List[TransactionRecord]:
        """Fetch all transactions, newest first."""
        rows = await self._request(
            "GET",
            "/rest/v1/transactions",
            params={"select": "*", "order": "created_at.desc"},
        )
        return [TransactionRecord.from_row(row) for row in rows or []]

    async def record_bonus(
        self,
        partner_name: str,
        amount: Decimal,
        card_name: Optional[str] = None,
    ) -> BonusRecord:
        """
        Record a sponsor bonus with card name.

        Raises:
            WalletError: no authenticated user, or the store rejected the row
        """
        user_id = await self.get_user_id()
        if not user_id:
            raise WalletError("User not authenticated")

        record = BonusRecord(
            partner_name=partner_name,
            amount=amount,
            card_name=card_name,
            user_id=user_id,
        )
        await self._request(
            "POST",
            "/rest/v1/bonuses",
            json=[{
                "user_id": user_id,
                "partner_name": partner_name,
                "amount": float(amount),
                "card_name": card_name,
            }],
            headers={"Prefer": "return=minimal"},
        )
        self.logger.info(f"Recorded bonus: {amount} from {partner_name} ({card_name})")
        return record

    async def save_chat_message(
        self,
        text: str,
        is_bot: bool,
        metadata: Optional[dict] = None,
    ) -> ChatMessageRecord:
        """Persist one chat message."""
        record = ChatMessageRecord(text=text, is_bot=is_bot, metadata=metadata or {})
        await self._request(
            "POST",
            "/rest/v1/messages",
            json=[{"text": text, "is_bot": is_bot, "metadata": record.metadata}],
            headers={"Prefer": "return=minimal"},
        )
        return record
