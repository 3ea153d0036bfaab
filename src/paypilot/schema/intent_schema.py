"""
Structured Intent Schema

The generative backend is asked to reply with exactly one of two JSON shapes:

    {"type": "payment_request", "merchant": ..., "category": ..., "amount": ...,
     "currency": ..., "card_hint": ..., "confirmation_text": ...}
    {"type": "message", "text": ...}

These models are the authoritative definition of both shapes. Anything that
does not validate here is treated as plain conversational text.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_serializer, field_validator


class IntentType(str, Enum):
    """Supported intent types (wire values)."""

    PAYMENT_REQUEST = "payment_request"
    MESSAGE = "message"


class MessageIntent(BaseModel):
    """Conversational reply. Terminal for the turn."""

    type: Literal["message"] = "message"
    text: str = Field(description="Assistant reply shown verbatim")


class PaymentIntent(BaseModel):
    """
    Proposed payment awaiting user confirmation.

    Amount is a positive, finite decimal. Floats coming from JSON are converted
    through their string form so 12.1 stays 12.1.
    """

    type: Literal["payment_request"] = "payment_request"

    merchant: str = Field(min_length=1, description="Merchant or biller name")
    category: str = Field(default="General", description="Spending category")
    amount: Decimal = Field(gt=0, description="Payment amount (must be positive)")
    currency: str = Field(default="AZN", description="ISO currency code")

    card_hint: Optional[str] = Field(
        default=None,
        description="Bank the user or model explicitly chose",
    )
    confirmation_text: str = Field(
        default="",
        description="Natural-language confirmation prose",
    )

    @field_validator("merchant")
    @classmethod
    def strip_merchant(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("merchant cannot be blank")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        """Reject booleans and non-finite numbers before decimal coercion."""
        if isinstance(v, bool):
            raise ValueError("amount must be a number")
        if isinstance(v, float):
            v = str(v)
        if isinstance(v, str):
            try:
                v = Decimal(v.strip())
            except InvalidOperation:
                raise ValueError("amount is not a number")
        if isinstance(v, Decimal) and not v.is_finite():
            raise ValueError("amount must be finite")
        return v

    @field_validator("card_hint", mode="before")
    @classmethod
    def blank_hint_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not isinstance(v, str):
            return v
        v = v.strip()
        return v or None

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper() or "AZN"

    @field_serializer("amount", when_used="json")
    def amount_as_number(self, v: Decimal):
        # Wire form carries a JSON number, not a string
        return int(v) if v == v.to_integral_value() else float(v)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "type": "payment_request",
                    "merchant": "CinemaPlus",
                    "category": "Entertainment",
                    "amount": 12.0,
                    "currency": "AZN",
                    "card_hint": "Kapital Bank",
                    "confirmation_text": "CinemaPlus üçün Kapital Bank kartını seçdim. 12 AZN ödənişi təsdiqləyək?",
                }
            ]
        }
    }


StructuredIntent = Annotated[
    Union[PaymentIntent, MessageIntent],
    Field(discriminator="type"),
]

structured_intent_adapter: TypeAdapter[StructuredIntent] = TypeAdapter(StructuredIntent)
