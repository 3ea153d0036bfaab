"""Confirmation flow models."""

import uuid
from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from paypilot.errors import ErrorKind, PaymentStateError


CODE_LENGTH = 4


class PaymentState(str, Enum):
    """State machine states for payment confirmation."""

    PROPOSED = "PROPOSED"            # User tapped confirm on a payment request
    AWAITING_CODE = "AWAITING_CODE"  # One-time code issued, waiting for input
    VERIFYING = "VERIFYING"          # Code matched, settling
    COMPLETED = "COMPLETED"          # Settled (terminal)
    CANCELLED = "CANCELLED"          # Cancelled, expired or locked out (terminal)


class CancelReason(str, Enum):
    USER = "USER"
    EXPIRED = "EXPIRED"
    LOCKED_OUT = "LOCKED_OUT"


ALLOWED_TRANSITIONS = {
    PaymentState.PROPOSED: {PaymentState.AWAITING_CODE, PaymentState.CANCELLED},
    PaymentState.AWAITING_CODE: {PaymentState.VERIFYING, PaymentState.CANCELLED},
    PaymentState.VERIFYING: {PaymentState.COMPLETED},
    PaymentState.COMPLETED: set(),
    PaymentState.CANCELLED: set(),
}


class PendingPayment(BaseModel):
    """A confirmed payment intent going through code verification. Never persisted."""

    payment_id: str = Field(
        default_factory=lambda: f"pay_{uuid.uuid4().hex[:12]}",
        description="Unique payment identifier",
    )
    amount: Decimal = Field(gt=0, description="Payment amount")
    merchant: str = Field(description="Merchant name")
    bank_name: str = Field(description="Resolved card identity")
    currency: str = Field(default="AZN")

    # One-time code
    code: Optional[str] = Field(default=None, repr=False)
    code_issued_at: Optional[datetime] = Field(default=None)
    code_expires_at: Optional[datetime] = Field(default=None)
    slots: list[str] = Field(default_factory=lambda: [""] * CODE_LENGTH)
    attempts: int = Field(default=0, ge=0)

    # State tracking
    state: PaymentState = Field(default=PaymentState.PROPOSED)
    state_history: list[tuple[str, str]] = Field(
        default_factory=list,
        description="History of (state, timestamp) transitions",
    )
    cancel_reason: Optional[CancelReason] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def entered_code(self) -> str:
        return "".join(self.slots)

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.state]

    def transition_to(self, new_state: PaymentState) -> None:
        """Transition to a new state and record history."""
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise PaymentStateError(
                f"Cannot move payment {self.payment_id} from {self.state.value} to {new_state.value}"
            )
        self.state_history.append((self.state.value, datetime.now(UTC).isoformat()))
        self.state = new_state

    def is_expired(self, now: datetime) -> bool:
        return self.code_expires_at is not None and now >= self.code_expires_at


class CompletedPayment(BaseModel):
    """Receipt event emitted exactly once per settled payment."""

    model_config = ConfigDict(frozen=True)

    payment_id: str
    amount: Decimal
    merchant: str
    bank_name: str
    currency: str = "AZN"
    bonus_amount: Decimal = Decimal("0.00")
    bonus_partner: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> str:
        """Composite key used to suppress duplicate deliveries."""
        return f"{self.amount}-{self.merchant}-{self.timestamp.isoformat()}"


class VerificationResult(BaseModel):
    """Outcome of submitting a confirmation code."""

    success: bool = Field(description="Whether the code matched")
    payment_id: str
    state: PaymentState = Field(description="State after the check")
    message: str = Field(description="Human-readable result message")
    error_kind: Optional[ErrorKind] = Field(default=None)
    attempts_left: Optional[int] = Field(default=None)


class BonusAward(BaseModel):
    """Result of evaluating the bonus rule table."""

    amount: Decimal = Decimal("0.00")
    rate: Decimal = Decimal("0")
    partner: str = ""
    rule_name: Optional[str] = None
