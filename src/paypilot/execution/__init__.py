"""Execution module - payment confirmation state machine and bonus rules."""

from paypilot.execution.bonus import BONUS_RULES, BonusCalculator, BonusRule
from paypilot.execution.engine import PaymentConfirmationEngine, generate_code
from paypilot.execution.models import (
    BonusAward,
    CancelReason,
    CompletedPayment,
    PaymentState,
    PendingPayment,
    VerificationResult,
)

__all__ = [
    "BONUS_RULES",
    "BonusCalculator",
    "BonusRule",
    "PaymentConfirmationEngine",
    "generate_code",
    "BonusAward",
    "CancelReason",
    "CompletedPayment",
    "PaymentState",
    "PendingPayment",
    "VerificationResult",
]
