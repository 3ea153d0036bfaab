"""Payment Confirmation Engine - one-time-code verification and simulated settlement."""

import asyncio
import hmac
import logging
import secrets
from datetime import datetime, timedelta, UTC
from typing import Callable, Dict, Optional

from paypilot.config import Settings, settings as default_settings
from paypilot.errors import ErrorKind, InvalidInputError, PaymentStateError
from paypilot.execution.bonus import BonusCalculator
from paypilot.execution.models import (
    CODE_LENGTH,
    CancelReason,
    CompletedPayment,
    PaymentState,
    PendingPayment,
    VerificationResult,
)
from paypilot.memory.models import ChatEntry, EntryKind
from paypilot.messages import CODE_EXPIRED, CODE_MISMATCH, LOCKED_OUT, Language, get_message
from paypilot.wallet.wallet_client import WalletError


logger = logging.getLogger(__name__)


def generate_code() -> str:
    """Random 4-digit code, 1000-9999."""
    return str(1000 + secrets.randbelow(9000))


class PaymentConfirmationEngine:
    """
    Drives a confirmed payment request to completion.

    State Machine:

    PROPOSED → AWAITING_CODE → VERIFYING → COMPLETED
        ↘ CANCELLED  ↘ CANCELLED (user, expired, locked out)

    The one-time code is shown in-app (simulated out-of-band channel). Code
    expiry is enforced: an expired code cancels the payment, and restart()
    issues a fresh one for the same proposal. After `max_code_attempts`
    mismatches the payment is cancelled.

    SECURITY: Settlement is simulated. The external ledger owns balances.
    """

    def __init__(
        self,
        wallet=None,
        settings: Optional[Settings] = None,
        bonus_calculator: Optional[BonusCalculator] = None,
        code_factory: Callable[[], str] = generate_code,
        clock: Optional[Callable[[], datetime]] = None,
        settlement_delay: Optional[float] = None,
        language: Language | str | None = None,
    ):
        """
        Initialize the engine.

        Args:
            wallet: Wallet store used to record bonuses (optional)
            bonus_calculator: Bonus rule evaluator
            code_factory: Source of one-time codes
            clock: Returns the current UTC time
            settlement_delay: Simulated settlement time in seconds
        """
        self.settings = settings or default_settings
        self.wallet = wallet
        self.bonus_calculator = bonus_calculator or BonusCalculator()
        self.code_factory = code_factory
        self.clock = clock or (lambda: datetime.now(UTC))
        self.code_ttl = timedelta(seconds=self.settings.code_ttl_seconds)
        self.max_code_attempts = self.settings.max_code_attempts
        self.settlement_delay = (
            self.settings.settlement_delay if settlement_delay is None else settlement_delay
        )
        self.language = language or self.settings.language
        self.completed: Dict[str, CompletedPayment] = {}
        self._settling: Dict[str, asyncio.Future] = {}

        logger.info(
            f"Confirmation engine initialized (ttl={self.code_ttl.seconds}s, "
            f"max_attempts={self.max_code_attempts})"
        )

    def propose(self, entry: ChatEntry) -> PendingPayment:
        """
        Create a pending payment from a confirmation entry.

        Raises:
            InvalidInputError: not a confirmation entry, or amount not positive
        """
        if entry.kind != EntryKind.CONFIRMATION:
            raise InvalidInputError(f"Entry {entry.entry_id} is not a payment confirmation")
        if entry.amount is None or not entry.amount.is_finite() or entry.amount <= 0:
            raise InvalidInputError(f"Payment amount must be positive, got {entry.amount}")
        if not entry.merchant or not entry.bank_name:
            raise InvalidInputError("Payment needs a merchant and a card")

        pending = PendingPayment(
            amount=entry.amount,
            merchant=entry.merchant,
            bank_name=entry.bank_name,
            currency=entry.currency or "AZN",
        )
        logger.info(f"Payment proposed: {pending.payment_id} {pending.amount} → {pending.merchant}")
        return pending

    def issue_code(self, pending: PendingPayment) -> PendingPayment:
        """PROPOSED → AWAITING_CODE with a fresh code and countdown."""
        pending.transition_to(PaymentState.AWAITING_CODE)
        now = self.clock()
        pending.code = self.code_factory()
        pending.code_issued_at = now
        pending.code_expires_at = now + self.code_ttl
        pending.slots = [""] * CODE_LENGTH
        logger.info(f"Code issued for {pending.payment_id}, expires {pending.code_expires_at.isoformat()}")
        return pending

    def begin(self, entry: ChatEntry) -> PendingPayment:
        """The user tapped confirm: propose and issue the code."""
        return self.issue_code(self.propose(entry))

    def seconds_left(self, pending: PendingPayment) -> int:
        """Countdown value for display."""
        if pending.code_expires_at is None:
            return 0
        remaining = (pending.code_expires_at - self.clock()).total_seconds()
        return max(0, int(remaining))

    def check_expiry(self, pending: PendingPayment) -> bool:
        """Cancel an awaiting payment whose code has expired. Returns True if it expired."""
        if pending.state == PaymentState.AWAITING_CODE and pending.is_expired(self.clock()):
            pending.transition_to(PaymentState.CANCELLED)
            pending.cancel_reason = CancelReason.EXPIRED
            logger.info(f"Code expired for {pending.payment_id}")
            return True
        return False

    def enter_digit(self, pending: PendingPayment, index: int, digit: str) -> Optional[VerificationResult]:
        """
        Fill one code slot. Entering the last slot submits the assembled code.

        Raises:
            InvalidInputError: index out of range or not a single digit
            PaymentStateError: payment is not awaiting a code
        """
        if pending.state != PaymentState.AWAITING_CODE:
            raise PaymentStateError(f"Payment {pending.payment_id} is {pending.state.value}, not awaiting a code")
        if not 0 <= index < CODE_LENGTH:
            raise InvalidInputError(f"Code slot {index} out of range")
        if digit and not (len(digit) == 1 and digit.isdigit()):
            raise InvalidInputError("Each code slot takes a single digit")

        pending.slots[index] = digit
        if index == CODE_LENGTH - 1 and digit:
            return self.submit_code(pending)
        return None

    def submit_code(self, pending: PendingPayment, code: Optional[str] = None) -> VerificationResult:
        """
        Compare the entered code with the issued one.

        Match moves to VERIFYING. A mismatch leaves the payment awaiting a
        code with its slots untouched, unless the attempt cap is reached.
        """
        if pending.state != PaymentState.AWAITING_CODE:
            raise PaymentStateError(f"Payment {pending.payment_id} is {pending.state.value}, not awaiting a code")

        if self.check_expiry(pending):
            return VerificationResult(
                success=False,
                payment_id=pending.payment_id,
                state=pending.state,
                message=get_message(CODE_EXPIRED, self.language),
                error_kind=ErrorKind.CODE_EXPIRED,
                attempts_left=0,
            )

        entered = pending.entered_code if code is None else code
        if pending.code and hmac.compare_digest(entered.encode(), pending.code.encode()):
            pending.transition_to(PaymentState.VERIFYING)
            logger.info(f"Code verified for {pending.payment_id}")
            return VerificationResult(
                success=True,
                payment_id=pending.payment_id,
                state=pending.state,
                message="Code verified",
            )

        pending.attempts += 1
        attempts_left = None
        if self.max_code_attempts > 0:
            attempts_left = max(0, self.max_code_attempts - pending.attempts)
            if attempts_left == 0:
                pending.transition_to(PaymentState.CANCELLED)
                pending.cancel_reason = CancelReason.LOCKED_OUT
                logger.warning(f"Payment {pending.payment_id} locked out after {pending.attempts} attempts")
                return VerificationResult(
                    success=False,
                    payment_id=pending.payment_id,
                    state=pending.state,
                    message=get_message(LOCKED_OUT, self.language),
                    error_kind=ErrorKind.LOCKED_OUT,
                    attempts_left=0,
                )

        logger.info(f"Code mismatch for {pending.payment_id} (attempt {pending.attempts})")
        return VerificationResult(
            success=False,
            payment_id=pending.payment_id,
            state=pending.state,
            message=get_message(CODE_MISMATCH, self.language),
            error_kind=ErrorKind.CODE_MISMATCH,
            attempts_left=attempts_left,
        )

    async def settle(self, pending: PendingPayment) -> CompletedPayment:
        """
        VERIFYING → COMPLETED: simulate settlement, award the bonus.

        Settling an already completed payment returns the stored receipt.
        Overlapping calls for the same payment share one settlement.

        Raises:
            PaymentStateError: payment has not passed verification
        """
        if existing := self.completed.get(pending.payment_id):
            logger.warning(f"Duplicate settlement suppressed: {pending.payment_id}")
            return existing
        if in_progress := self._settling.get(pending.payment_id):
            logger.warning(f"Settlement already running: {pending.payment_id}")
            return await in_progress
        if pending.state != PaymentState.VERIFYING:
            raise PaymentStateError(f"Payment {pending.payment_id} is {pending.state.value}, not verified")

        task = asyncio.ensure_future(self._settle(pending))
        self._settling[pending.payment_id] = task
        try:
            return await task
        finally:
            self._settling.pop(pending.payment_id, None)

    async def _settle(self, pending: PendingPayment) -> CompletedPayment:
        # Simulated network settlement
        await asyncio.sleep(self.settlement_delay)

        award = self.bonus_calculator.compute(pending.bank_name, pending.merchant, pending.amount)
        if award.amount > 0 and self.wallet is not None:
            try:
                await self.wallet.record_bonus(award.partner or "General", award.amount, pending.bank_name)
            except WalletError as e:
                # The payment itself has settled; a lost bonus row must not undo it
                logger.error(f"Failed to record bonus for {pending.payment_id}: {e}")

        pending.transition_to(PaymentState.COMPLETED)
        completed = CompletedPayment(
            payment_id=pending.payment_id,
            amount=pending.amount,
            merchant=pending.merchant,
            bank_name=pending.bank_name,
            currency=pending.currency,
            bonus_amount=award.amount,
            bonus_partner=award.partner or pending.bank_name,
            timestamp=self.clock(),
        )
        self.completed[pending.payment_id] = completed

        logger.info(
            f"Payment completed: {pending.payment_id} {pending.amount} {pending.currency} "
            f"→ {pending.merchant} via {pending.bank_name} [bonus {award.amount}]"
        )
        return completed

    async def confirm(
        self,
        pending: PendingPayment,
        code: Optional[str] = None,
    ) -> tuple[VerificationResult, Optional[CompletedPayment]]:
        """Submit a code and, on a match, settle."""
        result = self.submit_code(pending, code)
        if not result.success:
            return result, None
        return result, await self.settle(pending)

    def cancel(self, pending: PendingPayment) -> PendingPayment:
        """User-initiated cancellation from PROPOSED or AWAITING_CODE."""
        pending.transition_to(PaymentState.CANCELLED)
        pending.cancel_reason = CancelReason.USER
        logger.info(f"Payment cancelled by user: {pending.payment_id}")
        return pending

    def restart(self, pending: PendingPayment) -> PendingPayment:
        """Re-send path after expiry: a fresh payment with a new code. Locked-out payments stay cancelled."""
        if pending.state != PaymentState.CANCELLED or pending.cancel_reason != CancelReason.EXPIRED:
            raise PaymentStateError(f"Payment {pending.payment_id} cannot be restarted from {pending.state.value}")
        fresh = PendingPayment(
            amount=pending.amount,
            merchant=pending.merchant,
            bank_name=pending.bank_name,
            currency=pending.currency,
            attempts=pending.attempts,
        )
        logger.info(f"Restarting {pending.payment_id} as {fresh.payment_id}")
        return self.issue_code(fresh)
