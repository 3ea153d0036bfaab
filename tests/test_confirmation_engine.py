"""Tests for the payment confirmation state machine."""

import asyncio
from datetime import datetime, timedelta, UTC
from decimal import Decimal

import httpx
import pytest

from paypilot.config import Settings
from paypilot.errors import ErrorKind, InvalidInputError, PaymentStateError
from paypilot.execution import (
    CancelReason,
    CompletedPayment,
    PaymentConfirmationEngine,
    PaymentState,
    PendingPayment,
    generate_code,
)
from paypilot.memory.models import ChatEntry, EntryKind
from paypilot.wallet import InMemoryWallet, WalletClient, WalletError


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FailingBonusWallet(InMemoryWallet):
    async def record_bonus(self, partner_name, amount, card_name=None):
        raise WalletError("User not authenticated")


def confirmation(amount="12.00", merchant="CinemaPlus", bank_name="Kapital Bank"):
    return ChatEntry(
        kind=EntryKind.CONFIRMATION,
        amount=Decimal(amount),
        merchant=merchant,
        currency="AZN",
        bank_name=bank_name,
    )


def type_code(engine, pending, code):
    result = None
    for index, digit in enumerate(code):
        result = engine.enter_digit(pending, index, digit)
    return result


class TestPaymentConfirmationEngine:

    def setup_method(self):
        self.clock = FakeClock()
        self.wallet = InMemoryWallet()
        self.engine = PaymentConfirmationEngine(
            wallet=self.wallet,
            settings=Settings(),
            code_factory=lambda: "5678",
            clock=self.clock,
            settlement_delay=0,
        )

    def test_generate_code_is_four_digits(self):
        """Generated codes are four digits between 1000 and 9999."""
        for _ in range(50):
            code = generate_code()
            assert len(code) == 4
            assert 1000 <= int(code) <= 9999

    def test_begin_issues_code(self):
        """Confirming issues a code with a 60 second countdown."""
        pending = self.engine.begin(confirmation())

        assert pending.state == PaymentState.AWAITING_CODE
        assert pending.code == "5678"
        assert pending.code_expires_at == self.clock.now + timedelta(seconds=60)
        assert self.engine.seconds_left(pending) == 60
        assert [s for s, _ in pending.state_history] == ["PROPOSED"]

    def test_code_not_in_repr(self):
        """The issued code never shows up in the payment repr."""
        pending = self.engine.begin(confirmation())
        assert "5678" not in repr(pending)

    @pytest.mark.parametrize(
        "entry",
        [
            ChatEntry(text="Salam"),
            ChatEntry(kind=EntryKind.CONFIRMATION, merchant="Wolt", bank_name="ABB"),
            ChatEntry(kind=EntryKind.CONFIRMATION, amount=Decimal("0"), merchant="Wolt", bank_name="ABB"),
            ChatEntry(kind=EntryKind.CONFIRMATION, amount=Decimal("-3"), merchant="Wolt", bank_name="ABB"),
        ],
    )
    def test_propose_rejects_non_positive_or_non_payment(self, entry):
        """Only confirmation entries with a positive amount can be proposed."""
        with pytest.raises(InvalidInputError):
            self.engine.propose(entry)

    def test_wrong_code_stays_awaiting(self):
        """A wrong code reports a mismatch and keeps the slots."""
        pending = self.engine.begin(confirmation())
        result = type_code(self.engine, pending, "1234")

        assert result.success is False
        assert result.error_kind == ErrorKind.CODE_MISMATCH
        assert result.attempts_left == 2
        assert pending.state == PaymentState.AWAITING_CODE
        assert pending.entered_code == "1234"
        assert self.engine.completed == {}

    def test_partial_entry_does_not_submit(self):
        """Only filling the last slot submits the code."""
        pending = self.engine.begin(confirmation())

        assert self.engine.enter_digit(pending, 0, "5") is None
        assert self.engine.enter_digit(pending, 3, "") is None
        assert pending.attempts == 0

    @pytest.mark.parametrize("index, digit", [(4, "1"), (-1, "1"), (0, "12"), (0, "a")])
    def test_bad_digit_input(self, index, digit):
        """Slot index and digit are validated."""
        pending = self.engine.begin(confirmation())
        with pytest.raises(InvalidInputError):
            self.engine.enter_digit(pending, index, digit)

    def test_lockout_after_three_mismatches(self):
        """Three wrong codes cancel the payment."""
        pending = self.engine.begin(confirmation())

        self.engine.submit_code(pending, "0000")
        self.engine.submit_code(pending, "1111")
        result = self.engine.submit_code(pending, "2222")

        assert result.error_kind == ErrorKind.LOCKED_OUT
        assert pending.state == PaymentState.CANCELLED
        assert pending.cancel_reason == CancelReason.LOCKED_OUT
        with pytest.raises(PaymentStateError):
            self.engine.submit_code(pending, "5678")

    def test_expired_code_cancels(self):
        """A code submitted after its TTL cancels the payment."""
        pending = self.engine.begin(confirmation())
        self.clock.advance(60)

        result = self.engine.submit_code(pending, "5678")

        assert result.success is False
        assert result.error_kind == ErrorKind.CODE_EXPIRED
        assert pending.state == PaymentState.CANCELLED
        assert pending.cancel_reason == CancelReason.EXPIRED
        assert self.engine.seconds_left(pending) == 0

    def test_check_expiry_before_deadline(self):
        """A code inside its TTL stays valid."""
        pending = self.engine.begin(confirmation())
        self.clock.advance(59)

        assert self.engine.check_expiry(pending) is False
        assert self.engine.seconds_left(pending) == 1

    def test_restart_after_expiry(self):
        """An expired payment can be restarted with a fresh code."""
        pending = self.engine.begin(confirmation())
        self.clock.advance(61)
        self.engine.check_expiry(pending)

        fresh = self.engine.restart(pending)

        assert fresh.payment_id != pending.payment_id
        assert fresh.state == PaymentState.AWAITING_CODE
        assert (fresh.amount, fresh.merchant, fresh.bank_name) == (pending.amount, pending.merchant, pending.bank_name)
        assert self.engine.submit_code(fresh, "5678").success

    def test_restart_not_allowed_after_user_cancel(self):
        """A user-cancelled payment cannot be restarted."""
        pending = self.engine.cancel(self.engine.begin(confirmation()))

        assert pending.cancel_reason == CancelReason.USER
        with pytest.raises(PaymentStateError):
            self.engine.restart(pending)

    def test_correct_code_completes_once(self):
        """The right code completes the payment exactly once."""
        pending = self.engine.begin(confirmation())
        result, completed = asyncio.run(self.engine.confirm(pending, "5678"))

        assert result.success is True
        assert pending.state == PaymentState.COMPLETED
        assert completed.merchant == "CinemaPlus"
        assert completed.amount == Decimal("12.00")
        assert completed.bonus_amount == Decimal("1.20")
        assert completed.bonus_partner == "CinemaPlus"

        again = asyncio.run(self.engine.settle(pending))
        assert again is completed
        assert len(self.engine.completed) == 1
        assert len(self.wallet.bonuses) == 1

    def test_flat_bonus_recorded_as_general(self):
        """Flat-rate bonuses are recorded under the General partner."""
        pending = self.engine.begin(confirmation(amount="40.00", merchant="Bravo"))
        _, completed = asyncio.run(self.engine.confirm(pending, "5678"))

        assert completed.bonus_amount == Decimal("0.40")
        assert completed.bonus_partner == "Kapital Bank"
        assert self.wallet.bonuses[0].partner_name == "General"

    def test_no_bonus_no_record(self):
        """No bonus row is written when the bonus is zero."""
        pending = self.engine.begin(confirmation(bank_name="Leobank"))
        _, completed = asyncio.run(self.engine.confirm(pending, "5678"))

        assert completed.bonus_amount == Decimal("0.00")
        assert self.wallet.bonuses == []

    def test_bonus_persist_failure_does_not_break_payment(self):
        """A failed bonus write still completes the payment."""
        engine = PaymentConfirmationEngine(
            wallet=FailingBonusWallet(),
            code_factory=lambda: "5678",
            clock=self.clock,
            settlement_delay=0,
        )
        pending = engine.begin(confirmation())
        _, completed = asyncio.run(engine.confirm(pending, "5678"))

        assert pending.state == PaymentState.COMPLETED
        assert completed.bonus_amount == Decimal("1.20")

    def test_settle_requires_verification(self):
        """Settling before the code is verified is rejected."""
        pending = self.engine.begin(confirmation())
        with pytest.raises(PaymentStateError):
            asyncio.run(self.engine.settle(pending))

    def test_illegal_transition(self):
        """Transitions outside the state graph raise."""
        pending = PendingPayment(amount=Decimal("5"), merchant="Wolt", bank_name="ABB")
        with pytest.raises(PaymentStateError):
            pending.transition_to(PaymentState.COMPLETED)

    def test_cancel_after_completion_rejected(self):
        """A completed payment cannot be cancelled."""
        pending = self.engine.begin(confirmation())
        asyncio.run(self.engine.confirm(pending, "5678"))

        assert pending.is_terminal
        with pytest.raises(PaymentStateError):
            self.engine.cancel(pending)

    def test_overlapping_settlements_complete_once(self):
        """Concurrent settle() calls share one settlement and one bonus row."""
        engine = PaymentConfirmationEngine(
            wallet=self.wallet,
            code_factory=lambda: "5678",
            clock=self.clock,
            settlement_delay=0.01,
        )
        pending = engine.begin(confirmation())
        engine.submit_code(pending, "5678")

        async def run():
            return await asyncio.gather(engine.settle(pending), engine.settle(pending), return_exceptions=True)

        first, second = asyncio.run(run())

        assert isinstance(first, CompletedPayment)
        assert second is first
        assert pending.state == PaymentState.COMPLETED
        assert len(self.wallet.bonuses) == 1
        assert engine.completed == {pending.payment_id: first}

    def test_restart_not_allowed_after_lockout(self):
        """A locked-out payment cannot be restarted to reset the attempt cap."""
        pending = self.engine.begin(confirmation())
        for code in ("0000", "1111", "2222"):
            self.engine.submit_code(pending, code)

        assert pending.cancel_reason == CancelReason.LOCKED_OUT
        with pytest.raises(PaymentStateError):
            self.engine.restart(pending)

    def test_restart_carries_wrong_code_count(self):
        """Wrong codes entered before expiry still count after a restart."""
        pending = self.engine.begin(confirmation())
        self.engine.submit_code(pending, "0000")
        self.engine.submit_code(pending, "1111")
        self.clock.advance(61)
        self.engine.check_expiry(pending)

        fresh = self.engine.restart(pending)
        result = self.engine.submit_code(fresh, "2222")

        assert result.error_kind == ErrorKind.LOCKED_OUT
        assert fresh.state == PaymentState.CANCELLED

    def test_store_gateway_page_does_not_block_settlement(self):
        """A non-JSON reply from the store while recording the bonus still completes the payment."""
        wallet = WalletClient(
            base_url="http://store.test",
            anon_key="anon",
            token_provider=lambda: "tok",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>")),
        )
        engine = PaymentConfirmationEngine(
            wallet=wallet,
            code_factory=lambda: "5678",
            clock=self.clock,
            settlement_delay=0,
        )
        pending = engine.begin(confirmation())
        _, completed = asyncio.run(engine.confirm(pending, "5678"))

        assert pending.state == PaymentState.COMPLETED
        assert completed.bonus_amount == Decimal("1.20")
