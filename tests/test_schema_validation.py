"""Unit tests for the structured intent schema and the response parser."""

import json
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from paypilot.schema import (
    IntentType,
    MessageIntent,
    PaymentIntent,
    ResponseParser,
    SchemaValidator,
    ValidationError,
    extract_json_object,
)


class TestPaymentIntentSchema:
    """Test PaymentIntent model validation."""

    def test_valid_payment_intent(self):
        """Test that a valid payment intent parses successfully."""
        intent = PaymentIntent(
            merchant="CinemaPlus",
            category="Entertainment",
            amount=12.0,
            card_hint="Kapital Bank",
            confirmation_text="12 AZN ödənişi təsdiqləyək?",
        )

        assert intent.type == IntentType.PAYMENT_REQUEST.value
        assert intent.amount == Decimal("12.0")
        assert intent.currency == "AZN"
        assert intent.card_hint == "Kapital Bank"

    def test_defaults(self):
        """Test category, currency and hint defaults."""
        intent = PaymentIntent(merchant="Azercell", amount=10)

        assert intent.category == "General"
        assert intent.currency == "AZN"
        assert intent.card_hint is None
        assert intent.confirmation_text == ""

    def test_float_amount_keeps_decimal_form(self):
        """Test that float amounts convert through their string form."""
        intent = PaymentIntent(merchant="Bravo", amount=12.1)
        assert intent.amount == Decimal("12.1")

    def test_invalid_zero_amount(self):
        """Test that zero amounts are rejected."""
        with pytest.raises(PydanticValidationError):
            PaymentIntent(merchant="Bravo", amount=0)

    def test_invalid_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(PydanticValidationError):
            PaymentIntent(merchant="Bravo", amount=-5)

    def test_non_finite_amount_rejected(self):
        """Test that NaN and infinite amounts are rejected."""
        with pytest.raises(PydanticValidationError):
            PaymentIntent(merchant="Bravo", amount="NaN")
        with pytest.raises(PydanticValidationError):
            PaymentIntent(merchant="Bravo", amount=float("inf"))

    def test_boolean_amount_rejected(self):
        """Test that booleans are not accepted as amounts."""
        with pytest.raises(PydanticValidationError):
            PaymentIntent(merchant="Bravo", amount=True)

    def test_blank_merchant_rejected(self):
        """Test that a blank merchant is rejected."""
        with pytest.raises(PydanticValidationError):
            PaymentIntent(merchant="   ", amount=5)

    def test_blank_card_hint_is_absent(self):
        """Test that blank card hints normalize to None."""
        assert PaymentIntent(merchant="Wolt", amount=5, card_hint="").card_hint is None
        assert PaymentIntent(merchant="Wolt", amount=5, card_hint="  ").card_hint is None

    def test_currency_uppercased(self):
        """Test that currency codes are uppercased."""
        assert PaymentIntent(merchant="Wolt", amount=5, currency="azn").currency == "AZN"

    def test_amount_serializes_as_number(self):
        """Test that amounts serialize as JSON numbers."""
        whole = json.loads(PaymentIntent(merchant="Azercell", amount=10).model_dump_json())
        fractional = json.loads(PaymentIntent(merchant="Wolt", amount="7.50").model_dump_json())

        assert whole["amount"] == 10
        assert fractional["amount"] == 7.5


class TestSchemaValidator:
    """Test the strict validator."""

    def setup_method(self):
        self.validator = SchemaValidator()

    def test_validate_payment_from_json(self):
        """Test validation of a payment request JSON string."""
        intent = self.validator.validate(
            '{"type": "payment_request", "merchant": "Azercell", "amount": 10, "currency": "AZN"}'
        )
        assert isinstance(intent, PaymentIntent)
        assert intent.merchant == "Azercell"

    def test_validate_message_from_dict(self):
        """Test validation of a message dict."""
        intent = self.validator.validate({"type": "message", "text": "Salam!"})
        assert intent == MessageIntent(text="Salam!")

    def test_invalid_json(self):
        """Test that malformed JSON raises a parse error."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate("{not json}")
        assert "PARSE_ERROR" in exc_info.value.message

    def test_non_object_json(self):
        """Test that non-object JSON is rejected."""
        with pytest.raises(ValidationError):
            self.validator.validate("[1, 2, 3]")

    def test_unknown_type(self):
        """Test that an unknown type discriminator is rejected."""
        with pytest.raises(ValidationError):
            self.validator.validate({"type": "transfer", "amount": 5})

    def test_missing_amount_reports_field(self):
        """Test that the missing field is named in the errors."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate({"type": "payment_request", "merchant": "Wolt"})

        fields = [e["field"] for e in exc_info.value.errors]
        assert any("amount" in f for f in fields)

    def test_message_missing_text(self):
        """Test that a message without text is rejected."""
        with pytest.raises(ValidationError):
            self.validator.validate({"type": "message"})

    def test_validate_safe_returns_error(self):
        """Test that validate_safe returns the error instead of raising."""
        intent, error = self.validator.validate_safe({"type": "payment_request", "merchant": "Wolt", "amount": -1})

        assert intent is None
        assert error is not None
        assert error.message.startswith("VALIDATION_ERROR")


class TestExtractJsonObject:

    def test_slice_between_outer_braces(self):
        """Test slicing from the first to the last brace."""
        assert extract_json_object('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'

    def test_no_braces(self):
        """Test text without braces."""
        assert extract_json_object("plain text") is None

    def test_reversed_braces(self):
        """Test a closing brace before the opening one."""
        assert extract_json_object("} then {") is None


class TestResponseParser:
    """The parser must return an intent for any input and never raise."""

    def setup_method(self):
        self.parser = ResponseParser()

    def test_prose_wrapped_message(self):
        """Test extraction of a JSON object wrapped in prose."""
        raw = 'Here you go: {"type":"message","text":"Salam!"}\n'
        assert self.parser.parse(raw) == MessageIntent(text="Salam!")

    def test_unparseable_text_is_verbatim(self):
        """Test that plain prose comes back verbatim."""
        raw = "I am not sure what you mean"
        assert self.parser.parse(raw) == MessageIntent(text=raw)

    def test_markdown_fenced_payment(self):
        """Test a payment request inside a markdown fence."""
        raw = '```json\n{"type": "payment_request", "merchant": "Azercell", "amount": 10}\n```'
        intent = self.parser.parse(raw)

        assert isinstance(intent, PaymentIntent)
        assert intent.amount == Decimal("10")

    def test_invalid_payment_degrades_to_raw_text(self):
        """Test that an invalid payment degrades to the raw reply."""
        raw = '{"type": "payment_request", "merchant": "Wolt", "amount": 0}'
        assert self.parser.parse(raw) == MessageIntent(text=raw)

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "prose only",
            '{"type":"message","text":"Sal',
            '{"type": "message", "text": "ok"}',
            "{}",
            "{]",
            "[" * 5000 + "{" + "]" * 5000 + "}",
            '{"type": "payment_request", "merchant": "", "amount": "abc"}',
            '{"type": "payment_request", "merchant": "X", "amount": 1e400}',
        ],
    )
    def test_never_raises(self, raw):
        """Test that any reply yields an intent without raising."""
        intent = self.parser.parse(raw)
        assert isinstance(intent, (MessageIntent, PaymentIntent))

    def test_none_becomes_empty_message(self):
        """Test that None parses to an empty message."""
        assert self.parser.parse(None) == MessageIntent(text="")

    def test_parse_reply_short_circuits_blank(self):
        """Test that blank replies become the no-response message."""
        intent = self.parser.parse_reply("   ")
        assert intent == MessageIntent(text="AI cavab vermədi. Yenidən cəhd edin.")

    def test_parse_reply_english(self):
        """Test the English no-response message."""
        intent = self.parser.parse_reply(None, "en")
        assert intent.text == "The assistant did not respond. Please try again."
