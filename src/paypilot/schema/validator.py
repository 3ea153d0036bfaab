"""
Response Parser / Schema Validator

The generative backend is an unreliable producer: replies may be wrapped in
prose or markdown fences, truncated, or shaped wrongly. This module extracts a
single JSON object from the raw reply and validates it against the
StructuredIntent union. Parsing never raises; anything that fails validation
degrades to a MessageIntent carrying the raw reply verbatim.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from paypilot.messages import NO_RESPONSE, Language, get_message
from paypilot.schema.intent_schema import (
    MessageIntent,
    StructuredIntent,
    structured_intent_adapter,
)


logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Custom validation error for schema violations."""

    def __init__(self, message: str, errors: list[Dict[str, Any]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)


def extract_json_object(raw: str) -> Optional[str]:
    """Return the slice between the first '{' and the last '}', or None."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return raw[start:end + 1]


class SchemaValidator:
    """
    Strict validator for structured intents.

    Enforces:
    - A known `type` discriminator
    - merchant and a positive, finite amount on payment requests
    - text on messages
    """

    def __init__(self):
        self.logger = logger

    def validate(self, data: Union[str, Dict[str, Any]]) -> StructuredIntent:
        """
        Validate and parse intent data.

        Args:
            data: JSON string or dictionary

        Returns:
            Validated PaymentIntent or MessageIntent

        Raises:
            ValidationError: If data fails schema validation
        """
        if isinstance(data, str):
            try:
                parsed_data = json.loads(data)
            except (json.JSONDecodeError, RecursionError) as e:
                self.logger.warning(f"JSON parse error: {e}")
                raise ValidationError(
                    message="PARSE_ERROR: Invalid JSON format",
                    errors=[{"type": "json_decode", "msg": str(e)}],
                )
        else:
            parsed_data = data

        if not isinstance(parsed_data, dict):
            raise ValidationError(
                message="VALIDATION_ERROR: Expected a JSON object",
                errors=[{"field": "", "type": "object_type", "msg": type(parsed_data).__name__}],
            )

        try:
            intent = structured_intent_adapter.validate_python(parsed_data)
        except PydanticValidationError as e:
            errors = []
            for error in e.errors():
                errors.append({
                    "field": ".".join(str(loc) for loc in error["loc"]),
                    "type": error["type"],
                    "msg": error["msg"],
                })

            self.logger.warning(f"Schema validation failed: {errors}")
            raise ValidationError(
                message="VALIDATION_ERROR: Schema validation failed",
                errors=errors,
            )

        self.logger.debug(f"Schema validation passed: {intent.type}")
        return intent

    def validate_safe(
        self, data: Union[str, Dict[str, Any]]
    ) -> tuple[StructuredIntent | None, ValidationError | None]:
        """
        Safe validation that returns errors instead of raising.

        Returns:
            (intent, None) on success, (None, ValidationError) on failure
        """
        try:
            return self.validate(data), None
        except ValidationError as e:
            return None, e


class ResponseParser:
    """Turns a raw model reply into a StructuredIntent. Never raises."""

    def __init__(self, validator: Optional[SchemaValidator] = None):
        self.validator = validator or SchemaValidator()

    def parse(self, raw: str) -> StructuredIntent:
        """
        Extract one JSON object from `raw` and validate it.

        On any failure the raw reply is returned verbatim as a MessageIntent so
        the turn is never silently dropped.
        """
        if raw is None:
            raw = ""
        if not isinstance(raw, str):
            raw = str(raw)

        candidate = extract_json_object(raw.strip())
        if candidate is None:
            return MessageIntent(text=raw)

        intent, error = self.validator.validate_safe(candidate)
        if error:
            logger.info(f"Falling back to plain message: {error.message}")
            return MessageIntent(text=raw)

        return intent

    def parse_reply(
        self,
        raw: Optional[str],
        language: Language | str = Language.AZ,
    ) -> StructuredIntent:
        """Like parse(), but short-circuits empty replies to the fixed no-response message."""
        if raw is None or not str(raw).strip():
            return MessageIntent(text=get_message(NO_RESPONSE, language))
        return self.parse(raw)
