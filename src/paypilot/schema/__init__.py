"""Schema validation module for structured intents."""

from paypilot.schema.intent_schema import (
    IntentType,
    MessageIntent,
    PaymentIntent,
    StructuredIntent,
)
from paypilot.schema.validator import (
    ResponseParser,
    SchemaValidator,
    ValidationError,
    extract_json_object,
)

__all__ = [
    "IntentType",
    "MessageIntent",
    "PaymentIntent",
    "StructuredIntent",
    "ResponseParser",
    "SchemaValidator",
    "ValidationError",
    "extract_json_object",
]
