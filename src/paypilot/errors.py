"""Error taxonomy shared by the intent pipeline and the confirmation flow."""

from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of failure the core distinguishes."""

    INVALID_INPUT = "InvalidInput"              # Neither text nor audio supplied
    AUTH_EXPIRED = "AuthExpired"                # Backend rejected the credential
    BACKEND_UNAVAILABLE = "BackendUnavailable"  # Non-2xx or network failure
    MALFORMED_RESPONSE = "MalformedResponse"    # Reply is not schema-conforming JSON
    CODE_MISMATCH = "CodeMismatch"              # Wrong confirmation code
    CODE_EXPIRED = "CodeExpired"                # Confirmation code outlived its TTL
    LOCKED_OUT = "LockedOut"                    # Too many wrong codes
    RECORDING_FAILURE = "RecordingFailure"      # Audio capture failed
    TURN_IN_PROGRESS = "TurnInProgress"         # Submission while a call is in flight


class PayPilotError(Exception):
    """Base error carrying an ErrorKind."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, kind: ErrorKind | None = None):
        self.message = message
        if kind is not None:
            self.kind = kind
        super().__init__(self.message)


class InvalidInputError(PayPilotError):
    """Caller supplied an unusable request (no text/audio, bad audio, bad amount)."""

    kind = ErrorKind.INVALID_INPUT


class BackendUnavailableError(PayPilotError):
    """The generative backend could not be reached or failed."""

    kind = ErrorKind.BACKEND_UNAVAILABLE


class TurnInProgressError(PayPilotError):
    """A new submission arrived while the previous one is still outstanding."""

    kind = ErrorKind.TURN_IN_PROGRESS


class PaymentStateError(PayPilotError, ValueError):
    """Illegal transition in the payment confirmation state machine."""

    kind = ErrorKind.INVALID_INPUT


class RecordingError(PayPilotError):
    """Audio capture failed before anything was sent."""

    kind = ErrorKind.RECORDING_FAILURE
