"""PayPilot - conversational payment-intent resolution and confirmation."""

__version__ = "0.4.0"
