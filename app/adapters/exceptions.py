"""Exceptions raised by payment gateway adapters."""


class PaymentError(Exception):
    """Base exception for payment-related errors."""
    pass


class ValidationError(PaymentError):
    """Raised when input or configuration validation fails."""
    pass


class PaymentProcessingError(PaymentError):
    """Raised when a gateway reply cannot be interpreted."""
    pass
