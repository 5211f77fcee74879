"""Adapters for integrating external payment processors."""

from .base import PaymentAdapter, CreditCard, Money, GatewayResponse
from .exceptions import PaymentError, ValidationError, PaymentProcessingError

__all__ = ["PaymentAdapter", "CreditCard", "Money", "GatewayResponse", "PaymentError", "ValidationError", "PaymentProcessingError"]
