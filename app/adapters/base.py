"""Base classes and value types for payment processing."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import ValidationError


# ==================== Value types ====================

@dataclass(frozen=True)
class CreditCard:
    """Raw card data supplied by the cardholder."""
    first_name: str
    last_name: str
    number: str
    month: int
    year: int
    verification_value: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass(frozen=True)
class Money:
    """Amount in the smallest currency unit with its currency."""
    cents: int
    currency: str


@dataclass(frozen=True)
class GatewayResponse:
    """Normalized outcome of a single gateway exchange."""
    success: bool
    message: str
    params: Dict[str, Any] = field(default_factory=dict)
    authorization: Optional[str] = None
    avs_result: Optional[str] = None
    cvv_result: Optional[str] = None
    test: bool = False


# A stored alias is passed as a plain string.
PaymentSource = Union[CreditCard, str]
Amount = Union[int, Money]


# ==================== Validators ====================

def validate_currency_code(currency: Any) -> bool:
    """Return True for a three-letter upper-case ISO currency code."""
    return (
        isinstance(currency, str)
        and len(currency) == 3
        and currency.isalpha()
        and currency.isupper()
    )


def validate_amount(amount: Any) -> bool:
    """Return True for an integer amount in minor units (or ``Money``)."""
    if isinstance(amount, Money):
        amount = amount.cents
    return isinstance(amount, int) and not isinstance(amount, bool)


def is_blank(value: Any) -> bool:
    """None, False and empty or whitespace-only strings are blank."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


# ==================== Base Adapter ====================

class PaymentAdapter(ABC):
    """Abstract base class for payment processor adapters."""

    @abstractmethod
    async def authorize(
        self,
        money: Amount,
        payment_source: PaymentSource,
        **options: Any
    ) -> GatewayResponse:
        """Reserve an amount on the payment source without settling it.

        Args:
            money: Amount in smallest currency unit
            payment_source: Card data or a stored alias
            **options: Invoice, customer, address and 3-D Secure options

        Returns:
            Normalized gateway response
        """
        pass

    @abstractmethod
    async def purchase(
        self,
        money: Amount,
        payment_source: PaymentSource,
        **options: Any
    ) -> GatewayResponse:
        """Authorize and settle an amount in one step."""
        pass

    @abstractmethod
    async def capture(
        self,
        money: Amount,
        authorization: str,
        **options: Any
    ) -> GatewayResponse:
        """Settle a previously authorized transaction.

        Args:
            money: Amount to capture
            authorization: Token returned by ``authorize``

        Returns:
            Normalized gateway response
        """
        pass

    @abstractmethod
    async def void(
        self,
        identification: str,
        **options: Any
    ) -> GatewayResponse:
        """Cancel a previously authorized transaction."""
        pass

    @abstractmethod
    async def credit(
        self,
        money: Amount,
        target: PaymentSource,
        **options: Any
    ) -> GatewayResponse:
        """Credit an account, referenced or not.

        Args:
            money: Amount to credit
            target: Authorization token of a settled transaction, card data
                or a stored alias

        Returns:
            Normalized gateway response
        """
        pass

    @abstractmethod
    async def refund(
        self,
        money: Amount,
        reference: str,
        **options: Any
    ) -> GatewayResponse:
        """Refund a settled transaction (full or partial)."""
        pass

    async def aclose(self) -> None:
        """Release transport resources held by the adapter."""
        return None


def require_credentials(credentials: Dict[str, Any], *names: str) -> None:
    """Fail fast when a required credential is blank."""
    missing = [name for name in names if is_blank(credentials.get(name))]
    if missing:
        raise ValidationError(f"Missing required parameter: {', '.join(missing)}")
