import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from functools import lru_cache
from typing import Any, Dict, Optional

import httpx
import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator

from config import get_settings
from adapters import CreditCard, GatewayResponse, PaymentAdapter
from adapters.exceptions import PaymentProcessingError, ValidationError
from adapters.ogone import OgoneAdapter, ThreeDSecureDisplay, is_reference_transaction

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("payment-service")


class EndpointFilter(logging.Filter):
    """Filter out noisy health check access logs."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - logging filter
        return "GET /health" not in record.getMessage()


logging.getLogger("uvicorn.access").addFilter(EndpointFilter())


settings = get_settings()


@lru_cache(maxsize=1)
def get_provider() -> PaymentAdapter:
    return OgoneAdapter.from_settings(get_settings())


def require_provider() -> PaymentAdapter:
    try:
        return get_provider()
    except ValidationError as exc:
        logger.error("Payment provider misconfigured: %s", exc)
        raise HTTPException(
            status_code=503, detail=f"Payment provider not configured: {exc}"
        )


# ==================== Request models ====================

class CreditCardModel(BaseModel):
    first_name: str
    last_name: str
    number: str
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1000, le=9999)
    verification_value: Optional[str] = None

    def to_card(self) -> CreditCard:
        return CreditCard(**self.model_dump())


class BillingAddressModel(BaseModel):
    address1: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None


class PaymentOptions(BaseModel):
    order_id: Optional[str] = None
    description: Optional[str] = None
    currency: Optional[str] = None
    email: Optional[str] = None
    ip: Optional[str] = None
    billing_address: Optional[BillingAddressModel] = None
    store: Optional[str] = None
    d3d: bool = False
    win3ds: Optional[ThreeDSecureDisplay] = None
    http_accept: Optional[str] = None
    http_user_agent: Optional[str] = None
    accept_url: Optional[str] = None
    decline_url: Optional[str] = None
    exception_url: Optional[str] = None
    paramplus: Optional[str] = None
    complus: Optional[str] = None
    language: Optional[str] = None
    tp: Optional[str] = None

    def as_kwargs(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class SourcePaymentRequest(BaseModel):
    """Amount charged against either card data or a stored alias."""

    amount: int
    card: Optional[CreditCardModel] = None
    alias: Optional[str] = None
    options: PaymentOptions = Field(default_factory=PaymentOptions)

    @model_validator(mode="after")
    def check_single_source(self):
        if (self.card is None) == (self.alias is None):
            raise ValueError("Exactly one of 'card' or 'alias' is required")
        return self

    def payment_source(self):
        return self.card.to_card() if self.card is not None else self.alias


class ReferencePaymentRequest(BaseModel):
    amount: int
    authorization: str
    options: PaymentOptions = Field(default_factory=PaymentOptions)


class VoidRequest(BaseModel):
    authorization: str
    options: PaymentOptions = Field(default_factory=PaymentOptions)


class CreditRequest(BaseModel):
    """Referenced credit (``authorization``) or non-referenced credit."""

    amount: int
    authorization: Optional[str] = None
    card: Optional[CreditCardModel] = None
    alias: Optional[str] = None
    options: PaymentOptions = Field(default_factory=PaymentOptions)

    @model_validator(mode="after")
    def check_single_target(self):
        targets = [t for t in (self.authorization, self.card, self.alias) if t is not None]
        if len(targets) != 1:
            raise ValueError("Exactly one of 'authorization', 'card' or 'alias' is required")
        if self.alias is not None and is_reference_transaction(self.alias):
            raise ValueError("'alias' must not contain ';', pass a transaction as 'authorization'")
        return self

    def payment_source(self):
        return self.card.to_card() if self.card is not None else self.alias


async def _respond(operation: str, call) -> Dict[str, Any]:
    try:
        result: GatewayResponse = await call
    except ValidationError as exc:
        logger.warning("Validation error on %s: %s", operation, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except httpx.HTTPError as exc:
        logger.error("Gateway transport error on %s: %s", operation, exc)
        raise HTTPException(status_code=502, detail=f"Payment gateway unreachable: {exc}")
    except PaymentProcessingError as exc:
        logger.error("Unparseable gateway reply on %s: %s", operation, exc)
        raise HTTPException(status_code=502, detail="Invalid payment gateway response")
    return asdict(result)


# FastAPI App
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        yield
    finally:
        if get_provider.cache_info().currsize:
            await get_provider().aclose()


app = FastAPI(
    title="Payment Service",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "payment-service"}


@app.post("/payments/authorize")
async def authorize(payload: SourcePaymentRequest, provider: PaymentAdapter = Depends(require_provider)):
    """Reserve an amount without settling it."""
    return await _respond(
        "authorize",
        provider.authorize(payload.amount, payload.payment_source(), **payload.options.as_kwargs()),
    )


@app.post("/payments/purchase")
async def purchase(payload: SourcePaymentRequest, provider: PaymentAdapter = Depends(require_provider)):
    """Authorize and settle in one step."""
    return await _respond(
        "purchase",
        provider.purchase(payload.amount, payload.payment_source(), **payload.options.as_kwargs()),
    )


@app.post("/payments/capture")
async def capture(payload: ReferencePaymentRequest, provider: PaymentAdapter = Depends(require_provider)):
    return await _respond(
        "capture",
        provider.capture(payload.amount, payload.authorization, **payload.options.as_kwargs()),
    )


@app.post("/payments/void")
async def void(payload: VoidRequest, provider: PaymentAdapter = Depends(require_provider)):
    return await _respond(
        "void",
        provider.void(payload.authorization, **payload.options.as_kwargs()),
    )


@app.post("/payments/refund")
async def refund(payload: ReferencePaymentRequest, provider: PaymentAdapter = Depends(require_provider)):
    return await _respond(
        "refund",
        provider.refund(payload.amount, payload.authorization, **payload.options.as_kwargs()),
    )


@app.post("/payments/credit")
async def credit(payload: CreditRequest, provider: PaymentAdapter = Depends(require_provider)):
    """Refund an existing transaction, or credit a card or alias outright."""
    options = payload.options.as_kwargs()
    if payload.authorization is not None:
        return await _respond(
            "credit", provider.refund(payload.amount, payload.authorization, **options)
        )
    return await _respond(
        "credit", provider.credit(payload.amount, payload.payment_source(), **options)
    )


@app.get("/")
async def root():
    return {"message": "Payment Service API", "gateway": "ogone"}


if __name__ == "__main__":
    # Run FastAPI server
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.HTTP_PORT,
        reload=True,
        log_level="info"
    )
