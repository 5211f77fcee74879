"""Ogone DirectLink payment processor adapter.

DirectLink is the server-to-server API of the Ogone payment platform. This
adapter also covers the Alias Manager option (storing cards and paying with
an alias instead of card data) and DirectLink with 3-D Secure.

Example::

    adapter = OgoneAdapter(
        login="my_ogone_psp_id",
        user="my_ogone_user_id",
        password="my_ogone_pswd",
        created_after_10_may_2010=True,
        signature="my_ogone_sha_signature",
        signature_encryptor="sha512",
    )
    response = await adapter.purchase(1000, card, order_id="1")  # 10 EUR

Pass ``store="customer-42"`` to keep the card under an alias, then use
``"customer-42"`` in place of the card on later calls. Pass ``d3d=True`` to
request 3-D Secure; the identification page then comes back in
``response.params["HTML_ANSWER"]``.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from ..base import (
    Amount,
    CreditCard,
    GatewayResponse,
    Money,
    PaymentAdapter,
    PaymentSource,
    is_blank,
    require_credentials,
    validate_amount,
    validate_currency_code,
)
from ..exceptions import ValidationError
from .response import (
    AVS_MAPPING,
    CVV_MAPPING,
    SUCCESS_MESSAGE,
    is_successful,
    message_from,
    parse_response,
)
from .signing import DEFAULT_DIGEST, DIGESTS, compute_signature

logger = logging.getLogger(__name__)

URLS = {
    "order": "https://secure.ogone.com/ncol/{env}/orderdirect.asp",
    "maintenance": "https://secure.ogone.com/ncol/{env}/maintenancedirect.asp",
}


class ThreeDSecureDisplay(str, Enum):
    """Where the 3-D Secure identification page is displayed."""
    MAIN_WINDOW = "main_window"
    POP_UP = "pop_up"  # back to the main window at the end
    POP_IX = "pop_ix"  # stays in the pop-up


THREE_D_SECURE_DISPLAY_WAYS = {
    ThreeDSecureDisplay.MAIN_WINDOW.value: "MAINW",
    ThreeDSecureDisplay.POP_UP.value: "POPUP",
    ThreeDSecureDisplay.POP_IX.value: "POPIX",
}

DEFAULT_CURRENCY = "EUR"
AUTHORIZATION_DELIMITER = ";"
ORDER_ID_LENGTH = 30

CREDIT_DEPRECATION_MESSAGE = (
    "Support for using credit to refund existing transactions is deprecated "
    "and will be removed from a future release. Use refund instead."
)


def add_pair(post: Dict[str, str], key: str, value: Any) -> None:
    """Set ``key`` unless ``value`` is blank."""
    if not is_blank(value):
        post[key] = str(value)


def reference_from(authorization: str) -> str:
    return (authorization or "").split(AUTHORIZATION_DELIMITER)[0]


def is_reference_transaction(identifier: Any) -> bool:
    return isinstance(identifier, str) and AUTHORIZATION_DELIMITER in identifier


def post_data(parameters: Dict[str, str]) -> str:
    return urlencode(parameters)


@dataclass(frozen=True)
class OgoneCredentials:
    login: str
    user: str
    password: str = field(repr=False)
    currency: Optional[str] = None
    signature: Optional[str] = field(default=None, repr=False)
    signature_encryptor: str = DEFAULT_DIGEST
    created_after_10_may_2010: bool = False
    test: bool = False


class OgoneAdapter(PaymentAdapter):
    """Ogone DirectLink integration.

    Amounts are integers in the smallest currency unit. Every reply, accepted
    or declined, is returned as a ``GatewayResponse``; only transport errors
    (``httpx.HTTPError``) and unreadable replies (``PaymentProcessingError``)
    raise.
    """

    def __init__(
        self,
        login: str,
        user: str,
        password: str,
        currency: Optional[str] = None,
        signature: Optional[str] = None,
        signature_encryptor: Optional[str] = None,
        created_after_10_may_2010: bool = False,
        test: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 20.0,
    ) -> None:
        require_credentials(
            {"login": login, "user": user, "password": password},
            "login", "user", "password",
        )
        if currency is not None and not validate_currency_code(currency):
            raise ValidationError(f"Invalid currency code: {currency}")
        encryptor = signature_encryptor or DEFAULT_DIGEST
        if encryptor not in DIGESTS:
            raise ValidationError(f"Unsupported signature encryptor: {signature_encryptor}")

        self.credentials = OgoneCredentials(
            login=login,
            user=user,
            password=password,
            currency=currency,
            signature=signature,
            signature_encryptor=encryptor,
            created_after_10_may_2010=bool(created_after_10_may_2010),
            test=bool(test),
        )

        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings, http_client: Optional[httpx.AsyncClient] = None) -> "OgoneAdapter":
        return cls(
            login=settings.OGONE_LOGIN,
            user=settings.OGONE_USER,
            password=settings.OGONE_PASSWORD,
            currency=settings.OGONE_CURRENCY,
            signature=settings.OGONE_SIGNATURE,
            signature_encryptor=settings.OGONE_SIGNATURE_ENCRYPTOR,
            created_after_10_may_2010=settings.OGONE_CREATED_AFTER_10_MAY_2010,
            test=settings.OGONE_TEST,
            http_client=http_client,
            timeout=settings.OGONE_HTTP_TIMEOUT,
        )

    # ==================== Operations ====================

    async def authorize(
        self, money: Amount, payment_source: PaymentSource, **options: Any
    ) -> GatewayResponse:
        post: Dict[str, str] = {}
        self._add_invoice(post, options)
        self._add_payment_source(post, payment_source, options)
        self._add_address(post, options)
        self._add_customer_data(post, options)
        self._add_money(post, money, options)
        return await self._commit("RES", post)

    async def purchase(
        self, money: Amount, payment_source: PaymentSource, **options: Any
    ) -> GatewayResponse:
        post: Dict[str, str] = {}
        self._add_invoice(post, options)
        self._add_payment_source(post, payment_source, options)
        self._add_address(post, options)
        self._add_customer_data(post, options)
        self._add_money(post, money, options)
        return await self._commit("SAL", post)

    async def capture(
        self, money: Amount, authorization: str, **options: Any
    ) -> GatewayResponse:
        post: Dict[str, str] = {}
        self._add_authorization(post, reference_from(authorization))
        self._add_invoice(post, options)
        self._add_customer_data(post, options)
        self._add_money(post, money, options)
        return await self._commit("SAL", post)

    async def void(self, identification: str, **options: Any) -> GatewayResponse:
        post: Dict[str, str] = {}
        self._add_authorization(post, reference_from(identification))
        return await self._commit("DES", post)

    async def credit(
        self, money: Amount, target: PaymentSource, **options: Any
    ) -> GatewayResponse:
        if is_reference_transaction(target):
            logger.warning(CREDIT_DEPRECATION_MESSAGE)
            return await self.refund(money, target, **options)
        return await self._perform_non_referenced_credit(money, target, options)

    async def refund(
        self, money: Amount, reference: str, **options: Any
    ) -> GatewayResponse:
        post: Dict[str, str] = {}
        self._add_authorization(post, reference_from(reference))
        self._add_money(post, money, options)
        return await self._commit("RFD", post)

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ==================== Request building ====================

    async def _perform_non_referenced_credit(
        self, money: Amount, payment_target: PaymentSource, options: Dict[str, Any]
    ) -> GatewayResponse:
        # Acts like a reverse purchase.
        post: Dict[str, str] = {}
        self._add_invoice(post, options)
        self._add_payment_source(post, payment_target, options)
        self._add_address(post, options)
        self._add_customer_data(post, options)
        self._add_money(post, money, options)
        return await self._commit("RFD", post)

    def _add_payment_source(
        self, post: Dict[str, str], payment_source: PaymentSource, options: Dict[str, Any]
    ) -> None:
        if isinstance(payment_source, str):
            self._add_alias(post, payment_source)
            self._add_eci(post, "9")
        elif isinstance(payment_source, CreditCard):
            self._add_alias(post, options.get("store"))
            if options.get("d3d"):
                self._add_three_d_secure(post, options)
            self._add_creditcard(post, payment_source)
        else:
            raise ValidationError(
                f"Unsupported payment source: {type(payment_source).__name__}"
            )

    def _add_three_d_secure(self, post: Dict[str, str], options: Dict[str, Any]) -> None:
        add_pair(post, "FLAG3D", "Y")
        win3ds = options.get("win3ds")
        if isinstance(win3ds, ThreeDSecureDisplay):
            win3ds = win3ds.value
        add_pair(post, "WIN3DS", THREE_D_SECURE_DISPLAY_WAYS.get(win3ds, "MAINW"))
        add_pair(post, "HTTP_ACCEPT", options.get("http_accept") or "*/*")
        add_pair(post, "HTTP_USER_AGENT", options.get("http_user_agent"))
        add_pair(post, "ACCEPTURL", options.get("accept_url"))
        add_pair(post, "DECLINEURL", options.get("decline_url"))
        add_pair(post, "EXCEPTIONURL", options.get("exception_url"))
        add_pair(post, "PARAMPLUS", options.get("paramplus"))
        add_pair(post, "COMPLUS", options.get("complus"))
        add_pair(post, "LANGUAGE", options.get("language"))
        add_pair(post, "TP", options.get("tp"))

    def _add_eci(self, post: Dict[str, str], eci: str) -> None:
        add_pair(post, "ECI", eci)

    def _add_alias(self, post: Dict[str, str], alias: Optional[str]) -> None:
        add_pair(post, "ALIAS", alias)

    def _add_authorization(self, post: Dict[str, str], authorization: str) -> None:
        add_pair(post, "PAYID", authorization)

    def _add_money(self, post: Dict[str, str], money: Amount, options: Dict[str, Any]) -> None:
        add_pair(
            post,
            "currency",
            options.get("currency") or self.credentials.currency or self._currency_of(money),
        )
        add_pair(post, "amount", self._amount(money))

    def _add_customer_data(self, post: Dict[str, str], options: Dict[str, Any]) -> None:
        add_pair(post, "EMAIL", options.get("email"))
        add_pair(post, "REMOTE_ADDR", options.get("ip"))

    def _add_address(self, post: Dict[str, str], options: Dict[str, Any]) -> None:
        address = options.get("billing_address")
        if not address:
            return
        add_pair(post, "Owneraddress", address.get("address1"))
        add_pair(post, "OwnerZip", address.get("zip"))
        add_pair(post, "ownertown", address.get("city"))
        add_pair(post, "ownercty", address.get("country"))
        add_pair(post, "ownertelno", address.get("phone"))

    def _add_invoice(self, post: Dict[str, str], options: Dict[str, Any]) -> None:
        add_pair(post, "orderID", options.get("order_id") or self._generate_order_id())
        add_pair(post, "COM", options.get("description"))

    def _add_creditcard(self, post: Dict[str, str], creditcard: CreditCard) -> None:
        add_pair(post, "CN", creditcard.name)
        add_pair(post, "CARDNO", creditcard.number)
        add_pair(post, "ED", "%02d%s" % (int(creditcard.month), str(creditcard.year)[-2:]))
        add_pair(post, "CVC", creditcard.verification_value)

    @staticmethod
    def _generate_order_id() -> str:
        return uuid.uuid4().hex[:ORDER_ID_LENGTH]

    @staticmethod
    def _amount(money: Amount) -> str:
        if not validate_amount(money):
            raise ValidationError(
                f"Money amount must be an integer in cents, got: {money!r}"
            )
        if isinstance(money, Money):
            return str(money.cents)
        return str(money)

    @staticmethod
    def _currency_of(money: Amount) -> str:
        if isinstance(money, Money):
            return money.currency
        return DEFAULT_CURRENCY

    # ==================== Transport ====================

    def _endpoint(self, parameters: Dict[str, str]) -> str:
        kind = "maintenance" if parameters.get("PAYID") else "order"
        return URLS[kind].format(env="test" if self.credentials.test else "prod")

    def _add_signature(self, parameters: Dict[str, str]) -> None:
        add_pair(
            parameters,
            "SHASign",
            compute_signature(
                parameters,
                self.credentials.signature,
                self.credentials.signature_encryptor,
                self.credentials.created_after_10_may_2010,
            ),
        )

    def _prepare(self, action: str, parameters: Dict[str, str]) -> str:
        add_pair(parameters, "PSPID", self.credentials.login)
        add_pair(parameters, "USERID", self.credentials.user)
        add_pair(parameters, "PSWD", self.credentials.password)
        add_pair(parameters, "Operation", action)
        if self.credentials.signature:
            self._add_signature(parameters)
        return post_data(parameters)

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._http_client

    async def _ssl_post(self, url: str, data: str) -> bytes:
        response = await self._get_client().post(
            url,
            content=data,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        response.raise_for_status()
        return response.content

    async def _commit(self, action: str, parameters: Dict[str, str]) -> GatewayResponse:
        url = self._endpoint(parameters)
        body = self._prepare(action, parameters)

        logger.info(
            "Ogone %s request to %s (orderID=%s, PAYID=%s)",
            action, url, parameters.get("orderID"), parameters.get("PAYID"),
        )
        response = parse_response(await self._ssl_post(url, body))

        success = is_successful(response)
        result = GatewayResponse(
            success=success,
            message=message_from(response),
            params=response,
            authorization=AUTHORIZATION_DELIMITER.join(
                [response.get("PAYID") or "", action]
            ),
            avs_result=AVS_MAPPING.get(response.get("AAVCheck")),
            cvv_result=CVV_MAPPING.get(response.get("CVCCheck")),
            test=self.credentials.test,
        )

        if success:
            logger.info("Ogone %s succeeded: PAYID=%s", action, response.get("PAYID"))
        else:
            logger.warning(
                "Ogone %s failed: NCERROR=%s (%s)",
                action, response.get("NCERROR"), result.message,
            )
        return result


__all__ = [
    "OgoneAdapter",
    "OgoneCredentials",
    "SUCCESS_MESSAGE",
    "THREE_D_SECURE_DISPLAY_WAYS",
    "ThreeDSecureDisplay",
    "URLS",
    "add_pair",
    "reference_from",
    "is_reference_transaction",
]
