from __future__ import annotations

import enum
import time
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.logging import get_logger
from app.core.metrics import record_provider_call
from app.services.payment_providers import InvalidPaymentRequestError, ProviderError


PRODUCTION_BASE_URL = "https://api.payconiq.com/v2"
SANDBOX_BASE_URL = "https://dev.payconiq.com/v2"
DEFAULT_TIMEOUT_SECONDS = 20.0

logger = get_logger("app.payments.payconiq")


class RefundPaymentMethod(str, enum.Enum):
    SCT = "SCT"  # SEPA Credit Transfer
    SDD = "SDD"  # SEPA Direct Debit


class PayconiqConfig(BaseModel):
    """Immutable merchant configuration for :class:`PayconiqClient`."""

    model_config = ConfigDict(frozen=True)

    merchant_id: str
    access_token: str
    sandbox: bool = False
    base_url: str = PRODUCTION_BASE_URL
    sandbox_base_url: str = SANDBOX_BASE_URL
    auth_scheme: str | None = None
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    @field_validator("base_url", "sandbox_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def endpoint(self, route: str) -> str:
        base = self.sandbox_base_url if self.sandbox else self.base_url
        return f"{base}{route}"

    def authorization(self) -> str:
        if self.auth_scheme:
            return f"{self.auth_scheme} {self.access_token}"
        return self.access_token


class Transport(Protocol):
    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON object, or ``{}`` on failure."""
        ...

    def close(self) -> None:
        ...


class HttpxTransport:
    """Blocking JSON transport on top of ``httpx.Client``.

    Connection errors, timeouts and bodies that are not a JSON object are
    logged and reduced to an empty dict. Error status codes are not raised:
    Payconiq puts ``message`` and ``code`` in the body of failed calls.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = httpx.Timeout(timeout)
        self._client = client or httpx.Client(timeout=self._timeout)

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = self._client.request(
                method,
                url,
                headers=headers,
                json=payload,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "Payconiq connection error",
                extra={"method": method, "url": url, "error": str(exc)},
            )
            return {}

        try:
            body = response.json()
        except ValueError:
            logger.warning(
                "Payconiq returned a non-JSON body",
                extra={"method": method, "url": url, "status_code": response.status_code},
            )
            return {}

        if not isinstance(body, dict):
            logger.warning(
                "Payconiq returned an unexpected JSON payload",
                extra={"method": method, "url": url, "status_code": response.status_code},
            )
            return {}

        if response.is_error:
            logger.info(
                "Payconiq error response",
                extra={"method": method, "url": url, "status_code": response.status_code},
            )
        return body

    def close(self) -> None:
        self._client.close()


class PayconiqClient:
    """Client for the Payconiq v2 merchant API.

    Every operation issues exactly one request and returns the decoded
    provider object unchanged. A response without its identifying field
    raises :class:`ProviderError`; nothing is retried.
    """

    def __init__(self, config: PayconiqConfig, transport: Transport | None = None) -> None:
        self.config = config
        self.transport = transport or HttpxTransport(timeout=config.timeout_seconds)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "PayconiqClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def create_transaction(self, amount: int, currency: str, callback_url: str) -> dict[str, Any]:
        payload = {
            "amount": amount,
            "currency": currency,
            "callbackUrl": callback_url,
        }
        return self._request("create_transaction", "POST", "/transactions", "transactionId", payload)

    def retrieve_transaction(self, transaction_id: str) -> dict[str, Any]:
        route = f"/transactions/{self._quote(transaction_id)}"
        return self._request("retrieve_transaction", "GET", route, "_id")

    def create_refund(
        self,
        transaction_id: str,
        amount: int,
        currency: str,
        payment_method: RefundPaymentMethod | str = RefundPaymentMethod.SDD,
        description: str = "",
    ) -> dict[str, Any]:
        try:
            method = RefundPaymentMethod(payment_method)
        except ValueError as exc:
            raise InvalidPaymentRequestError(f"Unsupported refund payment method: {payment_method}") from exc
        payload = {
            "amount": amount,
            "currency": currency,
            "paymentMethod": method.value,
            "description": description,
        }
        route = f"/transactions/{self._quote(transaction_id)}/refunds"
        return self._request("create_refund", "POST", route, "_id", payload, with_code=True)

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": self.config.authorization(),
        }

    @staticmethod
    def _quote(transaction_id: str) -> str:
        if not transaction_id:
            raise InvalidPaymentRequestError("transaction_id must not be empty")
        return quote(str(transaction_id), safe="")

    def _request(
        self,
        operation: str,
        method: str,
        route: str,
        required: str,
        payload: dict[str, Any] | None = None,
        with_code: bool = False,
    ) -> dict[str, Any]:
        url = self.config.endpoint(route)
        logger.debug(
            "Payconiq request",
            extra={
                "operation": operation,
                "method": method,
                "url": url,
                "merchant_id": self.config.merchant_id,
                "sandbox": self.config.sandbox,
            },
        )
        start = time.perf_counter()
        response = self.transport.request(method, url, self._headers(), payload)
        elapsed = time.perf_counter() - start

        if response.get(required):
            record_provider_call(operation, "ok", elapsed)
            return response

        record_provider_call(operation, "error", elapsed)
        error = ProviderError(
            response.get("message"),
            code=response.get("code") if with_code else None,
            response=response,
        )
        logger.warning(
            "Payconiq response is missing %s",
            required,
            extra={"operation": operation, "error": str(error)},
        )
        raise error
