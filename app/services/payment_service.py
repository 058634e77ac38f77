from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from app.core.logging import get_logger
from app.schemas.payment import CallbackPayload, PaymentRead, PaymentStatus
from app.services.payment_providers import PaymentProviderConfigurationError
from app.services.payment_providers.payconiq import PayconiqClient, RefundPaymentMethod


logger = get_logger("app.payments")

PAYCONIQ_STATUS_MAP: dict[str, PaymentStatus] = {
    "PENDING": "pending",
    "IDENTIFIED": "pending",
    "AUTHORIZED": "authorized",
    "SUCCEEDED": "approved",
    "FAILED": "rejected",
    "BLOCKED": "rejected",
    "AUTHORIZATION_FAILED": "rejected",
    "CANCELLED": "cancelled",
    "CANCELED": "cancelled",
    "EXPIRED": "cancelled",
    "TIMEDOUT": "cancelled",
}


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def map_payconiq_status(value: Any) -> PaymentStatus:
    if not value or not isinstance(value, str):
        return "pending"
    return PAYCONIQ_STATUS_MAP.get(value.upper(), "pending")


class PayconiqGateway:
    """Checkout-facing gateway around a configured :class:`PayconiqClient`.

    The client is injected; the gateway never builds one from settings.
    Provider errors propagate to the caller unchanged.
    """

    def __init__(self, client: PayconiqClient, callback_url: str | None = None) -> None:
        self.client = client
        self.callback_url = callback_url or None

    def start_checkout(self, amount: int, currency: str, callback_url: str | None = None) -> PaymentRead:
        target = callback_url or self.callback_url
        if not target:
            raise PaymentProviderConfigurationError("Payconiq callback URL is not configured")

        transaction = self.client.create_transaction(amount, currency, target)
        logger.info(
            "Payconiq transaction created",
            extra={"transaction_id": transaction["transactionId"], "amount": amount, "currency": currency},
        )
        return PaymentRead(
            transaction_id=str(transaction["transactionId"]),
            status=map_payconiq_status(transaction.get("status")),
            provider_status=_text(transaction.get("status")),
            amount=amount,
            currency=currency,
            raw=transaction,
        )

    def get_payment_status(self, transaction_id: str) -> PaymentRead:
        transaction = self.client.retrieve_transaction(transaction_id)
        return self._to_payment(transaction)

    def handle_callback(self, payload: dict[str, Any]) -> PaymentRead | None:
        """Re-read the transaction named in a provider callback.

        The status in the callback body is ignored; it is not signed.
        """
        try:
            callback = CallbackPayload.model_validate(payload)
        except ValidationError:
            callback = CallbackPayload()
        if not callback.transaction_id:
            logger.warning("Payconiq callback without transaction id", extra={"payload_keys": sorted(payload)})
            return None

        payment = self.get_payment_status(str(callback.transaction_id))
        logger.info(
            "Payconiq callback processed",
            extra={"transaction_id": payment.transaction_id, "status": payment.status},
        )
        return payment

    def refund(
        self,
        transaction_id: str,
        amount: int,
        currency: str,
        payment_method: RefundPaymentMethod | str = RefundPaymentMethod.SDD,
        description: str = "",
    ) -> dict[str, Any]:
        refund = self.client.create_refund(
            transaction_id,
            amount,
            currency,
            payment_method=payment_method,
            description=description,
        )
        logger.info(
            "Payconiq refund created",
            extra={"transaction_id": transaction_id, "refund_id": refund["_id"], "amount": amount},
        )
        return refund

    @staticmethod
    def _to_payment(transaction: dict[str, Any]) -> PaymentRead:
        provider_status = transaction.get("status")
        amount = transaction.get("amount")
        return PaymentRead(
            transaction_id=str(transaction["_id"]),
            status=map_payconiq_status(provider_status),
            provider_status=_text(provider_status),
            amount=amount if isinstance(amount, int) else None,
            currency=_text(transaction.get("currency")),
            raw=transaction,
        )
