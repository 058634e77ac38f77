import pytest

from app.api.deps import build_payconiq_config, close_payconiq_client, get_payconiq_gateway
from app.core.config import Settings
from app.services.payment_providers import PaymentProviderConfigurationError, ProviderError
from app.services.payment_service import PayconiqGateway, map_payconiq_status

CALLBACK_URL = "https://shop.test/payconiq/callback"


def test_start_checkout_uses_configured_callback(payconiq, gateway):
    payconiq.reply({"transactionId": "T1", "status": "PENDING"})

    payment = gateway.start_checkout(1999, "EUR")

    assert payconiq.last_json()["callbackUrl"] == CALLBACK_URL
    assert payment.transaction_id == "T1"
    assert payment.status == "pending"
    assert payment.provider_status == "PENDING"
    assert payment.amount == 1999
    assert payment.raw == {"transactionId": "T1", "status": "PENDING"}


def test_start_checkout_prefers_explicit_callback(payconiq, gateway):
    payconiq.reply({"transactionId": "T1"})

    gateway.start_checkout(100, "EUR", callback_url="https://shop.test/orders/42/payconiq")

    assert payconiq.last_json()["callbackUrl"] == "https://shop.test/orders/42/payconiq"


def test_start_checkout_without_callback_url(payconiq, payconiq_client):
    gateway = PayconiqGateway(payconiq_client)

    with pytest.raises(PaymentProviderConfigurationError):
        gateway.start_checkout(100, "EUR")
    assert payconiq.requests == []


def test_start_checkout_propagates_provider_error(payconiq, gateway):
    payconiq.reply({"message": "Invalid amount"}, status_code=400)

    with pytest.raises(ProviderError, match="Invalid amount"):
        gateway.start_checkout(100, "EUR")


@pytest.mark.parametrize(
    "provider_status, expected",
    [
        ("SUCCEEDED", "approved"),
        ("PENDING", "pending"),
        ("AUTHORIZED", "authorized"),
        ("FAILED", "rejected"),
        ("CANCELED", "cancelled"),
        ("EXPIRED", "cancelled"),
        ("succeeded", "approved"),
        ("SOMETHING_NEW", "pending"),
        (None, "pending"),
    ],
)
def test_map_payconiq_status(provider_status, expected):
    assert map_payconiq_status(provider_status) == expected


def test_get_payment_status(payconiq, gateway):
    payconiq.reply({"_id": "T1", "status": "SUCCEEDED", "amount": 500, "currency": "EUR"})

    payment = gateway.get_payment_status("T1")

    assert payment.status == "approved"
    assert payment.amount == 500
    assert payment.currency == "EUR"


def test_handle_callback_rereads_transaction(payconiq, gateway):
    payconiq.reply({"_id": "T1", "status": "SUCCEEDED"})

    payment = gateway.handle_callback({"_id": "T1", "status": "FAILED"})

    assert str(payconiq.last.url).endswith("/transactions/T1")
    assert payment.status == "approved"


def test_handle_callback_accepts_transaction_id_key(payconiq, gateway):
    payconiq.reply({"_id": "T2", "status": "CANCELED"})

    payment = gateway.handle_callback({"transactionId": "T2"})

    assert payment.transaction_id == "T2"
    assert payment.status == "cancelled"


def test_handle_callback_without_id_is_ignored(payconiq, gateway):
    assert gateway.handle_callback({"status": "SUCCEEDED"}) is None
    assert payconiq.requests == []


def test_refund(payconiq, gateway):
    payconiq.reply({"_id": "R1", "amount": 200})

    refund = gateway.refund("T1", 200, "EUR", description="Partial refund")

    assert refund == {"_id": "R1", "amount": 200}
    assert payconiq.last_json()["paymentMethod"] == "SDD"


def test_build_payconiq_config_from_settings():
    app_settings = Settings(
        PAYCONIQ_MERCHANT_ID="M1",
        PAYCONIQ_ACCESS_TOKEN="secret-token",
        PAYCONIQ_SANDBOX=True,
        PAYCONIQ_SANDBOX_BASE_URL="https://sandbox.test/v2/",
        PAYCONIQ_AUTH_SCHEME="",
    )

    config = build_payconiq_config(app_settings)

    assert config.sandbox is True
    assert config.auth_scheme is None
    assert config.endpoint("/transactions") == "https://sandbox.test/v2/transactions"


def test_build_payconiq_config_requires_credentials():
    with pytest.raises(PaymentProviderConfigurationError):
        build_payconiq_config(Settings(PAYCONIQ_MERCHANT_ID="", PAYCONIQ_ACCESS_TOKEN="secret-token"))
    with pytest.raises(PaymentProviderConfigurationError):
        build_payconiq_config(Settings(PAYCONIQ_MERCHANT_ID="M1", PAYCONIQ_ACCESS_TOKEN=""))


def test_settings_reject_non_positive_timeout():
    with pytest.raises(ValueError):
        Settings(PAYCONIQ_TIMEOUT_SECONDS=0)


def test_start_checkout_maps_provider_status(payconiq, gateway):
    payconiq.reply({"transactionId": "T1", "status": "SUCCEEDED"})

    payment = gateway.start_checkout(100, "EUR")

    assert payment.status == "approved"
    assert payment.provider_status == "SUCCEEDED"


@pytest.mark.parametrize("provider_status", [3, ["SUCCEEDED"], {"code": "SUCCEEDED"}])
def test_non_string_status_maps_to_pending(provider_status):
    assert map_payconiq_status(provider_status) == "pending"


def test_get_payment_status_tolerates_unusual_field_types(payconiq, gateway):
    payconiq.reply({"_id": "T1", "status": 3, "currency": 978, "amount": "500"})

    payment = gateway.get_payment_status("T1")

    assert payment.status == "pending"
    assert payment.provider_status == "3"
    assert payment.currency == "978"
    assert payment.amount is None


def test_gateway_client_is_replaced_and_closed_when_settings_change():
    first_settings = Settings(PAYCONIQ_MERCHANT_ID="M1", PAYCONIQ_ACCESS_TOKEN="token-a")
    second_settings = Settings(PAYCONIQ_MERCHANT_ID="M1", PAYCONIQ_ACCESS_TOKEN="token-b")
    try:
        first = get_payconiq_gateway(first_settings).client
        assert get_payconiq_gateway(first_settings).client is first

        second = get_payconiq_gateway(second_settings).client

        assert second is not first
        assert first.transport._client.is_closed
        assert not second.transport._client.is_closed
    finally:
        close_payconiq_client()

    assert second.transport._client.is_closed
