# app/api/deps.py
from threading import Lock

from fastapi import Depends

from app.core.config import Settings, settings
from app.services.payment_providers import PaymentProviderConfigurationError
from app.services.payment_providers.payconiq import PayconiqClient, PayconiqConfig
from app.services.payment_service import PayconiqGateway


def get_settings() -> Settings:
    return settings


def build_payconiq_config(app_settings: Settings) -> PayconiqConfig:
    """Turn environment settings into the immutable client configuration."""
    if not app_settings.PAYCONIQ_MERCHANT_ID:
        raise PaymentProviderConfigurationError("Payconiq merchant id is not configured")
    if not app_settings.PAYCONIQ_ACCESS_TOKEN:
        raise PaymentProviderConfigurationError("Payconiq access token is not configured")
    return PayconiqConfig(
        merchant_id=app_settings.PAYCONIQ_MERCHANT_ID,
        access_token=app_settings.PAYCONIQ_ACCESS_TOKEN,
        sandbox=app_settings.PAYCONIQ_SANDBOX,
        base_url=app_settings.PAYCONIQ_API_BASE_URL,
        sandbox_base_url=app_settings.PAYCONIQ_SANDBOX_BASE_URL,
        auth_scheme=app_settings.PAYCONIQ_AUTH_SCHEME,
        timeout_seconds=app_settings.PAYCONIQ_TIMEOUT_SECONDS,
    )


_client_cache: dict[PayconiqConfig, PayconiqClient] = {}
_client_lock = Lock()


def _payconiq_client(config: PayconiqConfig) -> PayconiqClient:
    with _client_lock:
        client = _client_cache.get(config)
        if client is None:
            # Settings changed: release the old connection pool before replacing it
            _close_cached_clients()
            client = _client_cache[config] = PayconiqClient(config)
        return client


def close_payconiq_client() -> None:
    with _client_lock:
        _close_cached_clients()


def _close_cached_clients() -> None:
    while _client_cache:
        _, client = _client_cache.popitem()
        client.close()


def get_payconiq_gateway(app_settings: Settings = Depends(get_settings)) -> PayconiqGateway:
    client = _payconiq_client(build_payconiq_config(app_settings))
    return PayconiqGateway(client, callback_url=app_settings.PAYCONIQ_CALLBACK_URL)
