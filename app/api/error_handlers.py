from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.services.payment_providers import (
    InvalidPaymentRequestError,
    PaymentProviderConfigurationError,
    PaymentProviderError,
    ProviderError,
)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ProviderError)
    async def handle_provider_error(_: Request, exc: ProviderError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "provider_code": exc.code},
        )

    @app.exception_handler(PaymentProviderConfigurationError)
    async def handle_configuration(_: Request, exc: PaymentProviderConfigurationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})

    @app.exception_handler(InvalidPaymentRequestError)
    async def handle_invalid_request(_: Request, exc: InvalidPaymentRequestError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})

    @app.exception_handler(PaymentProviderError)
    async def handle_payment_error(_: Request, exc: PaymentProviderError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})
